"""skypass — Satellite position and pass prediction from orbital elements.

Propagate NORAD element sets with SGP4 (near-Earth) and SDP4 (deep-space)
and turn the inertial states into observer-relative look angles, geodetic
sub-points and visibility windows.

Modules:
    constants:    Physical and model constants.
    mathutils:    Vector type and angle helpers.
    timeutils:    Day numbers, Julian dates and sidereal time.
    elements:     Orbital element set data model.
    tle_parser:   TLE text and files to element sets.
    propagator:   Shared propagator recovery, Kepler solver and composer.
    sgp4:         Near-Earth propagator.
    sdp4:         Deep-space propagator (lunar/solar terms, resonance).
    topocentric:  Look angles, range-rate and geodetic sub-point.
    satellite:    Element set bound to its propagator.
    predictor:    Pass prediction, batch prediction and Doppler.
    locator:      Maidenhead (QTH) locator conversion.
    viz:          Sky track, elevation and schedule plots.
    cli:          Command-line interface.

Example:
    >>> from datetime import datetime, timezone
    >>> from skypass.tle_parser import parse_tle
    >>> from skypass.satellite import Satellite
    >>> from skypass.topocentric import GeoPos
    >>> from skypass.predictor import PassPredictor, PredictionSettings
    >>>
    >>> elements = parse_tle(line1, line2, name="ISS (ZARYA)")
    >>> predictor = PassPredictor(Satellite(elements), GeoPos(51.5, -0.1, 0.05))
    >>> start = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
    >>> for p in predictor.get_passes(start, PredictionSettings(min_elevation=10)):
    ...     print(p.summary())
"""

__version__ = "0.1.0"
