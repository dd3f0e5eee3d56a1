"""
Example: Visibility of synthetic orbits from several observers.

This example doesn't need any downloaded element sets: it builds a
low-Earth, a Molniya and a geostationary orbit by hand, runs batch pass
prediction for three observers and draws the ground tracks.
Useful for seeing how the near-Earth and deep-space models behave.
"""

import sys
sys.path.insert(0, "src")

from datetime import datetime, timezone

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend

from skypass.elements import OrbitalElements
from skypass.predictor import (
    PassPredictor,
    PredictionSettings,
    build_position_history,
    predict_passes,
)
from skypass.satellite import Satellite, will_be_seen
from skypass.topocentric import GeoPos
from skypass.viz import plot_ground_track


def make_elements(
    catalog_number: int,
    mean_motion: float,
    eccentricity: float = 0.0005,
    inclination: float = 51.6,
    raan: float = 100.0,
    arg_perigee: float = 90.0,
    mean_anomaly: float = 0.0,
    name: str = "SYNTH-SAT",
) -> OrbitalElements:
    """Create a synthetic element set with a 2024-01-01 12:00 UTC epoch."""
    return OrbitalElements(
        name=name,
        catalog_number=catalog_number,
        epoch=24001.5,
        mean_motion=mean_motion,
        eccentricity=eccentricity,
        inclination=inclination,
        raan=raan,
        arg_perigee=arg_perigee,
        mean_anomaly=mean_anomaly,
        bstar=1.0e-4,
    )


def main():
    print("=" * 65)
    print("  skypass — Synthetic Orbit Visibility Demo")
    print("=" * 65)

    start = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
    settings = PredictionSettings(hours_ahead=24.0, min_elevation=5.0)

    elements = [
        # ── Low Earth orbit, ~400 km ──
        make_elements(60001, 15.5, name="DEMO-LEO"),
        # ── Low inclination LEO: never reaches high latitudes ──
        make_elements(60002, 15.2, inclination=5.0, name="DEMO-EQ"),
        # ── Molniya: 12 h resonant, apogee over the north ──
        make_elements(60003, 2.006, eccentricity=0.72, inclination=63.4,
                      arg_perigee=270.0, name="DEMO-MOLNIYA"),
        # ── Geostationary over ~0° longitude ──
        make_elements(60004, 1.0027, eccentricity=0.0002, inclination=0.05,
                      arg_perigee=90.0, mean_anomaly=90.6, name="DEMO-GEO"),
    ]
    for el in elements:
        model = "SDP4" if el.is_deepspace else "SGP4"
        print(f"  NORAD {el.catalog_number} {el.name:14s} {el.orbital_period:7.1f} min  [{model}]")

    observers = {
        "Quito": GeoPos(-0.18, -78.47, 2.85),
        "London": GeoPos(51.5, -0.1, 0.05),
        "Tromsø": GeoPos(69.65, 18.96, 0.0),
    }

    for label, observer in observers.items():
        print(f"\n{'=' * 65}")
        print(f"{label.upper()} ({observer.latitude:.2f}°, {observer.longitude:.2f}°)")
        print(f"{'=' * 65}")

        hidden = [el.name for el in elements if not will_be_seen(el, observer)]
        if hidden:
            print(f"  Never visible: {', '.join(hidden)}")

        passes = predict_passes(elements, observer, settings, start)
        for p in passes:
            print(f"  {p.summary()}")
        if not passes:
            print("  No passes.")

    # ── Ground tracks ──
    for el in (elements[0], elements[2]):
        predictor = PassPredictor(Satellite(el), observers["London"])
        positions = predictor.get_positions(start, 60.0, 0.0, 2.0 * el.orbital_period)
        path = f"data/{el.name.lower()}_ground_track.png"
        plot_ground_track(
            build_position_history(positions),
            footprint=positions[0].footprint(),
            title=f"{el.name} — two revolutions",
            save_path=path,
        )
        print(f"\nPlot saved to {path}")


if __name__ == "__main__":
    main()
