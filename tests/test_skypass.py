#!/usr/bin/env python3
"""
Unit test driver for skypass: SGP4/SDP4 propagation, topocentric transform and pass prediction.
"""
import math
import threading
from datetime import datetime, timedelta, timezone

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from skypass.constants import EARTH_RADIUS, MU_EARTH, QOMS2T_STANDARD, S_STANDARD, TWO_PI
from skypass.elements import OrbitalElements, find_elements
from skypass.locator import locator_to_position, position_to_locator
from skypass.mathutils import Vector3, ac_tan, fraction, mod2pi, modulus
from skypass.predictor import (
    PassPredictor,
    PredictionSettings,
    build_position_history,
    next_event,
    passes_to_dataframe,
    predict_passes,
)
from skypass.propagator import adjust_for_perigee, solve_kepler
from skypass.satellite import Satellite, will_be_seen
from skypass.sdp4 import DeepSpacePropagator
from skypass.sgp4 import NearEarthPropagator
from skypass.timeutils import (
    day_number,
    epoch_to_datetime,
    greenwich_sidereal_angle,
    julian_date_of_epoch,
    julian_date_of_year,
    split_epoch,
)
from skypass.tle_parser import load_tle_file, parse_tle, parse_tle_batch
from skypass.topocentric import (
    GeoPos,
    SatPos,
    calculate_lat_lon_alt,
    calculate_obs,
    calculate_user_pos_vel,
)


ISS_LINE1 = "1 25544U 98067A   24001.50000000  .00016717  00000-0  10270-3 0  9003"
ISS_LINE2 = "2 25544  51.6400 208.5000 0007417  68.0000 292.1000 15.49560000400000"

# Spacetrack Report No. 3 verification element sets
SGP4_LINE1 = "1 88888U          80275.98708465  .00073094  13844-3  66816-4 0    8"
SGP4_LINE2 = "2 88888  72.8435 115.9689 0086731  52.6988 110.5714 16.05824518  105"
SDP4_LINE1 = "1 11801U          80230.29629788  .01431103  00000-0  14311-1      13"
SDP4_LINE2 = "2 11801  46.7916 230.4354 7318036  47.4722  10.4117  2.28537848    13"

START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
LONDON = GeoPos(51.5, -0.1, 0.05)
EQUATOR = GeoPos(0.0, 0.0, 0.0)


def _make_elements(
    catalog_number: int = 90001,
    mean_motion: float = 15.5,
    eccentricity: float = 0.0005,
    inclination: float = 51.6,
    raan: float = 100.0,
    arg_perigee: float = 90.0,
    mean_anomaly: float = 0.0,
    epoch: float = 24001.5,
    bstar: float = 0.0,
    name: str = "TEST-SAT",
) -> OrbitalElements:
    """Create a synthetic element set for testing."""
    return OrbitalElements(
        name=name,
        catalog_number=catalog_number,
        epoch=epoch,
        mean_motion=mean_motion,
        eccentricity=eccentricity,
        inclination=inclination,
        raan=raan,
        arg_perigee=arg_perigee,
        mean_anomaly=mean_anomaly,
        bstar=bstar,
    )


def _geo_elements(mean_motion: float = 1.0027) -> OrbitalElements:
    """Geostationary element set sitting over longitude ~0 at 2024-01-01 12:00 UTC.

    A faster ``mean_motion`` gives a near-GEO object drifting east.
    """
    return _make_elements(
        catalog_number=90002,
        mean_motion=mean_motion,
        eccentricity=0.0002,
        inclination=0.05,
        raan=100.0,
        arg_perigee=90.0,
        mean_anomaly=90.6,
        name="TEST-GEO",
    )


@pytest.fixture
def iss() -> OrbitalElements:
    return parse_tle(ISS_LINE1, ISS_LINE2, name="ISS (ZARYA)")


# ═══════════════════════════════════════════════════════════════
# MATH & TIME TESTS
# ═══════════════════════════════════════════════════════════════
class TestMathUtils:
    def test_vector_ops(self):
        v = Vector3(3.0, 4.0, 12.0)
        assert v.magnitude() == pytest.approx(13.0)
        v.scale(2.0)
        assert (v.x, v.y, v.z) == (6.0, 8.0, 24.0)
        diff = v - Vector3(1.0, 1.0, 1.0)
        assert (diff.x, diff.y, diff.z) == (5.0, 7.0, 23.0)
        assert Vector3(1, 2, 3).dot(Vector3(4, 5, 6)) == 32

    def test_mod2pi_non_negative(self):
        for value in (-10.0, -TWO_PI, -1e-9, 0.0, 1.0, 7.0, 100.0):
            r = mod2pi(value)
            assert 0.0 <= r < TWO_PI
            assert math.isclose(math.sin(r), math.sin(value), abs_tol=1e-9)

    def test_fraction_and_modulus(self):
        assert fraction(2.25) == pytest.approx(0.25)
        assert fraction(-0.25) == pytest.approx(0.75)
        assert modulus(86400.0 + 10.0) == pytest.approx(10.0)
        assert modulus(-10.0) == pytest.approx(86390.0)

    def test_ac_tan_range(self):
        assert ac_tan(0.0, 1.0) == 0.0
        assert ac_tan(-1.0, 0.0) == pytest.approx(1.5 * math.pi)


class TestTimeUtils:
    def test_julian_date_of_year(self):
        # 0 January 2024 (= 31 December 2023, 00:00 UTC)
        assert julian_date_of_year(2024) == pytest.approx(2460309.5)

    def test_julian_date_of_epoch(self):
        assert julian_date_of_epoch(24001.5) == pytest.approx(2460311.0, abs=1e-6)

    def test_day_number_matches_julian(self):
        jd = day_number(START) + 2444238.5
        assert jd == pytest.approx(2460311.0, abs=1e-9)

    def test_naive_datetime_is_utc(self):
        assert day_number(datetime(2024, 1, 1, 12)) == day_number(START)

    def test_epoch_pivot(self):
        assert split_epoch(57001.0)[0] == 1957
        assert split_epoch(56001.0)[0] == 2056
        assert split_epoch(99365.0)[0] == 1999
        assert split_epoch(0.5)[0] == 2000

    def test_epoch_to_datetime(self):
        dt = epoch_to_datetime(24001.5)
        assert abs(dt - START) < timedelta(milliseconds=1)

    def test_gmst_at_j2000(self):
        # GMST at 2000-01-01 12:00 UT1 is ~280.46°
        assert greenwich_sidereal_angle(2451545.0) == pytest.approx(4.894961, abs=1e-4)


# ═══════════════════════════════════════════════════════════════
# ELEMENT SET & TLE TESTS
# ═══════════════════════════════════════════════════════════════
class TestTLEParser:
    def test_parse_iss(self, iss):
        assert iss.catalog_number == 25544
        assert iss.name == "ISS (ZARYA)"
        assert iss.epoch == pytest.approx(24001.5)
        assert iss.inclination == pytest.approx(51.64)
        assert iss.raan == pytest.approx(208.5)
        assert iss.eccentricity == pytest.approx(0.0007417)
        assert iss.mean_motion == pytest.approx(15.4956)
        assert iss.bstar == pytest.approx(0.10270e-3)
        assert iss.intl_designator == "98067A"

    def test_default_name(self):
        el = parse_tle(ISS_LINE1, ISS_LINE2)
        assert el.name == "NORAD 25544"

    def test_parse_batch_multiple(self):
        text = (
            f"ISS (ZARYA)\n{ISS_LINE1}\n{ISS_LINE2}\n"
            f"{SGP4_LINE1}\n{SGP4_LINE2}\n"
        )
        elements = parse_tle_batch(text)
        assert [e.catalog_number for e in elements] == [25544, 88888]
        assert elements[0].name == "ISS (ZARYA)"

    def test_load_tle_file(self, tmp_path):
        path = tmp_path / "sats.tle"
        path.write_text(f"ISS (ZARYA)\n{ISS_LINE1}\n{ISS_LINE2}\n")
        elements = load_tle_file(path)
        assert len(elements) == 1
        assert find_elements(elements, 25544) is elements[0]
        assert find_elements(elements, 1) is None

    def test_invalid_line1_start(self):
        with pytest.raises(ValueError, match="Line 1 must start"):
            parse_tle("2 25544..." + " " * 60, ISS_LINE2)

    def test_catalog_number_mismatch(self):
        bad_line2 = "2 99999" + ISS_LINE2[7:]
        with pytest.raises(ValueError, match="Catalog number mismatch"):
            parse_tle(ISS_LINE1, bad_line2)

    def test_malformed_field(self):
        bad_line2 = ISS_LINE2[:8] + "  xx.xxx" + ISS_LINE2[16:]
        with pytest.raises(ValueError, match="Malformed"):
            parse_tle(ISS_LINE1, bad_line2)

    def test_negative_exponent_field(self):
        line1 = ISS_LINE1[:53] + "-11606-4" + ISS_LINE1[61:]
        assert parse_tle(line1, ISS_LINE2).bstar == pytest.approx(-0.11606e-4)

    def test_checksum_mismatch_warns(self, caplog):
        body = ISS_LINE1[:68]
        good = sum(int(c) if c.isdigit() else c == "-" for c in body) % 10
        with caplog.at_level("WARNING", logger="skypass.tle_parser"):
            parse_tle(body + str(good), ISS_LINE2)
            assert not any("line 1" in r.getMessage() for r in caplog.records)
            parse_tle(body + str((good + 1) % 10), ISS_LINE2)
        assert any("Checksum mismatch on line 1" in r.getMessage() for r in caplog.records)

    def test_batch_skips_stray_lines(self):
        text = f"# comment\nISS (ZARYA)\n{ISS_LINE1}\n{ISS_LINE2}\ntrailing\n"
        elements = parse_tle_batch(text)
        assert len(elements) == 1
        assert elements[0].name == "ISS (ZARYA)"


class TestOrbitalElements:
    def test_period_and_regime(self, iss):
        assert iss.orbital_period == pytest.approx(1440.0 / 15.4956)
        assert not iss.is_deepspace

    def test_deepspace_threshold(self):
        # 1440 / 6.4 = 225 minutes exactly
        assert _make_elements(mean_motion=6.4).is_deepspace
        assert not _make_elements(mean_motion=6.41).is_deepspace
        assert _geo_elements().is_deepspace

    def test_immutable(self, iss):
        with pytest.raises(AttributeError):
            iss.mean_motion = 1.0

    def test_to_dict(self, iss):
        d = iss.to_dict()
        assert d["catalog_number"] == 25544
        assert d["deepspace"] is False
        assert d["epoch"].year == 2024


# ═══════════════════════════════════════════════════════════════
# PROPAGATOR TESTS
# ═══════════════════════════════════════════════════════════════
class TestPerigeeAdjustment:
    def test_standard_atmosphere(self):
        assert adjust_for_perigee(156.0) == (S_STANDARD, QOMS2T_STANDARD)
        assert adjust_for_perigee(400.0) == (S_STANDARD, QOMS2T_STANDARD)

    def test_low_perigee(self):
        s4, qoms24 = adjust_for_perigee(120.0)
        assert s4 == pytest.approx(42.0 / EARTH_RADIUS + 1.0)
        assert qoms24 == pytest.approx(((120.0 - 42.0) / EARTH_RADIUS) ** 4)

    def test_very_low_perigee(self):
        s4, qoms24 = adjust_for_perigee(90.0)
        assert s4 == pytest.approx(20.0 / EARTH_RADIUS + 1.0)
        assert qoms24 == pytest.approx((100.0 / EARTH_RADIUS) ** 4)

    def test_computed_once_per_satellite(self, iss):
        sat = Satellite(iss)
        s4, qoms24 = sat.s4, sat.qoms24
        sat.get_position(LONDON, START)
        sat.get_position(LONDON, START + timedelta(days=1))
        assert (sat.s4, sat.qoms24) == (s4, qoms24)


class TestKepler:
    def test_circular(self):
        sin_e, cos_e, ecose, esine = solve_kepler(1.2, 0.0, 0.0)
        assert sin_e == pytest.approx(math.sin(1.2))
        assert cos_e == pytest.approx(math.cos(1.2))
        assert ecose == 0.0 and esine == 0.0

    def test_residual(self):
        capu, axn, ayn = 1.0, 0.1, 0.05
        sin_e, cos_e, _, _ = solve_kepler(capu, axn, ayn)
        e = math.atan2(sin_e, cos_e)
        assert e - axn * sin_e + ayn * cos_e - capu == pytest.approx(0.0, abs=1e-10)

    def test_bounded_for_extreme_eccentricity(self):
        # Must return without raising even if not converged
        result = solve_kepler(0.01, 0.999, 0.0)
        assert all(math.isfinite(x) for x in result)


class TestSGP4:
    def test_dispatch(self):
        sat = Satellite(parse_tle(SGP4_LINE1, SGP4_LINE2))
        assert isinstance(sat.propagator, NearEarthPropagator)

    def test_verification_vector_at_epoch(self):
        """Spacetrack Report No. 3, object 88888 at tsince = 0."""
        sat = Satellite(parse_tle(SGP4_LINE1, SGP4_LINE2))
        pos, vel = sat.propagate(0.0)

        # Reference values were computed with a 6378.135 km Earth radius
        scale = EARTH_RADIUS / 6378.135
        ref_r = np.array([2328.97048951, -5995.22076416, 1719.97067261]) * scale
        ref_v = np.array([2.91207230, -0.98341546, -7.09081703]) * scale
        r = np.array([pos.x, pos.y, pos.z])
        v = np.array([vel.x, vel.y, vel.z])

        assert np.linalg.norm(r - ref_r) / np.linalg.norm(ref_r) < 1e-6
        assert np.linalg.norm(v - ref_v) / np.linalg.norm(ref_v) < 1e-6

    def test_decayed_orbit_stays_numeric(self):
        """Perigee near the surface: back-propagation returns finite states."""
        el = _make_elements(
            mean_motion=13.3513,
            eccentricity=0.14516,
            inclination=73.3,
            raan=3.0,
            arg_perigee=191.5,
            mean_anomaly=137.0,
            bstar=0.005,
        )
        sat = Satellite(el)
        assert not sat.is_deepspace
        assert sat.propagator.perigee < 98.0

        for minutes in (-2000.0, -1500.0, -1000.0, -500.0, 0.0):
            pos, vel = sat.propagate(minutes)
            state = [pos.x, pos.y, pos.z, vel.x, vel.y, vel.z]
            assert all(math.isfinite(c) for c in state)


class TestSDP4:
    def test_dispatch(self):
        sat = Satellite(parse_tle(SDP4_LINE1, SDP4_LINE2))
        assert sat.is_deepspace
        assert isinstance(sat.propagator, DeepSpacePropagator)

    def test_state_at_epoch_is_physical(self):
        """Object 11801: radius within perigee/apogee, speed matches vis-viva."""
        el = parse_tle(SDP4_LINE1, SDP4_LINE2)
        sat = Satellite(el)
        pos, vel = sat.propagate(0.0)
        r = pos.magnitude()
        v = vel.magnitude()

        n = el.mean_motion * TWO_PI / 86400.0
        a = (MU_EARTH / (n * n)) ** (1.0 / 3.0)
        assert 0.95 * a * (1.0 - el.eccentricity) < r < 1.05 * a * (1.0 + el.eccentricity)
        assert v * v == pytest.approx(MU_EARTH * (2.0 / r - 1.0 / a), rel=0.01)

    def test_verification_vector_at_epoch(self):
        """Spacetrack Report No. 3, object 11801 at tsince = 0."""
        sat = Satellite(parse_tle(SDP4_LINE1, SDP4_LINE2))
        pos, vel = sat.propagate(0.0)

        scale = EARTH_RADIUS / 6378.135
        ref_r = np.array([7473.37066650, 428.95261765, 5828.74786377]) * scale
        ref_v = np.array([5.10715130, 6.44468284, -0.18613096]) * scale
        r = np.array([pos.x, pos.y, pos.z])
        v = np.array([vel.x, vel.y, vel.z])

        assert np.linalg.norm(r - ref_r) / np.linalg.norm(ref_r) < 1e-6
        assert np.linalg.norm(v - ref_v) / np.linalg.norm(ref_v) < 1e-6

    def test_resonance_classification(self):
        geo = DeepSpacePropagator(_geo_elements())
        assert geo.resonance and geo.synchronous

        molniya = DeepSpacePropagator(
            _make_elements(mean_motion=2.006, eccentricity=0.72, inclination=63.4)
        )
        assert molniya.resonance and not molniya.synchronous

        plain = DeepSpacePropagator(parse_tle(SDP4_LINE1, SDP4_LINE2))
        assert not plain.resonance

    def test_geo_radius(self):
        sat = Satellite(_geo_elements())
        for minutes in (0.0, 720.0, 1440.0, 10 * 1440.0):
            pos, _ = sat.propagate(minutes)
            assert pos.magnitude() == pytest.approx(42164.0, rel=0.002)

    def test_idempotent_out_of_order(self):
        sat = Satellite(_geo_elements())
        first = sat.propagate(3000.0)[0].copy()
        sat.propagate(-5000.0)
        sat.propagate(100.0)
        again = sat.propagate(3000.0)[0].copy()
        assert (first.x, first.y, first.z) == (again.x, again.y, again.z)


# ═══════════════════════════════════════════════════════════════
# TOPOCENTRIC TESTS
# ═══════════════════════════════════════════════════════════════
class TestTopocentric:
    def test_look_angle_ranges(self, iss):
        sat = Satellite(iss)
        for minutes in range(0, 24 * 60, 7):
            pos = sat.get_position(LONDON, START + timedelta(minutes=minutes))
            assert 0.0 <= pos.azimuth < TWO_PI
            assert -math.pi / 2 <= pos.elevation <= math.pi / 2
            assert pos.distance >= 0.0

    def test_geodetic_round_trip(self, iss):
        sat = Satellite(iss)
        jd = day_number(START) + 2444238.5
        for minutes in (0.0, 17.0, 45.0, 80.0):
            pos, _ = sat.propagate(minutes)
            original = pos.copy()
            lat, lon, alt, _ = calculate_lat_lon_alt(jd, original)
            back, _, _ = calculate_user_pos_vel(
                jd, GeoPos(math.degrees(lat), math.degrees(lon), alt)
            )
            assert (back - original).magnitude() < 1e-3

    def test_overhead_satellite(self):
        jd = 2460311.0
        observer = GeoPos(10.0, 20.0, 0.0)
        ground, _, _ = calculate_user_pos_vel(jd, observer)
        up = ground.copy()
        up.scale((ground.magnitude() + 500.0) / ground.magnitude())
        _, elevation, distance, _ = calculate_obs(jd, up, Vector3(), observer)
        assert math.degrees(elevation) > 89.0
        assert distance == pytest.approx(500.0, rel=0.01)

    def test_iss_altitude_and_speed(self, iss):
        pos = Satellite(iss).get_position(LONDON, START)
        assert 370.0 < pos.altitude < 460.0
        assert 7.5 < pos.orbital_velocity < 7.8
        assert 2000.0 < pos.footprint_radius < 2400.0

    def test_footprint(self, iss):
        pos = Satellite(iss).get_position(LONDON, START)
        ring = pos.footprint(36)
        assert ring.shape == (36, 2)
        assert np.all(np.abs(ring[:, 0]) <= 90.0)
        assert np.all((ring[:, 1] >= -180.0) & (ring[:, 1] < 180.0))

    def test_to_dict_degrees(self):
        d = SatPos(azimuth=math.pi, elevation=math.pi / 4, longitude=1.5 * math.pi).to_dict()
        assert d["azimuth_deg"] == pytest.approx(180.0)
        assert d["elevation_deg"] == pytest.approx(45.0)
        assert d["longitude_deg"] == pytest.approx(-90.0)


# ═══════════════════════════════════════════════════════════════
# VISIBILITY & PASS PREDICTION TESTS
# ═══════════════════════════════════════════════════════════════
class TestVisibility:
    def test_zero_mean_motion(self):
        el = _make_elements(mean_motion=0.0)
        assert not will_be_seen(el, LONDON)
        with pytest.raises(ValueError):
            Satellite(el)

    def test_low_inclination_high_latitude(self):
        el = _make_elements(mean_motion=15.5, inclination=5.0)
        assert not will_be_seen(el, GeoPos(70.0, 0.0, 0.0))
        assert will_be_seen(el, EQUATOR)

    def test_retrograde_inclination_folded(self):
        el = _make_elements(mean_motion=15.5, inclination=175.0)
        assert not will_be_seen(el, GeoPos(70.0, 0.0, 0.0))

    def test_horizon_failure_gives_no_passes(self):
        el = _make_elements(mean_motion=15.5, inclination=5.0)
        predictor = PassPredictor(Satellite(el), GeoPos(70.0, 0.0, 0.0))
        assert predictor.get_passes(START, PredictionSettings(hours_ahead=24)) == []


class TestPredictionSettings:
    def test_default_step(self):
        s = PredictionSettings()
        assert s.step_for(92.9) == pytest.approx(55.74)
        assert s.step_for(1436.0) == 300.0
        assert s.step_for(10.0) == 20.0
        assert PredictionSettings(step_seconds=5.0).step_for(92.9) == 5.0

    def test_presets(self):
        PredictionSettings.for_amateur_radio().validate()
        optical = PredictionSettings.for_optical()
        optical.validate()
        assert optical.min_elevation > 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"hours_ahead": 0.0},
            {"hours_ahead": -1.0},
            {"min_elevation": 95.0},
            {"step_seconds": 0.0},
            {"precision_seconds": 0.0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            PredictionSettings(**kwargs).validate()


class TestPassPredictor:
    def test_iss_passes_over_london(self, iss):
        """ISS from London over 24 h above 10°: several well-formed passes."""
        threshold = 10.0
        predictor = PassPredictor(Satellite(iss), LONDON)
        passes = predictor.get_passes(START, PredictionSettings(hours_ahead=24, min_elevation=threshold))

        assert 4 <= len(passes) <= 6
        for p in passes:
            assert not p.is_deepspace
            assert not p.is_continuous
            assert p.max_elevation >= threshold
            if p.aos_time is None or p.los_time is None:
                continue
            assert p.aos_time <= p.tca_time <= p.los_time
            assert timedelta(0) < p.duration < timedelta(minutes=15)
            aos_el = math.degrees(predictor.get_position(p.aos_time).elevation)
            los_el = math.degrees(predictor.get_position(p.los_time).elevation)
            assert threshold - 0.01 <= aos_el <= threshold + 1.0
            assert threshold - 0.01 <= los_el <= threshold + 1.0
            assert p.max_elevation >= aos_el
            assert p.progress == 0.0

        starts = [p.aos_time or START for p in passes]
        assert starts == sorted(starts)

    def test_idempotent(self, iss):
        settings = PredictionSettings(hours_ahead=12, min_elevation=5)
        first = PassPredictor(Satellite(iss), LONDON).get_passes(START, settings)
        second = PassPredictor(Satellite(iss), LONDON).get_passes(START, settings)
        assert first == second

    def test_geo_is_continuous(self):
        predictor = PassPredictor(Satellite(_geo_elements()), EQUATOR)
        passes = predictor.get_passes(START, PredictionSettings(hours_ahead=24, min_elevation=10))

        assert len(passes) == 1
        p = passes[0]
        assert p.is_continuous
        assert p.is_deepspace
        assert p.duration is None
        assert p.max_elevation > 45.0

    def test_drifting_near_geo_is_continuous(self):
        """Up for the whole window, with rise and set outside it."""
        predictor = PassPredictor(Satellite(_geo_elements(mean_motion=1.12)), EQUATOR)
        settings = PredictionSettings(hours_ahead=24, min_elevation=10)
        end = START + timedelta(hours=24)
        passes = predictor.get_passes(START, settings)

        assert len(passes) == 1
        p = passes[0]
        assert p.is_deepspace
        assert p.aos_time is None or p.aos_time < START
        assert p.los_time is not None and p.los_time > end
        assert p.is_continuous
        assert p.to_dict()["continuous"]

    def test_near_geo_setting_inside_window_is_not_continuous(self):
        predictor = PassPredictor(Satellite(_geo_elements(mean_motion=1.12)), EQUATOR)
        settings = PredictionSettings(hours_ahead=24, min_elevation=10)
        later = START + timedelta(hours=36)
        passes = predictor.get_passes(later, settings)

        assert passes
        first = passes[0]
        assert first.los_time is not None
        assert later < first.los_time < later + timedelta(hours=24)
        assert not first.is_continuous

    def test_pass_in_progress_at_start(self, iss):
        predictor = PassPredictor(Satellite(iss), LONDON)
        settings = PredictionSettings(hours_ahead=24, min_elevation=0)
        upcoming = predictor.get_passes(START, settings)[0]
        mid = upcoming.aos_time + (upcoming.los_time - upcoming.aos_time) / 2

        resumed = predictor.get_passes(mid, settings)[0]
        assert resumed.aos_time is not None
        assert abs((resumed.aos_time - upcoming.aos_time).total_seconds()) <= 2.0
        assert 0.0 < resumed.progress < 1.0

    def test_pass_track(self, iss):
        predictor = PassPredictor(Satellite(iss), LONDON)
        p = predictor.get_passes(START, PredictionSettings(hours_ahead=24, min_elevation=10))[0]
        track = predictor.get_pass_track(p, step_seconds=10.0)
        assert track[0].time == p.aos_time
        assert track[-1].time == p.los_time
        assert all(pos.elevation > 0.0 for pos in track)

    def test_get_positions(self, iss):
        predictor = PassPredictor(Satellite(iss), LONDON)
        positions = predictor.get_positions(START, 60.0, minutes_before=5, minutes_after=5)
        assert len(positions) == 11
        assert positions[5].time == START

    def test_doppler(self):
        f = 145.8e6
        assert PassPredictor.get_downlink_freq(f, 0.0) == f
        # Receding: received frequency drops, transmit frequency must rise
        assert PassPredictor.get_downlink_freq(f, 5.0) == pytest.approx(f * (1 - 5000.0 / 299792458.0))
        assert PassPredictor.get_uplink_freq(f, 5.0) == pytest.approx(f * (1 + 5000.0 / 299792458.0))
        assert PassPredictor.get_downlink_freq(f, -5.0) > f


class TestBatchPrediction:
    def test_sorted_and_filtered(self, iss):
        low = _make_elements(catalog_number=90003, inclination=5.0)
        elements = [_geo_elements(), low, iss]
        passes = predict_passes(
            elements, EQUATOR, PredictionSettings(hours_ahead=12, min_elevation=10),
            start=START, max_workers=2,
        )
        assert passes
        keys = [(p.aos_time or START, p.catalog_number) for p in passes]
        assert keys == sorted(keys)
        assert 90002 in {p.catalog_number for p in passes}

    def test_matches_single_predictor(self, iss):
        settings = PredictionSettings(hours_ahead=24, min_elevation=10)
        batch = predict_passes([iss], LONDON, settings, start=START, max_workers=4)
        single = PassPredictor(Satellite(iss), LONDON).get_passes(START, settings)
        assert batch == single

    def test_cancelled_before_start(self, iss):
        cancel = threading.Event()
        cancel.set()
        passes = predict_passes([iss, _geo_elements()], LONDON, start=START, cancel_event=cancel)
        assert passes == []

    def test_nothing_visible(self):
        hidden = _make_elements(inclination=5.0)
        assert predict_passes([hidden], GeoPos(70.0, 0.0, 0.0), start=START) == []

    def test_next_event(self, iss):
        passes = predict_passes(
            [iss], LONDON, PredictionSettings(hours_ahead=24, min_elevation=10), start=START
        )
        first = passes[0]
        assert next_event(passes, START) == ("AOS", first, first.aos_time - START)

        mid = first.aos_time + (first.los_time - first.aos_time) / 2
        label, event_pass, remaining = next_event(passes, mid)
        assert (label, event_pass) == ("LOS", first)
        assert remaining == first.los_time - mid

        assert next_event(passes, passes[-1].los_time) is None
        assert next_event([], START) is None


class TestDataFrames:
    def test_passes_to_dataframe(self, iss):
        passes = PassPredictor(Satellite(iss), LONDON).get_passes(
            START, PredictionSettings(hours_ahead=24, min_elevation=10)
        )
        df = passes_to_dataframe(passes)
        assert len(df) == len(passes)
        assert {"aos", "tca", "los", "max_el_deg", "continuous"} <= set(df.columns)
        assert passes_to_dataframe([]).empty

    def test_position_history(self, iss):
        predictor = PassPredictor(Satellite(iss), LONDON)
        df = build_position_history(predictor.get_positions(START, 30.0, 0.0, 30.0))
        assert len(df) == 61
        assert df["time"].is_monotonic_increasing
        assert df["elevation_deg"].between(-90, 90).all()


# ═══════════════════════════════════════════════════════════════
# LOCATOR TESTS
# ═══════════════════════════════════════════════════════════════
class TestLocator:
    def test_london(self):
        assert position_to_locator(51.5, -0.1) == "IO91wm"

    def test_east_longitude_over_180(self):
        assert position_to_locator(51.5, 359.9) == "IO91wm"

    def test_reverse(self):
        pos = locator_to_position("IO91wm")
        assert pos.latitude == pytest.approx(51.5208)
        assert pos.longitude == pytest.approx(-0.125)

    def test_case_insensitive(self):
        assert locator_to_position("io91WM") == locator_to_position("IO91wm")

    @pytest.mark.parametrize("bad", ["", "IO91", "IO91w", "1O91wm", "IO9xwm", "IO91wz"])
    def test_invalid_locator(self, bad):
        with pytest.raises(ValueError):
            locator_to_position(bad)

    def test_invalid_position(self):
        with pytest.raises(ValueError):
            position_to_locator(91.0, 0.0)


# ═══════════════════════════════════════════════════════════════
# VISUALIZATION TESTS
# ═══════════════════════════════════════════════════════════════
class TestViz:
    def test_plots_return_figures(self, iss, tmp_path):
        import matplotlib.pyplot as plt
        from skypass.viz import (
            plot_elevation_profile,
            plot_ground_track,
            plot_pass_timeline,
            plot_sky_track,
        )

        predictor = PassPredictor(Satellite(iss), LONDON)
        passes = predictor.get_passes(START, PredictionSettings(hours_ahead=24, min_elevation=10))
        track_df = build_position_history(predictor.get_pass_track(passes[0]))
        orbit_df = build_position_history(predictor.get_positions(START, 60.0, 0.0, 95.0))

        path = tmp_path / "sky.png"
        assert plot_sky_track(track_df, min_elevation=10, save_path=path) is not None
        assert path.exists()
        assert plot_elevation_profile(track_df, min_elevation=10) is not None
        assert plot_ground_track(orbit_df, footprint=predictor.get_position(START).footprint()) is not None
        assert plot_pass_timeline(passes_to_dataframe(passes)) is not None
        plt.close("all")
