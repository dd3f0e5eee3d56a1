"""
Example: Upcoming passes over London from the bundled element sets.

Reads data/amateur.tle, predicts 48 hours of passes above 10° for every
satellite in it, prints the schedule and plots the next ISS pass.
Run from the repository root.
"""

import sys
sys.path.insert(0, "src")

from datetime import datetime, timezone

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend

from skypass.locator import position_to_locator
from skypass.predictor import (
    PassPredictor,
    PredictionSettings,
    build_position_history,
    passes_to_dataframe,
    predict_passes,
)
from skypass.satellite import Satellite
from skypass.tle_parser import load_tle_file
from skypass.topocentric import GeoPos
from skypass.viz import plot_elevation_profile, plot_pass_timeline, plot_sky_track


def main():
    print("=" * 65)
    print("  skypass — Pass Prediction Demo (London, 48 h)")
    print("=" * 65)

    observer = GeoPos(51.5, -0.1, 0.05)
    start = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
    settings = PredictionSettings(hours_ahead=48.0, min_elevation=10.0)

    elements = load_tle_file("data/amateur.tle")
    print(f"\nObserver: {observer.latitude}°, {observer.longitude}° "
          f"({position_to_locator(observer.latitude, observer.longitude)})")
    print(f"Loaded {len(elements)} element sets")
    for el in elements:
        model = "SDP4" if el.is_deepspace else "SGP4"
        print(f"  NORAD {el.catalog_number:>5} {el.name:12s} "
              f"period {el.orbital_period:7.1f} min  [{model}]")

    passes = predict_passes(elements, observer, settings, start)
    if not passes:
        print("\nNo passes in horizon.")
        return

    print(f"\n{'AOS (UTC)':20s} {'NORAD':>6} {'NAME':12s} {'MAX EL':>7} {'DUR (min)':>10}")
    print("-" * 65)
    for p in passes:
        aos = f"{p.aos_time:%Y-%m-%d %H:%M:%S}" if p.aos_time else "in progress"
        dur = f"{p.duration.total_seconds() / 60:.1f}" if p.duration else "—"
        print(f"{aos:20s} {p.catalog_number:>6} {p.name:12s} "
              f"{p.max_elevation:>6.1f}° {dur:>10}")

    # ── Next ISS pass ──
    iss = next((el for el in elements if el.catalog_number == 25544), None)
    if iss is None:
        return
    predictor = PassPredictor(Satellite(iss), observer)
    iss_passes = [p for p in passes if p.catalog_number == 25544]
    if not iss_passes:
        return

    next_pass = iss_passes[0]
    print(f"\n{'=' * 65}")
    print("NEXT ISS PASS")
    print(f"{'=' * 65}")
    print(f"  {next_pass.summary()}")

    track = predictor.get_pass_track(next_pass, step_seconds=10.0)
    aos_pos = track[0]
    print(f"  Doppler at AOS on 145.800 MHz: "
          f"{PassPredictor.get_downlink_freq(145.8e6, aos_pos.distance_rate) - 145.8e6:+.0f} Hz")

    track_df = build_position_history(track)
    plot_sky_track(track_df, title="ISS — next pass", min_elevation=10.0,
                   save_path="data/iss_sky_track.png")
    print("\nPlot saved to data/iss_sky_track.png")

    plot_elevation_profile(track_df, title="ISS — elevation and range", min_elevation=10.0,
                           save_path="data/iss_elevation.png")
    print("Plot saved to data/iss_elevation.png")

    plot_pass_timeline(passes_to_dataframe(passes), save_path="data/pass_schedule.png")
    print("Plot saved to data/pass_schedule.png")


if __name__ == "__main__":
    main()
