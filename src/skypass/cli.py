#!/usr/bin/env python3
"""skypass command-line interface.

Usage::

    skypass passes --file data/amateur.tle --lat 51.5 --lon -0.1 --hours 24
    skypass passes --file data/amateur.tle --qth IO91wm --min-el 10 -o passes.csv
    skypass track --file data/amateur.tle --catnum 25544 --freq 145800000
    skypass plot --file data/amateur.tle --catnum 25544 --output iss.png
    skypass locator IO91wm

Observer options fall back to the ``SKYPASS_LAT``, ``SKYPASS_LON``,
``SKYPASS_ALT`` and ``SKYPASS_QTH`` environment variables.
"""
from __future__ import annotations

import sys
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .elements import OrbitalElements, find_elements
from .locator import locator_to_position, position_to_locator
from .predictor import (
    PassPredictor,
    PredictionSettings,
    SatPass,
    build_position_history,
    next_event,
    passes_to_dataframe,
    predict_passes,
)
from .satellite import Satellite
from .timeutils import as_utc
from .tle_parser import load_tle_file
from .topocentric import GeoPos

console = Console()


_OBSERVER_OPTIONS = [
    click.option("--lat", type=float, envvar="SKYPASS_LAT", help="Observer latitude (°)"),
    click.option("--lon", type=float, envvar="SKYPASS_LON", help="Observer longitude (°)"),
    click.option("--alt", type=float, default=0.0, envvar="SKYPASS_ALT",
                 show_default=True, help="Observer altitude (km)"),
    click.option("--qth", envvar="SKYPASS_QTH", help="Observer Maidenhead locator"),
]


def observer_options(func):
    """Attach the shared observer position options to a command."""
    for option in reversed(_OBSERVER_OPTIONS):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """skypass — satellite position and pass prediction (SGP4/SDP4)."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s — %(message)s")


@main.command()
@click.option("--file", "-f", "filepath", required=True, type=click.Path(exists=True),
              help="TLE file path")
@observer_options
@click.option("--hours", "-H", default=24.0, show_default=True, help="Look-ahead horizon (hours)")
@click.option("--min-el", "-e", default=0.0, show_default=True, help="Minimum elevation (°)")
@click.option("--start", type=click.DateTime(), help="Start time in UTC (default: now)")
@click.option("--catnum", "-c", type=int, multiple=True, help="Only these catalog numbers")
@click.option("--workers", "-w", type=int, help="Worker threads")
@click.option("--utc/--local", default=True, help="Display times in UTC or local time")
@click.option("--output", "-o", type=click.Path(), help="Save passes to CSV")
def passes(
    filepath: str,
    lat: float | None,
    lon: float | None,
    alt: float,
    qth: str | None,
    hours: float,
    min_el: float,
    start: datetime | None,
    catnum: tuple[int, ...],
    workers: int | None,
    utc: bool,
    output: str | None,
):
    """Predict passes for every satellite in a TLE file."""
    try:
        observer = _resolve_observer(lat, lon, alt, qth)
        settings = PredictionSettings(hours_ahead=hours, min_elevation=min_el)
        settings.validate()
        elements = load_tle_file(filepath)
        if catnum:
            elements = [e for e in elements if e.catalog_number in catnum]
        console.print(f"Loaded {len(elements)} element sets from {filepath}")

        start_utc = as_utc(start) if start else datetime.now(timezone.utc)
        found = predict_passes(elements, observer, settings, start_utc, max_workers=workers)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    if not found:
        console.print("[yellow]No passes found in horizon.[/yellow]")
        return

    _display_passes(found, observer, utc, start_utc)

    if output:
        df = passes_to_dataframe(found)
        df.to_csv(output, index=False)
        console.print(f"\nResults saved to {output}")


@main.command()
@click.option("--file", "-f", "filepath", required=True, type=click.Path(exists=True),
              help="TLE file path")
@click.option("--catnum", "-c", type=int, required=True, help="Catalog number")
@observer_options
@click.option("--at", "at_time", type=click.DateTime(), help="Time in UTC (default: now)")
@click.option("--freq", type=float, help="Transmit frequency for Doppler correction (Hz)")
def track(
    filepath: str,
    catnum: int,
    lat: float | None,
    lon: float | None,
    alt: float,
    qth: str | None,
    at_time: datetime | None,
    freq: float | None,
):
    """Show the current position of one satellite."""
    try:
        observer = _resolve_observer(lat, lon, alt, qth)
        elements = _load_one(filepath, catnum)
        predictor = PassPredictor(Satellite(elements), observer)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    when = as_utc(at_time) if at_time else datetime.now(timezone.utc)
    pos = predictor.get_position(when)
    d = pos.to_dict()

    lines = [
        f"[bold]{elements.name}[/bold] (NORAD {elements.catalog_number})",
        f"Time: {when:%Y-%m-%d %H:%M:%S} UTC",
        f"Azimuth: {d['azimuth_deg']:.2f}°",
        f"Elevation: {d['elevation_deg']:.2f}°",
        f"Range: {pos.distance:.1f} km ({pos.distance_rate:+.3f} km/s)",
        f"Sub-point: {d['latitude_deg']:.3f}°, {d['longitude_deg']:.3f}°",
        f"Altitude: {pos.altitude:.1f} km",
        f"Velocity: {pos.orbital_velocity:.3f} km/s",
        f"Footprint radius: {pos.footprint_radius:.0f} km",
        f"Model: {'SDP4' if elements.is_deepspace else 'SGP4'}",
    ]
    if freq:
        down = predictor.get_downlink_freq(freq, pos.distance_rate)
        up = predictor.get_uplink_freq(freq, pos.distance_rate)
        lines.append(f"Downlink: {down / 1e6:.6f} MHz ({down - freq:+.0f} Hz)")
        lines.append(f"Uplink: {up / 1e6:.6f} MHz ({up - freq:+.0f} Hz)")

    console.print(Panel("\n".join(lines), title="Position", box=box.ROUNDED))


@main.command()
@click.option("--file", "-f", "filepath", required=True, type=click.Path(exists=True),
              help="TLE file path")
@click.option("--catnum", "-c", type=int, required=True, help="Catalog number")
@observer_options
@click.option("--hours", "-H", default=24.0, show_default=True, help="Look-ahead horizon (hours)")
@click.option("--min-el", "-e", default=0.0, show_default=True, help="Minimum elevation (°)")
@click.option("--start", type=click.DateTime(), help="Start time in UTC (default: now)")
@click.option("--output", "-o", type=click.Path(), help="PNG path (default: <catnum>_pass.png)")
def plot(
    filepath: str,
    catnum: int,
    lat: float | None,
    lon: float | None,
    alt: float,
    qth: str | None,
    hours: float,
    min_el: float,
    start: datetime | None,
    output: str | None,
):
    """Plot the sky track of the next pass of one satellite."""
    try:
        observer = _resolve_observer(lat, lon, alt, qth)
        elements = _load_one(filepath, catnum)
        settings = PredictionSettings(hours_ahead=hours, min_elevation=min_el)
        predictor = PassPredictor(Satellite(elements), observer)
        start_utc = as_utc(start) if start else datetime.now(timezone.utc)
        found = predictor.get_passes(start_utc, settings)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    if not found:
        console.print("[yellow]No passes found in horizon.[/yellow]")
        return

    from .viz import plot_sky_track
    import matplotlib.pyplot as plt

    next_pass = found[0]
    track_df = build_position_history(predictor.get_pass_track(next_pass))
    path = output or f"{catnum}_pass.png"
    plot_sky_track(
        track_df,
        title=f"{elements.name} — {next_pass.tca_time:%Y-%m-%d %H:%M} UTC",
        min_elevation=min_el,
        save_path=path,
    )
    plt.close("all")
    console.print(next_pass.summary())
    console.print(f"Plot saved to {path}")


@main.command()
@click.argument("locator", required=False)
@click.option("--lat", type=float, help="Latitude (°)")
@click.option("--lon", type=float, help="Longitude (°)")
def locator(locator: str | None, lat: float | None, lon: float | None):
    """Convert between a Maidenhead locator and coordinates."""
    try:
        if locator:
            pos = locator_to_position(locator)
            console.print(f"{locator.strip()} → "
                          f"{pos.latitude:.4f}°, {pos.longitude:.4f}°")
        elif lat is not None and lon is not None:
            console.print(f"{lat:.4f}°, {lon:.4f}° → {position_to_locator(lat, lon)}")
        else:
            raise ValueError("provide a LOCATOR or both --lat and --lon")
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)


def _resolve_observer(
    lat: Optional[float],
    lon: Optional[float],
    alt: float,
    qth: Optional[str],
) -> GeoPos:
    if lat is not None and lon is not None:
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"Latitude out of range: {lat}")
        return GeoPos(lat, lon, alt)
    if qth:
        pos = locator_to_position(qth)
        return GeoPos(pos.latitude, pos.longitude, alt)
    raise ValueError("Observer position required: --lat/--lon or --qth")


def _load_one(filepath: str, catnum: int) -> OrbitalElements:
    elements = find_elements(load_tle_file(filepath), catnum)
    if elements is None:
        raise ValueError(f"Catalog number {catnum} not found in {filepath}")
    return elements


def _fmt_time(value: Optional[datetime], utc: bool, fmt: str = "%m-%d %H:%M:%S") -> str:
    if value is None:
        return "—"
    return f"{value if utc else value.astimezone():{fmt}}"


def _fmt_countdown(remaining: timedelta) -> str:
    hours, rest = divmod(int(remaining.total_seconds()), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _display_passes(found: list[SatPass], observer: GeoPos, utc: bool, now: datetime):
    """Display predicted passes with rich formatting."""
    continuous = sum(p.is_continuous for p in found)
    upcoming = next_event(found, now)
    countdown = ""
    if upcoming is not None:
        label, event_pass, remaining = upcoming
        countdown = (f"\nNext {label}: NORAD {event_pass.catalog_number} "
                     f"in [bold]{_fmt_countdown(remaining)}[/bold]")
    console.print(
        Panel(
            f"Observer: {observer.latitude:.4f}°, {observer.longitude:.4f}°, "
            f"{observer.altitude * 1000:.0f} m "
            f"({position_to_locator(observer.latitude, observer.longitude)})\n"
            f"Passes: [bold green]{len(found)}[/bold green]"
            + (f" ({continuous} continuous)" if continuous else "")
            + countdown,
            title="Pass Prediction",
            box=box.ROUNDED,
        )
    )

    table = Table(
        title=f"Passes ({'UTC' if utc else 'local time'})",
        box=box.SIMPLE_HEAVY,
        show_lines=True,
    )
    table.add_column("NORAD", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("AOS", style="cyan")
    table.add_column("Az", justify="right")
    table.add_column("TCA", style="cyan")
    table.add_column("Max El", justify="right")
    table.add_column("LOS", style="cyan")
    table.add_column("Az", justify="right")
    table.add_column("Alt (km)", justify="right")

    for p in found[:100]:
        color = "green" if p.max_elevation >= 45.0 else "yellow" if p.max_elevation >= 20.0 else "white"
        table.add_row(
            str(p.catalog_number),
            p.name,
            _fmt_time(p.aos_time, utc) if not p.is_continuous else "continuous",
            f"{p.aos_azimuth:.0f}°" if p.aos_azimuth is not None else "—",
            _fmt_time(p.tca_time, utc),
            f"[{color}]{p.max_elevation:.1f}°[/{color}]",
            _fmt_time(p.los_time, utc) if not p.is_continuous else "continuous",
            f"{p.los_azimuth:.0f}°" if p.los_azimuth is not None else "—",
            f"{p.altitude:.0f}",
        )

    if len(found) > 100:
        console.print(f"(showing 100 of {len(found)} passes)")
    console.print(table)


if __name__ == "__main__":
    main()
