"""Visualization tools for skypass predictions.

Plots pass geometry and pass schedules from the DataFrames produced by
:func:`skypass.predictor.build_position_history` and
:func:`skypass.predictor.passes_to_dataframe`. Every function returns the
Figure and optionally saves it as a PNG.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import matplotlib.dates as mdates


# Use a clean style
plt.rcParams.update({
    "figure.facecolor": "white",
    "axes.facecolor": "#fafafa",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "font.family": "sans-serif",
    "font.size": 10,
})

TRACK_COLOR = "#2c3e50"
THRESHOLD_COLOR = "#e74c3c"
DEEPSPACE_COLOR = "#9b59b6"
NEAR_EARTH_COLOR = "#3498db"


def plot_sky_track(
    track_df: pd.DataFrame,
    title: Optional[str] = None,
    min_elevation: float = 0.0,
    save_path: Optional[str | Path] = None,
    figsize: tuple = (7, 7),
) -> plt.Figure:
    """Polar sky plot of a pass: north up, zenith at the centre.

    Samples below the horizon are dropped.

    Args:
        track_df: DataFrame from build_position_history()
        title: Plot title
        min_elevation: Threshold ring to draw (degrees)
        save_path: Path to save figure (optional)

    Returns:
        matplotlib Figure
    """
    fig = plt.figure(figsize=figsize)
    ax = fig.add_subplot(projection="polar")
    ax.set_theta_zero_location("N")
    ax.set_theta_direction(-1)
    ax.set_rlim(0, 90)
    ax.set_yticks([0, 30, 60, 90])
    ax.set_yticklabels(["90°", "60°", "30°", "0°"])

    visible = track_df[track_df["elevation_deg"] >= 0.0] if not track_df.empty else track_df
    if visible.empty:
        ax.text(0.5, 0.5, "Below horizon", transform=ax.transAxes,
                ha="center", va="center", fontsize=14, color="#95a5a6")
    else:
        theta = np.radians(visible["azimuth_deg"].to_numpy())
        r = 90.0 - visible["elevation_deg"].to_numpy()
        ax.plot(theta, r, linewidth=1.5, color=TRACK_COLOR)
        ax.scatter(theta[0], r[0], color="#2ecc71", zorder=3, label="Start")
        ax.scatter(theta[-1], r[-1], color=THRESHOLD_COLOR, zorder=3, label="End")
        ax.legend(loc="lower right", fontsize=8)

    if min_elevation > 0.0:
        ring = np.linspace(0.0, 2.0 * np.pi, 181)
        ax.plot(ring, np.full_like(ring, 90.0 - min_elevation),
                linestyle="--", linewidth=0.8, color=THRESHOLD_COLOR)

    ax.set_title(title or "Sky Track", pad=20)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_elevation_profile(
    track_df: pd.DataFrame,
    title: Optional[str] = None,
    min_elevation: float = 0.0,
    save_path: Optional[str | Path] = None,
    figsize: tuple = (12, 6),
) -> plt.Figure:
    """Elevation and slant range over time for one satellite.
    """
    fig, axes = plt.subplots(2, 1, figsize=figsize, sharex=True)

    if track_df.empty:
        axes[0].text(0.5, 0.5, "No positions", transform=axes[0].transAxes,
                     ha="center", va="center", fontsize=14, color="#95a5a6")
        return fig

    times = pd.to_datetime(track_df["time"])

    # Panel 1: Elevation
    ax = axes[0]
    ax.plot(times, track_df["elevation_deg"], linewidth=0.8, color=TRACK_COLOR)
    ax.axhline(min_elevation, color=THRESHOLD_COLOR, linewidth=0.8, linestyle="--")
    ax.set_ylabel("Elevation (°)")
    ax.set_title(title or "Elevation Profile")

    # Panel 2: Range
    ax = axes[1]
    ax.plot(times, track_df["range_km"], linewidth=0.8, color="#2980b9")
    ax.set_ylabel("Range (km)")
    ax.set_xlabel("Time (UTC)")

    for ax in axes:
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%H:%M"))
    fig.autofmt_xdate(rotation=30)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_pass_timeline(
    pass_df: pd.DataFrame,
    title: str = "Pass Schedule",
    save_path: Optional[str | Path] = None,
    figsize: tuple = (14, 6),
) -> plt.Figure:
    """Gantt-style schedule of passes, one row per satellite.

    Bar colour marks the propagation model; the label is the maximum
    elevation. Windows missing a rise or set are not drawn.
    """
    fig, ax = plt.subplots(figsize=figsize)

    bounded = pass_df.dropna(subset=["aos", "los"]) if not pass_df.empty else pass_df
    if bounded.empty:
        ax.text(0.5, 0.5, "No passes", transform=ax.transAxes,
                ha="center", va="center", fontsize=14, color="#95a5a6")
        return fig

    names = list(dict.fromkeys(bounded["name"]))
    rows = {name: i for i, name in enumerate(names)}

    for _, p in bounded.iterrows():
        aos = pd.Timestamp(p["aos"])
        los = pd.Timestamp(p["los"])
        start = mdates.date2num(aos.to_pydatetime())
        width = mdates.date2num(los.to_pydatetime()) - start
        color = DEEPSPACE_COLOR if p["deepspace"] else NEAR_EARTH_COLOR
        ax.barh(rows[p["name"]], width, left=start, height=0.6, color=color, alpha=0.8)
        ax.text(start + width / 2, rows[p["name"]], f"{p['max_el_deg']:.0f}°",
                ha="center", va="center", fontsize=7, color="white")

    ax.set_yticks(range(len(names)))
    ax.set_yticklabels(names)
    ax.set_xlabel("Time (UTC)")
    ax.set_title(title)
    ax.xaxis_date()
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%m-%d %H:%M"))
    fig.autofmt_xdate(rotation=30)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_ground_track(
    track_df: pd.DataFrame,
    footprint: Optional[np.ndarray] = None,
    title: Optional[str] = None,
    save_path: Optional[str | Path] = None,
    figsize: tuple = (14, 7),
) -> plt.Figure:
    """Sub-satellite track on a plate carrée grid.

    Args:
        track_df: DataFrame from build_position_history()
        footprint: ``(n, 2)`` latitude/longitude array from SatPos.footprint()
        title: Plot title
        save_path: Path to save figure (optional)
    """
    fig, ax = plt.subplots(figsize=figsize)
    ax.set_xlim(-180, 180)
    ax.set_ylim(-90, 90)
    ax.set_xlabel("Longitude (°)")
    ax.set_ylabel("Latitude (°)")

    if not track_df.empty:
        lon = track_df["longitude_deg"].to_numpy(dtype=float)
        lat = track_df["latitude_deg"].to_numpy(dtype=float)
        # Break the line where it wraps across the antimeridian
        jumps = np.where(np.abs(np.diff(lon)) > 180.0)[0] + 1
        for seg_lon, seg_lat in zip(np.split(lon, jumps), np.split(lat, jumps)):
            ax.plot(seg_lon, seg_lat, linewidth=1.0, color=TRACK_COLOR)

    if footprint is not None and len(footprint):
        ax.scatter(footprint[:, 1], footprint[:, 0], s=2, color=THRESHOLD_COLOR)

    ax.set_title(title or "Ground Track")

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig
