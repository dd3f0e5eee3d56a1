"""Pass prediction.

Drives a :class:`~skypass.satellite.Satellite` across a look-ahead horizon
and turns the resulting elevation curve into discrete passes above a
minimum-elevation threshold.

Algorithm:
    1. Sample the satellite at fixed, index-derived times
       ``start + i * step`` across the horizon.
    2. Refine every threshold crossing between two samples by bisection to
       ``precision_seconds``. Rise and set times are always the above-
       threshold side of the bracket.
    3. Track the highest sample of each pass and refine it by golden-section
       search within one step either side.
    4. A pass already in progress at the start is traced back up to one
       orbital period for its rise; a pass still in progress at the end is
       traced forward up to one period for its set.
    5. A deep-space pass that neither rises nor sets inside the horizon is
       flagged continuous.

Sampling times depend only on the inputs, so repeated predictions with the
same element set, observer, start time and settings are identical.

Many satellites are predicted at once with :func:`predict_passes`, which
shards the element sets across a thread pool. Each worker builds its own
``Satellite`` instances, so no scratch state is shared between threads.
"""

from __future__ import annotations

import concurrent.futures
import logging
import math
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pandas as pd

from .constants import DEG2RAD, RAD2DEG, SPEED_OF_LIGHT
from .elements import OrbitalElements
from .satellite import Satellite, will_be_seen
from .timeutils import as_utc
from .topocentric import GeoPos, SatPos

logger = logging.getLogger(__name__)

GOLDEN_RATIO = (math.sqrt(5.0) - 1.0) / 2.0
"""Inverse golden ratio used by the apex search."""


# Configuration
@dataclass
class PredictionSettings:
    """Look-ahead horizon and sampling configuration.

    Attributes:
        hours_ahead: Prediction horizon (hours, > 0).
        min_elevation: Visibility threshold (degrees).
        step_seconds: Coarse sampling step (seconds). ``None`` derives it
            from the orbital period: 0.6 s per minute of period, clamped to
            20..300 s.
        precision_seconds: Rise/set refinement precision (seconds).
    """

    hours_ahead: float = 24.0
    min_elevation: float = 0.0
    step_seconds: Optional[float] = None
    precision_seconds: float = 1.0

    @classmethod
    def for_amateur_radio(cls) -> PredictionSettings:
        """Two days ahead, anything above the horizon."""
        return cls(hours_ahead=48.0, min_elevation=0.0)

    @classmethod
    def for_optical(cls) -> PredictionSettings:
        """One day ahead, clear of horizon haze."""
        return cls(hours_ahead=24.0, min_elevation=10.0, precision_seconds=0.5)

    def validate(self) -> None:
        """Raise ``ValueError`` if any setting is out of range."""
        if not self.hours_ahead > 0.0:
            raise ValueError(f"hours_ahead must be positive, got {self.hours_ahead}")
        if not -90.0 <= self.min_elevation <= 90.0:
            raise ValueError(
                f"min_elevation must be within [-90, 90] degrees, got {self.min_elevation}"
            )
        if self.step_seconds is not None and not self.step_seconds > 0.0:
            raise ValueError(f"step_seconds must be positive, got {self.step_seconds}")
        if not self.precision_seconds > 0.0:
            raise ValueError(
                f"precision_seconds must be positive, got {self.precision_seconds}"
            )

    def step_for(self, orbital_period: float) -> float:
        """Coarse step (seconds) for an orbit of ``orbital_period`` minutes."""
        if self.step_seconds is not None:
            return self.step_seconds
        return min(300.0, max(20.0, 0.6 * orbital_period))


# Pass
@dataclass
class SatPass:
    """One visibility window of one satellite.

    Attributes:
        catalog_number: NORAD catalog number.
        name: Satellite name.
        aos_time: Rise time, ``None`` if the satellite was above the
            threshold for a whole period before the prediction start.
        aos_azimuth: Azimuth at rise (degrees), ``None`` with ``aos_time``.
        los_time: Set time, ``None`` if it does not set within the horizon
            plus one period.
        los_azimuth: Azimuth at set (degrees), ``None`` with ``los_time``.
        tca_time: Time of maximum elevation.
        tca_azimuth: Azimuth at maximum elevation (degrees).
        max_elevation: Maximum elevation (degrees).
        altitude: Satellite altitude at maximum elevation (km).
        progress: Fraction of the window elapsed at the prediction start
            (0 for future passes and windows without both ends).
        is_deepspace: Whether the satellite uses the deep-space model.
        is_continuous: Deep-space object above the threshold for the whole
            horizon, with no rise or set inside it.
    """

    catalog_number: int
    name: str
    aos_time: Optional[datetime]
    aos_azimuth: Optional[float]
    los_time: Optional[datetime]
    los_azimuth: Optional[float]
    tca_time: datetime
    tca_azimuth: float
    max_elevation: float
    altitude: float
    progress: float
    is_deepspace: bool
    is_continuous: bool = False

    @property
    def duration(self) -> Optional[timedelta]:
        if self.aos_time is None or self.los_time is None:
            return None
        return self.los_time - self.aos_time

    def to_dict(self) -> dict:
        """Serialize to a flat dictionary for DataFrame construction."""
        duration = self.duration
        return {
            "catalog_number": self.catalog_number,
            "name": self.name,
            "aos": self.aos_time,
            "aos_az_deg": _round_opt(self.aos_azimuth, 1),
            "tca": self.tca_time,
            "tca_az_deg": round(self.tca_azimuth, 1),
            "max_el_deg": round(self.max_elevation, 2),
            "los": self.los_time,
            "los_az_deg": _round_opt(self.los_azimuth, 1),
            "duration_min": None if duration is None else round(duration.total_seconds() / 60.0, 2),
            "altitude_km": round(self.altitude, 1),
            "continuous": self.is_continuous,
            "deepspace": self.is_deepspace,
        }

    def summary(self) -> str:
        """Return a one-line human-readable summary of the pass."""
        if self.is_continuous:
            window = "continuously visible"
        else:
            aos = f"{self.aos_time:%Y-%m-%d %H:%M:%S}" if self.aos_time else "in progress"
            los = f"{self.los_time:%H:%M:%S}" if self.los_time else "beyond horizon"
            window = f"{aos} → {los}"
        return (
            f"NORAD {self.catalog_number} ({self.name}) {window}, "
            f"max {self.max_elevation:.1f}° at {self.tca_azimuth:.0f}° az"
        )


# Predictor
class PassPredictor:
    """Pass and position queries for one satellite and one observer.

    Args:
        satellite: Satellite to predict. The predictor becomes the single
            writer of its scratch state.
        observer: Ground observer.

    Example:
        >>> predictor = PassPredictor(Satellite(elements), GeoPos(51.5, -0.1, 0.05))
        >>> for p in predictor.get_passes(start, PredictionSettings(min_elevation=10)):
        ...     print(p.summary())
    """

    def __init__(self, satellite: Satellite, observer: GeoPos) -> None:
        self.satellite = satellite
        self.observer = observer

    def get_position(self, time: datetime) -> SatPos:
        return self.satellite.get_position(self.observer, as_utc(time))

    def get_positions(
        self,
        time: datetime,
        step_seconds: float = 60.0,
        minutes_before: float = 0.0,
        minutes_after: float = 90.0,
    ) -> list[SatPos]:
        """Positions sampled every ``step_seconds`` around ``time``.

        Args:
            time: Reference instant.
            step_seconds: Sampling step (seconds, > 0).
            minutes_before: Span before ``time`` (minutes).
            minutes_after: Span after ``time`` (minutes).

        Returns:
            Positions in time order, both ends included.
        """
        if not step_seconds > 0.0:
            raise ValueError(f"step_seconds must be positive, got {step_seconds}")
        first = as_utc(time) - timedelta(minutes=minutes_before)
        span = (minutes_before + minutes_after) * 60.0
        count = int(math.floor(span / step_seconds + 1e-9))
        return [
            self.get_position(first + timedelta(seconds=i * step_seconds))
            for i in range(count + 1)
        ]

    def get_pass_track(self, sat_pass: SatPass, step_seconds: float = 15.0) -> list[SatPos]:
        """Positions across a pass, from rise to set.

        Windows without a rise start at the apex; windows without a set end
        one orbital period after their start.
        """
        first = sat_pass.aos_time or sat_pass.tca_time
        if sat_pass.los_time is not None:
            minutes = (sat_pass.los_time - first).total_seconds() / 60.0
        else:
            minutes = self.satellite.orbital_period
        track = self.get_positions(first, step_seconds, 0.0, minutes)
        if sat_pass.los_time is not None and track[-1].time != sat_pass.los_time:
            track.append(self.get_position(sat_pass.los_time))
        return track

    @staticmethod
    def get_downlink_freq(freq: float, distance_rate: float) -> float:
        """Doppler-shifted downlink frequency.

        Args:
            freq: Transmitted frequency (Hz).
            distance_rate: Range-rate (km/s, positive when receding).
        """
        return freq * (SPEED_OF_LIGHT - distance_rate * 1000.0) / SPEED_OF_LIGHT

    @staticmethod
    def get_uplink_freq(freq: float, distance_rate: float) -> float:
        """Frequency to transmit so the satellite receives ``freq`` (Hz)."""
        return freq * (SPEED_OF_LIGHT + distance_rate * 1000.0) / SPEED_OF_LIGHT

    def get_passes(
        self,
        start: datetime,
        settings: Optional[PredictionSettings] = None,
    ) -> list[SatPass]:
        """Visibility windows between ``start`` and the horizon end.

        Args:
            start: Prediction start (naive values are taken as UTC).
            settings: Horizon and sampling settings.

        Returns:
            Passes in time order. An empty list is a valid outcome.

        Raises:
            ValueError: If ``settings`` are out of range.
        """
        settings = settings or PredictionSettings()
        settings.validate()
        start = as_utc(start)
        if not will_be_seen(self.satellite.data, self.observer):
            return []

        threshold = settings.min_elevation * DEG2RAD
        step = settings.step_for(self.satellite.orbital_period)
        precision = settings.precision_seconds
        horizon = settings.hours_ahead * 3600.0
        count = int(math.ceil(horizon / step - 1e-9))
        end = start + timedelta(seconds=horizon)

        passes: list[SatPass] = []
        first = self.get_position(start)
        aos: Optional[SatPos] = None
        apex: Optional[SatPos] = None
        in_pass = first.elevation >= threshold
        if in_pass:
            aos, apex = self._trace_rise(start, first, threshold, step, precision)

        prev = first
        for i in range(1, count + 1):
            t = start + timedelta(seconds=min(i * step, horizon))
            pos = self.get_position(t)
            if not in_pass and pos.elevation >= threshold:
                aos = self._bisect(prev.time, t, threshold, precision)
                apex = pos
                in_pass = True
            elif in_pass and pos.elevation < threshold:
                los = self._bisect(t, prev.time, threshold, precision)
                passes.append(self._build_pass(start, end, aos, los, apex, step, precision))
                aos = apex = None
                in_pass = False
            if in_pass and pos.elevation > apex.elevation:
                apex = pos
            prev = pos

        if in_pass:
            los, apex = self._trace_set(end, prev, apex, threshold, step, precision)
            passes.append(self._build_pass(start, end, aos, los, apex, step, precision))

        return passes

    # ── Private helpers ──

    def _trace_rise(
        self,
        start: datetime,
        first: SatPos,
        threshold: float,
        step: float,
        precision: float,
    ) -> tuple[Optional[SatPos], SatPos]:
        """Walk back up to one period from ``start`` to find the rise."""
        apex = first
        later = first
        steps = int(math.ceil(self.satellite.orbital_period * 60.0 / step))
        for k in range(1, steps + 1):
            pos = self.get_position(start - timedelta(seconds=k * step))
            if pos.elevation < threshold:
                return self._bisect(pos.time, later.time, threshold, precision), apex
            if pos.elevation > apex.elevation:
                apex = pos
            later = pos
        return None, apex

    def _trace_set(
        self,
        end: datetime,
        last: SatPos,
        apex: SatPos,
        threshold: float,
        step: float,
        precision: float,
    ) -> tuple[Optional[SatPos], SatPos]:
        """Walk forward up to one period from ``end`` to find the set."""
        earlier = last
        steps = int(math.ceil(self.satellite.orbital_period * 60.0 / step))
        for k in range(1, steps + 1):
            pos = self.get_position(end + timedelta(seconds=k * step))
            if pos.elevation < threshold:
                return self._bisect(pos.time, earlier.time, threshold, precision), apex
            if pos.elevation > apex.elevation:
                apex = pos
            earlier = pos
        return None, apex

    def _bisect(
        self,
        below: datetime,
        above: datetime,
        threshold: float,
        precision: float,
    ) -> SatPos:
        """Narrow a threshold crossing between a below and an above time.

        Returns:
            The position at the above-threshold end of the final bracket.
        """
        above_pos = self.get_position(above)
        while abs((above - below).total_seconds()) > precision:
            mid = below + (above - below) / 2
            pos = self.get_position(mid)
            if pos.elevation >= threshold:
                above, above_pos = mid, pos
            else:
                below = mid
        return above_pos

    def _refine_apex(
        self,
        apex: SatPos,
        lower: datetime,
        upper: datetime,
        step: float,
        precision: float,
    ) -> SatPos:
        """Golden-section search for the elevation maximum near ``apex``."""
        a = max(apex.time - timedelta(seconds=step), lower)
        b = min(apex.time + timedelta(seconds=step), upper)
        if (b - a).total_seconds() <= precision:
            return apex

        c = b - (b - a) * GOLDEN_RATIO
        d = a + (b - a) * GOLDEN_RATIO
        pos_c = self.get_position(c)
        pos_d = self.get_position(d)
        while (b - a).total_seconds() > precision:
            if pos_c.elevation > pos_d.elevation:
                b, d, pos_d = d, c, pos_c
                c = b - (b - a) * GOLDEN_RATIO
                pos_c = self.get_position(c)
            else:
                a, c, pos_c = c, d, pos_d
                d = a + (b - a) * GOLDEN_RATIO
                pos_d = self.get_position(d)

        best = pos_c if pos_c.elevation > pos_d.elevation else pos_d
        return best if best.elevation > apex.elevation else apex

    def _build_pass(
        self,
        start: datetime,
        end: datetime,
        aos: Optional[SatPos],
        los: Optional[SatPos],
        apex: SatPos,
        step: float,
        precision: float,
    ) -> SatPass:
        lower = aos.time if aos is not None else apex.time - timedelta(seconds=step)
        upper = los.time if los is not None else apex.time + timedelta(seconds=step)
        apex = self._refine_apex(apex, lower, upper, step, precision)

        continuous = (
            self.satellite.is_deepspace
            and (aos is None or aos.time < start)
            and (los is None or los.time > end)
        )

        progress = 0.0
        if aos is not None and los is not None and aos.time < start:
            window = (los.time - aos.time).total_seconds()
            if window > 0.0:
                progress = min(1.0, (start - aos.time).total_seconds() / window)

        data = self.satellite.data
        return SatPass(
            catalog_number=data.catalog_number,
            name=data.name,
            aos_time=aos.time if aos is not None else None,
            aos_azimuth=aos.azimuth * RAD2DEG if aos is not None else None,
            los_time=los.time if los is not None else None,
            los_azimuth=los.azimuth * RAD2DEG if los is not None else None,
            tca_time=apex.time,
            tca_azimuth=apex.azimuth * RAD2DEG,
            max_elevation=apex.elevation * RAD2DEG,
            altitude=apex.altitude,
            progress=progress,
            is_deepspace=self.satellite.is_deepspace,
            is_continuous=continuous,
        )


# Batch utils
def predict_passes(
    elements: Iterable[OrbitalElements],
    observer: GeoPos,
    settings: Optional[PredictionSettings] = None,
    start: Optional[datetime] = None,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> list[SatPass]:
    """Predict passes for many satellites in parallel.

    Element sets that can never rise for ``observer`` are skipped before a
    satellite is built. The rest are sharded across a thread pool; each
    worker checks ``cancel_event`` before every satellite and stops early
    once it is set, so a cancelled prediction returns only the passes of
    satellites that were completed.

    Args:
        elements: Element sets to predict.
        observer: Ground observer.
        settings: Horizon and sampling settings.
        start: Prediction start; defaults to now (UTC).
        max_workers: Worker threads; defaults to ``min(8, cpu_count)``.
        cancel_event: Optional cooperative cancellation flag.

    Returns:
        Passes sorted by rise time, ties broken by catalog number. Passes
        already in progress sort by their traced rise time, which precedes
        ``start``; those with no known rise sort as if they rose at
        ``start``.
    """
    settings = settings or PredictionSettings()
    settings.validate()
    start = as_utc(start) if start is not None else datetime.now(timezone.utc)

    candidates: list[OrbitalElements] = []
    for item in elements:
        if will_be_seen(item, observer):
            candidates.append(item)
        else:
            logger.debug("Skipping #%d (%s): never visible", item.catalog_number, item.name)
    if not candidates:
        return []

    workers = max_workers or min(8, os.cpu_count() or 1)
    workers = max(1, min(workers, len(candidates)))
    shards = [candidates[i::workers] for i in range(workers)]
    logger.info("Predicting %d satellites on %d workers", len(candidates), workers)

    def run_shard(shard: list[OrbitalElements]) -> list[SatPass]:
        found: list[SatPass] = []
        for item in shard:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Prediction cancelled")
                break
            predictor = PassPredictor(Satellite(item), observer)
            found.extend(predictor.get_passes(start, settings))
        return found

    passes: list[SatPass] = []
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(run_shard, shard) for shard in shards]
        for fut in concurrent.futures.as_completed(futures):
            passes.extend(fut.result())

    passes.sort(key=lambda p: (p.aos_time or start, p.catalog_number))
    logger.debug("Found %d passes", len(passes))
    return passes


def next_event(
    passes: Iterable[SatPass], now: datetime
) -> Optional[tuple[str, SatPass, timedelta]]:
    """Earliest rise or set strictly after ``now``.

    Returns:
        ``("AOS" | "LOS", pass, time remaining)``, or ``None`` when nothing
        rises or sets after ``now``.
    """
    now = as_utc(now)
    best: Optional[tuple[datetime, str, SatPass]] = None
    for p in passes:
        for label, when in (("AOS", p.aos_time), ("LOS", p.los_time)):
            if when is not None and when > now and (best is None or when < best[0]):
                best = (when, label, p)
    if best is None:
        return None
    when, label, p = best
    return label, p, when - now


def passes_to_dataframe(passes: list[SatPass]) -> pd.DataFrame:
    """Tabulate passes, one row per pass, in the given order."""
    if not passes:
        return pd.DataFrame()
    return pd.DataFrame([p.to_dict() for p in passes])


def build_position_history(positions: list[SatPos]) -> pd.DataFrame:
    """Convert positions to a time-indexed DataFrame (degrees, km, km/s).

    Useful for plotting ground tracks and elevation profiles.
    """
    if not positions:
        return pd.DataFrame()
    df = pd.DataFrame([p.to_dict() for p in positions])
    return df.sort_values("time").reset_index(drop=True)


def _round_opt(value: Optional[float], ndigits: int) -> Optional[float]:
    return None if value is None else round(value, ndigits)
