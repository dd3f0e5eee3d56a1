"""Time and epoch conversions.

All propagation is driven by Julian dates. Wall-clock times are mapped onto
a continuous day number counted from 1979-12-31 00:00 UTC, and element set
epochs (packed ``YYDDD.DDDDDDDD``) are mapped onto the Julian date of their
year plus the fractional day of year.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

from .constants import (
    DAYNUM_JULIAN_OFFSET,
    EARTH_ROT_PER_SID_DAY,
    EPOCH_PIVOT_YEAR,
    SEC_PER_DAY,
    TWO_PI,
)
from .mathutils import fraction, modulus

DAYNUM_EPOCH = datetime(1979, 12, 31, tzinfo=timezone.utc)
"""Reference instant of day number 0."""


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_number(now: datetime) -> float:
    """Days elapsed since 1979-12-31 00:00 UTC."""
    return (as_utc(now) - DAYNUM_EPOCH) / timedelta(days=1)


def julian_utc(now: datetime) -> float:
    """Julian date of a wall-clock time."""
    return day_number(now) + DAYNUM_JULIAN_OFFSET


def split_epoch(epoch: float) -> tuple[int, float]:
    """Split a packed ``YYDDD.DDDDDDDD`` epoch into a full year and day of year.

    Applies the two-digit year pivot (``EPOCH_PIVOT_YEAR``).
    """
    year = math.floor(epoch * 1e-3)
    day = (epoch * 1e-3 - year) * 1000.0
    year = year + 2000 if year < EPOCH_PIVOT_YEAR else year + 1900
    return int(year), day


def julian_date_of_year(year: float) -> float:
    """Julian date of 0 January 00:00 UTC of ``year``."""
    a_year = year - 1
    a = math.floor(a_year / 100)
    b = 2 - a + a // 4
    i = math.floor(365.25 * a_year) + int(30.6001 * 14)
    return i + 1720994.5 + b


def julian_date_of_epoch(epoch: float) -> float:
    """Julian date of a packed element set epoch."""
    year, day = split_epoch(epoch)
    return julian_date_of_year(year) + day


def epoch_to_datetime(epoch: float) -> datetime:
    """Convert a packed element set epoch to an aware UTC datetime."""
    year, day = split_epoch(epoch)
    jan1 = datetime(year, 1, 1, tzinfo=timezone.utc)
    return jan1 + timedelta(days=day - 1.0)


def greenwich_sidereal_angle(julian_date: float) -> float:
    """Greenwich mean sidereal angle (radians) at a Julian date.

    Args:
        julian_date: Julian date (UT1 ≈ UTC).

    Returns:
        Angle in [0, 2π).
    """
    ut = fraction(julian_date + 0.5)
    a_jd = julian_date - ut
    tu = (a_jd - 2451545.0) / 36525.0
    gmst = 24110.54841 + tu * (8640184.812866 + tu * (0.093104 - tu * 6.2e-6))
    gmst = modulus(gmst + SEC_PER_DAY * EARTH_ROT_PER_SID_DAY * ut)
    return TWO_PI * gmst / SEC_PER_DAY
