"""Maidenhead (QTH) locator conversion.

A six-character locator such as ``IO91wm`` names a 5' x 2.5' sub-square:
field (letters), square (digits) and sub-square (letters), each
pair ordered longitude then latitude.
"""

from __future__ import annotations

import re

from .topocentric import GeoPos

_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWX"
_LOCATOR_RE = re.compile(r"^[a-xA-X]{2}[0-9]{2}[a-xA-X]{2}$")


def is_valid_locator(locator: str) -> bool:
    return bool(_LOCATOR_RE.match(locator.strip()))


def is_valid_position(latitude: float, longitude: float) -> bool:
    """Latitude in [-90, 90], longitude in [-180, 360]."""
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 360.0


def position_to_locator(latitude: float, longitude: float) -> str:
    """Six-character locator of a position.

    Args:
        latitude: Latitude (degrees).
        longitude: Longitude (degrees, east positive; 180..360 accepted).

    Raises:
        ValueError: If the position is out of range.
    """
    if not is_valid_position(latitude, longitude):
        raise ValueError(f"Invalid position: lat={latitude}, lon={longitude}")

    if longitude > 180.0:
        longitude -= 360.0
    lat = latitude + 90.0
    lon = longitude + 180.0

    lon_field = _LETTERS[min(int(lon / 20.0), 23)]
    lat_field = _LETTERS[min(int(lat / 10.0), 23)]
    lat %= 10.0
    lon %= 20.0
    lon_square = str(int(lon / 2.0))
    lat_square = str(int(lat))
    lat %= 1.0
    lon %= 2.0
    lon_sub = _LETTERS[int(lon * 12.0)].lower()
    lat_sub = _LETTERS[int(lat * 24.0)].lower()
    return f"{lon_field}{lat_field}{lon_square}{lat_square}{lon_sub}{lat_sub}"


def locator_to_position(locator: str) -> GeoPos:
    """Centre of a six-character locator's sub-square.

    Returns:
        Observer position at sea level, coordinates rounded to 4 decimals.

    Raises:
        ValueError: If ``locator`` is not a six-character Maidenhead locator.
    """
    if not is_valid_locator(locator):
        raise ValueError(f"Invalid QTH locator: {locator!r}")

    loc = locator.strip().lower()
    lon = (ord(loc[0]) - ord("a")) * 20.0
    lat = (ord(loc[1]) - ord("a")) * 10.0
    lon += int(loc[2]) * 2.0
    lat += int(loc[3])
    lon += (ord(loc[4]) - ord("a")) / 12.0 + 1.0 / 24.0 - 180.0
    lat += (ord(loc[5]) - ord("a")) / 24.0 + 1.0 / 48.0 - 90.0
    return GeoPos(latitude=round(lat, 4), longitude=round(lon, 4))
