"""Observer-relative and geodetic views of an inertial satellite state.

Inertial positions are in km and velocities in km/s, in the true-of-date
equatorial frame the propagators produce. The observer is placed on the
WGS-84 ellipsoid and rotated with the Earth using the Greenwich mean
sidereal angle.

Angles are radians everywhere in this module except on :class:`GeoPos`,
which carries degrees like every external collaborator does.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import numpy as np

from .constants import (
    DEG2RAD,
    EARTH_RADIUS,
    EARTH_ROTATION_RATE,
    EPSILON,
    FLAT_FACTOR,
    MAX_ITERATIONS,
    PI,
    RAD2DEG,
    TWO_PI,
)
from .mathutils import Vector3, ac_tan, mod2pi, sqr
from .timeutils import greenwich_sidereal_angle


@dataclass(frozen=True, slots=True)
class GeoPos:
    """Geodetic observer position.

    Attributes:
        latitude: Geodetic latitude (degrees, north positive).
        longitude: Longitude (degrees, east positive).
        altitude: Height above the ellipsoid (km).
    """

    latitude: float
    longitude: float
    altitude: float = 0.0


@dataclass(slots=True)
class SatPos:
    """Satellite position as seen from one observer at one instant.

    Attributes:
        time: Instant the position was computed for (UTC).
        azimuth: Azimuth (radians, clockwise from north, in [0, 2π)).
        elevation: Elevation above the horizon (radians).
        distance: Slant range (km).
        distance_rate: Range-rate (km/s, positive when receding).
        latitude: Geodetic sub-satellite latitude (radians).
        longitude: Sub-satellite longitude (radians, in [0, 2π)).
        altitude: Height above the ellipsoid (km).
        theta: Inertial polar angle of the position vector (radians).
        orbital_velocity: Inertial speed (km/s).
    """

    time: Optional[datetime] = None
    azimuth: float = 0.0
    elevation: float = 0.0
    distance: float = 0.0
    distance_rate: float = 0.0
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    theta: float = 0.0
    orbital_velocity: float = 0.0

    @property
    def footprint_radius(self) -> float:
        """Ground radius of the visibility circle (km)."""
        return EARTH_RADIUS * math.acos(EARTH_RADIUS / (EARTH_RADIUS + max(self.altitude, 0.0)))

    def footprint(self, points: int = 72) -> np.ndarray:
        """Ground circle from which the satellite is above the horizon.

        Args:
            points: Number of vertices around the circle.

        Returns:
            ``(points, 2)`` array of ``(latitude, longitude)`` in degrees,
            longitudes wrapped to [-180, 180).
        """
        beta = math.acos(EARTH_RADIUS / (EARTH_RADIUS + max(self.altitude, 0.0)))
        bearings = np.linspace(0.0, TWO_PI, points, endpoint=False)
        sin_lat = math.sin(self.latitude)
        cos_lat = math.cos(self.latitude)
        lat = np.arcsin(sin_lat * math.cos(beta) + np.cos(bearings) * math.sin(beta) * cos_lat)
        lon = self.longitude + np.arctan2(
            np.sin(bearings) * math.sin(beta) * cos_lat,
            math.cos(beta) - sin_lat * np.sin(lat),
        )
        lon_deg = (np.degrees(lon) + 180.0) % 360.0 - 180.0
        return np.column_stack([np.degrees(lat), lon_deg])

    def to_dict(self) -> dict:
        """Flat dictionary in degrees, suitable for DataFrame construction."""
        longitude = self.longitude * RAD2DEG
        if longitude > 180.0:
            longitude -= 360.0
        return {
            "time": self.time,
            "azimuth_deg": self.azimuth * RAD2DEG,
            "elevation_deg": self.elevation * RAD2DEG,
            "range_km": self.distance,
            "range_rate_km_s": self.distance_rate,
            "latitude_deg": self.latitude * RAD2DEG,
            "longitude_deg": longitude,
            "altitude_km": self.altitude,
            "velocity_km_s": self.orbital_velocity,
        }


def calculate_user_pos_vel(
    julian_date: float,
    observer: GeoPos,
) -> tuple[Vector3, Vector3, float]:
    """Inertial position (km) and velocity (km/s) of a ground observer.

    Returns:
        ``(position, velocity, theta)`` where ``theta`` is the observer's
        local sidereal angle (radians).
    """
    lat = observer.latitude * DEG2RAD
    theta = mod2pi(greenwich_sidereal_angle(julian_date) + observer.longitude * DEG2RAD)
    c = 1.0 / math.sqrt(1.0 + FLAT_FACTOR * (FLAT_FACTOR - 2.0) * sqr(math.sin(lat)))
    sq = sqr(1.0 - FLAT_FACTOR) * c
    achcp = (EARTH_RADIUS * c + observer.altitude) * math.cos(lat)
    position = Vector3(
        achcp * math.cos(theta),
        achcp * math.sin(theta),
        (EARTH_RADIUS * sq + observer.altitude) * math.sin(lat),
    )
    velocity = Vector3(
        -EARTH_ROTATION_RATE * position.y,
        EARTH_ROTATION_RATE * position.x,
        0.0,
    )
    return position, velocity, theta


def calculate_obs(
    julian_date: float,
    position: Vector3,
    velocity: Vector3,
    observer: GeoPos,
) -> tuple[float, float, float, float]:
    """Look angles and range of an inertial state from ``observer``.

    Args:
        julian_date: Julian date of the state.
        position: Satellite inertial position (km).
        velocity: Satellite inertial velocity (km/s).
        observer: Ground observer.

    Returns:
        ``(azimuth, elevation, range, range_rate)`` in radians, km and km/s.
    """
    obs_pos, obs_vel, theta = calculate_user_pos_vel(julian_date, observer)
    rng = position - obs_pos
    rgvel = velocity - obs_vel
    distance = rng.magnitude()

    sin_lat = math.sin(observer.latitude * DEG2RAD)
    cos_lat = math.cos(observer.latitude * DEG2RAD)
    sin_theta = math.sin(theta)
    cos_theta = math.cos(theta)

    # ── South / East / Zenith rotation ──
    top_s = sin_lat * cos_theta * rng.x + sin_lat * sin_theta * rng.y - cos_lat * rng.z
    top_e = -sin_theta * rng.x + cos_theta * rng.y
    top_z = cos_lat * cos_theta * rng.x + cos_lat * sin_theta * rng.y + sin_lat * rng.z

    azimuth = ac_tan(top_e, -top_s)
    if azimuth >= TWO_PI:
        azimuth -= TWO_PI
    elevation = math.asin(min(1.0, max(-1.0, top_z / distance)))
    return azimuth, elevation, distance, rng.dot(rgvel) / distance


def calculate_lat_lon_alt(
    julian_date: float,
    position: Vector3,
) -> tuple[float, float, float, float]:
    """Geodetic sub-point of an inertial position.

    Latitude is found by fixed-point iteration over the ellipsoid, at most
    ``MAX_ITERATIONS`` passes to a tolerance of ``EPSILON``; the last
    estimate is accepted either way.

    Returns:
        ``(latitude, longitude, altitude, theta)``: radians, radians in
        [0, 2π), km, and the inertial polar angle in radians.
    """
    theta = math.atan2(position.y, position.x)
    longitude = mod2pi(theta - greenwich_sidereal_angle(julian_date))
    r = math.sqrt(sqr(position.x) + sqr(position.y))
    e2 = FLAT_FACTOR * (2.0 - FLAT_FACTOR)
    latitude = math.atan2(position.z, r)

    c = 1.0
    for _ in range(MAX_ITERATIONS):
        phi = latitude
        c = 1.0 / math.sqrt(1.0 - e2 * sqr(math.sin(phi)))
        latitude = math.atan2(position.z + EARTH_RADIUS * c * e2 * math.sin(phi), r)
        if abs(latitude - phi) < EPSILON:
            break

    altitude = r / math.cos(latitude) - EARTH_RADIUS * c
    if latitude > PI / 2.0:
        latitude -= TWO_PI
    return latitude, longitude, altitude, theta
