"""Satellite: one element set bound to its propagator.

A :class:`Satellite` owns two scratch vectors that every propagation
overwrites. One instance must therefore only be driven by one thread at a
time; build a separate instance per worker when propagating in parallel.
"""

from __future__ import annotations

import math
from datetime import datetime

from .constants import (
    DEG2RAD,
    EARTH_RADIUS,
    MIN_PER_DAY,
    SEC_PER_DAY,
)
from .elements import OrbitalElements
from .mathutils import Vector3
from .propagator import Propagator
from .sdp4 import DeepSpacePropagator
from .sgp4 import NearEarthPropagator
from .timeutils import julian_date_of_epoch, julian_utc
from .topocentric import GeoPos, SatPos, calculate_lat_lon_alt, calculate_obs

MIN_MEAN_MOTION = 1.0e-8
"""Mean motion (rev/day) at or below which an element set is never visible."""


def will_be_seen(elements: OrbitalElements, observer: GeoPos) -> bool:
    """Whether the orbit can ever rise above the observer's horizon.

    The test compares the widest latitude the orbit can cover (its
    inclination plus the horizon half-angle at apogee) with the observer's
    absolute latitude.
    """
    if elements.mean_motion <= MIN_MEAN_MOTION:
        return False
    sma = 331.25 * math.exp(math.log(MIN_PER_DAY / elements.mean_motion) * (2.0 / 3.0))
    apogee = sma * (1.0 + elements.eccentricity) - EARTH_RADIUS
    if apogee <= 0.0:
        return False
    lin = elements.inclination
    if lin >= 90.0:
        lin = 180.0 - lin
    horizon = math.acos(EARTH_RADIUS / (apogee + EARTH_RADIUS))
    return horizon + lin * DEG2RAD > abs(observer.latitude * DEG2RAD)


class Satellite:
    """Propagatable satellite.

    Args:
        elements: Element set; its ``is_deepspace`` flag picks SGP4 or SDP4
            once, for the lifetime of the instance.

    Raises:
        ValueError: If the mean motion is at or below ``MIN_MEAN_MOTION``.
    """

    def __init__(self, elements: OrbitalElements) -> None:
        if elements.mean_motion <= MIN_MEAN_MOTION:
            raise ValueError(
                f"Mean motion {elements.mean_motion} rev/day is too small to propagate "
                f"(catalog number {elements.catalog_number})"
            )
        self.data = elements
        self.position = Vector3()
        self.velocity = Vector3()
        self.julian_epoch = julian_date_of_epoch(elements.epoch)

        self.propagator: Propagator
        if elements.is_deepspace:
            self.propagator = DeepSpacePropagator(elements)
        else:
            self.propagator = NearEarthPropagator(elements)

    def __repr__(self) -> str:
        return f"Satellite({self.data.name!r}, #{self.data.catalog_number})"

    @property
    def orbital_period(self) -> float:
        return self.data.orbital_period

    @property
    def is_deepspace(self) -> bool:
        return self.data.is_deepspace

    @property
    def perigee(self) -> float:
        return self.propagator.perigee

    @property
    def s4(self) -> float:
        return self.propagator.s4

    @property
    def qoms24(self) -> float:
        return self.propagator.qoms24

    def will_be_seen(self, observer: GeoPos) -> bool:
        return will_be_seen(self.data, observer)

    def propagate(self, tsince: float) -> tuple[Vector3, Vector3]:
        """Inertial state ``tsince`` minutes after epoch.

        Returns:
            The satellite's own scratch ``(position, velocity)`` vectors in km
            and km/s. They are overwritten by the next call.
        """
        self.propagator.propagate(tsince, self.position, self.velocity)
        self.position.scale(EARTH_RADIUS)
        self.velocity.scale(EARTH_RADIUS * MIN_PER_DAY / SEC_PER_DAY)
        return self.position, self.velocity

    def get_position(self, observer: GeoPos, time: datetime) -> SatPos:
        """Observer-relative and geodetic position at ``time``.

        Args:
            observer: Ground observer.
            time: Instant to evaluate (naive values are taken as UTC).

        Returns:
            A fresh :class:`SatPos`.
        """
        jul_utc = julian_utc(time)
        tsince = (jul_utc - self.julian_epoch) * MIN_PER_DAY
        position, velocity = self.propagate(tsince)

        azimuth, elevation, distance, distance_rate = calculate_obs(
            jul_utc, position, velocity, observer
        )
        latitude, longitude, altitude, theta = calculate_lat_lon_alt(jul_utc, position)
        return SatPos(
            time=time,
            azimuth=azimuth,
            elevation=elevation,
            distance=distance,
            distance_rate=distance_rate,
            latitude=latitude,
            longitude=longitude,
            altitude=altitude,
            theta=theta,
            orbital_velocity=velocity.magnitude(),
        )
