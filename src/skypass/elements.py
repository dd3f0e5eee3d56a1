"""Orbital element set data model.

The element set is the only orbital input of the engine. It is created once
per satellite by an element-source collaborator (see
:mod:`skypass.tle_parser`) and never mutated afterwards. The regime
classification (``is_deepspace``) is derived here, once, and selects which
propagator backs the satellite for its whole lifetime.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .constants import DEEPSPACE_PERIOD_MIN, DEG2RAD, MIN_PER_DAY, TWO_PI
from .timeutils import epoch_to_datetime


@dataclass(frozen=True, slots=True)
class OrbitalElements:
    """Classical orbital elements at epoch plus derived regime flags.

    Attributes:
        name: Satellite name (passed through, opaque to the engine).
        catalog_number: NORAD catalog number (passed through).
        epoch: Packed epoch ``YYDDD.DDDDDDDD``.
        mean_motion: Mean motion (revolutions per day).
        eccentricity: Orbital eccentricity (dimensionless).
        inclination: Inclination (degrees).
        raan: Right ascension of ascending node (degrees).
        arg_perigee: Argument of perigee (degrees).
        mean_anomaly: Mean anomaly (degrees).
        bstar: B* drag term (1/Earth radii).
        mean_motion_dot: First derivative of mean motion / 2 (rev/day²).
        mean_motion_ddot: Second derivative of mean motion / 6 (rev/day³).
        intl_designator: International designator (if known).
        rev_number: Revolution number at epoch.
        orbital_period: Derived period (minutes).
        is_deepspace: Derived regime flag, ``orbital_period >= 225``.
    """

    name: str
    catalog_number: int
    epoch: float
    mean_motion: float
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    mean_anomaly: float
    bstar: float = 0.0
    mean_motion_dot: float = 0.0
    mean_motion_ddot: float = 0.0
    intl_designator: str = ""
    rev_number: int = 0

    orbital_period: float = field(init=False)
    is_deepspace: bool = field(init=False)

    def __post_init__(self) -> None:
        if self.mean_motion > 0.0:
            period = MIN_PER_DAY / self.mean_motion
        else:
            period = math.inf
        object.__setattr__(self, "orbital_period", period)
        object.__setattr__(self, "is_deepspace", period >= DEEPSPACE_PERIOD_MIN)

    # Radian / per-minute views used by the propagators

    @property
    def xincl(self) -> float:
        return self.inclination * DEG2RAD

    @property
    def xnodeo(self) -> float:
        return self.raan * DEG2RAD

    @property
    def omegao(self) -> float:
        return self.arg_perigee * DEG2RAD

    @property
    def xmo(self) -> float:
        return self.mean_anomaly * DEG2RAD

    @property
    def xno(self) -> float:
        """Mean motion in radians per minute."""
        return self.mean_motion * TWO_PI / MIN_PER_DAY

    @property
    def epoch_dt(self) -> datetime:
        """Epoch as an aware UTC datetime."""
        return epoch_to_datetime(self.epoch)

    def to_dict(self) -> dict:
        """Flat dictionary suitable for DataFrame construction."""
        return {
            "catalog_number": self.catalog_number,
            "name": self.name,
            "epoch": self.epoch_dt,
            "period_min": self.orbital_period,
            "mean_motion_rev_day": self.mean_motion,
            "eccentricity": self.eccentricity,
            "inclination_deg": self.inclination,
            "raan_deg": self.raan,
            "arg_perigee_deg": self.arg_perigee,
            "mean_anomaly_deg": self.mean_anomaly,
            "bstar": self.bstar,
            "deepspace": self.is_deepspace,
        }


def find_elements(
    elements: list[OrbitalElements],
    catalog_number: int,
) -> Optional[OrbitalElements]:
    """Return the element set with ``catalog_number`` (first match) or None."""
    for item in elements:
        if item.catalog_number == catalog_number:
            return item
    return None
