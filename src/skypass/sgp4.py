"""SGP4 near-Earth propagation.

Used for element sets with an orbital period below 225 minutes. Secular
gravity and atmospheric drag terms are applied on top of the common
recovery in :class:`~skypass.propagator.Propagator`. Orbits with a perigee
under 220 km switch to the "simple" drag model, which drops the higher
order drag polynomial and the perigee/mean-anomaly drag coupling.

References:
    - Hoots, F.R. & Roehrich, R.L. (1980). "Spacetrack Report No. 3:
      Models for Propagation of NORAD Element Sets".
"""

from __future__ import annotations

import logging
import math

from .constants import EARTH_RADIUS, TWO_THIRDS
from .elements import OrbitalElements
from .mathutils import Vector3
from .propagator import Propagator

logger = logging.getLogger(__name__)

SIMPLE_PERIGEE_KM = 220.0
"""Perigee altitude below which the simplified drag model is used (km)."""

MIN_DRAG_ECCENTRICITY = 1.0e-4
"""Eccentricity under which the eccentricity-scaled drag terms are dropped."""


class NearEarthPropagator(Propagator):
    """SGP4 model for orbits with a period below 225 minutes."""

    def __init__(self, elements: OrbitalElements) -> None:
        super().__init__(elements)

        self.simple = self.aodp * (1.0 - self.eo) < SIMPLE_PERIGEE_KM / EARTH_RADIUS + 1.0

        etasq = self.eta * self.eta
        eeta = self.eo * self.eta
        if self.eo > MIN_DRAG_ECCENTRICITY:
            c3 = self.coef * self.tsi * self.a3ovk2 * self.xnodp * self.sinio / self.eo
            self.xmcof = -TWO_THIRDS * self.coef * self.bstar / eeta
        else:
            c3 = 0.0
            self.xmcof = 0.0
        self.c5 = 2.0 * self.coef1 * self.aodp * self.betao2 * (
            1.0 + 2.75 * (etasq + eeta) + eeta * etasq
        )
        self.omgcof = self.bstar * c3 * math.cos(self.omegao)
        self.delmo = (1.0 + self.eta * math.cos(self.xmo)) ** 3
        self.sinmo = math.sin(self.xmo)

        self.d2 = self.d3 = self.d4 = 0.0
        self.t3cof = self.t4cof = self.t5cof = 0.0
        if not self.simple:
            c1sq = self.c1 * self.c1
            self.d2 = 4.0 * self.aodp * self.tsi * c1sq
            temp = self.d2 * self.tsi * self.c1 / 3.0
            self.d3 = (17.0 * self.aodp + self.s4) * temp
            self.d4 = 0.5 * temp * self.aodp * self.tsi * (221.0 * self.aodp + 31.0 * self.s4) * self.c1
            self.t3cof = self.d2 + 2.0 * c1sq
            self.t4cof = 0.25 * (3.0 * self.d3 + self.c1 * (12.0 * self.d2 + 10.0 * c1sq))
            self.t5cof = 0.2 * (
                3.0 * self.d4
                + 12.0 * self.c1 * self.d3
                + 6.0 * self.d2 * self.d2
                + 15.0 * c1sq * (2.0 * self.d2 + c1sq)
            )

        logger.debug(
            "SGP4 init #%d: perigee=%.1f km simple=%s",
            elements.catalog_number,
            self.perigee,
            self.simple,
        )

    def propagate(self, tsince: float, position: Vector3, velocity: Vector3) -> None:
        # ── Secular gravity and atmospheric drag ──
        xmdf = self.xmo + self.xmdot * tsince
        omgadf = self.omegao + self.omgdot * tsince
        xnoddf = self.xnodeo + self.xnodot * tsince
        omega = omgadf
        xmp = xmdf
        tsq = tsince * tsince
        xnode = xnoddf + self.xnodcf * tsq
        tempa = 1.0 - self.c1 * tsince
        tempe = self.bstar * self.c4 * tsince
        templ = self.t2cof * tsq

        if not self.simple:
            delomg = self.omgcof * tsince
            delm = self.xmcof * ((1.0 + self.eta * math.cos(xmdf)) ** 3 - self.delmo)
            temp = delomg + delm
            xmp = xmdf + temp
            omega = omgadf - temp
            tcube = tsq * tsince
            tfour = tsince * tcube
            tempa = tempa - self.d2 * tsq - self.d3 * tcube - self.d4 * tfour
            tempe = tempe + self.bstar * self.c5 * (math.sin(xmp) - self.sinmo)
            templ = templ + self.t3cof * tcube + tfour * (self.t4cof + tsince * self.t5cof)

        a = self.aodp * tempa * tempa
        e = self.eo - tempe
        xl = xmp + omega + xnode + self.xnodp * templ

        self._finish(a, e, omega, xl, xnode, self.xincl, position, velocity)
