"""Propagator strategy base shared by SGP4 and SDP4.

A propagator is built once per satellite from its element set. Construction
recovers the original (un-Kozai'd) mean motion and semi-major axis, derives
the perigee-dependent atmosphere parameters and precomputes every
time-independent drag and gravity coefficient. Each :meth:`propagate` call
then maps minutes since epoch onto an inertial state written into caller
owned vectors, in Earth radii and Earth radii per minute.

Both variants share the bounded Kepler solver and the orbital-plane to
inertial composer defined here.
"""

from __future__ import annotations

import math

from .constants import (
    CK2,
    CK4,
    EARTH_RADIUS,
    EPSILON,
    J3_HARMONIC,
    MAX_ITERATIONS,
    QOMS2T_STANDARD,
    S_STANDARD,
    TWO_THIRDS,
    XKE,
)
from .elements import OrbitalElements
from .mathutils import Vector3, mod2pi

MIN_ECCENTRICITY = 1.0e-6
MAX_ECCENTRICITY = 1.0 - 1.0e-6


def adjust_for_perigee(perigee: float) -> tuple[float, float]:
    """Atmosphere parameters ``(s4, qoms24)`` for a perigee altitude.

    Perigees below 156 km use a denser atmosphere model; the floor of the
    density profile sits at 98 km.

    Args:
        perigee: Perigee altitude above the equatorial radius (km).

    Returns:
        ``s4`` in Earth radii and ``qoms24`` in Earth radii^4.
    """
    if perigee >= 156.0:
        return S_STANDARD, QOMS2T_STANDARD

    s4 = 20.0 if perigee <= 98.0 else perigee - 78.0
    qoms24 = ((120.0 - s4) / EARTH_RADIUS) ** 4
    return s4 / EARTH_RADIUS + 1.0, qoms24


def solve_kepler(capu: float, axn: float, ayn: float) -> tuple[float, float, float, float]:
    """Solve Kepler's equation for the eccentric longitude.

    Fixed-point iteration, at most ``MAX_ITERATIONS`` passes, stopping once
    successive estimates differ by no more than ``EPSILON``. If the cap is
    reached the last estimate is accepted.

    Returns:
        ``(sin E, cos E, e·cos E, e·sin E)`` at the accepted estimate.
    """
    epw = capu
    sin_epw = cos_epw = ecose = esine = 0.0
    for _ in range(MAX_ITERATIONS):
        sin_epw = math.sin(epw)
        cos_epw = math.cos(epw)
        ecose = axn * cos_epw + ayn * sin_epw
        esine = axn * sin_epw - ayn * cos_epw
        next_epw = (capu - ayn * cos_epw + axn * sin_epw - epw) / (1.0 - ecose) + epw
        if abs(next_epw - epw) <= EPSILON:
            break
        epw = next_epw
    return sin_epw, cos_epw, ecose, esine


def clamp_eccentricity(e: float) -> float:
    return min(max(e, MIN_ECCENTRICITY), MAX_ECCENTRICITY)


class Propagator:
    """Common SGP4/SDP4 initialisation and geometry.

    Args:
        elements: Element set of the satellite.

    Attributes:
        perigee: Perigee altitude (km) from the recovered semi-major axis.
        s4: Atmosphere parameter s for this perigee (Earth radii).
        qoms24: Atmosphere parameter (q0 - s)^4 for this perigee.
    """

    def __init__(self, elements: OrbitalElements) -> None:
        self.elements = elements
        self.eo = elements.eccentricity
        self.xincl = elements.xincl
        self.xnodeo = elements.xnodeo
        self.omegao = elements.omegao
        self.xmo = elements.xmo
        self.bstar = elements.bstar
        xno = elements.xno

        # Recover original mean motion and semi-major axis
        a1 = (XKE / xno) ** TWO_THIRDS
        self.cosio = math.cos(self.xincl)
        self.sinio = math.sin(self.xincl)
        self.theta2 = self.cosio * self.cosio
        self.x3thm1 = 3.0 * self.theta2 - 1.0
        self.eosq = self.eo * self.eo
        self.betao2 = 1.0 - self.eosq
        self.betao = math.sqrt(self.betao2)
        del1 = 1.5 * CK2 * self.x3thm1 / (a1 * a1 * self.betao * self.betao2)
        ao = a1 * (1.0 - del1 * (0.5 * TWO_THIRDS + del1 * (1.0 + 134.0 / 81.0 * del1)))
        delo = 1.5 * CK2 * self.x3thm1 / (ao * ao * self.betao * self.betao2)
        self.xnodp = xno / (1.0 + delo)
        self.aodp = ao / (1.0 - delo)

        self.perigee = (self.aodp * (1.0 - self.eo) - 1.0) * EARTH_RADIUS
        self.s4, self.qoms24 = adjust_for_perigee(self.perigee)

        # Drag and gravity coefficients common to both models
        pinvsq = 1.0 / (self.aodp * self.aodp * self.betao2 * self.betao2)
        self.tsi = 1.0 / (self.aodp - self.s4)
        self.eta = self.aodp * self.eo * self.tsi
        etasq = self.eta * self.eta
        eeta = self.eo * self.eta
        psisq = abs(1.0 - etasq)
        self.coef = self.qoms24 * self.tsi ** 4
        self.coef1 = self.coef / psisq ** 3.5
        c2 = self.coef1 * self.xnodp * (
            self.aodp * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
            + 0.75 * CK2 * self.tsi / psisq * self.x3thm1 * (8.0 + 3.0 * etasq * (8.0 + etasq))
        )
        self.c1 = self.bstar * c2
        self.a3ovk2 = -J3_HARMONIC / CK2
        self.x1mth2 = 1.0 - self.theta2
        self.c4 = 2.0 * self.xnodp * self.coef1 * self.aodp * self.betao2 * (
            self.eta * (2.0 + 0.5 * etasq)
            + self.eo * (0.5 + 2.0 * etasq)
            - 2.0 * CK2 * self.tsi / (self.aodp * psisq) * (
                -3.0 * self.x3thm1 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
                + 0.75 * self.x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * self.omegao)
            )
        )
        theta4 = self.theta2 * self.theta2
        temp1 = 3.0 * CK2 * pinvsq * self.xnodp
        temp2 = temp1 * CK2 * pinvsq
        temp3 = 1.25 * CK4 * pinvsq * pinvsq * self.xnodp
        self.xmdot = (
            self.xnodp
            + 0.5 * temp1 * self.betao * self.x3thm1
            + 0.0625 * temp2 * self.betao * (13.0 - 78.0 * self.theta2 + 137.0 * theta4)
        )
        x1m5th = 1.0 - 5.0 * self.theta2
        self.omgdot = (
            -0.5 * temp1 * x1m5th
            + 0.0625 * temp2 * (7.0 - 114.0 * self.theta2 + 395.0 * theta4)
            + temp3 * (3.0 - 36.0 * self.theta2 + 49.0 * theta4)
        )
        xhdot1 = -temp1 * self.cosio
        self.xnodot = xhdot1 + (
            0.5 * temp2 * (4.0 - 19.0 * self.theta2) + 2.0 * temp3 * (3.0 - 7.0 * self.theta2)
        ) * self.cosio
        self.xnodcf = 3.5 * self.betao2 * xhdot1 * self.c1
        self.t2cof = 1.5 * self.c1
        self.epoch_terms = self.plane_terms(self.sinio, self.cosio)

    def plane_terms(self, sinio: float, cosio: float) -> tuple[float, float, float, float, float]:
        """Inclination-dependent periodic coefficients.

        Returns:
            ``(x3thm1, x1mth2, x7thm1, xlcof, aycof)``.
        """
        theta2 = cosio * cosio
        # Retrograde equatorial orbits: 1 + cos(i) vanishes
        cosio_plus = 1.0 + cosio
        if abs(cosio_plus) < 1.5e-12:
            cosio_plus = 1.5e-12
        xlcof = 0.125 * self.a3ovk2 * sinio * (3.0 + 5.0 * cosio) / cosio_plus
        aycof = 0.25 * self.a3ovk2 * sinio
        return 3.0 * theta2 - 1.0, 1.0 - theta2, 7.0 * theta2 - 1.0, xlcof, aycof

    def propagate(self, tsince: float, position: Vector3, velocity: Vector3) -> None:
        """Write the inertial state ``tsince`` minutes after epoch.

        Args:
            tsince: Minutes since the element set epoch (may be negative).
            position: Output vector, Earth radii.
            velocity: Output vector, Earth radii per minute.
        """
        raise NotImplementedError

    def _finish(
        self,
        a: float,
        e: float,
        omega: float,
        xl: float,
        xnode: float,
        xinc: float,
        position: Vector3,
        velocity: Vector3,
        perturbed: bool = False,
    ) -> None:
        """Long-period periodics, Kepler, short-period periodics, compose.

        With ``perturbed`` set the inclination-dependent coefficients are
        rebuilt from ``xinc`` instead of the epoch inclination.
        """
        if perturbed:
            sinio = math.sin(xinc)
            cosio = math.cos(xinc)
            x3thm1, x1mth2, x7thm1, xlcof, aycof = self.plane_terms(sinio, cosio)
        else:
            sinio = self.sinio
            cosio = self.cosio
            x3thm1, x1mth2, x7thm1, xlcof, aycof = self.epoch_terms

        e = clamp_eccentricity(e)
        beta = math.sqrt(1.0 - e * e)
        xn = XKE / a ** 1.5

        # Long period periodics
        axn = e * math.cos(omega)
        temp = 1.0 / (a * beta * beta)
        xll = temp * xlcof * axn
        aynl = temp * aycof
        xlt = xl + xll
        ayn = e * math.sin(omega) + aynl

        # A decayed orbit can push the long-period eccentricity past 1
        elsq = axn * axn + ayn * ayn
        if elsq > MAX_ECCENTRICITY * MAX_ECCENTRICITY:
            shrink = MAX_ECCENTRICITY / math.sqrt(elsq)
            axn *= shrink
            ayn *= shrink
            elsq = MAX_ECCENTRICITY * MAX_ECCENTRICITY

        capu = mod2pi(xlt - xnode)
        sin_epw, cos_epw, ecose, esine = solve_kepler(capu, axn, ayn)

        # Short period preliminary quantities
        temp = 1.0 - elsq
        pl = a * temp
        r = a * (1.0 - ecose)
        temp1 = 1.0 / r
        rdot = XKE * math.sqrt(a) * esine * temp1
        rfdot = XKE * math.sqrt(pl) * temp1
        temp2 = a * temp1
        betal = math.sqrt(temp)
        temp3 = 1.0 / (1.0 + betal)
        cosu = temp2 * (cos_epw - axn + ayn * esine * temp3)
        sinu = temp2 * (sin_epw - ayn - axn * esine * temp3)
        u = math.atan2(sinu, cosu)
        sin2u = 2.0 * sinu * cosu
        cos2u = 2.0 * cosu * cosu - 1.0
        temp = 1.0 / pl
        temp1 = CK2 * temp
        temp2 = temp1 * temp

        # Update for short periodics
        rk = r * (1.0 - 1.5 * temp2 * betal * x3thm1) + 0.5 * temp1 * x1mth2 * cos2u
        uk = u - 0.25 * temp2 * x7thm1 * sin2u
        xnodek = xnode + 1.5 * temp2 * cosio * sin2u
        xinck = xinc + 1.5 * temp2 * cosio * sinio * cos2u
        rdotk = rdot - xn * temp1 * x1mth2 * sin2u
        rfdotk = rfdot + xn * temp1 * (x1mth2 * cos2u + 1.5 * x3thm1)

        self.compose(rk, uk, xnodek, xinck, rdotk, rfdotk, position, velocity)

    @staticmethod
    def compose(
        rk: float,
        uk: float,
        xnodek: float,
        xinck: float,
        rdotk: float,
        rfdotk: float,
        position: Vector3,
        velocity: Vector3,
    ) -> None:
        """Turn orbital-plane quantities into inertial position and velocity.

        Args:
            rk: Orbital radius.
            uk: Argument of latitude (radians).
            xnodek: Right ascension of the ascending node (radians).
            xinck: Inclination (radians).
            rdotk: Radial velocity.
            rfdotk: Tangential velocity (r · du/dt).
            position: Output position vector.
            velocity: Output velocity vector.
        """
        sinuk = math.sin(uk)
        cosuk = math.cos(uk)
        sinik = math.sin(xinck)
        cosik = math.cos(xinck)
        sinnok = math.sin(xnodek)
        cosnok = math.cos(xnodek)
        xmx = -sinnok * cosik
        xmy = cosnok * cosik
        ux = xmx * sinuk + cosnok * cosuk
        uy = xmy * sinuk + sinnok * cosuk
        uz = sinik * sinuk
        vx = xmx * cosuk - cosnok * sinuk
        vy = xmy * cosuk - sinnok * sinuk
        vz = sinik * cosuk

        position.set_xyz(rk * ux, rk * uy, rk * uz)
        velocity.set_xyz(
            rdotk * ux + rfdotk * vx,
            rdotk * uy + rfdotk * vy,
            rdotk * uz + rfdotk * vz,
        )
