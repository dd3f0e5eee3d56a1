"""SDP4 deep-space propagation.

Used for element sets with an orbital period of 225 minutes or more. On top
of the common recovery this adds:

- lunar and solar secular rates and long-period periodics
  (:meth:`DeepSpacePropagator._secular`, :meth:`DeepSpacePropagator._periodics`);
- geopotential resonance for geosynchronous (about 24 h) and half-day
  (about 12 h, eccentric) orbits, integrated numerically from epoch.

Every call to :meth:`DeepSpacePropagator.propagate` is a pure function of
``tsince``: the resonance integrator restarts from epoch and the periodics
are recomputed each time, so the order of queries never changes a result.

References:
    - Hoots, F.R. & Roehrich, R.L. (1980). "Spacetrack Report No. 3".
    - Hujsak, R.S. (1979). "A Restricted Four Body Solution for Resonating
      Satellites Without Drag".
"""

from __future__ import annotations

import logging
import math

from .constants import PI, TWO_PI, TWO_THIRDS, XKE
from .elements import OrbitalElements
from .mathutils import Vector3, ac_tan, mod2pi
from .propagator import Propagator, clamp_eccentricity
from .timeutils import julian_date_of_epoch

logger = logging.getLogger(__name__)

# ── Lunar / solar constants ──

ZNS = 1.19459e-5
C1SS = 2.9864797e-6
ZES = 0.01675
ZNL = 1.5835218e-4
C1L = 4.7968065e-7
ZEL = 0.05490
ZCOSIS = 0.91744867
ZSINIS = 0.39785416
ZSINGS = -0.98088458
ZCOSGS = 0.1945905

# ── Resonance constants ──

Q22 = 1.7891679e-6
Q31 = 2.1460748e-6
Q33 = 2.2123015e-7
G22 = 5.7686396
G32 = 0.95240898
G44 = 1.8014998
G52 = 1.0508330
G54 = 4.4108898
ROOT22 = 1.7891679e-6
ROOT32 = 3.7393792e-7
ROOT44 = 7.3636953e-9
ROOT52 = 1.1428639e-7
ROOT54 = 2.1765803e-9
THDT = 4.3752691e-3
"""Earth rotation rate (radians per minute)."""

FASX2 = 0.13130908
FASX4 = 2.8843198
FASX6 = 0.37448087

STEP = 720.0
"""Resonance integrator step (minutes)."""

STEP2 = 259200.0
"""Half the squared integrator step."""

SYNC_BAND = (0.0034906585, 0.0052359877)
"""Mean motion band (rad/min) treated as geosynchronous resonance."""

HALF_DAY_BAND = (0.00826, 0.00924)
"""Mean motion band (rad/min) treated as 12-hour resonance."""

LYDDANE_INCLINATION = 0.2
"""Below this inclination (rad) periodics use the Lyddane modification."""


class DeepSpacePropagator(Propagator):
    """SDP4 model for orbits with a period of 225 minutes or more."""

    def __init__(self, elements: OrbitalElements) -> None:
        super().__init__(elements)

        self.sing = math.sin(self.omegao)
        self.cosg = math.cos(self.omegao)

        # Sidereal angle at epoch, via days since 1950 Jan 0.0
        ds50 = julian_date_of_epoch(elements.epoch) - 2433281.5
        self.thgr = mod2pi(6.3003880987 * ds50 + 1.72944494)

        self.xnq = self.xnodp
        self.aqnv = 1.0 / self.aodp
        self.xqncl = self.xincl
        self.xpidot = self.omgdot + self.xnodot

        self._init_lunar_solar(ds50 + 18261.5)
        self._init_resonance()

        logger.debug(
            "SDP4 init #%d: resonance=%s synchronous=%s",
            elements.catalog_number,
            self.resonance,
            self.synchronous,
        )

    # ── Initialisation ──

    def _init_lunar_solar(self, day: float) -> None:
        """Lunar/solar secular rates and periodic coefficients.

        Args:
            day: Days since 1900 Jan 0.5.
        """
        xnodce = 4.5236020 - 9.2422029e-4 * day
        stem = math.sin(xnodce)
        ctem = math.cos(xnodce)
        zcosil = 0.91375164 - 0.03568096 * ctem
        zsinil = math.sqrt(1.0 - zcosil * zcosil)
        zsinhl = 0.089683511 * stem / zsinil
        zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
        c = 4.7199672 + 0.22997150 * day
        gam = 5.8351514 + 0.0019443680 * day
        self.zmol = mod2pi(c - gam)
        zx = 0.39785416 * stem / zsinil
        zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
        zx = gam + ac_tan(zx, zy) - xnodce
        zcosgl = math.cos(zx)
        zsingl = math.sin(zx)
        self.zmos = mod2pi(6.2565837 + 0.017201977 * day)

        sinq = math.sin(self.xnodeo)
        cosq = math.cos(self.xnodeo)

        solar = self._third_body_terms(
            ZCOSGS, ZSINGS, ZCOSIS, ZSINIS, cosq, sinq, C1SS, ZNS, ZES
        )
        lunar = self._third_body_terms(
            zcosgl,
            zsingl,
            zcosil,
            zsinil,
            zcoshl * cosq + zsinhl * sinq,
            sinq * zcoshl - cosq * zsinhl,
            C1L,
            ZNL,
            ZEL,
        )
        self.solar = solar
        self.lunar = lunar

        self.sse = solar["se"] + lunar["se"]
        self.ssi = solar["si"] + lunar["si"]
        self.ssl = solar["sl"] + lunar["sl"]
        self.ssg = 0.0
        self.ssh = 0.0
        for terms in (solar, lunar):
            if self.sinio != 0.0:
                sh_rate = terms["sh"] / self.sinio
            else:
                sh_rate = 0.0
            self.ssg += terms["sgh"] - self.cosio * sh_rate
            self.ssh += sh_rate

    def _third_body_terms(
        self,
        zcosg: float,
        zsing: float,
        zcosi: float,
        zsini: float,
        zcosh: float,
        zsinh: float,
        cc: float,
        zn: float,
        ze: float,
    ) -> dict[str, float]:
        """Secular rates and periodic coefficients for one perturbing body."""
        eosq = self.eosq
        a1 = zcosg * zcosh + zsing * zcosi * zsinh
        a3 = -zsing * zcosh + zcosg * zcosi * zsinh
        a7 = -zcosg * zsinh + zsing * zcosi * zcosh
        a8 = zsing * zsini
        a9 = zsing * zsinh + zcosg * zcosi * zcosh
        a10 = zcosg * zsini
        a2 = self.cosio * a7 + self.sinio * a8
        a4 = self.cosio * a9 + self.sinio * a10
        a5 = -self.sinio * a7 + self.cosio * a8
        a6 = -self.sinio * a9 + self.cosio * a10
        x1 = a1 * self.cosg + a2 * self.sing
        x2 = a3 * self.cosg + a4 * self.sing
        x3 = -a1 * self.sing + a2 * self.cosg
        x4 = -a3 * self.sing + a4 * self.cosg
        x5 = a5 * self.sing
        x6 = a6 * self.sing
        x7 = a5 * self.cosg
        x8 = a6 * self.cosg
        z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
        z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
        z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
        z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * eosq
        z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * eosq
        z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * eosq
        z11 = -6.0 * a1 * a5 + eosq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
        z12 = -6.0 * (a1 * a6 + a3 * a5) + eosq * (
            -24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5)
        )
        z13 = -6.0 * a3 * a6 + eosq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
        z21 = 6.0 * a2 * a5 + eosq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
        z22 = 6.0 * (a4 * a5 + a2 * a6) + eosq * (
            24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8)
        )
        z23 = 6.0 * a4 * a6 + eosq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
        z1 = z1 + z1 + self.betao2 * z31
        z2 = z2 + z2 + self.betao2 * z32
        z3 = z3 + z3 + self.betao2 * z33
        s3 = cc / self.xnq
        s2 = -0.5 * s3 / self.betao
        s4 = s3 * self.betao
        s1 = -15.0 * self.eo * s4
        s5 = x1 * x3 + x2 * x4
        s6 = x2 * x3 + x1 * x4
        s7 = x2 * x4 - x1 * x3

        sh = -zn * s2 * (z21 + z23)
        if self.xqncl < 5.2359877e-2:
            sh = 0.0

        return {
            "se": s1 * zn * s5,
            "si": s2 * zn * (z11 + z13),
            "sl": -zn * s3 * (z1 + z3 - 14.0 - 6.0 * eosq),
            "sgh": s4 * zn * (z31 + z33 - 6.0),
            "sh": sh,
            "e2": 2.0 * s1 * s6,
            "e3": 2.0 * s1 * s7,
            "i2": 2.0 * s2 * z12,
            "i3": 2.0 * s2 * (z13 - z11),
            "l2": -2.0 * s3 * z2,
            "l3": -2.0 * s3 * (z3 - z1),
            "l4": -2.0 * s3 * (-21.0 - 9.0 * eosq) * ze,
            "gh2": 2.0 * s4 * z32,
            "gh3": 2.0 * s4 * (z33 - z31),
            "gh4": -18.0 * s4 * ze,
            "h2": -2.0 * s2 * z22,
            "h3": -2.0 * s2 * (z23 - z21),
        }

    def _init_resonance(self) -> None:
        self.resonance = False
        self.synchronous = False
        xnq = self.xnq
        eq = self.eo
        eosq = self.eosq
        aqnv = self.aqnv
        sinio = self.sinio
        cosio = self.cosio
        theta2 = self.theta2

        if SYNC_BAND[0] < xnq < SYNC_BAND[1]:
            self.resonance = True
            self.synchronous = True
            g200 = 1.0 + eosq * (-2.5 + 0.8125 * eosq)
            g310 = 1.0 + 2.0 * eosq
            g300 = 1.0 + eosq * (-6.0 + 6.60937 * eosq)
            f220 = 0.75 * (1.0 + cosio) * (1.0 + cosio)
            f311 = 0.9375 * sinio * sinio * (1.0 + 3.0 * cosio) - 0.75 * (1.0 + cosio)
            f330 = 1.0 + cosio
            f330 = 1.875 * f330 * f330 * f330
            del1 = 3.0 * self.xnodp * self.xnodp * aqnv * aqnv
            self.del2 = 2.0 * del1 * f220 * g200 * Q22
            self.del3 = 3.0 * del1 * f330 * g300 * Q33 * aqnv
            self.del1 = del1 * f311 * g310 * Q31 * aqnv
            self.xlamo = self.xmo + self.xnodeo + self.omegao - self.thgr
            bfact = self.xmdot + self.xpidot - THDT
            bfact = bfact + self.ssl + self.ssg + self.ssh
        elif HALF_DAY_BAND[0] <= xnq <= HALF_DAY_BAND[1] and eq >= 0.5:
            self.resonance = True
            eoc = eq * eosq
            g201 = -0.306 - (eq - 0.64) * 0.440
            if eq <= 0.65:
                g211 = 3.616 - 13.247 * eq + 16.290 * eosq
                g310 = -19.302 + 117.390 * eq - 228.419 * eosq + 156.591 * eoc
                g322 = -18.9068 + 109.7927 * eq - 214.6334 * eosq + 146.5816 * eoc
                g410 = -41.122 + 242.694 * eq - 471.094 * eosq + 313.953 * eoc
                g422 = -146.407 + 841.880 * eq - 1629.014 * eosq + 1083.435 * eoc
                g520 = -532.114 + 3017.977 * eq - 5740.0 * eosq + 3708.276 * eoc
            else:
                g211 = -72.099 + 331.819 * eq - 508.738 * eosq + 266.724 * eoc
                g310 = -346.844 + 1582.851 * eq - 2415.925 * eosq + 1246.113 * eoc
                g322 = -342.585 + 1554.908 * eq - 2366.899 * eosq + 1215.972 * eoc
                g410 = -1052.797 + 4758.686 * eq - 7193.992 * eosq + 3651.957 * eoc
                g422 = -3581.69 + 16178.11 * eq - 24462.77 * eosq + 12422.52 * eoc
                if eq <= 0.715:
                    g520 = 1464.74 - 4664.75 * eq + 3763.64 * eosq
                else:
                    g520 = -5149.66 + 29936.92 * eq - 54087.36 * eosq + 31324.56 * eoc
            if eq < 0.7:
                g533 = -919.2277 + 4988.61 * eq - 9064.77 * eosq + 5542.21 * eoc
                g521 = -822.71072 + 4568.6173 * eq - 8491.4146 * eosq + 5337.524 * eoc
                g532 = -853.666 + 4690.25 * eq - 8624.77 * eosq + 5341.4 * eoc
            else:
                g533 = -37995.78 + 161616.52 * eq - 229838.2 * eosq + 109377.94 * eoc
                g521 = -51752.104 + 218913.95 * eq - 309468.16 * eosq + 146349.42 * eoc
                g532 = -40023.88 + 170470.89 * eq - 242699.48 * eosq + 115605.82 * eoc

            sini2 = sinio * sinio
            f220 = 0.75 * (1.0 + 2.0 * cosio + theta2)
            f221 = 1.5 * sini2
            f321 = 1.875 * sinio * (1.0 - 2.0 * cosio - 3.0 * theta2)
            f322 = -1.875 * sinio * (1.0 + 2.0 * cosio - 3.0 * theta2)
            f441 = 35.0 * sini2 * f220
            f442 = 39.3750 * sini2 * sini2
            f522 = 9.84375 * sinio * (
                sini2 * (1.0 - 2.0 * cosio - 5.0 * theta2)
                + 0.33333333 * (-2.0 + 4.0 * cosio + 6.0 * theta2)
            )
            f523 = sinio * (
                4.92187512 * sini2 * (-2.0 - 4.0 * cosio + 10.0 * theta2)
                + 6.56250012 * (1.0 + 2.0 * cosio - 3.0 * theta2)
            )
            f542 = 29.53125 * sinio * (
                2.0 - 8.0 * cosio + theta2 * (-12.0 + 8.0 * cosio + 10.0 * theta2)
            )
            f543 = 29.53125 * sinio * (
                -2.0 - 8.0 * cosio + theta2 * (12.0 + 8.0 * cosio - 10.0 * theta2)
            )

            xno2 = xnq * xnq
            ainv2 = aqnv * aqnv
            temp1 = 3.0 * xno2 * ainv2
            temp = temp1 * ROOT22
            self.d2201 = temp * f220 * g201
            self.d2211 = temp * f221 * g211
            temp1 = temp1 * aqnv
            temp = temp1 * ROOT32
            self.d3210 = temp * f321 * g310
            self.d3222 = temp * f322 * g322
            temp1 = temp1 * aqnv
            temp = 2.0 * temp1 * ROOT44
            self.d4410 = temp * f441 * g410
            self.d4422 = temp * f442 * g422
            temp1 = temp1 * aqnv
            temp = temp1 * ROOT52
            self.d5220 = temp * f522 * g520
            self.d5232 = temp * f523 * g532
            temp = 2.0 * temp1 * ROOT54
            self.d5421 = temp * f542 * g521
            self.d5433 = temp * f543 * g533
            self.xlamo = self.xmo + 2.0 * self.xnodeo - 2.0 * self.thgr
            bfact = self.xmdot + 2.0 * self.xnodot - 2.0 * THDT
            bfact = bfact + self.ssl + 2.0 * self.ssh
        else:
            return

        self.xfact = bfact - xnq

    # ── Per-call deep-space corrections ──

    def _resonance_dots(self, xli: float, atime: float) -> tuple[float, float]:
        """Resonance rates ``(xndot, xnddt)`` before the ``xldot`` factor."""
        if self.synchronous:
            xndot = (
                self.del1 * math.sin(xli - FASX2)
                + self.del2 * math.sin(2.0 * (xli - FASX4))
                + self.del3 * math.sin(3.0 * (xli - FASX6))
            )
            xnddt = (
                self.del1 * math.cos(xli - FASX2)
                + 2.0 * self.del2 * math.cos(2.0 * (xli - FASX4))
                + 3.0 * self.del3 * math.cos(3.0 * (xli - FASX6))
            )
            return xndot, xnddt

        xomi = self.omegao + self.omgdot * atime
        x2omi = xomi + xomi
        x2li = xli + xli
        xndot = (
            self.d2201 * math.sin(x2omi + xli - G22)
            + self.d2211 * math.sin(xli - G22)
            + self.d3210 * math.sin(xomi + xli - G32)
            + self.d3222 * math.sin(-xomi + xli - G32)
            + self.d4410 * math.sin(x2omi + x2li - G44)
            + self.d4422 * math.sin(x2li - G44)
            + self.d5220 * math.sin(xomi + xli - G52)
            + self.d5232 * math.sin(-xomi + xli - G52)
            + self.d5421 * math.sin(xomi + x2li - G54)
            + self.d5433 * math.sin(-xomi + x2li - G54)
        )
        xnddt = (
            self.d2201 * math.cos(x2omi + xli - G22)
            + self.d2211 * math.cos(xli - G22)
            + self.d3210 * math.cos(xomi + xli - G32)
            + self.d3222 * math.cos(-xomi + xli - G32)
            + self.d5220 * math.cos(xomi + xli - G52)
            + self.d5232 * math.cos(-xomi + xli - G52)
            + 2.0 * (
                self.d4410 * math.cos(x2omi + x2li - G44)
                + self.d4422 * math.cos(x2li - G44)
                + self.d5421 * math.cos(xomi + x2li - G54)
                + self.d5433 * math.cos(-xomi + x2li - G54)
            )
        )
        return xndot, xnddt

    def _secular(
        self, xll: float, omgadf: float, xnode: float, t: float
    ) -> tuple[float, float, float, float, float, float]:
        """Apply lunar/solar secular rates and resonance at ``t`` minutes.

        Returns:
            ``(xll, omgadf, xnode, em, xinc, xn)``.
        """
        xll = xll + self.ssl * t
        omgadf = omgadf + self.ssg * t
        xnode = xnode + self.ssh * t
        em = self.eo + self.sse * t
        xinc = self.xincl + self.ssi * t
        if xinc < 0.0:
            xinc = -xinc
            xnode = xnode + PI
            omgadf = omgadf - PI

        if not self.resonance:
            return xll, omgadf, xnode, em, xinc, self.xnodp

        # Integrate from epoch in fixed steps, then Taylor to t
        delt = STEP if t >= 0.0 else -STEP
        atime = 0.0
        xni = self.xnq
        xli = self.xlamo
        while abs(t - atime) >= STEP:
            xndot, xnddt = self._resonance_dots(xli, atime)
            xldot = xni + self.xfact
            xnddt = xnddt * xldot
            xli = xli + xldot * delt + xndot * STEP2
            xni = xni + xndot * delt + xnddt * STEP2
            atime = atime + delt

        ft = t - atime
        xndot, xnddt = self._resonance_dots(xli, atime)
        xldot = xni + self.xfact
        xnddt = xnddt * xldot
        xn = xni + xndot * ft + xnddt * ft * ft * 0.5
        xl = xli + xldot * ft + xndot * ft * ft * 0.5

        temp = -xnode + self.thgr + t * THDT
        if self.synchronous:
            xll = xl - omgadf + temp
        else:
            xll = xl + temp + temp
        return xll, omgadf, xnode, em, xinc, xn

    def _periodics(
        self, e: float, xinc: float, omgadf: float, xnode: float, xll: float, t: float
    ) -> tuple[float, float, float, float, float]:
        """Apply lunar/solar long-period periodics at ``t`` minutes.

        Returns:
            ``(e, xinc, omgadf, xnode, xll)``.
        """
        sinis = math.sin(xinc)
        cosis = math.cos(xinc)

        pe = pinc = pl = pgh = ph = 0.0
        for terms, zmo, zn, ze in (
            (self.solar, self.zmos, ZNS, ZES),
            (self.lunar, self.zmol, ZNL, ZEL),
        ):
            zm = zmo + zn * t
            zf = zm + 2.0 * ze * math.sin(zm)
            sinzf = math.sin(zf)
            f2 = 0.5 * sinzf * sinzf - 0.25
            f3 = -0.5 * sinzf * math.cos(zf)
            pe += terms["e2"] * f2 + terms["e3"] * f3
            pinc += terms["i2"] * f2 + terms["i3"] * f3
            pl += terms["l2"] * f2 + terms["l3"] * f3 + terms["l4"] * sinzf
            pgh += terms["gh2"] * f2 + terms["gh3"] * f3 + terms["gh4"] * sinzf
            ph += terms["h2"] * f2 + terms["h3"] * f3

        xinc = xinc + pinc
        e = e + pe

        if self.xqncl >= LYDDANE_INCLINATION:
            ph = ph / self.sinio
            pgh = pgh - self.cosio * ph
            omgadf = omgadf + pgh
            xnode = xnode + ph
            xll = xll + pl
            return e, xinc, omgadf, xnode, xll

        # Lyddane modification for low inclinations
        sinok = math.sin(xnode)
        cosok = math.cos(xnode)
        alfdp = sinis * sinok
        betdp = sinis * cosok
        dalf = ph * cosok + pinc * cosis * sinok
        dbet = -ph * sinok + pinc * cosis * cosok
        alfdp = alfdp + dalf
        betdp = betdp + dbet
        xnode = mod2pi(xnode)
        xls = xll + omgadf + cosis * xnode
        dls = pl + pgh - pinc * xnode * sinis
        xls = xls + dls
        xnoh = xnode
        xnode = ac_tan(alfdp, betdp)
        # Keep the node on the same branch as before the correction
        if abs(xnoh - xnode) > PI:
            if xnode < xnoh:
                xnode += TWO_PI
            else:
                xnode -= TWO_PI
        xll = xll + pl
        omgadf = xls - xll - math.cos(xinc) * xnode
        return e, xinc, omgadf, xnode, xll

    def propagate(self, tsince: float, position: Vector3, velocity: Vector3) -> None:
        xmdf = self.xmo + self.xmdot * tsince
        omgadf = self.omegao + self.omgdot * tsince
        xnoddf = self.xnodeo + self.xnodot * tsince
        tsq = tsince * tsince
        xnode = xnoddf + self.xnodcf * tsq
        tempa = 1.0 - self.c1 * tsince
        tempe = self.bstar * self.c4 * tsince
        templ = self.t2cof * tsq

        xmdf, omgadf, xnode, em, xinc, xn = self._secular(xmdf, omgadf, xnode, tsince)
        a = (XKE / xn) ** TWO_THIRDS * tempa * tempa
        e = clamp_eccentricity(em - tempe)
        xmam = xmdf + self.xnodp * templ

        e, xinc, omgadf, xnode, xmam = self._periodics(e, xinc, omgadf, xnode, xmam, tsince)
        xl = xmam + omgadf + xnode

        self._finish(a, e, omgadf, xl, xnode, xinc, position, velocity, perturbed=True)
