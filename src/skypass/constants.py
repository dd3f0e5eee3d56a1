"""Physical and model constants shared by the propagators and transforms.

Distances are in kilometres unless noted. The SGP4/SDP4 model constants
(``CK2``, ``CK4``, ``XKE``, ``J3_HARMONIC``) are the ones the propagators were
fitted with and must not be swapped for newer geodetic values.

References:
    - Hoots, F. & Roehrich, R. (1980). Spacetrack Report No. 3.
    - Kelso, T.S. "CelesTrak TLE Format Documentation"
"""

import math

PI = math.pi
TWO_PI = 2.0 * math.pi
DEG2RAD = math.pi / 180.0
RAD2DEG = 180.0 / math.pi
TWO_THIRDS = 2.0 / 3.0

# ── Earth model ──

EARTH_RADIUS = 6378.137
"""Earth equatorial radius (km)."""

FLAT_FACTOR = 3.35281066474748e-3
"""Earth flattening (WGS-84)."""

EARTH_ROTATION_RATE = 7.292115e-5
"""Earth rotation rate (rad/s)."""

EARTH_ROT_PER_SID_DAY = 1.00273790934
"""Earth rotations per sidereal day."""

MU_EARTH = 398600.8
"""Earth gravitational parameter used by the SGP4 model (km³/s²)."""

# ── SGP4 model ──

CK2 = 5.413079e-4
"""½·J2·aE²."""

CK4 = 6.209887e-7
"""-⅜·J4·aE⁴."""

XKE = 7.43669161e-2
"""√(GM) in Earth radii^1.5 per minute."""

J3_HARMONIC = -2.53881e-6
"""J3 zonal harmonic."""

S_STANDARD = 1.012229
"""Standard atmosphere density parameter s (Earth radii)."""

QOMS2T_STANDARD = 1.880279e-9
"""Standard atmosphere (q0 - s)^4 (Earth radii^4)."""

DEEPSPACE_PERIOD_MIN = 225.0
"""Orbital period (minutes) at and above which SDP4 is used."""

EPSILON = 1.0e-12
"""Convergence tolerance of the iterative solvers."""

MAX_ITERATIONS = 10
"""Iteration cap of the iterative solvers."""

# ── Time ──

MIN_PER_DAY = 1440.0
SEC_PER_DAY = 86400.0

DAYNUM_JULIAN_OFFSET = 2444238.5
"""Julian date of 1979-12-31 00:00 UTC (day number 0)."""

EPOCH_PIVOT_YEAR = 57
"""Two-digit TLE epoch years below this are 20xx, otherwise 19xx.

Historical convention of the two-line element format: the first catalogued
object was launched in 1957, so the encoding is valid for 1957 through 2056.
"""

# ── Radio ──

SPEED_OF_LIGHT = 2.99792458e8
"""Speed of light (m/s)."""
