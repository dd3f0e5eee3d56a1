"""Vector and angle helpers used by the propagators and transforms."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .constants import SEC_PER_DAY, TWO_PI


@dataclass(slots=True)
class Vector3:
    """Mutable 3-D vector.

    Instances are used as scratch storage and are overwritten in place, so a
    single vector must only be written by one caller at a time.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def set_xyz(self, x: float, y: float, z: float) -> None:
        self.x = x
        self.y = y
        self.z = z

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def scale(self, k: float) -> None:
        """Multiply the vector by ``k`` in place."""
        self.x *= k
        self.y *= k
        self.z *= k

    def dot(self, other: Vector3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def copy(self) -> Vector3:
        return Vector3(self.x, self.y, self.z)


def sqr(arg: float) -> float:
    return arg * arg


def fraction(arg: float) -> float:
    """Fractional part of ``arg`` (always non-negative)."""
    return arg - math.floor(arg)


def mod2pi(value: float) -> float:
    """Reduce an angle into [0, 2π).

    Unlike ``math.fmod`` the result is never negative.
    """
    ret = value - int(value / TWO_PI) * TWO_PI
    if ret < 0.0:
        ret += TWO_PI
    return ret


def modulus(arg: float) -> float:
    """Reduce a time in seconds into [0, one day)."""
    ret = arg - math.floor(arg / SEC_PER_DAY) * SEC_PER_DAY
    if ret < 0.0:
        ret += SEC_PER_DAY
    return ret


def ac_tan(sinx: float, cosx: float) -> float:
    """Four-quadrant arctangent in [0, 2π)."""
    angle = math.atan2(sinx, cosx)
    if angle < 0.0:
        angle += TWO_PI
    return angle
