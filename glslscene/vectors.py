"""Small immutable vector types used for scene data."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

from glslscene.mathutils import clamp as _clamp


@dataclass(frozen=True)
class IVec2:
    """A pair of integers, such as a resolution."""

    x: int = 0
    y: int = 0

    def __iter__(self) -> Iterator[int]:
        yield self.x
        yield self.y


@dataclass(frozen=True)
class Vec2:
    """A pair of floats, such as a texture coordinate."""

    x: float = 0.0
    y: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y


@dataclass(frozen=True)
class Vec4:
    """Four floats."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield from (self.x, self.y, self.z, self.w)

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y, self.z, self.w)[index]


@dataclass(frozen=True)
class Vec3:
    """Three floats with the usual vector arithmetic."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_vec4(cls, v: Vec4) -> Vec3:
        """Drop the ``w`` component of a Vec4."""
        return cls(v.x, v.y, v.z)

    def __iter__(self) -> Iterator[float]:
        yield from (self.x, self.y, self.z)

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y, self.z)[index]

    def __add__(self, other: Vec3) -> Vec3:
        if not isinstance(other, Vec3):
            return NotImplemented
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        if not isinstance(other, Vec3):
            return NotImplemented
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, other):
        """Component-wise product with a Vec3, or scaling by a number."""
        if isinstance(other, Vec3):
            return Vec3(self.x * other.x, self.y * other.y, self.z * other.z)
        if isinstance(other, (int, float)):
            return Vec3(self.x * other, self.y * other, self.z * other)
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, (int, float)):
            return Vec3(self.x * other, self.y * other, self.z * other)
        return NotImplemented

    def minimum(self, other: Vec3) -> Vec3:
        """Component-wise minimum."""
        return Vec3(min(self.x, other.x), min(self.y, other.y), min(self.z, other.z))

    def maximum(self, other: Vec3) -> Vec3:
        """Component-wise maximum."""
        return Vec3(max(self.x, other.x), max(self.y, other.y), max(self.z, other.z))

    def cross(self, other: Vec3) -> Vec3:
        """Cross product."""
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def pow(self, exponent: float) -> Vec3:
        """Raise each component to ``exponent``."""
        return Vec3(
            math.pow(self.x, exponent),
            math.pow(self.y, exponent),
            math.pow(self.z, exponent),
        )

    def length(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def distance(self, other: Vec3) -> float:
        """Euclidean distance to ``other``."""
        return (self - other).length()

    def dot(self, other: Vec3) -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def clamp(self, lower: Vec3, upper: Vec3) -> Vec3:
        """Clamp each component between the matching components of the bounds."""
        return Vec3(
            _clamp(self.x, lower.x, upper.x),
            _clamp(self.y, lower.y, upper.y),
            _clamp(self.z, lower.z, upper.z),
        )

    def normalize(self) -> Vec3:
        """Unit vector in the same direction; a zero vector raises ZeroDivisionError."""
        length = self.length()
        return Vec3(self.x / length, self.y / length, self.z / length)