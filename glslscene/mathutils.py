"""Scalar helpers shared by the vector and matrix types."""

import math

PI = math.pi


def degrees(radians: float) -> float:
    """Convert an angle in radians to degrees."""
    return radians * (180.0 / PI)


def radians(degrees: float) -> float:
    """Convert an angle in degrees to radians."""
    return degrees * (PI / 180.0)


def clamp(x: float, lower: float, upper: float) -> float:
    """Limit ``x`` to the range [lower, upper]; ``upper`` wins if the bounds cross."""
    return min(upper, max(x, lower))