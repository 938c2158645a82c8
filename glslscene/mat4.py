"""Row-major 4x4 transform matrix."""

from __future__ import annotations

from typing import Iterable, Sequence


def _row(values: Iterable[float]) -> list[float]:
    row = [float(v) for v in values]
    if len(row) != 4:
        raise ValueError(f"a matrix row needs 4 values, got {len(row)}")
    return row


class Mat4:
    """A 4x4 matrix, identity by default.

    Translation lives in row 3, so points transform as row vectors and
    ``a * b`` applies ``a`` first, then ``b``.
    """

    __slots__ = ("data",)

    def __init__(self) -> None:
        self.data = [[1.0 if r == c else 0.0 for c in range(4)] for r in range(4)]

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[float]]) -> Mat4:
        """Build a matrix from four rows of four values."""
        data = [_row(r) for r in rows]
        if len(data) != 4:
            raise ValueError(f"a matrix needs 4 rows, got {len(data)}")
        out = cls()
        out.data = data
        return out

    def rows(self) -> tuple[tuple[float, ...], ...]:
        """The matrix as a tuple of row tuples."""
        return tuple(tuple(r) for r in self.data)

    def __getitem__(self, index):
        """``m[i]`` is row ``i`` (a live list); ``m[i, j]`` is one element."""
        if isinstance(index, tuple):
            r, c = index
            return self.data[r][c]
        return self.data[index]

    def __setitem__(self, index, value) -> None:
        if isinstance(index, tuple):
            r, c = index
            self.data[r][c] = float(value)
        else:
            self.data[index] = _row(value)

    def __mul__(self, other: Mat4) -> Mat4:
        if not isinstance(other, Mat4):
            return NotImplemented
        columns = list(zip(*other.data))
        out = Mat4()
        out.data = [
            [sum(a * b for a, b in zip(row, col)) for col in columns]
            for row in self.data
        ]
        return out

    __matmul__ = __mul__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mat4):
            return NotImplemented
        return self.data == other.data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Mat4.from_rows({self.rows()!r})"

    @classmethod
    def translate(cls, offset: Sequence[float]) -> Mat4:
        """Translation by a Vec3 or any three numbers."""
        x, y, z = offset
        out = cls()
        out.data[3][0:3] = [float(x), float(y), float(z)]
        return out

    @classmethod
    def scale(cls, factors: Sequence[float]) -> Mat4:
        """Axis-aligned scale by a Vec3 or any three numbers."""
        x, y, z = factors
        out = cls()
        out.data[0][0] = float(x)
        out.data[1][1] = float(y)
        out.data[2][2] = float(z)
        return out

    @classmethod
    def from_quaternion(cls, x: float, y: float, z: float, w: float) -> Mat4:
        """Rotation matrix of the quaternion (x, y, z, w)."""
        x2, y2, z2 = x + x, y + y, z + z
        xx, xy, xz = x * x2, x * y2, x * z2
        yy, yz, zz = y * y2, y * z2, z * z2
        wx, wy, wz = w * x2, w * y2, w * z2
        return cls.from_rows(
            [
                [1.0 - (yy + zz), xy + wz, xz - wy, 0.0],
                [xy - wz, 1.0 - (xx + zz), yz + wx, 0.0],
                [xz + wy, yz - wx, 1.0 - (xx + yy), 0.0],
                [0.0, 0.0, 0.0, 1.0],
            ]
        )