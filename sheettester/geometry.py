# SheetTester - Geometry
"""
Basic geometry value types shared by all surfaces and tiles.

- :class:`Rect` - axis aligned rectangle in user space
- :class:`CellAddress` - column/row address of a tile on the sheet grid
- :class:`AffineTransform` - 2D affine transform with y pointing down

All types are immutable, so they can be shared freely between the render
state stack, prepared contexts and recorded calls.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Rect:
    """Axis aligned rectangle."""
    x: float
    y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def inset(self, margin: float) -> Rect:
        """Shrink the rectangle by ``margin`` on every side."""
        return Rect(self.x + margin, self.y + margin,
                    self.width - 2 * margin, self.height - 2 * margin)

    def translated(self, dx: float, dy: float) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x < self.max_x and self.y <= y < self.max_y

    def intersects(self, other: Rect) -> bool:
        return (self.x < other.max_x and other.x < self.max_x
                and self.y < other.max_y and other.y < self.max_y)


@dataclass(frozen=True)
class CellAddress:
    """Zero based (column, row) address on the tile grid.

    Addresses are not validated against the sheet size: negative or out of
    range values simply place the cell outside the visible sheet.
    """
    column: int
    row: int

    def offset(self, tile_width: float, tile_height: float) -> tuple[float, float]:
        """Device space origin of the cell."""
        return self.column * tile_width, self.row * tile_height


@dataclass(frozen=True)
class AffineTransform:
    """2D affine transform.

    Maps ``x' = a*x + c*y + e`` and ``y' = b*x + d*y + f``. Angles are in
    radians; with y pointing down a positive angle rotates clockwise on
    screen.
    """
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> AffineTransform:
        return cls()

    @classmethod
    def translation(cls, tx: float, ty: float) -> AffineTransform:
        return cls(e=float(tx), f=float(ty))

    @classmethod
    def scaling(cls, sx: float, sy: float | None = None) -> AffineTransform:
        return cls(a=float(sx), d=float(sx if sy is None else sy))

    @classmethod
    def rotation(cls, theta: float, cx: float = 0.0, cy: float = 0.0) -> AffineTransform:
        cos, sin = math.cos(theta), math.sin(theta)
        rot = cls(a=cos, b=sin, c=-sin, d=cos)
        if cx == 0.0 and cy == 0.0:
            return rot
        return (cls.translation(cx, cy)
                .concatenate(rot)
                .concatenate(cls.translation(-cx, -cy)))

    @classmethod
    def shearing(cls, shx: float, shy: float) -> AffineTransform:
        return cls(b=float(shy), c=float(shx))

    def concatenate(self, other: AffineTransform) -> AffineTransform:
        """Return ``self * other``: ``other`` is applied to points first."""
        return AffineTransform(
            a=self.a * other.a + self.c * other.b,
            b=self.b * other.a + self.d * other.b,
            c=self.a * other.c + self.c * other.d,
            d=self.b * other.c + self.d * other.d,
            e=self.a * other.e + self.c * other.f + self.e,
            f=self.b * other.e + self.d * other.f + self.f,
        )

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    def inverse(self) -> AffineTransform:
        """Inverse transform.

        Raises:
            ValueError: If the transform is singular
        """
        det = self.determinant
        if abs(det) < 1e-12:
            raise ValueError("Transform is not invertible")
        a = self.d / det
        b = -self.b / det
        c = -self.c / det
        d = self.a / det
        return AffineTransform(
            a=a, b=b, c=c, d=d,
            e=-(a * self.e + c * self.f),
            f=-(b * self.e + d * self.f),
        )

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform an (N, 2) array of points."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        xs = pts[:, 0]
        ys = pts[:, 1]
        return np.column_stack((
            self.a * xs + self.c * ys + self.e,
            self.b * xs + self.d * ys + self.f,
        ))

    def apply_point(self, x: float, y: float) -> tuple[float, float]:
        return (self.a * x + self.c * y + self.e,
                self.b * x + self.d * y + self.f)

    @property
    def is_identity(self) -> bool:
        return self == AffineTransform()

    @property
    def is_translation(self) -> bool:
        return self.a == 1.0 and self.b == 0.0 and self.c == 0.0 and self.d == 1.0

    @property
    def scale_factor(self) -> float:
        """Geometric mean scale, used to size hairlines and flattening."""
        return math.sqrt(abs(self.determinant)) or 1.0

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        return self.a, self.b, self.c, self.d, self.e, self.f

    def to_svg(self) -> str:
        return "matrix({:g} {:g} {:g} {:g} {:g} {:g})".format(*self.as_tuple())


__all__ = ["Rect", "CellAddress", "AffineTransform"]
