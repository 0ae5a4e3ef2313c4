# SheetTester - Paints, strokes and composites
"""
Drawing attribute descriptions shared by all surfaces.

Surfaces receive these as plain values and translate them into their native
representation. The raster backend evaluates paints directly through
:func:`evaluate_paint`, which samples a paint at arbitrary user space points
and returns straight (non premultiplied) RGBA floats in [0.0, 1.0].
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Union

import numpy as np

from .geometry import Rect


class Color(NamedTuple):
    """8-bit RGBA color."""
    r: int
    g: int
    b: int
    a: int = 255

    def with_alpha(self, alpha: int) -> Color:
        return Color(self.r, self.g, self.b, alpha)

    def to_float(self) -> np.ndarray:
        return np.array(self, dtype=np.float32) / 255.0

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @property
    def opacity(self) -> float:
        return self.a / 255.0


class Colors:
    """Named colors (the classic AWT palette)."""
    BLACK = Color(0, 0, 0)
    WHITE = Color(255, 255, 255)
    RED = Color(255, 0, 0)
    GREEN = Color(0, 255, 0)
    BLUE = Color(0, 0, 255)
    YELLOW = Color(255, 255, 0)
    CYAN = Color(0, 255, 255)
    MAGENTA = Color(255, 0, 255)
    ORANGE = Color(255, 200, 0)
    PINK = Color(255, 175, 175)
    GRAY = Color(128, 128, 128)
    LIGHT_GRAY = Color(192, 192, 192)
    DARK_GRAY = Color(64, 64, 64)
    TRANSPARENT = Color(0, 0, 0, 0)


RAINBOW_COLORS: tuple[Color, ...] = (
    Color(255, 0, 0),
    Color(255, 165, 0),
    Color(255, 255, 0),
    Color(0, 128, 0),
    Color(0, 0, 255),
    Color(75, 0, 130),
    Color(238, 130, 238),
)


class CycleMethod(Enum):
    """How a gradient continues outside of its [0, 1] range."""
    NO_CYCLE = "pad"
    REFLECT = "reflect"
    REPEAT = "repeat"


@dataclass(frozen=True)
class GradientPaint:
    """Two color linear gradient between two points."""
    x1: float
    y1: float
    color1: Color
    x2: float
    y2: float
    color2: Color
    cyclic: bool = False

    def as_multi_stop(self) -> LinearGradientPaint:
        return LinearGradientPaint(
            (self.x1, self.y1), (self.x2, self.y2),
            (0.0, 1.0), (self.color1, self.color2),
            CycleMethod.REFLECT if self.cyclic else CycleMethod.NO_CYCLE,
        )


@dataclass(frozen=True)
class LinearGradientPaint:
    """Multi stop linear gradient."""
    start: tuple[float, float]
    end: tuple[float, float]
    fractions: tuple[float, ...]
    colors: tuple[Color, ...]
    cycle: CycleMethod = CycleMethod.NO_CYCLE

    def __post_init__(self):
        _check_stops(self.fractions, self.colors)


@dataclass(frozen=True)
class RadialGradientPaint:
    """Multi stop radial gradient with an optional focus point."""
    center: tuple[float, float]
    radius: float
    fractions: tuple[float, ...]
    colors: tuple[Color, ...]
    focus: tuple[float, float] | None = None
    cycle: CycleMethod = CycleMethod.NO_CYCLE

    def __post_init__(self):
        _check_stops(self.fractions, self.colors)
        if self.radius <= 0:
            raise ValueError(f"Radius must be positive, got {self.radius}")

    @property
    def effective_focus(self) -> tuple[float, float]:
        """Focus point clamped to just inside the circle."""
        if self.focus is None:
            return self.center
        cx, cy = self.center
        fx, fy = self.focus
        dx, dy = fx - cx, fy - cy
        dist = float(np.hypot(dx, dy))
        limit = self.radius * 0.99
        if dist > limit:
            scale = limit / dist
            return cx + dx * scale, cy + dy * scale
        return fx, fy


@dataclass(frozen=True, eq=False)
class TexturePaint:
    """Tiles an RGBA image so that one copy covers ``anchor``."""
    image: np.ndarray
    anchor: Rect


@dataclass(frozen=True, eq=False)
class ImagePaint:
    """Maps an RGBA image once onto ``dest``; transparent outside of it."""
    image: np.ndarray
    dest: Rect


Paint = Union[Color, GradientPaint, LinearGradientPaint, RadialGradientPaint,
              TexturePaint, ImagePaint]


class LineCap(Enum):
    BUTT = "butt"
    ROUND = "round"
    SQUARE = "square"


class LineJoin(Enum):
    MITER = "miter"
    ROUND = "round"
    BEVEL = "bevel"


@dataclass(frozen=True)
class Stroke:
    """Outline attributes.

    A width of 0 draws a hairline that is one device pixel wide regardless of
    the current transform.
    """
    width: float = 1.0
    cap: LineCap = LineCap.SQUARE
    join: LineJoin = LineJoin.MITER
    miter_limit: float = 10.0
    dash: tuple[float, ...] | None = None
    dash_phase: float = 0.0

    def __post_init__(self):
        if self.width < 0:
            raise ValueError(f"Stroke width must not be negative, got {self.width}")
        if self.dash is not None:
            if not self.dash or any(d < 0 for d in self.dash) or sum(self.dash) <= 0:
                raise ValueError(f"Invalid dash pattern: {self.dash}")

    @property
    def is_hairline(self) -> bool:
        return self.width == 0


class CompositeRule(Enum):
    """Porter-Duff compositing rules."""
    CLEAR = "clear"
    SRC = "src"
    DST = "dst"
    SRC_OVER = "src_over"
    DST_OVER = "dst_over"
    SRC_IN = "src_in"
    DST_IN = "dst_in"
    SRC_OUT = "src_out"
    DST_OUT = "dst_out"
    SRC_ATOP = "src_atop"
    DST_ATOP = "dst_atop"
    XOR = "xor"


@dataclass(frozen=True)
class Composite:
    """Compositing rule plus an extra alpha applied to the source."""
    rule: CompositeRule = CompositeRule.SRC_OVER
    alpha: float = 1.0

    def __post_init__(self):
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"Composite alpha must be in [0, 1], got {self.alpha}")


SERIF = "serif"
SANS_SERIF = "sans-serif"
MONOSPACED = "monospace"


@dataclass(frozen=True)
class FontSpec:
    """Logical font request."""
    family: str = SANS_SERIF
    size: float = 12.0
    bold: bool = False
    italic: bool = False

    def derive(self, **changes) -> FontSpec:
        values = {"family": self.family, "size": self.size,
                  "bold": self.bold, "italic": self.italic}
        values.update(changes)
        return FontSpec(**values)


@dataclass(frozen=True)
class LineMetrics:
    ascent: float
    descent: float
    leading: float = 0.0

    @property
    def height(self) -> float:
        return self.ascent + self.descent + self.leading


DEFAULT_PAINT = Colors.BLACK
DEFAULT_STROKE = Stroke()
DEFAULT_FONT = FontSpec()
DEFAULT_COMPOSITE = Composite()


def _check_stops(fractions, colors) -> None:
    if len(fractions) != len(colors) or len(fractions) < 2:
        raise ValueError("Gradients need at least two fractions with one color each")
    if any(b < a for a, b in zip(fractions, fractions[1:])):
        raise ValueError(f"Gradient fractions must be ascending: {fractions}")
    if fractions[0] < 0.0 or fractions[-1] > 1.0:
        raise ValueError(f"Gradient fractions must be in [0, 1]: {fractions}")


def apply_cycle(t: np.ndarray, cycle: CycleMethod) -> np.ndarray:
    """Map raw gradient parameters into [0, 1]."""
    if cycle is CycleMethod.REPEAT:
        return t - np.floor(t)
    if cycle is CycleMethod.REFLECT:
        t = np.mod(t, 2.0)
        return np.where(t > 1.0, 2.0 - t, t)
    return np.clip(t, 0.0, 1.0)


def _interpolate_stops(t: np.ndarray, fractions, colors) -> np.ndarray:
    stops = np.array([c.to_float() for c in colors], dtype=np.float64)
    out = np.empty((t.shape[0], 4), dtype=np.float32)
    for channel in range(4):
        out[:, channel] = np.interp(t, fractions, stops[:, channel])
    return out


def _linear_parameter(xs, ys, start, end) -> np.ndarray:
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return np.zeros_like(xs)
    return ((xs - start[0]) * dx + (ys - start[1]) * dy) / length_sq


def _radial_parameter(xs, ys, paint: RadialGradientPaint) -> np.ndarray:
    cx, cy = paint.center
    fx, fy = paint.effective_focus
    r = paint.radius
    # Solve |F + s*(P - F) - C| = r for s; the gradient parameter is 1/s
    dx = xs - fx
    dy = ys - fy
    ox = fx - cx
    oy = fy - cy
    qa = dx * dx + dy * dy
    qb = ox * dx + oy * dy
    qc = ox * ox + oy * oy - r * r
    disc = np.maximum(qb * qb - qa * qc, 0.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        s = (-qb + np.sqrt(disc)) / qa
        t = np.where(qa > 0, 1.0 / s, 0.0)
    return np.nan_to_num(t, nan=0.0, posinf=0.0, neginf=0.0)


def _sample_image(image: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Bilinear sample of a uint8 RGBA image at pixel coordinates."""
    h, w = image.shape[:2]
    src = image.astype(np.float32) / 255.0
    u = np.clip(u - 0.5, 0, w - 1)
    v = np.clip(v - 0.5, 0, h - 1)
    x0 = np.floor(u).astype(np.intp)
    y0 = np.floor(v).astype(np.intp)
    x1 = np.minimum(x0 + 1, w - 1)
    y1 = np.minimum(y0 + 1, h - 1)
    fx = (u - x0)[:, None]
    fy = (v - y0)[:, None]
    top = src[y0, x0] * (1 - fx) + src[y0, x1] * fx
    bottom = src[y1, x0] * (1 - fx) + src[y1, x1] * fx
    return (top * (1 - fy) + bottom * fy).astype(np.float32)


def as_rgba(image: np.ndarray) -> np.ndarray:
    """Convert a gray, RGB or RGBA uint8 array into RGBA."""
    if image.ndim == 2:
        image = np.stack([image] * 3, axis=2)
    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        image = np.concatenate([image, alpha], axis=2)
    return np.ascontiguousarray(image, dtype=np.uint8)


def evaluate_paint(paint: Paint, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Sample a paint at user space points.

    Args:
        paint: Any supported paint
        xs: X coordinates, shape (N,)
        ys: Y coordinates, shape (N,)

    Returns:
        float32 array of shape (N, 4) with straight RGBA in [0.0, 1.0]
    """
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    if isinstance(paint, Color):
        return np.broadcast_to(paint.to_float(), (xs.shape[0], 4)).copy()
    if isinstance(paint, GradientPaint):
        paint = paint.as_multi_stop()
    if isinstance(paint, LinearGradientPaint):
        t = apply_cycle(_linear_parameter(xs, ys, paint.start, paint.end), paint.cycle)
        return _interpolate_stops(t, paint.fractions, paint.colors)
    if isinstance(paint, RadialGradientPaint):
        t = apply_cycle(_radial_parameter(xs, ys, paint), paint.cycle)
        return _interpolate_stops(t, paint.fractions, paint.colors)
    if isinstance(paint, TexturePaint):
        h, w = paint.image.shape[:2]
        anchor = paint.anchor
        u = np.mod((xs - anchor.x) / anchor.width, 1.0) * w
        v = np.mod((ys - anchor.y) / anchor.height, 1.0) * h
        ui = np.minimum(u.astype(np.intp), w - 1)
        vi = np.minimum(v.astype(np.intp), h - 1)
        return paint.image[vi, ui].astype(np.float32) / 255.0
    if isinstance(paint, ImagePaint):
        h, w = paint.image.shape[:2]
        dest = paint.dest
        u = (xs - dest.x) / dest.width * w
        v = (ys - dest.y) / dest.height * h
        out = _sample_image(paint.image, u, v)
        outside = (u < 0) | (u > w) | (v < 0) | (v > h)
        out[outside] = 0.0
        return out
    raise TypeError(f"Unsupported paint: {type(paint).__name__}")


__all__ = [
    "Color", "Colors", "RAINBOW_COLORS", "CycleMethod", "GradientPaint",
    "LinearGradientPaint", "RadialGradientPaint", "TexturePaint", "ImagePaint",
    "Paint", "LineCap", "LineJoin", "Stroke", "CompositeRule", "Composite",
    "FontSpec", "LineMetrics", "SERIF", "SANS_SERIF", "MONOSPACED",
    "DEFAULT_PAINT", "DEFAULT_STROKE", "DEFAULT_FONT", "DEFAULT_COMPOSITE",
    "apply_cycle", "as_rgba", "evaluate_paint",
]
