# SheetTester - Shapes
"""
Path based shape model.

Every drawable outline is a :class:`Path` made of move/line/quad/cubic/close
segments plus a winding rule. The factories in this module build the classic
primitives (rectangles, rounded rectangles, ellipses, arcs, curves) as paths,
so backends only ever have to understand one shape type.

Constructive area geometry is delegated to shapely: :class:`Area` wraps a
shapely geometry and converts back to an even-odd path for drawing.

Example:
    >>> pie = arc(10, 10, 80, 45, 45, 270, ArcClosure.PIE)
    >>> ring = Area(ellipse(0, 0, 40, 40)).subtract(Area(ellipse(10, 10, 20, 20)))
"""

from __future__ import annotations

import math
from enum import Enum
from typing import NamedTuple, Union

import numpy as np
from shapely import affinity
from shapely.geometry import LineString, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import polygonize, unary_union

from .geometry import AffineTransform, Rect

# Cubic Bezier control distance approximating a quarter circle
KAPPA = 0.5522847498


class WindingRule(Enum):
    EVEN_ODD = "evenodd"
    NON_ZERO = "nonzero"


class PathOp(Enum):
    MOVE = "M"
    LINE = "L"
    QUAD = "Q"
    CUBIC = "C"
    CLOSE = "Z"


class ArcClosure(Enum):
    OPEN = "open"
    CHORD = "chord"
    PIE = "pie"


class Subpath(NamedTuple):
    """A flattened subpath."""
    points: np.ndarray  # (N, 2)
    closed: bool


class Path:
    """Mutable path builder.

    All segment methods return the path itself so calls can be chained.
    """

    def __init__(self, winding_rule: WindingRule = WindingRule.NON_ZERO):
        self.winding_rule = winding_rule
        self._commands: list[tuple[PathOp, tuple[float, ...]]] = []
        self._start: tuple[float, float] | None = None
        self._current: tuple[float, float] | None = None

    # -- building ----------------------------------------------------------

    def move_to(self, x: float, y: float) -> Path:
        self._commands.append((PathOp.MOVE, (float(x), float(y))))
        self._start = self._current = (float(x), float(y))
        return self

    def line_to(self, x: float, y: float) -> Path:
        self._require_current()
        self._commands.append((PathOp.LINE, (float(x), float(y))))
        self._current = (float(x), float(y))
        return self

    def quad_to(self, x1: float, y1: float, x2: float, y2: float) -> Path:
        self._require_current()
        self._commands.append((PathOp.QUAD, tuple(map(float, (x1, y1, x2, y2)))))
        self._current = (float(x2), float(y2))
        return self

    def curve_to(self, x1: float, y1: float, x2: float, y2: float,
                 x3: float, y3: float) -> Path:
        self._require_current()
        self._commands.append(
            (PathOp.CUBIC, tuple(map(float, (x1, y1, x2, y2, x3, y3)))))
        self._current = (float(x3), float(y3))
        return self

    def close_path(self) -> Path:
        if self._current is not None and self._commands[-1][0] is not PathOp.CLOSE:
            self._commands.append((PathOp.CLOSE, ()))
            self._current = self._start
        return self

    def append(self, other: Path) -> Path:
        """Append all subpaths of ``other``."""
        for op, coords in other.commands:
            if op is PathOp.MOVE:
                self.move_to(*coords)
            elif op is PathOp.LINE:
                self.line_to(*coords)
            elif op is PathOp.QUAD:
                self.quad_to(*coords)
            elif op is PathOp.CUBIC:
                self.curve_to(*coords)
            else:
                self.close_path()
        return self

    def _require_current(self) -> None:
        if self._current is None:
            raise ValueError("Path segment requires an initial move_to")

    # -- queries -----------------------------------------------------------

    @property
    def commands(self) -> tuple[tuple[PathOp, tuple[float, ...]], ...]:
        return tuple(self._commands)

    @property
    def is_empty(self) -> bool:
        return not self._commands

    @property
    def current_point(self) -> tuple[float, float] | None:
        return self._current

    def transformed(self, transform: AffineTransform) -> Path:
        """Copy of the path with every control point transformed."""
        result = Path(self.winding_rule)
        for op, coords in self._commands:
            if op is PathOp.CLOSE:
                result.close_path()
                continue
            pts = transform.apply(np.array(coords).reshape(-1, 2)).ravel()
            if op is PathOp.MOVE:
                result.move_to(*pts)
            elif op is PathOp.LINE:
                result.line_to(*pts)
            elif op is PathOp.QUAD:
                result.quad_to(*pts)
            else:
                result.curve_to(*pts)
        return result

    def flatten(self, scale: float = 1.0) -> list[Subpath]:
        """Approximate all curves by polylines.

        Args:
            scale: Device pixels per user unit, controls the subdivision

        Returns:
            Subpaths with at least two points
        """
        subpaths: list[Subpath] = []
        points: list[tuple[float, float]] = []
        start = current = (0.0, 0.0)

        def finish(closed: bool) -> None:
            if len(points) >= 2:
                subpaths.append(Subpath(np.array(points, dtype=np.float64), closed))

        for op, coords in self._commands:
            if op is PathOp.MOVE:
                finish(False)
                start = current = coords
                points = [coords]
            elif op is PathOp.LINE:
                points.append(coords)
                current = coords
            elif op is PathOp.QUAD:
                ctrl = np.array([current, coords[:2], coords[2:]])
                points.extend(map(tuple, _flatten_quad(ctrl, scale)))
                current = coords[2:]
            elif op is PathOp.CUBIC:
                ctrl = np.array([current, coords[:2], coords[2:4], coords[4:]])
                points.extend(map(tuple, _flatten_cubic(ctrl, scale)))
                current = coords[4:]
            else:
                finish(True)
                current = start
                points = [start]
        finish(False)
        return subpaths

    def bounds(self) -> Rect:
        """Bounding box of the flattened path."""
        subpaths = self.flatten()
        if not subpaths:
            return Rect(0, 0, 0, 0)
        pts = np.vstack([sp.points for sp in subpaths])
        x0, y0 = pts.min(axis=0)
        x1, y1 = pts.max(axis=0)
        return Rect(float(x0), float(y0), float(x1 - x0), float(y1 - y0))

    def to_svg_d(self) -> str:
        """SVG path data."""
        parts = []
        for op, coords in self._commands:
            if coords:
                parts.append(op.value + " " + " ".join(f"{c:.6g}" for c in coords))
            else:
                parts.append(op.value)
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"Path({len(self._commands)} segments, {self.winding_rule.name})"


def _segment_count(ctrl: np.ndarray, scale: float) -> int:
    length = float(np.sum(np.hypot(*np.diff(ctrl, axis=0).T))) * scale
    return int(min(200, max(2, math.ceil(length / 2))))


def _flatten_quad(ctrl: np.ndarray, scale: float) -> np.ndarray:
    t = np.linspace(0.0, 1.0, _segment_count(ctrl, scale) + 1)[1:, None]
    mt = 1 - t
    return mt * mt * ctrl[0] + 2 * mt * t * ctrl[1] + t * t * ctrl[2]


def _flatten_cubic(ctrl: np.ndarray, scale: float) -> np.ndarray:
    t = np.linspace(0.0, 1.0, _segment_count(ctrl, scale) + 1)[1:, None]
    mt = 1 - t
    return (mt ** 3 * ctrl[0] + 3 * mt * mt * t * ctrl[1]
            + 3 * mt * t * t * ctrl[2] + t ** 3 * ctrl[3])


# -- factories -------------------------------------------------------------

def line(x1: float, y1: float, x2: float, y2: float) -> Path:
    return Path().move_to(x1, y1).line_to(x2, y2)


def polygon(points, closed: bool = True,
            winding_rule: WindingRule = WindingRule.NON_ZERO) -> Path:
    path = Path(winding_rule)
    for i, (x, y) in enumerate(points):
        if i == 0:
            path.move_to(x, y)
        else:
            path.line_to(x, y)
    if closed:
        path.close_path()
    return path


def rectangle(x: float, y: float, width: float, height: float) -> Path:
    return (Path().move_to(x, y).line_to(x + width, y)
            .line_to(x + width, y + height).line_to(x, y + height).close_path())


def rect_path(rect: Rect) -> Path:
    return rectangle(rect.x, rect.y, rect.width, rect.height)


def round_rectangle(x: float, y: float, width: float, height: float,
                    arc_width: float, arc_height: float) -> Path:
    """Rectangle with elliptical corners of size ``arc_width`` x ``arc_height``."""
    rx = min(abs(arc_width) / 2, width / 2)
    ry = min(abs(arc_height) / 2, height / 2)
    if rx <= 0 or ry <= 0:
        return rectangle(x, y, width, height)
    kx, ky = rx * KAPPA, ry * KAPPA
    x2, y2 = x + width, y + height
    return (Path()
            .move_to(x + rx, y)
            .line_to(x2 - rx, y)
            .curve_to(x2 - rx + kx, y, x2, y + ry - ky, x2, y + ry)
            .line_to(x2, y2 - ry)
            .curve_to(x2, y2 - ry + ky, x2 - rx + kx, y2, x2 - rx, y2)
            .line_to(x + rx, y2)
            .curve_to(x + rx - kx, y2, x, y2 - ry + ky, x, y2 - ry)
            .line_to(x, y + ry)
            .curve_to(x, y + ry - ky, x + rx - kx, y, x + rx, y)
            .close_path())


def ellipse(x: float, y: float, width: float, height: float) -> Path:
    """Ellipse inscribed in the given bounding box."""
    return arc(x, y, width, height, 0, 360, ArcClosure.CHORD)


def arc(x: float, y: float, width: float, height: float,
        start: float, extent: float,
        closure: ArcClosure = ArcClosure.OPEN) -> Path:
    """Elliptical arc inscribed in a bounding box.

    Angles are in degrees, measured counter-clockwise on screen starting at
    3 o'clock. Angles refer to the ellipse stretched into a circle, so 45
    degrees always points at the box corner.

    Args:
        x, y, width, height: Bounding box of the full ellipse
        start: Start angle in degrees
        extent: Angular extent in degrees, negative for clockwise
        closure: How the arc is closed
    """
    rx, ry = width / 2, height / 2
    cx, cy = x + rx, y + ry
    extent = max(-360.0, min(360.0, extent))
    segments = max(1, math.ceil(abs(extent) / 90.0 - 1e-9))
    step = math.radians(extent) / segments
    theta = math.radians(start)

    def to_box(u: float, v: float) -> tuple[float, float]:
        # y axis points down, so positive angles go up on screen
        return cx + rx * u, cy - ry * v

    path = Path()
    path.move_to(*to_box(math.cos(theta), math.sin(theta)))
    k = 4.0 / 3.0 * math.tan(step / 4)
    for _ in range(segments):
        t1, t2 = theta, theta + step
        c1, s1 = math.cos(t1), math.sin(t1)
        c2, s2 = math.cos(t2), math.sin(t2)
        path.curve_to(*to_box(c1 - k * s1, s1 + k * c1),
                      *to_box(c2 + k * s2, s2 - k * c2),
                      *to_box(c2, s2))
        theta = t2
    if closure is ArcClosure.PIE:
        path.line_to(cx, cy)
        path.close_path()
    elif closure is ArcClosure.CHORD:
        path.close_path()
    return path


def quad_curve(x1: float, y1: float, ctrl_x: float, ctrl_y: float,
               x2: float, y2: float) -> Path:
    return Path().move_to(x1, y1).quad_to(ctrl_x, ctrl_y, x2, y2)


def cubic_curve(x1: float, y1: float, c1x: float, c1y: float,
                c2x: float, c2y: float, x2: float, y2: float) -> Path:
    return Path().move_to(x1, y1).curve_to(c1x, c1y, c2x, c2y, x2, y2)


# -- shapely bridge --------------------------------------------------------

def shapely_matrix(transform: AffineTransform) -> list[float]:
    """Transform coefficients in shapely's ``affine_transform`` order."""
    return [transform.a, transform.c, transform.b, transform.d,
            transform.e, transform.f]


def transform_geometry(geometry: BaseGeometry,
                       transform: AffineTransform) -> BaseGeometry:
    if transform.is_identity:
        return geometry
    return affinity.affine_transform(geometry, shapely_matrix(transform))


def winding_number(rings: list[np.ndarray], x: float, y: float) -> int:
    """Winding number of a point with respect to closed polylines."""
    total = 0
    for ring in rings:
        a = ring
        b = np.roll(ring, -1, axis=0)
        cross = (b[:, 0] - a[:, 0]) * (y - a[:, 1]) - (x - a[:, 0]) * (b[:, 1] - a[:, 1])
        upward = (a[:, 1] <= y) & (b[:, 1] > y) & (cross > 0)
        downward = (a[:, 1] > y) & (b[:, 1] <= y) & (cross < 0)
        total += int(np.count_nonzero(upward)) - int(np.count_nonzero(downward))
    return total


def path_to_geometry(path: Path, transform: AffineTransform | None = None) -> BaseGeometry:
    """Filled region of a path as a shapely geometry.

    The linework of all subpaths is noded and polygonized; each resulting
    face is kept when the path's winding rule marks it as inside.
    """
    scale = transform.scale_factor if transform is not None else 1.0
    rings = []
    for sp in path.flatten(scale):
        pts = sp.points if transform is None else transform.apply(sp.points)
        if len(pts) >= 3:
            rings.append(pts)
    if not rings:
        return Polygon()
    lines = [LineString(np.vstack([r, r[:1]])) for r in rings]
    noded = unary_union(lines)
    keep = []
    for face in polygonize(getattr(noded, "geoms", [noded])):
        if face.is_empty or face.area <= 0:
            continue
        probe = face.representative_point()
        wn = winding_number(rings, probe.x, probe.y)
        inside = (wn % 2 == 1) if path.winding_rule is WindingRule.EVEN_ODD else wn != 0
        if inside:
            keep.append(face)
    if not keep:
        return Polygon()
    return unary_union(keep)


def _polygons(geometry: BaseGeometry):
    if isinstance(geometry, Polygon):
        yield geometry
    elif hasattr(geometry, "geoms"):
        for part in geometry.geoms:
            yield from _polygons(part)


def geometry_to_path(geometry: BaseGeometry) -> Path:
    """Even-odd path tracing every ring of a (multi)polygon."""
    path = Path(WindingRule.EVEN_ODD)
    for poly in _polygons(geometry):
        if poly.is_empty:
            continue
        for ring in [poly.exterior, *poly.interiors]:
            coords = np.asarray(ring.coords)[:-1]
            if len(coords) >= 3:
                path.append(polygon(coords))
    return path


class Area:
    """Immutable constructive area geometry.

    Operations return new areas; the operands are left untouched.
    """

    def __init__(self, shape: Path | Rect | BaseGeometry | None = None):
        if shape is None:
            self._geometry: BaseGeometry = Polygon()
        elif isinstance(shape, BaseGeometry):
            self._geometry = shape
        else:
            self._geometry = path_to_geometry(as_path(shape))

    @property
    def geometry(self) -> BaseGeometry:
        return self._geometry

    @property
    def is_empty(self) -> bool:
        return self._geometry.is_empty

    def add(self, other: Area) -> Area:
        return Area(self._geometry.union(other.geometry))

    def intersect(self, other: Area) -> Area:
        return Area(self._geometry.intersection(other.geometry))

    def subtract(self, other: Area) -> Area:
        return Area(self._geometry.difference(other.geometry))

    def exclusive_or(self, other: Area) -> Area:
        return Area(self._geometry.symmetric_difference(other.geometry))

    def contains(self, x: float, y: float) -> bool:
        return self._geometry.contains(Point(x, y))

    def bounds(self) -> Rect:
        if self.is_empty:
            return Rect(0, 0, 0, 0)
        x0, y0, x1, y1 = self._geometry.bounds
        return Rect(x0, y0, x1 - x0, y1 - y0)

    def to_path(self) -> Path:
        return geometry_to_path(self._geometry)

    def __repr__(self) -> str:
        return f"Area({self._geometry.geom_type}, area={self._geometry.area:.1f})"


Shape = Union[Path, Area, Rect]


def as_path(shape: Shape) -> Path:
    """Normalize any supported shape into a path."""
    if isinstance(shape, Path):
        return shape
    if isinstance(shape, Area):
        return shape.to_path()
    if isinstance(shape, Rect):
        return rect_path(shape)
    raise TypeError(f"Unsupported shape: {type(shape).__name__}")


def as_geometry(shape: Shape, transform: AffineTransform | None = None) -> BaseGeometry:
    """Filled region of any shape as a shapely geometry."""
    if isinstance(shape, Area):
        geometry = shape.geometry
        return geometry if transform is None else transform_geometry(geometry, transform)
    return path_to_geometry(as_path(shape), transform)


__all__ = [
    "KAPPA", "WindingRule", "PathOp", "ArcClosure", "Subpath", "Path",
    "line", "polygon", "rectangle", "rect_path", "round_rectangle", "ellipse",
    "arc", "quad_curve", "cubic_curve", "shapely_matrix", "transform_geometry",
    "winding_number", "path_to_geometry", "geometry_to_path", "Area", "Shape",
    "as_path", "as_geometry",
]
