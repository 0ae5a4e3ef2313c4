"""Strokes, shape builders and drawing helpers shared by the tile catalog."""
from __future__ import annotations

from typing import Optional

from ..geometry import Rect
from ..paint import Colors, LineCap, LineJoin, Paint, Stroke
from ..shapes import (
    ArcClosure,
    Area,
    Path,
    Shape,
    WindingRule,
    arc,
    cubic_curve,
    ellipse,
    line,
    quad_curve,
    rectangle,
)
from ..surface import DrawingSurface

MARGIN = 5.0

OUTLINE = Stroke(1.0)
OUTLINE_3 = Stroke(3.0)
DASHED = Stroke(1.0, LineCap.BUTT, LineJoin.ROUND, 4.0, dash=(2.0, 2.0))
DASHED_3 = Stroke(3.0, LineCap.ROUND, LineJoin.ROUND, 4.0, dash=(4.0, 8.0))
GUIDE = Stroke(0.5)


def fill_stroke_variants(color: Paint) -> tuple[tuple[str, Optional[Paint], Optional[Stroke], Optional[Paint]], ...]:
    """The six (name, fill, stroke, outline) combinations drawn for every shape row."""
    return (
        ("fill", color, None, None),
        ("outline", None, OUTLINE, color),
        ("fill_outline", Colors.LIGHT_GRAY, OUTLINE, color),
        ("fill_dashed", Colors.LIGHT_GRAY, DASHED, Colors.BLACK),
        ("fill_dashed3", Colors.LIGHT_GRAY, DASHED_3, Colors.BLACK),
        ("fill_outline3", Colors.LIGHT_GRAY, OUTLINE_3, Colors.BLACK),
    )


def fill_and_stroke(surface: DrawingSurface, shape: Shape, paint: Optional[Paint],
                    stroke: Optional[Stroke], outline_paint: Optional[Paint]) -> None:
    """Fill ``shape`` with ``paint`` and stroke it; either step is skipped if None."""
    if paint is not None:
        surface.set_paint(paint)
        surface.fill(shape)
    if stroke is not None and outline_paint is not None:
        surface.set_stroke(stroke)
        surface.set_paint(outline_paint)
        surface.draw(shape)


# -- shape builders --------------------------------------------------------

def inset_rectangle(bounds: Rect, margin: float = MARGIN) -> Path:
    box = bounds.inset(margin)
    return rectangle(box.x, box.y, box.width, box.height)


def inset_ellipse(bounds: Rect, margin: float = MARGIN) -> Path:
    box = bounds.inset(margin)
    return ellipse(box.x, box.y, box.width, box.height)


def inset_arc(bounds: Rect, closure: ArcClosure, start: float, extent: float,
              margin: float = MARGIN) -> Path:
    box = bounds.inset(margin)
    return arc(box.x, box.y, box.width, box.height, start, extent, closure)


def arch_quad_curve(bounds: Rect, margin: float = MARGIN) -> Path:
    """Quadratic curve from bottom left to bottom right, pulled to the top."""
    w, h = bounds.width, bounds.height
    return quad_curve(margin, h - margin, w / 2.0, margin, w - margin, h - margin)


def flat_quad_curve(bounds: Rect, margin: float = MARGIN) -> Path:
    """Quadratic curve across the middle, pulled to the top."""
    w, h = bounds.width, bounds.height
    return quad_curve(margin, h / 2.0, w / 2.0, margin, w - margin, h / 2.0)


def s_cubic_curve(bounds: Rect, margin: float = MARGIN) -> Path:
    """Cubic curve from bottom left to top right with crossing control arms."""
    w, h = bounds.width, bounds.height
    return cubic_curve(margin, h - margin,
                       2 * margin, margin,
                       w - margin, h - margin,
                       w - 4 * margin, margin)


def spiral_path(bounds: Rect, margin: float = MARGIN,
                winding_rule: WindingRule = WindingRule.EVEN_ODD) -> Path:
    """Closed, self overlapping rectangular spiral."""
    dy = (bounds.height - 2 * margin) / 5.0
    x0 = bounds.x + margin
    x1 = bounds.max_x - margin
    y0 = bounds.y + margin
    ys = [y0 + dy * i for i in range(6)]
    path = Path(winding_rule)
    path.move_to(x0, ys[0])
    path.line_to(x1, ys[0])
    path.line_to(x1, ys[5])
    path.line_to(x0, ys[5])
    path.line_to(x0, ys[1])
    path.line_to(x1 - margin, ys[1])
    path.line_to(x1 - margin, ys[4])
    path.line_to(x0 + margin, ys[4])
    path.line_to(x0 + margin, ys[2])
    path.line_to(x1 - margin * 2, ys[2])
    path.line_to(x1 - margin * 2, ys[3])
    path.line_to(bounds.center_x, ys[3])
    path.close_path()
    return path


def combined_area(operation: str, bounds: Rect, margin: float = MARGIN) -> Area:
    """Ellipse (top left) combined with a rectangle (bottom right).

    Args:
        operation: One of "add", "intersect", "subtract", "exclusive_or"
        bounds: Tile bounds
        margin: Inset of both shapes from the bounds
    """
    box = bounds.inset(margin)
    w, h = box.width / 1.5, box.height / 1.5
    first = Area(ellipse(box.x, box.y, w, h))
    second = Area(rectangle(box.max_x - w, box.max_y - h, w, h))
    combine = getattr(first, operation, None)
    if combine is None:
        raise ValueError(f"Unknown area operation: {operation}")
    return combine(second)


# -- line helpers ----------------------------------------------------------

def draw_line_caps(surface: DrawingSurface, bounds: Rect, width: float, paint: Paint,
                   dash: tuple[float, ...] | None = None, margin: float = MARGIN) -> None:
    """Three horizontal lines with butt, round and square caps."""
    surface.set_paint(paint)
    mid_y = bounds.center_y
    delta_y = bounds.height / 4.0
    left = bounds.x + 2 * margin
    right = bounds.width - 2 * margin
    for cap, y in ((LineCap.BUTT, mid_y - delta_y),
                   (LineCap.ROUND, mid_y),
                   (LineCap.SQUARE, mid_y + delta_y)):
        surface.set_stroke(Stroke(width, cap, LineJoin.ROUND, 10.0, dash=dash))
        surface.draw(line(left, y, right, y))


def draw_line_fan(surface: DrawingSurface, bounds: Rect, stroke: Stroke, paint: Paint,
                  margin: float = MARGIN) -> None:
    """Seven lines fanning out from the top left corner."""
    max_x = bounds.width - margin
    max_y = bounds.height - margin
    dx = (bounds.width - 2 * margin) / 3.0
    dy = (bounds.height - 2 * margin) / 3.0
    surface.set_paint(paint)
    surface.set_stroke(stroke)
    for x, y in ((max_x, margin), (max_x, margin + dy), (max_x, margin + 2 * dy),
                 (max_x, max_y), (max_x - dx, max_y), (max_x - 2 * dx, max_y),
                 (margin, max_y)):
        surface.draw(line(margin, margin, x, y))


__all__ = [
    "MARGIN",
    "OUTLINE",
    "OUTLINE_3",
    "DASHED",
    "DASHED_3",
    "GUIDE",
    "fill_stroke_variants",
    "fill_and_stroke",
    "inset_rectangle",
    "inset_ellipse",
    "inset_arc",
    "arch_quad_curve",
    "flat_quad_curve",
    "s_cubic_curve",
    "spiral_path",
    "combined_area",
    "draw_line_caps",
    "draw_line_fan",
]
