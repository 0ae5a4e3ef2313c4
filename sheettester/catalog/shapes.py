"""Shape tiles (rows 3-16).

Every row shows one shape in six fill and stroke combinations, see
:func:`fill_stroke_variants`. Curve rows also draw their control arms as thin
gray guide lines.
"""
from __future__ import annotations

from typing import Callable, Optional

from ..geometry import Rect
from ..paint import Colors, Paint, Stroke
from ..registry import TileCase, TileRegistry
from ..shapes import ArcClosure, Shape, WindingRule, line, round_rectangle
from .common import (
    GUIDE,
    MARGIN,
    arch_quad_curve,
    combined_area,
    fill_and_stroke,
    fill_stroke_variants,
    inset_arc,
    inset_ellipse,
    inset_rectangle,
    s_cubic_curve,
    spiral_path,
)

FIRST_ROW = 3

ShapeBuilder = Callable[[Rect], Shape]


def inset_round_rectangle(bounds: Rect) -> Shape:
    box = bounds.inset(MARGIN)
    return round_rectangle(box.x, box.y, box.width, box.height, 8.0, 12.0)


def quad_guides(bounds: Rect) -> list[tuple[float, float, float, float]]:
    w, h = bounds.width, bounds.height
    return [(MARGIN, h - MARGIN, w / 2.0, MARGIN),
            (w - MARGIN, h - MARGIN, w / 2.0, MARGIN)]


def cubic_guides(bounds: Rect) -> list[tuple[float, float, float, float]]:
    w, h = bounds.width, bounds.height
    return [(MARGIN, h - MARGIN, 2 * MARGIN, MARGIN),
            (w - 4 * MARGIN, MARGIN, w - MARGIN, h - MARGIN)]


# (row name, builder, row color, guide lines)
SHAPE_ROWS: tuple[tuple[str, ShapeBuilder, Paint, Optional[Callable]], ...] = (
    ("rect", inset_rectangle, Colors.BLUE, None),
    ("round_rect", inset_round_rectangle, Colors.BLUE, None),
    ("quad_curve", arch_quad_curve, Colors.RED, quad_guides),
    ("cubic_curve", s_cubic_curve, Colors.RED, cubic_guides),
    ("ellipse", inset_ellipse, Colors.BLUE, None),
    ("arc_pie", lambda b: inset_arc(b, ArcClosure.PIE, 45, 270), Colors.BLUE, None),
    ("arc_chord", lambda b: inset_arc(b, ArcClosure.CHORD, 210, 300), Colors.BLUE, None),
    ("arc_open", lambda b: inset_arc(b, ArcClosure.OPEN, -45, 270), Colors.BLUE, None),
    ("path_even_odd", lambda b: spiral_path(b, winding_rule=WindingRule.EVEN_ODD), Colors.RED, None),
    ("path_non_zero", lambda b: spiral_path(b, winding_rule=WindingRule.NON_ZERO), Colors.RED, None),
    ("area_add", lambda b: combined_area("add", b), Colors.BLUE, None),
    ("area_intersect", lambda b: combined_area("intersect", b), Colors.BLUE, None),
    ("area_subtract", lambda b: combined_area("subtract", b), Colors.BLUE, None),
    ("area_xor", lambda b: combined_area("exclusive_or", b), Colors.BLUE, None),
)


def shape_tile(build: ShapeBuilder, paint: Optional[Paint], stroke: Optional[Stroke],
               outline_paint: Optional[Paint], guides: Optional[Callable] = None):
    def procedure(surface, bounds: Rect, context) -> None:
        if guides is not None:
            surface.set_stroke(GUIDE)
            surface.set_paint(Colors.GRAY)
            for x1, y1, x2, y2 in guides(bounds):
                surface.draw(line(x1, y1, x2, y2))
        fill_and_stroke(surface, build(bounds), paint, stroke, outline_paint)
    return procedure


def register(registry: TileRegistry) -> None:
    for offset, (name, build, color, guides) in enumerate(SHAPE_ROWS):
        row = FIRST_ROW + offset
        for column, (variant, paint, stroke, outline) in enumerate(fill_stroke_variants(color)):
            registry.add(TileCase(f"{name}_{variant}", column, row,
                                  shape_tile(build, paint, stroke, outline, guides),
                                  description=f"{name} ({variant})"))
