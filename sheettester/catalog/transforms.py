"""Transform tiles: translation, rotation, shear (rows 23-26) and the
``fill_arc`` / ``draw_arc`` convenience calls (row 27).

Every transform tile first fills the untransformed shape in light gray, so the
transformed copy can be judged against it.
"""
from __future__ import annotations

import math
from typing import Callable

from ..geometry import AffineTransform, Rect
from ..paint import Colors, CompositeRule, Paint, Stroke
from ..registry import TileCase, TileRegistry
from ..shapes import ArcClosure, Shape, arc, ellipse, line, rectangle, round_rectangle
from ..surface import DrawingSurface
from .common import (
    GUIDE,
    MARGIN,
    OUTLINE,
    arch_quad_curve,
    combined_area,
    flat_quad_curve,
    s_cubic_curve,
    spiral_path,
)

TRANSLATE_ROW = 23
ROTATE_ROW = 24
SHEAR_Y_ROW = 25
SHEAR_X_ROW = 26
ARC_ROW = 27

SHEAR_X = -2.0
SHEAR_Y = -0.5

ShapeBuilder = Callable[[Rect], Shape]


def _box_shape(kind: str, box: Rect) -> Shape:
    if kind == "rect":
        return rectangle(box.x, box.y, box.width, box.height)
    if kind == "round_rect":
        return round_rectangle(box.x, box.y, box.width, box.height, 8.0, 8.0)
    if kind == "ellipse":
        return ellipse(box.x, box.y, box.width, box.height)
    if kind == "arc":
        return arc(box.x, box.y, box.width, box.height, 45, 290, ArcClosure.PIE)
    raise ValueError(f"Unknown shape kind: {kind}")


def translation_shapes() -> list[tuple[str, ShapeBuilder, Paint]]:
    """Small shapes placed in the top left quadrant of the tile."""
    def half(bounds: Rect) -> Rect:
        return Rect(0, 0, bounds.width / 2.0, bounds.height / 2.0)

    return [
        ("rect", lambda b: _box_shape("rect", half(b).inset(MARGIN)), Colors.YELLOW),
        ("round_rect", lambda b: _box_shape("round_rect", half(b).inset(MARGIN)), Colors.ORANGE),
        ("quad_curve", lambda b: arch_quad_curve(half(b), 3), Colors.YELLOW),
        ("cubic_curve", lambda b: s_cubic_curve(half(b), 3), Colors.ORANGE),
        ("ellipse", lambda b: _box_shape("ellipse", half(b).inset(MARGIN)), Colors.YELLOW),
        ("arc", lambda b: _box_shape("arc", half(b).inset(MARGIN)), Colors.ORANGE),
        ("area", lambda b: combined_area("exclusive_or", half(b), 2.5), Colors.YELLOW),
        ("path", lambda b: spiral_path(half(b), 2.5), Colors.ORANGE),
    ]


def centered_shapes() -> list[tuple[str, ShapeBuilder]]:
    """Shapes centered in the tile, small enough to stay inside when rotated."""
    def middle(bounds: Rect) -> Rect:
        return bounds.inset(0.33 * bounds.height)

    def quarter(bounds: Rect) -> Rect:
        return Rect(bounds.width * 0.25, bounds.height * 0.25,
                    bounds.width * 0.5, bounds.height * 0.5)

    return [
        ("rect", lambda b: _box_shape("rect", middle(b))),
        ("round_rect", lambda b: _box_shape("round_rect", middle(b))),
        ("quad_curve", lambda b: flat_quad_curve(b, 15)),
        ("cubic_curve", lambda b: s_cubic_curve(b, 15)),
        ("ellipse", lambda b: _box_shape("ellipse", middle(b))),
        ("arc", lambda b: _box_shape("arc", middle(b))),
        ("area", lambda b: combined_area("add", b, 0.33 * b.height)),
        ("path", lambda b: spiral_path(quarter(b), 0.0)),
    ]


def translate_shape(surface: DrawingSurface, bounds: Rect, shape: Shape,
                    fill_paint: Paint, stroke: Stroke, outline_paint: Paint) -> None:
    """Draw ``shape`` once per quadrant, moving it with translations."""
    surface.set_paint(Colors.LIGHT_GRAY)
    surface.set_stroke(GUIDE)
    surface.draw(line(bounds.x, bounds.center_y, bounds.max_x, bounds.center_y))
    surface.draw(line(bounds.center_x, bounds.y, bounds.center_x, bounds.max_y))
    surface.fill(shape)

    dx, dy = bounds.width / 2.0, bounds.height / 2.0
    with surface.saved_state():
        surface.translate(dx, 0.0)
        surface.set_stroke(stroke)
        surface.set_paint(outline_paint)
        surface.draw(shape)
    with surface.saved_state():
        surface.translate(0.0, dy)
        surface.set_paint(fill_paint)
        surface.fill(shape)
    with surface.saved_state():
        surface.translate(dx, dy)
        surface.set_paint(fill_paint)
        surface.fill(shape)
        surface.set_stroke(stroke)
        surface.set_paint(outline_paint)
        surface.draw(shape)


def _draw_transformed(surface: DrawingSurface, shape: Shape, transform: AffineTransform,
                      fill_paint: Paint, stroke: Stroke, outline_paint: Paint) -> None:
    surface.set_paint(Colors.LIGHT_GRAY)
    surface.fill(shape)
    with surface.saved_state():
        surface.transform(transform)
        surface.set_composite(CompositeRule.SRC_OVER, 0.5)
        surface.set_paint(fill_paint)
        surface.fill(shape)
        surface.set_stroke(stroke)
        surface.set_paint(outline_paint)
        surface.draw(shape)


def rotate_shape(surface: DrawingSurface, bounds: Rect, shape: Shape, theta: float,
                 fill_paint: Paint, stroke: Stroke, outline_paint: Paint) -> None:
    """Draw ``shape`` rotated by ``theta`` around the tile center over a gray untransformed copy."""
    transform = AffineTransform.rotation(theta, bounds.center_x, bounds.center_y)
    _draw_transformed(surface, shape, transform, fill_paint, stroke, outline_paint)


def shear_shape(surface: DrawingSurface, bounds: Rect, shape: Shape, shx: float, shy: float,
                fill_paint: Paint, stroke: Stroke, outline_paint: Paint) -> None:
    """Draw ``shape`` sheared around its own center over a gray untransformed copy."""
    shape_bounds = shape.bounds()
    tx, ty = shape_bounds.center_x, shape_bounds.center_y
    transform = (AffineTransform.translation(tx, ty)
                 .concatenate(AffineTransform.shearing(shx, shy))
                 .concatenate(AffineTransform.translation(-tx, -ty)))
    _draw_transformed(surface, shape, transform, fill_paint, stroke, outline_paint)


def translate_tile(build: ShapeBuilder, fill_paint: Paint):
    def procedure(surface, bounds: Rect, context) -> None:
        translate_shape(surface, bounds, build(bounds), fill_paint, Stroke(1.0), Colors.BLACK)
    return procedure


def rotate_tile(build: ShapeBuilder):
    def procedure(surface, bounds: Rect, context) -> None:
        rotate_shape(surface, bounds, build(bounds), math.pi / 4,
                     Colors.BLUE, OUTLINE, Colors.BLACK)
    return procedure


def shear_tile(build: ShapeBuilder, shx: float, shy: float):
    def procedure(surface, bounds: Rect, context) -> None:
        shear_shape(surface, bounds, build(bounds), shx, shy,
                    Colors.BLUE, OUTLINE, Colors.BLACK)
    return procedure


def arc_tile(start: float, extent: float, filled: bool):
    def procedure(surface, bounds: Rect, context) -> None:
        box = bounds.inset(MARGIN)
        if filled:
            surface.set_color(Colors.BLUE)
            surface.fill_arc(box.x, box.y, box.width, box.height, start, extent)
        else:
            surface.set_color(Colors.RED)
            surface.draw_arc(box.x, box.y, box.width, box.height, start, extent)
    return procedure


def register(registry: TileRegistry) -> None:
    for column, (name, build, paint) in enumerate(translation_shapes()):
        registry.add(TileCase(f"translate_{name}", column, TRANSLATE_ROW,
                              translate_tile(build, paint),
                              description=f"{name} translated into each quadrant"))

    for column, (name, build) in enumerate(centered_shapes()):
        registry.add(TileCase(f"rotate_{name}", column, ROTATE_ROW, rotate_tile(build),
                              description=f"{name} rotated by 45 degrees"))
        registry.add(TileCase(f"shear_y_{name}", column, SHEAR_Y_ROW,
                              shear_tile(build, 0.0, SHEAR_Y),
                              description=f"{name} sheared vertically"))
        registry.add(TileCase(f"shear_x_{name}", column, SHEAR_X_ROW,
                              shear_tile(build, SHEAR_X, 0.0),
                              description=f"{name} sheared horizontally"))

    angles = ((45, 270), (90, 180), (135, 90))
    for column, (filled, (start, extent)) in enumerate(
            (f, a) for f in (True, False) for a in angles):
        kind = "fill" if filled else "draw"
        registry.add(TileCase(f"{kind}_arc_{start}_{extent}", column, ARC_ROW,
                              arc_tile(start, extent, filled),
                              description=f"{kind}_arc from {start} over {extent} degrees"))


__all__ = ["translate_shape", "rotate_shape", "shear_shape", "register"]
