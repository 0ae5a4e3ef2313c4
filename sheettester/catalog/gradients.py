"""Paint tiles: gradients, gradient stroked lines, radial gradients and
texture paints (rows 19-22)."""
from __future__ import annotations

import numpy as np

from ..geometry import Rect
from ..paint import (
    RAINBOW_COLORS,
    Colors,
    CycleMethod,
    GradientPaint,
    LinearGradientPaint,
    Paint,
    RadialGradientPaint,
    Stroke,
    TexturePaint,
)
from ..registry import TileCase, TileRegistry
from ..shapes import round_rectangle
from .common import MARGIN, draw_line_caps, fill_and_stroke, inset_ellipse, inset_rectangle

GRADIENT_ROW = 19
GRADIENT_LINES_ROW = 20
RADIAL_ROW = 21
TEXTURE_ROW = 22

RAINBOW_FRACTIONS = tuple(i / 6.0 for i in range(7))
RADIAL_FRACTIONS = (0.0, 0.75, 1.0)
RADIAL_COLORS = (Colors.YELLOW, Colors.RED, Colors.LIGHT_GRAY)
TEXTURE_SIZE = (5, 3)


def linear_paints(bounds: Rect) -> list[tuple[str, Paint]]:
    """The eight linear gradient variants, scaled to the tile bounds."""
    w, h = bounds.width, bounds.height
    p = w / 4.0
    return [
        ("horizontal", GradientPaint(0, 0, Colors.YELLOW, w, 0, Colors.RED)),
        ("horizontal_inner", GradientPaint(p, 0, Colors.YELLOW, 3 * p, 0, Colors.RED)),
        ("horizontal_cyclic", GradientPaint(p, 0, Colors.YELLOW, 3 * p, 0, Colors.RED, cyclic=True)),
        ("horizontal_rainbow", LinearGradientPaint((10, 0), (w - 10, 0),
                                                   RAINBOW_FRACTIONS, RAINBOW_COLORS)),
        ("diagonal", GradientPaint(0, 0, Colors.YELLOW, w, h, Colors.RED)),
        ("diagonal_inner", GradientPaint(p, 0, Colors.YELLOW, 3 * p, h, Colors.RED)),
        ("diagonal_cyclic", GradientPaint(p, 0, Colors.YELLOW, 3 * p, h, Colors.RED, cyclic=True)),
        ("diagonal_rainbow", LinearGradientPaint((10, 0), (w - 10, h),
                                                 RAINBOW_FRACTIONS, RAINBOW_COLORS)),
    ]


def radial_paint(bounds: Rect, cycle: CycleMethod, focused: bool) -> RadialGradientPaint:
    center = (bounds.width / 2.0, bounds.height / 2.0)
    focus = (bounds.width / 3.0, bounds.height / 3.0) if focused else None
    return RadialGradientPaint(center, bounds.height / 2.0 - MARGIN,
                               RADIAL_FRACTIONS, RADIAL_COLORS, focus=focus, cycle=cycle)


def tile_round_rectangle(bounds: Rect):
    box = bounds.inset(MARGIN)
    return round_rectangle(box.x, box.y, box.width, box.height, 8.0, 12.0)


def make_texture(settings=None) -> np.ndarray:
    """5x3 swatch: yellow top and left edge, red bottom and right edge, black inside."""
    w, h = TEXTURE_SIZE
    image = np.zeros((h, w, 4), dtype=np.uint8)
    image[..., 3] = 255
    image[0, :, :3] = Colors.YELLOW[:3]
    image[:, 0, :3] = Colors.YELLOW[:3]
    image[h - 1, 1:, :3] = Colors.RED[:3]
    image[1:, w - 1, :3] = Colors.RED[:3]
    return image


def gradient_fill_tile(index: int):
    def procedure(surface, bounds: Rect, context) -> None:
        paint = linear_paints(bounds)[index][1]
        fill_and_stroke(surface, tile_round_rectangle(bounds), paint, None, None)
    return procedure


def gradient_line_tile(index: int):
    def procedure(surface, bounds: Rect, context) -> None:
        paint = linear_paints(bounds)[index][1]
        draw_line_caps(surface, bounds, 5.0, paint)
    return procedure


def radial_tile(cycle: CycleMethod, focused: bool):
    def procedure(surface, bounds: Rect, context) -> None:
        fill_and_stroke(surface, tile_round_rectangle(bounds),
                        radial_paint(bounds, cycle, focused), None, None)
    return procedure


def texture_tile(build, anchor: Rect, outline_width: float | None = None):
    def procedure(surface, bounds: Rect, context) -> None:
        paint = TexturePaint(context["texture"], anchor)
        stroke = Stroke(outline_width) if outline_width is not None else None
        fill_and_stroke(surface, build(bounds), paint, stroke, Colors.BLACK)
    return procedure


def register(registry: TileRegistry) -> None:
    registry.preparer("texture")(make_texture)

    names = [name for name, _ in linear_paints(Rect(0, 0, 100, 65))]
    for column, name in enumerate(names):
        registry.add(TileCase(f"gradient_{name}", column, GRADIENT_ROW,
                              gradient_fill_tile(column),
                              description=f"Round rectangle filled with {name} gradient"))
        registry.add(TileCase(f"gradient_lines_{name}", column, GRADIENT_LINES_ROW,
                              gradient_line_tile(column),
                              description=f"Wide lines stroked with {name} gradient"))

    cycles = (CycleMethod.NO_CYCLE, CycleMethod.REPEAT, CycleMethod.REFLECT)
    for column, (focused, cycle) in enumerate((f, c) for f in (False, True) for c in cycles):
        name = f"radial_{'focus_' if focused else ''}{cycle.name.lower()}"
        registry.add(TileCase(name, column, RADIAL_ROW, radial_tile(cycle, focused),
                              description=f"Radial gradient, {cycle.name}"))

    w, h = TEXTURE_SIZE
    small = Rect(5, 5, w, h)
    large = Rect(0, 0, w * 2, h * 2)
    textures = (
        ("rect", inset_rectangle, small, None),
        ("round_rect", tile_round_rectangle, small, None),
        ("ellipse", inset_ellipse, small, 1.0),
        ("rect_scaled", inset_rectangle, large, None),
        ("round_rect_scaled", tile_round_rectangle, large, None),
        ("ellipse_scaled", inset_ellipse, large, 2.0),
    )
    for column, (name, build, anchor, outline) in enumerate(textures):
        registry.add(TileCase(f"texture_{name}", column, TEXTURE_ROW,
                              texture_tile(build, anchor, outline),
                              description=f"Texture paint anchored at {anchor}"))
