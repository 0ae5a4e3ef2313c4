"""Clipping tiles (row 30): four rectangular clip regions filled with
different paints, and a pie arc clipped by an inner rectangle."""
from __future__ import annotations

from ..geometry import Rect
from ..paint import Colors, GradientPaint
from ..registry import TileCase, TileRegistry
from ..shapes import ArcClosure
from .common import MARGIN, inset_arc

CLIP_ROW = 30


def rectangular_clip_regions(surface, bounds: Rect, context) -> None:
    """Fill the full tile four times, each time through a different quadrant clip."""
    w, h = bounds.width, bounds.height
    m = MARGIN
    regions = (
        (Rect(m, m, int(w / 2) - m, int(h / 2) - m), Colors.BLUE),
        (Rect(w / 2, h / 2, w / 2 - m, h / 2 - m), Colors.RED),
        (Rect(int(w / 2), m, int(w / 2) - m, int(h / 2) - m),
         GradientPaint(0, 0, Colors.YELLOW, w, h, Colors.GREEN)),
        (Rect(m, h / 2, w / 2 - m, h / 2 - m),
         GradientPaint(w, 0, Colors.YELLOW, -w, h, Colors.GRAY)),
    )
    for region, paint in regions:
        with surface.saved_state():
            surface.clip(region)
            surface.set_paint(paint)
            surface.fill_rect(0, 0, w, h)


def clipped_arc(surface, bounds: Rect, context) -> None:
    """Pie arc restricted to a rectangle 10 pixels inside the margin."""
    inner = MARGIN + 10
    surface.clip_rect(inner, inner, bounds.width - 2 * inner, bounds.height - 2 * inner)
    pie = inset_arc(bounds, ArcClosure.PIE, 45, 270)
    surface.set_paint(Colors.DARK_GRAY)
    surface.fill(pie)
    surface.set_paint(Colors.RED)
    surface.draw(pie)


def register(registry: TileRegistry) -> None:
    registry.add(TileCase("clip_regions", 4, CLIP_ROW, rectangular_clip_regions,
                          description="Rectangular clip regions"))
    registry.add(TileCase("clip_arc", 5, CLIP_ROW, clipped_arc,
                          description="Arc with a rectangular clip"))
