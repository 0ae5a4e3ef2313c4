"""Porter-Duff tiles (rows 17-18).

A red ellipse is painted with SRC_OVER, then a blue rectangle overlapping it
with the rule under test: fully opaque in the first row, at alpha 0.6 in the
second.
"""
from __future__ import annotations

from ..geometry import Rect
from ..paint import Colors, Composite, CompositeRule
from ..registry import TileCase, TileRegistry
from ..shapes import ellipse, rectangle
from .common import MARGIN

OPAQUE_ROW = 17
TRANSLUCENT_ROW = 18

RULES = (
    CompositeRule.CLEAR,
    CompositeRule.SRC,
    CompositeRule.SRC_OVER,
    CompositeRule.DST_OVER,
    CompositeRule.SRC_IN,
    CompositeRule.DST_IN,
    CompositeRule.SRC_OUT,
    CompositeRule.DST_OUT,
    CompositeRule.DST,
    CompositeRule.SRC_ATOP,
    CompositeRule.DST_ATOP,
)


def composite_tile(composite: Composite):
    def procedure(surface, bounds: Rect, context) -> None:
        w = bounds.width / 1.5
        h = bounds.height / 1.5
        surface.set_composite(CompositeRule.SRC_OVER)
        surface.set_paint(Colors.RED)
        surface.fill(ellipse(MARGIN, MARGIN, w, h))

        surface.set_composite(composite)
        surface.set_paint(Colors.BLUE)
        surface.fill(rectangle(bounds.width - MARGIN - w, bounds.height - MARGIN - h, w, h))
    return procedure


def register(registry: TileRegistry) -> None:
    for row, alpha in ((OPAQUE_ROW, 1.0), (TRANSLUCENT_ROW, 0.6)):
        suffix = "" if alpha == 1.0 else f"_{int(alpha * 100)}"
        for column, rule in enumerate(RULES):
            registry.add(TileCase(f"composite_{rule.value}{suffix}", column, row,
                                  composite_tile(Composite(rule, alpha)),
                                  description=f"{rule.name} at alpha {alpha:g}"))
