"""Line tiles: cap styles, dash patterns and stroke widths (rows 1-2)."""
from __future__ import annotations

from ..geometry import Rect
from ..paint import Colors, Paint, Stroke
from ..registry import TileCase, TileRegistry
from .common import DASHED, DASHED_3, OUTLINE, OUTLINE_3, draw_line_caps, draw_line_fan

CAPS_ROW = 1
FAN_ROW = 2

# (name, width, dash, paint)
LINE_CAPS = (
    ("hairline", 0.0, None, Colors.RED),
    ("width1", 1.0, None, Colors.RED),
    ("width1_repeat", 1.0, None, Colors.RED),
    ("dash_2_2", 1.0, (2.0, 2.0), Colors.BLACK),
    ("dash_4_8", 3.0, (4.0, 8.0), Colors.BLACK),
    ("width5", 5.0, None, Colors.BLACK),
)

# (name, stroke, paint)
LINE_FANS = (
    ("hairline", Stroke(0.0), Colors.RED),
    ("outline", OUTLINE, Colors.RED),
    ("outline_repeat", OUTLINE, Colors.RED),
    ("dashed", DASHED, Colors.BLACK),
    ("dashed3", DASHED_3, Colors.BLACK),
    ("outline3", OUTLINE_3, Colors.BLACK),
)


def line_caps_tile(width: float, dash: tuple[float, ...] | None, paint: Paint):
    def procedure(surface, bounds: Rect, context) -> None:
        draw_line_caps(surface, bounds, width, paint, dash=dash)
    return procedure


def line_fan_tile(stroke: Stroke, paint: Paint):
    def procedure(surface, bounds: Rect, context) -> None:
        draw_line_fan(surface, bounds, stroke, paint)
    return procedure


def register(registry: TileRegistry) -> None:
    for column, (name, width, dash, paint) in enumerate(LINE_CAPS):
        registry.add(TileCase(f"line_caps_{name}", column, CAPS_ROW,
                              line_caps_tile(width, dash, paint),
                              description=f"Butt, round and square caps, width {width:g}"))
    for column, (name, stroke, paint) in enumerate(LINE_FANS):
        registry.add(TileCase(f"line_fan_{name}", column, FAN_ROW,
                              line_fan_tile(stroke, paint),
                              description="Lines at different angles from one corner"))
