"""Header band (row 0) and run properties panel (rows 1-3, right side)."""
from __future__ import annotations

import platform

import numpy as np
import PIL

from ..geometry import Rect
from ..paint import MONOSPACED, SERIF, Colors, FontSpec, Stroke
from ..registry import PreparedContext, TileCase, TileRegistry
from ..shapes import line, rectangle

TITLE = "Graphics2D Tester"
TITLE_FONT = FontSpec(SERIF, 32, bold=True)
PROPERTIES_FONT = FontSpec(MONOSPACED, 14)
PROPERTIES_SPAN = (4, 3)


def header(surface, bounds: Rect, context) -> None:
    """White band with rules above and below and the sheet title."""
    surface.set_paint(Colors.WHITE)
    surface.fill(rectangle(2, 2, bounds.width, bounds.height - 2))
    surface.set_paint(Colors.BLACK)
    surface.set_stroke(Stroke(2.0))
    surface.draw(line(0, 1, bounds.width, 1))
    surface.draw(line(0, bounds.height, bounds.width, bounds.height))

    surface.set_font(TITLE_FONT)
    metrics = surface.line_metrics(TITLE)
    surface.draw_string(TITLE, 5, bounds.center_y + metrics.ascent / 2)


def property_lines(surface_name: str, context: PreparedContext) -> list[str]:
    """Key/value lines describing the run environment."""
    return [
        f"target -> {context.target_label} ({surface_name})",
        f"timestamp -> {context.timestamp.isoformat(timespec='seconds')}",
        f"os.name -> {platform.system()}",
        f"os.version -> {platform.release()}",
        f"os.arch -> {platform.machine()}",
        f"python -> {platform.python_version()}",
        f"numpy -> {np.__version__}",
        f"pillow -> {PIL.__version__}",
    ]


def properties(surface, bounds: Rect, context) -> None:
    """Run properties in a monospaced font."""
    surface.set_paint(Colors.BLACK)
    surface.set_font(PROPERTIES_FONT)
    y = 20
    for text in property_lines(surface.name, context):
        y += 16
        surface.draw_string(text, 10, y)


def register(registry: TileRegistry, columns: int = 11) -> None:
    registry.add(TileCase("header", 0, 0, header, (columns, 1), "Sheet title"))
    registry.add(TileCase("properties", columns - PROPERTIES_SPAN[0], 1, properties,
                          PROPERTIES_SPAN, "Run properties"))
