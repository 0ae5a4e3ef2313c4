"""Text tiles (rows 28-30): font families, styled runs, unicode symbols,
letter tracking, string bounds and line metrics.

Styled text is drawn as a sequence of :class:`TextRun` objects, each with its
own font variant, baseline shift and decorations. Every run is a plain
``draw_string`` call, so all backends only need the basic text primitive.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..geometry import Rect
from ..paint import MONOSPACED, SANS_SERIF, SERIF, Colors, FontSpec, LineCap, LineJoin, Stroke
from ..registry import TileCase, TileRegistry
from ..shapes import line, rectangle
from ..surface import DrawingSurface

FONTS_ROW = 28
TRACKING_ROW = 29
METRICS_ROW = 30

BODY_FONT = FontSpec(SERIF, 14)
DISPLAY_FONT = FontSpec(SERIF, 36)

# Letter spacing in em, as used by the "loose" and "tight" presets of AWT
TRACKING_LOOSE = 0.04
TRACKING_TIGHT = -0.04

SCRIPT_SCALE = 0.7


@dataclass(frozen=True)
class TextRun:
    """A piece of text sharing one style."""
    text: str
    bold: bool = False
    italic: bool = False
    superscript: bool = False
    subscript: bool = False
    underline: bool = False
    strikethrough: bool = False


def draw_runs(surface: DrawingSurface, runs: list[TextRun], x: float, y: float,
              font: FontSpec = BODY_FONT) -> float:
    """Draw styled runs on one baseline and return the x position after the last run."""
    for run in runs:
        size = font.size * SCRIPT_SCALE if (run.superscript or run.subscript) else font.size
        shift = 0.0
        if run.superscript:
            shift = -font.size * 0.35
        elif run.subscript:
            shift = font.size * 0.2
        surface.set_font(font.derive(size=size, bold=run.bold, italic=run.italic))
        surface.draw_string(run.text, x, y + shift)

        width = surface.string_width(run.text)
        if run.underline or run.strikethrough:
            metrics = surface.line_metrics(run.text)
            surface.set_stroke(Stroke(1.0, LineCap.BUTT))
            if run.underline:
                uy = y + shift + metrics.descent / 2.0
                surface.draw(line(x, uy, x + width, uy))
            if run.strikethrough:
                sy = y + shift - metrics.ascent / 3.0
                surface.draw(line(x, sy, x + width, sy))
        x += width
    return x


def draw_tracked(surface: DrawingSurface, text: str, x: float, y: float, tracking: float) -> float:
    """Draw ``text`` glyph by glyph with ``tracking`` em of extra spacing."""
    extra = tracking * surface.font.size
    for char in text:
        surface.draw_string(char, x, y)
        x += surface.string_width(char) + extra
    return x


# -- tiles -----------------------------------------------------------------

def font_families(surface, bounds: Rect, context) -> None:
    """Serif, sans serif and monospaced text at 14pt."""
    surface.set_paint(Colors.BLACK)
    for family, label, y in ((SERIF, "Serif", 20), (SANS_SERIF, "Sans Serif", 40),
                             (MONOSPACED, "Monospaced", 60)):
        surface.set_font(FontSpec(family, 14))
        surface.draw_string(f"{label} Font 14pt", bounds.x + 5, bounds.y + y)


STYLED_LINES = (
    [TextRun("test "), TextRun("superscript", superscript=True), TextRun(" and "),
     TextRun("bold", bold=True, superscript=True)],
    [TextRun("underline", underline=True), TextRun(" and "),
     TextRun("strikethrough", strikethrough=True)],
    [TextRun("test "), TextRun("subscript", subscript=True), TextRun(" and "),
     TextRun("oblique", italic=True, subscript=True)],
)


def styled_runs(surface, bounds: Rect, context) -> None:
    """Superscript, subscript, underline and strikethrough runs."""
    surface.set_paint(Colors.BLACK)
    for runs, y in zip(STYLED_LINES, (20, 40, 60)):
        draw_runs(surface, runs, bounds.x + 5, bounds.y + y)


def font_styles(surface, bounds: Rect, context) -> None:
    """Plain, bold, italic and bold italic runs of one family."""
    surface.set_paint(Colors.BLACK)
    draw_runs(surface, [TextRun("plain "), TextRun("bold", bold=True)], bounds.x + 5, bounds.y + 20)
    draw_runs(surface, [TextRun("italic ", italic=True),
                        TextRun("bold italic", bold=True, italic=True)], bounds.x + 5, bounds.y + 40)
    draw_runs(surface, [TextRun("mixed "), TextRun("sizes", superscript=True),
                        TextRun(" inline")], bounds.x + 5, bounds.y + 60)


def unicode_tile(lines: tuple[str, ...]):
    def procedure(surface, bounds: Rect, context) -> None:
        surface.set_paint(Colors.BLACK)
        surface.set_font(BODY_FONT)
        for text, y in zip(lines, (20, 40, 60)):
            surface.draw_string(text, bounds.x + 5, bounds.y + y)
    return procedure


def tracking(surface, bounds: Rect, context) -> None:
    """Loose, default and tight letter spacing."""
    surface.set_paint(Colors.BLACK)
    surface.set_font(BODY_FONT)
    for label, value, y in (("TRACKING_LOOSE", TRACKING_LOOSE, 20),
                            ("None", 0.0, 40),
                            ("TRACKING_TIGHT", TRACKING_TIGHT, 60)):
        draw_tracked(surface, f"Tracking: {label}", bounds.x + 5, bounds.y + y, value)


def string_bounds(surface, bounds: Rect, context) -> None:
    """Large string with its logical bounds outlined in blue."""
    x = 5.0
    y = bounds.max_y - 15.0
    text = "Java2D!"
    surface.set_paint(Colors.BLACK)
    surface.set_font(DISPLAY_FONT)
    surface.draw_string(text, x, y)

    box = surface.string_bounds(text)
    surface.set_stroke(Stroke(0.5))
    surface.set_paint(Colors.BLUE)
    surface.translate(x, y)
    surface.draw(rectangle(box.x, box.y, box.width, box.height))


def text_metrics(surface, bounds: Rect, context) -> None:
    """Baseline, ascent, descent and leading lines around a string."""
    x = 5.0
    y = bounds.max_y - 12.0
    text = "Murphy É"
    surface.set_font(DISPLAY_FONT)
    width = surface.string_width(text)
    metrics = surface.line_metrics(text)

    surface.set_paint(Colors.RED)
    surface.set_stroke(Stroke(1.0, LineCap.BUTT, LineJoin.BEVEL, 4.0, dash=(2.0, 2.0)))
    surface.draw(line(x, y, x + width, y))

    surface.set_paint(Colors.BLACK)
    surface.draw_string(text, x, y)
    surface.set_paint(Colors.RED)
    surface.fill_rect(int(x), int(y), 1, 1)

    surface.set_stroke(Stroke(0.5))
    surface.set_paint(Colors.DARK_GRAY)
    for offset in (-metrics.ascent, metrics.descent, metrics.descent + metrics.leading):
        surface.draw(line(x, y + offset, x + width, y + offset))


def register(registry: TileRegistry) -> None:
    wide = (2, 1)
    registry.add(TileCase("font_families", 0, FONTS_ROW, font_families, wide,
                          "Serif, sans serif and monospaced text"))
    registry.add(TileCase("styled_runs", 2, FONTS_ROW, styled_runs, wide,
                          "Superscript, subscript and decorations"))
    registry.add(TileCase("font_styles", 4, FONTS_ROW, font_styles, wide,
                          "Bold and italic variants"))
    registry.add(TileCase("unicode_symbols", 6, FONTS_ROW,
                          unicode_tile(("copyright = ©", "trademark = ™", "euro = €")),
                          wide, "Symbols outside of ASCII"))
    registry.add(TileCase("unicode_shapes", 8, FONTS_ROW,
                          unicode_tile(("infinity = ∞", "club = ♣", "circle = ●")),
                          wide, "Symbol glyphs"))
    registry.add(TileCase("text_tracking", 0, TRACKING_ROW, tracking, wide,
                          "Letter spacing presets"))
    registry.add(TileCase("string_bounds", 0, METRICS_ROW, string_bounds, wide,
                          "Logical string bounds"))
    registry.add(TileCase("text_metrics", 2, METRICS_ROW, text_metrics, wide,
                          "Ascent, descent and leading"))


__all__ = ["TextRun", "draw_runs", "draw_tracked", "register"]
