"""
Font registry resolving logical font requests to Pillow fonts.

This module provides a font registry that:
1. Maps the logical families (serif, sans-serif, monospace) to DejaVu files
2. Falls back to Pillow's bundled default font if DejaVu is not installed
3. Caches fonts for performance

Both the raster and the SVG backend take their text metrics from here, so
string bounds and line metrics agree between backends.
"""

from __future__ import annotations

import logging
from threading import RLock

from PIL import ImageFont

from .geometry import Rect
from .paint import MONOSPACED, SANS_SERIF, SERIF, FontSpec, LineMetrics

logger = logging.getLogger(__name__)

# Font files per family: (regular, bold, italic, bold italic)
FONT_FILES: dict[str, tuple[str, str, str, str]] = {
    SANS_SERIF: ("DejaVuSans.ttf", "DejaVuSans-Bold.ttf",
                 "DejaVuSans-Oblique.ttf", "DejaVuSans-BoldOblique.ttf"),
    SERIF: ("DejaVuSerif.ttf", "DejaVuSerif-Bold.ttf",
            "DejaVuSerif-Italic.ttf", "DejaVuSerif-BoldItalic.ttf"),
    MONOSPACED: ("DejaVuSansMono.ttf", "DejaVuSansMono-Bold.ttf",
                 "DejaVuSansMono-Oblique.ttf", "DejaVuSansMono-BoldOblique.ttf"),
}

# Family names written into SVG output
SVG_FAMILIES: dict[str, str] = {
    SANS_SERIF: "DejaVu Sans, sans-serif",
    SERIF: "DejaVu Serif, serif",
    MONOSPACED: "DejaVu Sans Mono, monospace",
}


class FontRegistry:
    """
    Resolves :class:`FontSpec` requests to Pillow font handles.

    Handles are cached per (file, pixel size); lookups are thread safe.
    """

    def __init__(self):
        self._cache: dict[tuple[str, int], ImageFont.FreeTypeFont] = {}
        self._missing: set[str] = set()
        self._lock = RLock()

    @staticmethod
    def font_file(spec: FontSpec) -> str:
        files = FONT_FILES.get(spec.family, FONT_FILES[SANS_SERIF])
        index = (1 if spec.bold else 0) + (2 if spec.italic else 0)
        return files[index]

    def get_font(self, spec: FontSpec) -> ImageFont.FreeTypeFont:
        """
        Get a font handle for a logical font.

        :param spec: The requested font
        :return: A Pillow font of ``spec.size`` pixels
        """
        file_name = self.font_file(spec)
        size = max(1, int(round(spec.size)))
        key = (file_name, size)
        with self._lock:
            font = self._cache.get(key)
            if font is not None:
                return font
            try:
                font = ImageFont.truetype(file_name, size)
            except OSError:
                if file_name not in self._missing:
                    logger.warning(f"Font {file_name} not found, using Pillow default font")
                    self._missing.add(file_name)
                font = ImageFont.load_default(size=size)
            self._cache[key] = font
            return font

    def line_metrics(self, spec: FontSpec) -> LineMetrics:
        font = self.get_font(spec)
        ascent, descent = font.getmetrics()
        return LineMetrics(ascent=float(ascent), descent=float(descent),
                           leading=0.0)

    def text_width(self, spec: FontSpec, text: str) -> float:
        return float(self.get_font(spec).getlength(text))

    def string_bounds(self, spec: FontSpec, text: str) -> Rect:
        """Logical bounds of ``text`` relative to its baseline origin."""
        metrics = self.line_metrics(spec)
        return Rect(0.0, -metrics.ascent, self.text_width(spec, text),
                    metrics.ascent + metrics.descent + metrics.leading)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


font_registry = FontRegistry()


__all__ = ["FONT_FILES", "SVG_FAMILIES", "FontRegistry", "font_registry"]
