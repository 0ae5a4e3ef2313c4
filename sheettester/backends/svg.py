"""SVG backend.

Writes every drawing call as an SVG element. The user to device transform of
the call becomes a ``matrix()`` transform on the element and the current clip
(already in device space) becomes a ``clipPath`` on a wrapping group, so the
markup mirrors the render state one to one.

For pixel comparison the markup is rasterized with resvg, the only SVG
renderer used in this project.

Porter-Duff rules other than SRC_OVER have no SVG counterpart; they are drawn
as source-over with the composite alpha as opacity.
"""

from __future__ import annotations

import base64
import io
import logging
from html import escape
from pathlib import Path as FilePath

import numpy as np
from PIL import Image
from resvg_py import svg_to_bytes
from shapely.geometry.base import BaseGeometry

from ..fonts import SVG_FAMILIES, font_registry
from ..paint import (
    Color,
    Colors,
    CompositeRule,
    GradientPaint,
    ImagePaint,
    LinearGradientPaint,
    Paint,
    RadialGradientPaint,
    TexturePaint,
    as_rgba,
)
from ..shapes import Shape, as_path, geometry_to_path
from ..surface import DrawingSurface

logger = logging.getLogger(__name__)


def _png_data_uri(image: np.ndarray) -> str:
    buffer = io.BytesIO()
    Image.fromarray(as_rgba(image)).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def _stops(fractions, colors) -> str:
    return "".join(
        f'<stop offset="{f:g}" stop-color="{c.to_hex()}" stop-opacity="{c.opacity:g}"/>'
        for f, c in zip(fractions, colors)
    )


def render_svg(svg_content: str, width: int, height: int) -> np.ndarray:
    """Render an SVG string to an RGBA numpy array using resvg.

    Args:
        svg_content: SVG string to render
        width: Output width in pixels
        height: Output height in pixels

    Returns:
        RGBA numpy array of shape (height, width, 4)
    """
    png_bytes = svg_to_bytes(svg_string=svg_content, width=width, height=height)
    image = Image.open(io.BytesIO(bytes(png_bytes))).convert("RGBA")
    return np.array(image, dtype=np.uint8)


class SvgSurface(DrawingSurface):
    """Surface emitting SVG markup."""

    name = "svg"
    extension = "svg"

    def __init__(self, width: int, height: int, background: Color = Colors.WHITE):
        super().__init__(width, height)
        self._elements: list[str] = []
        self._defs: list[str] = []
        self._next_id = 0
        self._clip_ids: dict[int, tuple[BaseGeometry, str]] = {}
        self._image_uris: dict[int, tuple[np.ndarray, str]] = {}
        self._warned_rules: set[CompositeRule] = set()
        self.clear(background)

    # -- defs --------------------------------------------------------------

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}{self._next_id}"

    def _image_uri(self, image: np.ndarray) -> str:
        cached = self._image_uris.get(id(image))
        if cached is not None and cached[0] is image:
            return cached[1]
        uri = _png_data_uri(image)
        self._image_uris[id(image)] = (image, uri)
        return uri

    def _clip_id(self, clip: BaseGeometry) -> str:
        cached = self._clip_ids.get(id(clip))
        if cached is not None and cached[0] is clip:
            return cached[1]
        clip_id = self._new_id("clip")
        d = geometry_to_path(clip).to_svg_d() or "M 0 0"
        self._defs.append(
            f'<clipPath id="{clip_id}" clipPathUnits="userSpaceOnUse">'
            f'<path d="{d}" clip-rule="evenodd"/></clipPath>'
        )
        self._clip_ids[id(clip)] = (clip, clip_id)
        return clip_id

    def _paint_ref(self, paint: Paint) -> tuple[str, float]:
        """SVG paint server reference and opacity for a paint."""
        if isinstance(paint, Color):
            return paint.to_hex(), paint.opacity
        if isinstance(paint, GradientPaint):
            paint = paint.as_multi_stop()
        if isinstance(paint, LinearGradientPaint):
            gid = self._new_id("grad")
            (x1, y1), (x2, y2) = paint.start, paint.end
            self._defs.append(
                f'<linearGradient id="{gid}" gradientUnits="userSpaceOnUse" '
                f'x1="{x1:g}" y1="{y1:g}" x2="{x2:g}" y2="{y2:g}" '
                f'spreadMethod="{paint.cycle.value}">'
                f'{_stops(paint.fractions, paint.colors)}</linearGradient>'
            )
            return f"url(#{gid})", 1.0
        if isinstance(paint, RadialGradientPaint):
            gid = self._new_id("grad")
            cx, cy = paint.center
            fx, fy = paint.effective_focus
            self._defs.append(
                f'<radialGradient id="{gid}" gradientUnits="userSpaceOnUse" '
                f'cx="{cx:g}" cy="{cy:g}" r="{paint.radius:g}" fx="{fx:g}" fy="{fy:g}" '
                f'spreadMethod="{paint.cycle.value}">'
                f'{_stops(paint.fractions, paint.colors)}</radialGradient>'
            )
            return f"url(#{gid})", 1.0
        if isinstance(paint, (TexturePaint, ImagePaint)):
            rect = paint.anchor if isinstance(paint, TexturePaint) else paint.dest
            pid = self._new_id("pattern")
            self._defs.append(
                f'<pattern id="{pid}" patternUnits="userSpaceOnUse" '
                f'x="{rect.x:g}" y="{rect.y:g}" width="{rect.width:g}" height="{rect.height:g}">'
                f'<image width="{rect.width:g}" height="{rect.height:g}" '
                f'preserveAspectRatio="none" href="{self._image_uri(paint.image)}"/></pattern>'
            )
            return f"url(#{pid})", 1.0
        raise TypeError(f"Unsupported paint: {type(paint).__name__}")

    # -- element emission --------------------------------------------------

    def _opacity(self) -> float:
        composite = self._state.composite
        if composite.rule is not CompositeRule.SRC_OVER and composite.rule not in self._warned_rules:
            logger.debug(f"SVG has no {composite.rule.name} compositing, using SRC_OVER")
            self._warned_rules.add(composite.rule)
        return composite.alpha

    def _emit(self, element: str) -> None:
        clip = self._state.clip
        if clip is not None:
            element = f'<g clip-path="url(#{self._clip_id(clip)})">{element}</g>'
        self._elements.append(element)

    def _transform_attr(self) -> str:
        transform = self._state.transform
        if transform.is_identity:
            return ""
        return f' transform="{transform.to_svg()}"'

    # -- drawing -----------------------------------------------------------

    def fill(self, shape: Shape) -> None:
        if self.clip_is_empty():
            return
        path = as_path(shape)
        if path.is_empty:
            return
        fill, fill_opacity = self._paint_ref(self._state.paint)
        self._emit(
            f'<path d="{path.to_svg_d()}" fill="{fill}" fill-opacity="{fill_opacity:g}" '
            f'fill-rule="{path.winding_rule.value}" opacity="{self._opacity():g}"'
            f'{self._transform_attr()}/>'
        )

    def draw(self, shape: Shape) -> None:
        if self.clip_is_empty():
            return
        path = as_path(shape)
        if path.is_empty:
            return
        stroke = self._state.stroke
        color, stroke_opacity = self._paint_ref(self._state.paint)
        attrs = [
            f'stroke="{color}"',
            f'stroke-opacity="{stroke_opacity:g}"',
            f'stroke-linecap="{stroke.cap.value}"',
            f'stroke-linejoin="{stroke.join.value}"',
            f'stroke-miterlimit="{stroke.miter_limit:g}"',
        ]
        if stroke.is_hairline:
            attrs.append('stroke-width="1" vector-effect="non-scaling-stroke"')
        else:
            attrs.append(f'stroke-width="{stroke.width:g}"')
        if stroke.dash is not None:
            attrs.append(f'stroke-dasharray="{" ".join(f"{d:g}" for d in stroke.dash)}"')
            attrs.append(f'stroke-dashoffset="{stroke.dash_phase:g}"')
        self._emit(
            f'<path d="{path.to_svg_d()}" fill="none" {" ".join(attrs)} '
            f'opacity="{self._opacity():g}"{self._transform_attr()}/>'
        )

    def draw_string(self, text: str, x: float, y: float) -> None:
        if not text or self.clip_is_empty():
            return
        spec = self._state.font
        fill, fill_opacity = self._paint_ref(self._state.paint)
        family = SVG_FAMILIES.get(spec.family, spec.family)
        # Pin the advance so layout matches the metrics the raster backend uses
        width = font_registry.text_width(spec, text)
        self._emit(
            f'<text x="{x:g}" y="{y:g}" font-family="{family}" font-size="{spec.size:g}" '
            f'font-weight="{"bold" if spec.bold else "normal"}" '
            f'font-style="{"italic" if spec.italic else "normal"}" '
            f'textLength="{width:g}" lengthAdjust="spacingAndGlyphs" '
            f'fill="{fill}" fill-opacity="{fill_opacity:g}" opacity="{self._opacity():g}" '
            f'xml:space="preserve"{self._transform_attr()}>{escape(text)}</text>'
        )

    def draw_image(self, image: np.ndarray, x: float, y: float,
                   width: float | None = None, height: float | None = None) -> None:
        if self.clip_is_empty():
            return
        h, w = image.shape[:2]
        width = w if width is None else width
        height = h if height is None else height
        if width <= 0 or height <= 0:
            return
        self._emit(
            f'<image x="{x:g}" y="{y:g}" width="{width:g}" height="{height:g}" '
            f'preserveAspectRatio="none" opacity="{self._opacity():g}" '
            f'href="{self._image_uri(image)}"{self._transform_attr()}/>'
        )

    def clear(self, color: Color = Colors.WHITE) -> None:
        color = Color(*color)
        self._elements = [
            f'<rect x="0" y="0" width="{self.width}" height="{self.height}" '
            f'fill="{color.to_hex()}" fill-opacity="{color.opacity:g}"/>'
        ]
        self._defs = []
        self._clip_ids = {}
        self._next_id = 0

    # -- output ------------------------------------------------------------

    @property
    def element_count(self) -> int:
        return len(self._elements)

    def to_svg(self) -> str:
        """Complete SVG document."""
        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" '
            f'xmlns:xlink="http://www.w3.org/1999/xlink" '
            f'width="{self.width}" height="{self.height}" '
            f'viewBox="0 0 {self.width} {self.height}">'
            f'<defs>{"".join(self._defs)}</defs>'
            f'{"".join(self._elements)}</svg>'
        )

    def to_array(self) -> np.ndarray:
        return render_svg(self.to_svg(), self.width, self.height)

    def export(self, path: str | FilePath) -> FilePath:
        path = FilePath(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_svg(), encoding="utf-8")
        logger.debug(f"Wrote {path}")
        return path


__all__ = ["SvgSurface", "render_svg"]
