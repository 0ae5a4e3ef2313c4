"""Cairo backend (optional, requires pycairo).

Renders through Cairo's native path, paint and operator model. Two flavours:

- ``CairoSurface(w, h)`` draws into an ARGB32 image and exports PNG
- ``CairoSurface(w, h, vector=True)`` records into a Cairo recording surface
  and exports PDF; :meth:`to_array` replays the recording into an image

Cairo operators such as SOURCE or IN are unbounded, i.e. they also affect
pixels outside the drawn shape. That is a real backend difference and shows up
as such in the comparison images.
"""

from __future__ import annotations

import logging
from pathlib import Path as FilePath

import cairo
import numpy as np

from ..fonts import SVG_FAMILIES
from ..paint import (
    Color,
    Colors,
    CompositeRule,
    CycleMethod,
    GradientPaint,
    ImagePaint,
    LineCap,
    LineJoin,
    LinearGradientPaint,
    Paint,
    RadialGradientPaint,
    TexturePaint,
    as_rgba,
)
from ..shapes import Path, PathOp, Shape, WindingRule, as_path, geometry_to_path
from ..surface import DrawingSurface

logger = logging.getLogger(__name__)

_OPERATORS = {
    CompositeRule.CLEAR: cairo.OPERATOR_CLEAR,
    CompositeRule.SRC: cairo.OPERATOR_SOURCE,
    CompositeRule.DST: cairo.OPERATOR_DEST,
    CompositeRule.SRC_OVER: cairo.OPERATOR_OVER,
    CompositeRule.DST_OVER: cairo.OPERATOR_DEST_OVER,
    CompositeRule.SRC_IN: cairo.OPERATOR_IN,
    CompositeRule.DST_IN: cairo.OPERATOR_DEST_IN,
    CompositeRule.SRC_OUT: cairo.OPERATOR_OUT,
    CompositeRule.DST_OUT: cairo.OPERATOR_DEST_OUT,
    CompositeRule.SRC_ATOP: cairo.OPERATOR_ATOP,
    CompositeRule.DST_ATOP: cairo.OPERATOR_DEST_ATOP,
    CompositeRule.XOR: cairo.OPERATOR_XOR,
}

_EXTENDS = {
    CycleMethod.NO_CYCLE: cairo.EXTEND_PAD,
    CycleMethod.REFLECT: cairo.EXTEND_REFLECT,
    CycleMethod.REPEAT: cairo.EXTEND_REPEAT,
}

_CAPS = {
    LineCap.BUTT: cairo.LINE_CAP_BUTT,
    LineCap.ROUND: cairo.LINE_CAP_ROUND,
    LineCap.SQUARE: cairo.LINE_CAP_SQUARE,
}

_JOINS = {
    LineJoin.MITER: cairo.LINE_JOIN_MITER,
    LineJoin.ROUND: cairo.LINE_JOIN_ROUND,
    LineJoin.BEVEL: cairo.LINE_JOIN_BEVEL,
}


def image_to_cairo(image: np.ndarray) -> cairo.ImageSurface:
    """Convert an RGBA uint8 array into a premultiplied ARGB32 surface."""
    rgba = as_rgba(image).astype(np.float32)
    h, w = rgba.shape[:2]
    alpha = rgba[:, :, 3:4] / 255.0
    bgra = np.empty((h, w, 4), dtype=np.uint8)
    bgra[:, :, 0] = np.rint(rgba[:, :, 2] * alpha[:, :, 0])
    bgra[:, :, 1] = np.rint(rgba[:, :, 1] * alpha[:, :, 0])
    bgra[:, :, 2] = np.rint(rgba[:, :, 0] * alpha[:, :, 0])
    bgra[:, :, 3] = rgba[:, :, 3]
    stride = cairo.ImageSurface.format_stride_for_width(cairo.FORMAT_ARGB32, w)
    data = np.zeros((h, stride // 4, 4), dtype=np.uint8)
    data[:, :w] = bgra
    return cairo.ImageSurface.create_for_data(
        bytearray(data.tobytes()), cairo.FORMAT_ARGB32, w, h, stride)


def cairo_to_image(surface: cairo.ImageSurface) -> np.ndarray:
    """Convert a premultiplied ARGB32 surface into an RGBA uint8 array."""
    surface.flush()
    w, h = surface.get_width(), surface.get_height()
    stride = surface.get_stride()
    data = np.frombuffer(surface.get_data(), dtype=np.uint8).reshape(h, stride // 4, 4)[:, :w]
    alpha = data[:, :, 3:4].astype(np.float32)
    with np.errstate(divide="ignore", invalid="ignore"):
        rgb = np.where(alpha > 0, data[:, :, 2::-1].astype(np.float32) * 255.0 / alpha, 0.0)
    out = np.concatenate([np.clip(np.rint(rgb), 0, 255), alpha], axis=2)
    return out.astype(np.uint8)


class CairoSurface(DrawingSurface):
    """Cairo renderer writing PNG, or PDF when ``vector`` is set."""

    def __init__(self, width: int, height: int, vector: bool = False,
                 background: Color = Colors.WHITE):
        super().__init__(width, height)
        self.vector = vector
        self.name = "cairo-pdf" if vector else "cairo"
        self.extension = "pdf" if vector else "png"
        self._target = self._new_target()
        self._patterns: dict[int, tuple[np.ndarray, cairo.ImageSurface]] = {}
        self.clear(background)

    def _new_target(self) -> cairo.Surface:
        if self.vector:
            return cairo.RecordingSurface(
                cairo.CONTENT_COLOR_ALPHA,
                cairo.Rectangle(0, 0, self.width, self.height))
        return cairo.ImageSurface(cairo.FORMAT_ARGB32, self.width, self.height)

    # -- state translation -------------------------------------------------

    def _matrix(self) -> cairo.Matrix:
        t = self._state.transform
        return cairo.Matrix(t.a, t.b, t.c, t.d, t.e, t.f)

    def _image_surface(self, image: np.ndarray) -> cairo.ImageSurface:
        cached = self._patterns.get(id(image))
        if cached is not None and cached[0] is image:
            return cached[1]
        surface = image_to_cairo(image)
        self._patterns[id(image)] = (image, surface)
        return surface

    def _source(self, paint: Paint):
        if isinstance(paint, Color):
            return cairo.SolidPattern(paint.r / 255, paint.g / 255, paint.b / 255, paint.a / 255)
        if isinstance(paint, GradientPaint):
            paint = paint.as_multi_stop()
        if isinstance(paint, LinearGradientPaint):
            pattern = cairo.LinearGradient(*paint.start, *paint.end)
        elif isinstance(paint, RadialGradientPaint):
            fx, fy = paint.effective_focus
            pattern = cairo.RadialGradient(fx, fy, 0.0, *paint.center, paint.radius)
        elif isinstance(paint, (TexturePaint, ImagePaint)):
            rect = paint.anchor if isinstance(paint, TexturePaint) else paint.dest
            h, w = paint.image.shape[:2]
            pattern = cairo.SurfacePattern(self._image_surface(paint.image))
            sx, sy = w / rect.width, h / rect.height
            pattern.set_matrix(cairo.Matrix(sx, 0, 0, sy, -rect.x * sx, -rect.y * sy))
            pattern.set_extend(cairo.EXTEND_REPEAT if isinstance(paint, TexturePaint)
                               else cairo.EXTEND_NONE)
            pattern.set_filter(cairo.FILTER_BILINEAR)
            return pattern
        else:
            raise TypeError(f"Unsupported paint: {type(paint).__name__}")
        for fraction, color in zip(paint.fractions, paint.colors):
            pattern.add_color_stop_rgba(fraction, color.r / 255, color.g / 255,
                                        color.b / 255, color.a / 255)
        pattern.set_extend(_EXTENDS[paint.cycle])
        return pattern

    def _begin(self) -> cairo.Context:
        """Context with clip applied and the user transform set."""
        ctx = cairo.Context(self._target)
        clip = self._state.clip
        if clip is not None:
            _append_path(ctx, geometry_to_path(clip))
            ctx.set_fill_rule(cairo.FILL_RULE_EVEN_ODD)
            ctx.clip()
        ctx.set_matrix(self._matrix())
        ctx.set_operator(_OPERATORS[self._state.composite.rule])
        return ctx

    def _finish(self, ctx: cairo.Context, render) -> None:
        """Run ``render`` honouring the composite alpha."""
        alpha = self._state.composite.alpha
        if alpha >= 1.0:
            render(ctx)
            return
        operator = ctx.get_operator()
        ctx.push_group()
        ctx.set_operator(cairo.OPERATOR_OVER)
        render(ctx)
        ctx.pop_group_to_source()
        ctx.set_operator(operator)
        ctx.paint_with_alpha(alpha)

    # -- drawing -----------------------------------------------------------

    def fill(self, shape: Shape) -> None:
        if self.clip_is_empty():
            return
        path = as_path(shape)
        ctx = self._begin()

        def render(c: cairo.Context) -> None:
            _append_path(c, path)
            c.set_fill_rule(cairo.FILL_RULE_EVEN_ODD
                            if path.winding_rule is WindingRule.EVEN_ODD
                            else cairo.FILL_RULE_WINDING)
            c.set_source(self._source(self._state.paint))
            c.fill()

        self._finish(ctx, render)

    def draw(self, shape: Shape) -> None:
        if self.clip_is_empty():
            return
        path = as_path(shape)
        stroke = self._state.stroke
        ctx = self._begin()

        def render(c: cairo.Context) -> None:
            _append_path(c, path)
            c.set_source(self._source(self._state.paint))
            c.set_line_cap(_CAPS[stroke.cap])
            c.set_line_join(_JOINS[stroke.join])
            c.set_miter_limit(stroke.miter_limit)
            if stroke.dash is not None:
                c.set_dash(list(stroke.dash), stroke.dash_phase)
            if stroke.is_hairline:
                # The pen follows the matrix at stroke time
                c.identity_matrix()
                c.set_line_width(1.0)
            else:
                c.set_line_width(stroke.width)
            c.stroke()

        self._finish(ctx, render)

    def draw_string(self, text: str, x: float, y: float) -> None:
        if not text or self.clip_is_empty():
            return
        spec = self._state.font
        family = SVG_FAMILIES.get(spec.family, spec.family).split(",")[0]
        ctx = self._begin()

        def render(c: cairo.Context) -> None:
            c.select_font_face(
                family,
                cairo.FONT_SLANT_ITALIC if spec.italic else cairo.FONT_SLANT_NORMAL,
                cairo.FONT_WEIGHT_BOLD if spec.bold else cairo.FONT_WEIGHT_NORMAL)
            c.set_font_size(spec.size)
            c.set_source(self._source(self._state.paint))
            c.move_to(x, y)
            c.show_text(text)

        self._finish(ctx, render)

    def draw_image(self, image: np.ndarray, x: float, y: float,
                   width: float | None = None, height: float | None = None) -> None:
        if self.clip_is_empty():
            return
        h, w = image.shape[:2]
        width = w if width is None else width
        height = h if height is None else height
        if width <= 0 or height <= 0:
            return
        ctx = self._begin()
        ctx.translate(x, y)
        ctx.scale(width / w, height / h)

        def render(c: cairo.Context) -> None:
            c.set_source_surface(self._image_surface(image), 0, 0)
            c.get_source().set_filter(cairo.FILTER_BILINEAR)
            c.rectangle(0, 0, w, h)
            c.fill()

        self._finish(ctx, render)

    def clear(self, color: Color = Colors.WHITE) -> None:
        if self.vector:
            self._target = self._new_target()
        ctx = cairo.Context(self._target)
        ctx.set_operator(cairo.OPERATOR_SOURCE)
        ctx.set_source_rgba(color[0] / 255, color[1] / 255, color[2] / 255,
                            (color[3] if len(color) > 3 else 255) / 255)
        ctx.paint()

    # -- output ------------------------------------------------------------

    def to_array(self) -> np.ndarray:
        if not self.vector:
            return cairo_to_image(self._target)
        image = cairo.ImageSurface(cairo.FORMAT_ARGB32, self.width, self.height)
        ctx = cairo.Context(image)
        ctx.set_source_surface(self._target, 0, 0)
        ctx.paint()
        return cairo_to_image(image)

    def export(self, path: str | FilePath) -> FilePath:
        path = FilePath(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if self.vector:
            pdf = cairo.PDFSurface(str(path), self.width, self.height)
            ctx = cairo.Context(pdf)
            ctx.set_source_surface(self._target, 0, 0)
            ctx.paint()
            pdf.finish()
        else:
            self._target.flush()
            self._target.write_to_png(str(path))
        logger.debug(f"Wrote {path}")
        return path


def _append_path(ctx: cairo.Context, path: Path) -> None:
    ctx.new_path()
    for op, coords in path.commands:
        if op is PathOp.MOVE:
            ctx.move_to(*coords)
        elif op is PathOp.LINE:
            ctx.line_to(*coords)
        elif op is PathOp.QUAD:
            x0, y0 = ctx.get_current_point()
            qx, qy, x2, y2 = coords
            ctx.curve_to(x0 + 2 / 3 * (qx - x0), y0 + 2 / 3 * (qy - y0),
                         x2 + 2 / 3 * (qx - x2), y2 + 2 / 3 * (qy - y2),
                         x2, y2)
        elif op is PathOp.CUBIC:
            ctx.curve_to(*coords)
        else:
            ctx.close_path()


__all__ = ["CairoSurface", "image_to_cairo", "cairo_to_image"]
