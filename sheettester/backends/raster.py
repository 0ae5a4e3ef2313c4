# SheetTester - Raster backend
"""
Reference bitmap renderer.

Pure numpy renderer used as the ground truth every other backend is compared
against. It is deterministic: the same sequence of calls always produces the
same pixels.

Pipeline of every drawing call:

1. The shape (or stroke outline) is turned into device-space polygons
2. A supersampled scanline rasterizer computes per-pixel coverage inside the
   bounding box of the shape, and the clip region is rasterized the same way
3. The paint is evaluated at the covered pixels (mapped back to user space)
4. Source and destination are combined with the Porter-Duff rule of the
   current composite, then blended by coverage

The buffer stores premultiplied float32 RGBA in [0.0, 1.0].
"""

from __future__ import annotations

import logging
import math
from pathlib import Path as FilePath

import numpy as np
from PIL import Image, ImageDraw
from shapely.geometry.base import BaseGeometry

from ..fonts import font_registry
from ..geometry import AffineTransform, Rect
from ..paint import Color, Colors, CompositeRule, ImagePaint, Paint, as_rgba, evaluate_paint
from ..shapes import Path, Shape, WindingRule, as_path, geometry_to_path, rect_path
from ..stroking import stroke_outline
from ..surface import DrawingSurface

logger = logging.getLogger(__name__)

# Pixel rows rasterized per chunk, bounds the size of the crossing matrix
_ROW_CHUNK = 128


def _porter_duff(rule: CompositeRule, sa: np.ndarray, da: np.ndarray):
    """Source and destination factors (Fs, Fd) of a Porter-Duff rule."""
    one = np.ones_like(sa)
    zero = np.zeros_like(sa)
    if rule is CompositeRule.CLEAR:
        return zero, zero
    if rule is CompositeRule.SRC:
        return one, zero
    if rule is CompositeRule.DST:
        return zero, one
    if rule is CompositeRule.SRC_OVER:
        return one, 1 - sa
    if rule is CompositeRule.DST_OVER:
        return 1 - da, one
    if rule is CompositeRule.SRC_IN:
        return da, zero
    if rule is CompositeRule.DST_IN:
        return zero, sa
    if rule is CompositeRule.SRC_OUT:
        return 1 - da, zero
    if rule is CompositeRule.DST_OUT:
        return zero, 1 - sa
    if rule is CompositeRule.SRC_ATOP:
        return da, 1 - sa
    if rule is CompositeRule.DST_ATOP:
        return 1 - da, sa
    if rule is CompositeRule.XOR:
        return 1 - da, 1 - sa
    raise ValueError(f"Unknown composite rule: {rule}")


def _rings(path: Path, transform: AffineTransform | None) -> list[np.ndarray]:
    scale = transform.scale_factor if transform is not None else 1.0
    rings = []
    for sp in path.flatten(scale):
        pts = sp.points if transform is None else transform.apply(sp.points)
        if len(pts) >= 2:
            rings.append(pts)
    return rings


def _ring_bounds(rings: list[np.ndarray]) -> tuple[float, float, float, float] | None:
    if not rings:
        return None
    pts = np.vstack(rings)
    x0, y0 = pts.min(axis=0)
    x1, y1 = pts.max(axis=0)
    return float(x0), float(y0), float(x1), float(y1)


def rasterize_rings(rings: list[np.ndarray], rule: WindingRule,
                    roi: tuple[int, int, int, int], supersample: int = 2) -> np.ndarray:
    """Coverage of closed polygons inside a device region.

    Every ring is implicitly closed. Samples sit on a regular
    ``supersample`` x ``supersample`` grid inside each pixel.

    Args:
        rings: Device space polylines, each (N, 2)
        rule: Winding rule deciding which samples are inside
        roi: Integer region (x0, y0, x1, y1), end exclusive
        supersample: Samples per pixel edge

    Returns:
        float32 coverage array of shape (y1 - y0, x1 - x0) in [0.0, 1.0]
    """
    x0, y0, x1, y1 = roi
    ss = max(1, int(supersample))
    width, height = x1 - x0, y1 - y0
    coverage = np.zeros((height, width), dtype=np.float32)
    if width <= 0 or height <= 0 or not rings:
        return coverage

    edges = np.vstack([np.hstack([r, np.roll(r, -1, axis=0)]) for r in rings])
    edges = edges[edges[:, 1] != edges[:, 3]]
    if len(edges) == 0:
        return coverage
    ex0, ey0, ex1, ey1 = edges.T
    lo = np.minimum(ey0, ey1)
    hi = np.maximum(ey0, ey1)
    direction = np.where(ey1 > ey0, 1, -1)
    inv_slope = (ex1 - ex0) / (ey1 - ey0)

    sample_cols = width * ss
    total_rows = height * ss
    chunk = _ROW_CHUNK * ss
    for start in range(0, total_rows, chunk):
        rows = np.arange(start, min(start + chunk, total_rows))
        ys = y0 + (rows + 0.5) / ss
        hits = (ys[:, None] >= lo) & (ys[:, None] < hi)
        r_idx, e_idx = np.nonzero(hits)
        if len(r_idx) == 0:
            continue
        xc = ex0[e_idx] + (ys[r_idx] - ey0[e_idx]) * inv_slope[e_idx]
        # A crossing at xc affects every sample whose center lies right of it
        col = np.ceil((xc - x0) * ss - 0.5).astype(np.int64)
        col = np.clip(col, 0, sample_cols)
        flat = r_idx * (sample_cols + 1) + col
        acc = np.bincount(flat, weights=direction[e_idx],
                          minlength=len(rows) * (sample_cols + 1))
        winding = np.cumsum(acc.reshape(len(rows), sample_cols + 1)[:, :-1], axis=1)
        if rule is WindingRule.EVEN_ODD:
            inside = (np.rint(winding).astype(np.int64) & 1) == 1
        else:
            inside = np.rint(winding) != 0
        block = inside.reshape(len(rows) // ss, ss, width, ss).mean(axis=(1, 3))
        first = start // ss
        coverage[first:first + block.shape[0]] = block
    return coverage


class RasterSurface(DrawingSurface):
    """numpy reference renderer writing PNG files."""

    name = "raster"
    extension = "png"

    def __init__(self, width: int, height: int, supersample: int = 2,
                 background: Color = Colors.WHITE):
        super().__init__(width, height)
        self.supersample = max(1, int(supersample))
        self._buffer = np.zeros((self.height, self.width, 4), dtype=np.float32)
        self.clear(background)

    # -- region helpers ----------------------------------------------------

    def _roi(self, bounds: tuple[float, float, float, float] | None):
        if bounds is None:
            return None
        bx0, by0, bx1, by1 = bounds
        clip = self._state.clip
        if clip is not None:
            if clip.is_empty:
                return None
            cx0, cy0, cx1, cy1 = clip.bounds
            bx0, by0 = max(bx0, cx0), max(by0, cy0)
            bx1, by1 = min(bx1, cx1), min(by1, cy1)
        x0 = max(0, int(math.floor(bx0)))
        y0 = max(0, int(math.floor(by0)))
        x1 = min(self.width, int(math.ceil(bx1)))
        y1 = min(self.height, int(math.ceil(by1)))
        if x1 <= x0 or y1 <= y0:
            return None
        return x0, y0, x1, y1

    def _clip_coverage(self, roi) -> np.ndarray | None:
        clip = self._state.clip
        if clip is None:
            return None
        rings = _rings(geometry_to_path(clip), None)
        return rasterize_rings(rings, WindingRule.EVEN_ODD, roi, self.supersample)

    def _geometry_coverage(self, geometry: BaseGeometry):
        if geometry.is_empty:
            return None, None
        roi = self._roi(geometry.bounds)
        if roi is None:
            return None, None
        rings = _rings(geometry_to_path(geometry), None)
        return roi, rasterize_rings(rings, WindingRule.EVEN_ODD, roi, self.supersample)

    def _path_coverage(self, path: Path):
        rings = _rings(path, self._state.transform)
        roi = self._roi(_ring_bounds(rings))
        if roi is None:
            return None, None
        return roi, rasterize_rings(rings, path.winding_rule, roi, self.supersample)

    # -- compositing -------------------------------------------------------

    def _composite(self, roi, coverage: np.ndarray, paint: Paint) -> None:
        """Blend ``paint`` into the buffer with the given per-pixel coverage."""
        clip_cov = self._clip_coverage(roi)
        if clip_cov is not None:
            coverage = coverage * clip_cov
        composite = self._state.composite
        rule = composite.rule
        x0, y0, x1, y1 = roi
        rows, cols = np.nonzero(coverage > 0)
        if len(rows) == 0:
            return
        if rule is CompositeRule.DST:
            return

        # Paint is defined in user space: map pixel centers back
        inverse = self._state.transform.inverse()
        device = np.column_stack((cols + x0 + 0.5, rows + y0 + 0.5))
        user = inverse.apply(device)
        src = evaluate_paint(paint, user[:, 0], user[:, 1])

        sa = src[:, 3] * composite.alpha
        src_pm = np.empty_like(src)
        src_pm[:, :3] = src[:, :3] * sa[:, None]
        src_pm[:, 3] = sa

        region = self._buffer[y0:y1, x0:x1]
        dst = region[rows, cols]
        fs, fd = _porter_duff(rule, sa, dst[:, 3])
        result = src_pm * fs[:, None] + dst * fd[:, None]
        cov = coverage[rows, cols][:, None]
        region[rows, cols] = np.clip(dst + (result - dst) * cov, 0.0, 1.0)

    # -- drawing -----------------------------------------------------------

    def fill(self, shape: Shape) -> None:
        if self.clip_is_empty():
            return
        roi, coverage = self._path_coverage(as_path(shape))
        if roi is not None:
            self._composite(roi, coverage, self._state.paint)

    def draw(self, shape: Shape) -> None:
        if self.clip_is_empty():
            return
        outline = stroke_outline(as_path(shape), self._state.stroke, self._state.transform)
        roi, coverage = self._geometry_coverage(outline)
        if roi is not None:
            self._composite(roi, coverage, self._state.paint)

    def draw_string(self, text: str, x: float, y: float) -> None:
        if not text or self.clip_is_empty():
            return
        spec = self._state.font
        transform = self._state.transform
        # Render the glyph mask at (at least) device resolution
        oversample = max(2, int(math.ceil(transform.scale_factor * 2)))
        font = font_registry.get_font(spec.derive(size=spec.size * oversample))
        metrics = font_registry.line_metrics(spec)
        text_width = font_registry.text_width(spec, text)
        pad = 2 * oversample
        mask_w = int(math.ceil(text_width * oversample)) + 2 * pad
        mask_h = int(math.ceil((metrics.ascent + metrics.descent) * oversample)) + 2 * pad
        mask = Image.new("L", (mask_w, mask_h), 0)
        ImageDraw.Draw(mask).text((pad, pad + metrics.ascent * oversample), text,
                                  font=font, fill=255, anchor="ls")
        user_rect = Rect(x - pad / oversample,
                         y - metrics.ascent - pad / oversample,
                         mask_w / oversample, mask_h / oversample)
        self._fill_mask(np.asarray(mask, dtype=np.float32) / 255.0, user_rect,
                        self._state.paint)

    def _fill_mask(self, mask: np.ndarray, user_rect: Rect, paint: Paint) -> None:
        """Fill with ``paint`` using a user space coverage mask."""
        rings = _rings(rect_path(user_rect), self._state.transform)
        roi = self._roi(_ring_bounds(rings))
        if roi is None:
            return
        x0, y0, x1, y1 = roi
        ys, xs = np.mgrid[y0:y1, x0:x1]
        device = np.column_stack((xs.ravel() + 0.5, ys.ravel() + 0.5))
        user = self._state.transform.inverse().apply(device)
        mask_rgba = np.repeat((mask * 255).astype(np.uint8)[:, :, None], 4, axis=2)
        sampled = evaluate_paint(ImagePaint(mask_rgba, user_rect), user[:, 0], user[:, 1])
        coverage = sampled[:, 3].reshape(y1 - y0, x1 - x0)
        self._composite(roi, coverage, paint)

    def draw_image(self, image: np.ndarray, x: float, y: float,
                   width: float | None = None, height: float | None = None) -> None:
        if self.clip_is_empty():
            return
        image = as_rgba(image)
        h, w = image.shape[:2]
        dest = Rect(x, y, w if width is None else width, h if height is None else height)
        if dest.width <= 0 or dest.height <= 0:
            return
        roi, coverage = self._path_coverage(rect_path(dest))
        if roi is not None:
            self._composite(roi, coverage, ImagePaint(image, dest))

    def clear(self, color: Color = Colors.WHITE) -> None:
        rgba = Color(*color).to_float()
        self._buffer[:, :, :3] = rgba[:3] * rgba[3]
        self._buffer[:, :, 3] = rgba[3]

    # -- output ------------------------------------------------------------

    def to_array(self) -> np.ndarray:
        alpha = self._buffer[:, :, 3:4]
        with np.errstate(divide="ignore", invalid="ignore"):
            rgb = np.where(alpha > 0, self._buffer[:, :, :3] / alpha, 0.0)
        out = np.concatenate([rgb, alpha], axis=2)
        return np.clip(np.rint(out * 255.0), 0, 255).astype(np.uint8)

    def export(self, path: str | FilePath) -> FilePath:
        path = FilePath(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.fromarray(self.to_array()).save(path, format="PNG")
        logger.debug(f"Wrote {path}")
        return path


__all__ = ["RasterSurface", "rasterize_rings"]
