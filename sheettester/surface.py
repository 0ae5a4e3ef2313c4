# SheetTester - Drawing surface
"""
Abstract drawing surface.

A surface owns its render state (transform, clip, paint, stroke, font and
composite) and a stack of saved states. Backends implement the primitive
drawing operations; everything that only manipulates state lives here so all
backends agree on it.

State scoping:

- ``save()`` / ``restore()`` push and pop the complete render state
- ``saved_state()`` is a context manager restoring the state that was active
  on entry on every exit path, including exceptions and unbalanced ``save()``
  or ``restore()`` calls made inside the block

The clip is kept as a shapely geometry in device space, so it is unaffected
by later transform changes, just like a Java2D clip.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path as FilePath
from typing import Iterator

import numpy as np
from shapely.geometry.base import BaseGeometry

from .exceptions import SurfaceError
from .fonts import font_registry
from .geometry import AffineTransform, Rect
from .paint import (
    DEFAULT_COMPOSITE,
    DEFAULT_FONT,
    DEFAULT_PAINT,
    DEFAULT_STROKE,
    Color,
    Colors,
    Composite,
    CompositeRule,
    FontSpec,
    LineMetrics,
    Paint,
    Stroke,
)
from .shapes import ArcClosure, Shape, arc, as_geometry, ellipse, line, rectangle, transform_geometry


@dataclass(frozen=True)
class RenderState:
    """Complete, immutable render state of a surface."""
    transform: AffineTransform = AffineTransform()
    clip: BaseGeometry | None = None
    paint: Paint = DEFAULT_PAINT
    stroke: Stroke = DEFAULT_STROKE
    font: FontSpec = DEFAULT_FONT
    composite: Composite = DEFAULT_COMPOSITE


class DrawingSurface(ABC):
    """Base class of all rendering backends."""

    #: Backend name used in file names and logs
    name: str = "surface"
    #: Extension of the file written by :meth:`export`
    extension: str = "png"

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Invalid surface size {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self._state = RenderState()
        self._stack: list[RenderState] = []

    # -- state stack -------------------------------------------------------

    @property
    def state(self) -> RenderState:
        return self._state

    @property
    def state_depth(self) -> int:
        return len(self._stack)

    def save(self) -> None:
        self._stack.append(self._state)

    def restore(self) -> None:
        if not self._stack:
            raise SurfaceError("restore() without matching save()")
        self._state = self._stack.pop()

    def restore_to(self, depth: int) -> None:
        """Pop saved states until the stack has ``depth`` entries."""
        while len(self._stack) > depth:
            self.restore()

    @contextmanager
    def saved_state(self) -> Iterator[DrawingSurface]:
        depth = self.state_depth
        entry = self._state
        self.save()
        try:
            yield self
        finally:
            # Also covers extra restore() calls that popped below the entry depth
            del self._stack[depth:]
            self._state = entry

    def _update(self, **changes) -> None:
        self._state = replace(self._state, **changes)

    # -- transform ---------------------------------------------------------

    def get_transform(self) -> AffineTransform:
        return self._state.transform

    def set_transform(self, transform: AffineTransform) -> None:
        """Replace the current transform."""
        self._update(transform=transform)

    def transform(self, transform: AffineTransform) -> None:
        """Concatenate ``transform``; it is applied to coordinates first."""
        self._update(transform=self._state.transform.concatenate(transform))

    def translate(self, tx: float, ty: float) -> None:
        self.transform(AffineTransform.translation(tx, ty))

    def rotate(self, theta: float, cx: float = 0.0, cy: float = 0.0) -> None:
        self.transform(AffineTransform.rotation(theta, cx, cy))

    def scale(self, sx: float, sy: float | None = None) -> None:
        self.transform(AffineTransform.scaling(sx, sy))

    def shear(self, shx: float, shy: float) -> None:
        self.transform(AffineTransform.shearing(shx, shy))

    # -- clip --------------------------------------------------------------

    def get_clip(self) -> BaseGeometry | None:
        """Current clip in device space, ``None`` when unclipped."""
        return self._state.clip

    def set_clip(self, shape: Shape | None) -> None:
        """Replace the clip; ``None`` removes it."""
        if shape is None:
            self._update(clip=None)
        else:
            self._update(clip=as_geometry(shape, self._state.transform))

    def clip(self, shape: Shape) -> None:
        """Intersect the clip with ``shape`` (in user space)."""
        region = as_geometry(shape, self._state.transform)
        current = self._state.clip
        self._update(clip=region if current is None else current.intersection(region))

    def clip_rect(self, x: float, y: float, width: float, height: float) -> None:
        self.clip(Rect(x, y, width, height))

    def clip_bounds(self) -> Rect | None:
        """Bounds of the clip in user space, ``None`` when unclipped."""
        clip = self._state.clip
        if clip is None:
            return None
        if clip.is_empty:
            return Rect(0, 0, 0, 0)
        user = transform_geometry(clip, self._state.transform.inverse())
        x0, y0, x1, y1 = user.bounds
        return Rect(x0, y0, x1 - x0, y1 - y0)

    # -- attributes --------------------------------------------------------

    @property
    def paint(self) -> Paint:
        return self._state.paint

    @property
    def stroke(self) -> Stroke:
        return self._state.stroke

    @property
    def font(self) -> FontSpec:
        return self._state.font

    @property
    def composite(self) -> Composite:
        return self._state.composite

    def set_paint(self, paint: Paint) -> None:
        self._update(paint=paint)

    def set_color(self, color: Color) -> None:
        self._update(paint=Color(*color))

    def set_stroke(self, stroke: Stroke) -> None:
        self._update(stroke=stroke)

    def set_font(self, font: FontSpec) -> None:
        self._update(font=font)

    def set_composite(self, composite: Composite | CompositeRule,
                      alpha: float = 1.0) -> None:
        if isinstance(composite, CompositeRule):
            composite = Composite(composite, alpha)
        self._update(composite=composite)

    def reset_attributes(self) -> None:
        """Restore default paint, stroke, font and composite.

        Transform and clip are left untouched.
        """
        self._update(paint=DEFAULT_PAINT, stroke=DEFAULT_STROKE,
                     font=DEFAULT_FONT, composite=DEFAULT_COMPOSITE)

    # -- primitive drawing (backend specific) ------------------------------

    @abstractmethod
    def fill(self, shape: Shape) -> None:
        """Fill the interior of a shape with the current paint."""

    @abstractmethod
    def draw(self, shape: Shape) -> None:
        """Stroke the outline of a shape with the current stroke and paint."""

    @abstractmethod
    def draw_string(self, text: str, x: float, y: float) -> None:
        """Draw text with its baseline starting at (x, y)."""

    @abstractmethod
    def draw_image(self, image: np.ndarray, x: float, y: float,
                   width: float | None = None, height: float | None = None) -> None:
        """Draw an RGBA uint8 image scaled into the given rectangle."""

    @abstractmethod
    def clear(self, color: Color = Colors.WHITE) -> None:
        """Reset every device pixel to ``color``, ignoring state."""

    @abstractmethod
    def to_array(self) -> np.ndarray:
        """Rendered content as an (H, W, 4) uint8 RGBA array."""

    @abstractmethod
    def export(self, path: str | FilePath) -> FilePath:
        """Write the rendered output file and return its path."""

    # -- convenience -------------------------------------------------------

    def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self.draw(line(x1, y1, x2, y2))

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        if width > 0 and height > 0:
            self.fill(rectangle(x, y, width, height))

    def draw_rect(self, x: float, y: float, width: float, height: float) -> None:
        if width >= 0 and height >= 0:
            self.draw(rectangle(x, y, width, height))

    def fill_oval(self, x: float, y: float, width: float, height: float) -> None:
        self.fill(ellipse(x, y, width, height))

    def draw_oval(self, x: float, y: float, width: float, height: float) -> None:
        self.draw(ellipse(x, y, width, height))

    def fill_arc(self, x: float, y: float, width: float, height: float,
                 start: float, extent: float) -> None:
        self.fill(arc(x, y, width, height, start, extent, ArcClosure.PIE))

    def draw_arc(self, x: float, y: float, width: float, height: float,
                 start: float, extent: float) -> None:
        self.draw(arc(x, y, width, height, start, extent, ArcClosure.OPEN))

    # -- text metrics ------------------------------------------------------

    def string_bounds(self, text: str) -> Rect:
        """Logical bounds of ``text`` drawn at the origin with the current font."""
        return font_registry.string_bounds(self._state.font, text)

    def line_metrics(self, text: str = "") -> LineMetrics:
        return font_registry.line_metrics(self._state.font)

    def string_width(self, text: str) -> float:
        return font_registry.text_width(self._state.font, text)

    # -- helpers for backends ----------------------------------------------

    def device_bounds(self) -> Rect:
        return Rect(0, 0, self.width, self.height)

    def clip_is_empty(self) -> bool:
        clip = self._state.clip
        return clip is not None and clip.is_empty

    @property
    def hairline_width(self) -> float:
        """User space width of a one pixel line under the current transform."""
        return 1.0 / self._state.transform.scale_factor

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.width}x{self.height}, depth={self.state_depth})"


__all__ = ["RenderState", "DrawingSurface"]
