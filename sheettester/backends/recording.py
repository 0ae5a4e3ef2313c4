"""Recording surface.

Surface that draws nothing and records every drawing call together with the
transform and clip active at the time of the call. Used to verify state
handling (placement, scoping, failure recovery) without a real renderer.

Individual operations can be made to fail, to simulate backends that reject
certain calls::

    surface = RecordingSurface(200, 100, fail_on={"draw_string"})
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path as FilePath
from typing import Any

import numpy as np
from shapely.geometry.base import BaseGeometry

from ..exceptions import SurfaceError
from ..geometry import AffineTransform
from ..paint import Color, Colors, Composite, FontSpec, Paint, Stroke
from ..shapes import Shape, as_path
from ..surface import DrawingSurface


@dataclass(frozen=True)
class RecordedCall:
    """One drawing call and the state it was issued in."""
    op: str
    args: tuple[Any, ...]
    transform: AffineTransform
    clip: BaseGeometry | None
    paint: Paint
    stroke: Stroke
    font: FontSpec
    composite: Composite
    depth: int

    @property
    def origin(self) -> tuple[float, float]:
        """Device position of the user space origin."""
        return self.transform.e, self.transform.f


class RecordingSurface(DrawingSurface):
    """Surface recording calls instead of drawing."""

    name = "recording"
    extension = "txt"

    def __init__(self, width: int, height: int, fail_on: set[str] | None = None):
        super().__init__(width, height)
        self.fail_on = set(fail_on or ())
        self.calls: list[RecordedCall] = []

    def _record(self, op: str, *args: Any) -> None:
        state = self._state
        self.calls.append(RecordedCall(
            op=op, args=args, transform=state.transform, clip=state.clip,
            paint=state.paint, stroke=state.stroke, font=state.font,
            composite=state.composite, depth=self.state_depth,
        ))
        if op in self.fail_on:
            raise SurfaceError(f"{op} rejected by recording surface")

    def calls_of(self, op: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.op == op]

    def reset(self) -> None:
        self.calls.clear()

    # -- drawing -----------------------------------------------------------

    def fill(self, shape: Shape) -> None:
        self._record("fill", as_path(shape))

    def draw(self, shape: Shape) -> None:
        self._record("draw", as_path(shape))

    def draw_string(self, text: str, x: float, y: float) -> None:
        self._record("draw_string", text, x, y)

    def draw_image(self, image: np.ndarray, x: float, y: float,
                   width: float | None = None, height: float | None = None) -> None:
        self._record("draw_image", image.shape, x, y, width, height)

    def clear(self, color: Color = Colors.WHITE) -> None:
        self._record("clear", Color(*color))

    # -- output ------------------------------------------------------------

    def to_array(self) -> np.ndarray:
        return np.full((self.height, self.width, 4), 255, dtype=np.uint8)

    def export(self, path: str | FilePath) -> FilePath:
        path = FilePath(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [f"{c.op} {c.args!r} @ {c.origin}" for c in self.calls]
        path.write_text("\n".join(lines), encoding="utf-8")
        return path


__all__ = ["RecordedCall", "RecordingSurface"]
