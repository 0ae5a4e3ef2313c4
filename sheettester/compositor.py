# SheetTester - Tile grid compositor
"""
Tile grid compositor.

Places a tile procedure at a grid cell of a shared surface and runs it with
fault isolation. Every procedure draws in local coordinates where (0, 0) is
the top left corner of its cell; the compositor sets up the translation and
guarantees that nothing the procedure does to the render state (transform,
clip, paint, stroke, font, composite) survives the call.

If a procedure raises, its partial output stays on the surface, the state is
restored, and a light gray "FAILED" placeholder is drawn over the cell. The
exception is logged and reported as a :class:`CellFailed` result, it never
reaches the caller.

Example:
    >>> grid = TileGrid(surface, 100, 65)
    >>> result = grid.place_and_run(1, 0, Rect(0, 0, 100, 65), draw_red_square)
    >>> result.ok
    True
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Union

from .geometry import AffineTransform, CellAddress, Rect
from .paint import Colors
from .surface import DrawingSurface

logger = logging.getLogger(__name__)

#: Inset of the placeholder rectangle from the cell bounds
PLACEHOLDER_MARGIN = 2
PLACEHOLDER_LABEL = "FAILED"

#: A procedure drawing into local bounds of a cell
CellProcedure = Callable[[Rect], None]


@dataclass(frozen=True)
class CellOk:
    """A cell whose procedure completed normally."""
    case_id: str | None
    address: CellAddress
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class CellFailed:
    """A cell whose procedure raised.

    Attributes:
        reason: Message of the exception
        error_type: Class name of the exception
        placeholder_drawn: False if drawing the placeholder failed as well
    """
    case_id: str | None
    address: CellAddress
    reason: str
    error_type: str
    elapsed: float = 0.0
    placeholder_drawn: bool = True

    @property
    def ok(self) -> bool:
        return False


CellResult = Union[CellOk, CellFailed]


def draw_failure_placeholder(surface: DrawingSurface, bounds: Rect) -> None:
    """Draw the failure marker into ``bounds`` of the current user space.

    Uses the ambient default attributes except for the light gray fill, so
    the caller is expected to have reset attributes beforehand.
    """
    box = bounds.inset(PLACEHOLDER_MARGIN)
    surface.set_color(Colors.LIGHT_GRAY)
    surface.fill_rect(box.x, box.y, box.width, box.height)

    surface.set_color(Colors.BLACK)
    surface.set_font(surface.font.derive(bold=True))
    text_bounds = surface.string_bounds(PLACEHOLDER_LABEL)
    x = bounds.center_x - text_bounds.width / 2.0
    y = bounds.center_y - text_bounds.y - text_bounds.height / 2.0
    surface.draw_string(PLACEHOLDER_LABEL, x, y)


class TileGrid:
    """Maps grid cells of a surface to tile procedures.

    Args:
        surface: Surface shared by all cells of the pass
        tile_width: Width of one grid cell in device pixels
        tile_height: Height of one grid cell in device pixels
    """

    def __init__(self, surface: DrawingSurface, tile_width: float, tile_height: float):
        self.surface = surface
        self.tile_width = tile_width
        self.tile_height = tile_height

    def cell_offset(self, column: int, row: int) -> tuple[float, float]:
        """Device position of the top left corner of a cell."""
        return CellAddress(column, row).offset(self.tile_width, self.tile_height)

    def place_and_run(self, column: int, row: int, local_bounds: Rect,
                      test_case: CellProcedure, case_id: str | None = None) -> CellResult:
        """Run ``test_case`` translated to the given cell.

        Column and row are not validated; cells outside the surface simply
        draw nothing visible.

        Args:
            column: Zero based grid column
            row: Zero based grid row
            local_bounds: Bounds passed to the procedure, usually
                (0, 0, span_w * tile_width, span_h * tile_height)
            test_case: Procedure drawing in local coordinates
            case_id: Name used in logs and in the result

        Returns:
            CellOk, or CellFailed if the procedure raised
        """
        address = CellAddress(column, row)
        offset = AffineTransform.translation(*self.cell_offset(column, row))
        label = case_id or f"cell {column},{row}"
        surface = self.surface

        start = time.perf_counter()
        try:
            with surface.saved_state():
                surface.set_transform(offset)
                test_case(local_bounds)
        except Exception as e:
            elapsed = time.perf_counter() - start
            logger.warning(f"Tile '{label}' failed: {type(e).__name__}: {e}", exc_info=True)
            placeholder_drawn = self._draw_placeholder(offset, local_bounds, label)
            return CellFailed(
                case_id=case_id,
                address=address,
                reason=str(e),
                error_type=type(e).__name__,
                elapsed=elapsed,
                placeholder_drawn=placeholder_drawn,
            )
        return CellOk(case_id=case_id, address=address,
                      elapsed=time.perf_counter() - start)

    def _draw_placeholder(self, offset: AffineTransform, bounds: Rect, label: str) -> bool:
        surface = self.surface
        try:
            with surface.saved_state():
                surface.set_transform(offset)
                surface.reset_attributes()
                draw_failure_placeholder(surface, bounds)
        except Exception as e:
            logger.error(f"Placeholder for tile '{label}' could not be drawn: {e}", exc_info=True)
            return False
        return True


__all__ = [
    "PLACEHOLDER_MARGIN",
    "PLACEHOLDER_LABEL",
    "CellProcedure",
    "CellOk",
    "CellFailed",
    "CellResult",
    "TileGrid",
    "draw_failure_placeholder",
]
