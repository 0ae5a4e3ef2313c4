# SheetTester - Sheet assembler
"""
Sheet assembler.

Fixes the sheet dimensions from the tile size and grid size and drives the
compositor over the registry, either for the full sheet or for a single case
in debug mode.

A pass never clears the surface itself; callers clear it before each pass so
repeated passes start from the same canvas.

Example:
    >>> sheet = TestSheet(build_default_registry(), SheetLayout.from_settings(settings))
    >>> surface = create_surface("raster", sheet.sheet_width(), sheet.sheet_height())
    >>> report = sheet.render_full_sheet(surface, registry.prepare(settings))
    >>> print(report.summary())
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .compositor import CellFailed, CellResult, TileGrid
from .geometry import Rect
from .registry import PreparedContext, TileCase, TileRegistry
from .surface import DrawingSurface

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SheetLayout:
    """Tile size and grid size of a sheet."""
    tile_width: int = 100
    tile_height: int = 65
    columns: int = 11
    rows: int = 34

    @classmethod
    def from_settings(cls, settings: Settings) -> SheetLayout:
        return cls(settings.TILE_WIDTH, settings.TILE_HEIGHT,
                   settings.TILE_COUNT_H, settings.TILE_COUNT_V)

    def cell_bounds(self, span: tuple[int, int] = (1, 1)) -> Rect:
        """Local bounds of a cell spanning ``span`` tiles."""
        return Rect(0, 0, span[0] * self.tile_width, span[1] * self.tile_height)


@dataclass
class SheetReport:
    """Outcome of one full sheet pass."""
    results: list[CellResult] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def failures(self) -> list[CellFailed]:
        return [r for r in self.results if not r.ok]

    @property
    def ok_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed_ids(self) -> list[str]:
        return [f.case_id for f in self.failures]

    @property
    def all_ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        text = (f"{self.ok_count}/{len(self.results)} tiles ok "
                f"in {self.elapsed * 1000:.1f} ms")
        if self.failures:
            text += f", failed: {', '.join(self.failed_ids)}"
        return text


class TestSheet:
    """Renders the cases of a registry onto a surface.

    Args:
        registry: Cases to render, in registry order
        layout: Tile and grid size
    """

    # Keep pytest from collecting this class
    __test__ = False

    def __init__(self, registry: TileRegistry, layout: SheetLayout | None = None):
        self.registry = registry
        self.layout = layout or SheetLayout()

    def sheet_width(self) -> int:
        return self.layout.tile_width * self.layout.columns

    def sheet_height(self) -> int:
        return self.layout.tile_height * self.layout.rows

    def single_case_size(self, span: tuple[int, int] = (4, 4)) -> tuple[int, int]:
        """Surface size needed by :meth:`render_single_case`."""
        bounds = self.layout.cell_bounds(span)
        return int(bounds.width), int(bounds.height)

    def _run_case(self, grid: TileGrid, surface: DrawingSurface, context: PreparedContext,
                  case: TileCase, column: int, row: int, bounds: Rect) -> CellResult:
        procedure = case.procedure
        return grid.place_and_run(column, row, bounds,
                                  lambda local: procedure(surface, local, context),
                                  case_id=case.id)

    def render_full_sheet(self, surface: DrawingSurface, context: PreparedContext) -> SheetReport:
        """Run every registered case at its cell.

        Args:
            surface: Surface of at least sheet_width x sheet_height pixels,
                cleared by the caller
            context: Prepared resources shared by all cases

        Returns:
            Report with one result per case in registry order
        """
        grid = TileGrid(surface, self.layout.tile_width, self.layout.tile_height)
        report = SheetReport()
        start = time.perf_counter()
        for case in self.registry.cases():
            bounds = self.layout.cell_bounds(case.span)
            report.results.append(
                self._run_case(grid, surface, context, case, case.column, case.row, bounds))
        report.elapsed = time.perf_counter() - start
        if report.failures:
            logger.warning(f"{surface.name}: {report.summary()}")
        else:
            logger.debug(f"{surface.name}: {report.summary()}")
        return report

    def render_single_case(self, surface: DrawingSurface, context: PreparedContext,
                           case_id: str, span: tuple[int, int] = (4, 4)) -> CellResult:
        """Run one case at the top left cell with bounds of ``span`` tiles.

        Raises:
            RegistryError: If ``case_id`` is unknown (before anything is drawn)
        """
        case = self.registry.get(case_id)
        grid = TileGrid(surface, self.layout.tile_width, self.layout.tile_height)
        return self._run_case(grid, surface, context, case, 0, 0, self.layout.cell_bounds(span))


__all__ = ["SheetLayout", "SheetReport", "TestSheet"]
