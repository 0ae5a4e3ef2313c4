"""
Tests for the sheet assembler.
"""

import pytest

from sheettester.backends.recording import RecordingSurface
from sheettester.compositor import CellFailed
from sheettester.config import Settings
from sheettester.exceptions import RegistryError
from sheettester.geometry import Rect
from sheettester.registry import TileCase, TileRegistry
from sheettester.sheet import SheetLayout, SheetReport, TestSheet


class TestSheetLayout:
    """Tests for SheetLayout."""

    def test_defaults(self):
        """The default grid has 11 x 34 tiles of 100 x 65 pixels."""
        layout = SheetLayout()
        assert (layout.tile_width, layout.tile_height) == (100, 65)
        assert (layout.columns, layout.rows) == (11, 34)

    def test_from_settings(self):
        """Layout values are taken from the settings."""
        settings = Settings(TILE_WIDTH=50, TILE_HEIGHT=40, TILE_COUNT_H=3, TILE_COUNT_V=2)
        assert SheetLayout.from_settings(settings) == SheetLayout(50, 40, 3, 2)

    def test_cell_bounds(self):
        """Bounds of a span start at the local origin."""
        assert SheetLayout().cell_bounds((2, 3)) == Rect(0, 0, 200, 195)


class TestTestSheet:
    """Tests for TestSheet."""

    def test_dimensions(self):
        """Sheet size is tile size times grid size."""
        sheet = TestSheet(TileRegistry())
        assert sheet.sheet_width() == 1100
        assert sheet.sheet_height() == 2210

    def test_single_case_size(self):
        """The debug canvas spans the requested number of tiles."""
        sheet = TestSheet(TileRegistry(), SheetLayout(100, 65, 11, 34))
        assert sheet.single_case_size() == (400, 260)
        assert sheet.single_case_size((2, 1)) == (200, 65)

    def test_spanning_case_gets_span_bounds(self, test_settings):
        """Multi-tile cases receive bounds covering their whole span."""
        seen = []
        registry = TileRegistry()
        registry.add(TileCase("wide", 1, 1, lambda s, b, c: seen.append(b), span=(3, 2)))
        surface = RecordingSurface(500, 200)
        TestSheet(registry).render_full_sheet(surface, registry.prepare(test_settings))
        assert seen == [Rect(0, 0, 300, 130)]

    def test_cases_run_in_registry_order(self, test_settings):
        """Cases run row by row, left to right."""
        order = []
        registry = TileRegistry()
        for case_id, column, row in (("c", 0, 1), ("b", 1, 0), ("a", 0, 0)):
            registry.add(TileCase(case_id, column, row,
                                  lambda s, b, c, case_id=case_id: order.append(case_id)))
        TestSheet(registry).render_full_sheet(RecordingSurface(200, 130),
                                              registry.prepare(test_settings))
        assert order == ["a", "b", "c"]

    def test_single_case_at_origin(self, three_case_registry, test_settings):
        """Single case mode draws the case at (0, 0) with enlarged bounds."""
        sheet = TestSheet(three_case_registry)
        surface = RecordingSurface(*sheet.single_case_size())
        result = sheet.render_single_case(surface, three_case_registry.prepare(test_settings),
                                          "right")
        assert result.ok
        (call,) = surface.calls_of("fill")
        assert call.origin == (0, 0)

    def test_single_case_failure(self, three_case_registry, test_settings):
        """A failing single case yields a placeholder over the enlarged cell."""
        sheet = TestSheet(three_case_registry)
        surface = RecordingSurface(*sheet.single_case_size())
        result = sheet.render_single_case(surface, three_case_registry.prepare(test_settings),
                                          "middle")
        assert isinstance(result, CellFailed)
        (box,) = surface.calls_of("fill")
        assert box.args[0].bounds() == Rect(2, 2, 396, 256)

    def test_unknown_single_case(self, three_case_registry, test_settings):
        """Unknown ids raise before anything is drawn."""
        sheet = TestSheet(three_case_registry)
        surface = RecordingSurface(400, 260)
        with pytest.raises(RegistryError):
            sheet.render_single_case(surface, three_case_registry.prepare(test_settings), "nope")
        assert surface.calls == []

    def test_pass_does_not_clear(self, three_case_registry, test_settings):
        """Clearing the canvas is left to the caller."""
        surface = RecordingSurface(300, 65)
        TestSheet(three_case_registry).render_full_sheet(
            surface, three_case_registry.prepare(test_settings))
        assert surface.calls_of("clear") == []


class TestSheetReport:
    """Tests for SheetReport."""

    def test_summary(self, recording_surface, three_case_registry, test_settings):
        """The summary counts tiles and names failures."""
        report = TestSheet(three_case_registry).render_full_sheet(
            recording_surface, three_case_registry.prepare(test_settings))
        assert report.ok_count == 2
        assert not report.all_ok
        assert report.summary().startswith("2/3 tiles ok")
        assert report.summary().endswith("failed: middle")

    def test_empty_report(self):
        """An empty report is all ok."""
        report = SheetReport()
        assert report.all_ok
        assert report.summary().startswith("0/0 tiles ok")
