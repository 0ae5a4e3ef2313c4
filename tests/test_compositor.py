"""
Tests for the tile grid compositor: placement, state isolation and failure
placeholders.
"""

import logging

import numpy as np
import pytest

from sheettester.backends.raster import RasterSurface
from sheettester.backends.recording import RecordingSurface
from sheettester.compositor import (
    PLACEHOLDER_LABEL,
    CellFailed,
    CellOk,
    TileGrid,
    draw_failure_placeholder,
)
from sheettester.geometry import AffineTransform, CellAddress, Rect
from sheettester.paint import Colors, CompositeRule, FontSpec, Stroke
from sheettester.registry import TileRegistry
from sheettester.sheet import TestSheet
from sheettester.surface import RenderState

TILE = Rect(0, 0, 100, 65)


class TestPlacement:
    """Tests for cell placement."""

    def test_cell_offset(self, recording_surface):
        """Cells are laid out on a tile_width x tile_height grid."""
        grid = TileGrid(recording_surface, 100, 65)
        assert grid.cell_offset(0, 0) == (0, 0)
        assert grid.cell_offset(2, 1) == (200, 65)

    def test_procedure_draws_in_local_coordinates(self, recording_surface):
        """A procedure drawing at (0, 0) lands at the cell origin."""
        grid = TileGrid(recording_surface, 100, 65)
        grid.place_and_run(2, 1, TILE, lambda b: recording_surface.fill_rect(0, 0, 10, 10))
        (call,) = recording_surface.calls_of("fill")
        assert call.origin == (200, 65)

    def test_local_bounds_are_passed_through(self, recording_surface):
        """The procedure receives the local bounds unchanged."""
        seen = []
        grid = TileGrid(recording_surface, 100, 65)
        grid.place_and_run(1, 0, Rect(0, 0, 300, 130), seen.append)
        assert seen == [Rect(0, 0, 300, 130)]

    def test_coordinate_independence(self, recording_surface):
        """The same procedure issues identical local calls in every cell."""
        def procedure(bounds):
            recording_surface.set_color(Colors.GREEN)
            recording_surface.fill_rect(5, 5, 20, 20)

        grid = TileGrid(recording_surface, 100, 65)
        grid.place_and_run(0, 0, TILE, procedure)
        grid.place_and_run(2, 1, TILE, procedure)
        first, second = recording_surface.calls_of("fill")
        assert first.args[0].to_svg_d() == second.args[0].to_svg_d()
        assert first.paint == second.paint
        assert (second.origin[0] - first.origin[0], second.origin[1] - first.origin[1]) == (200, 65)

    def test_translation_replaces_outer_transform(self, recording_surface):
        """Placement does not depend on a transform left by the caller."""
        recording_surface.set_transform(AffineTransform.translation(7, 7))
        grid = TileGrid(recording_surface, 100, 65)
        grid.place_and_run(1, 0, TILE, lambda b: recording_surface.fill_rect(0, 0, 1, 1))
        assert recording_surface.calls_of("fill")[0].origin == (100, 0)
        assert recording_surface.get_transform() == AffineTransform.translation(7, 7)

    def test_out_of_range_cell_is_not_an_error(self, recording_surface):
        """Cells outside the surface run normally."""
        grid = TileGrid(recording_surface, 100, 65)
        result = grid.place_and_run(-1, 50, TILE, lambda b: recording_surface.fill_rect(0, 0, 1, 1))
        assert result.ok
        assert recording_surface.calls_of("fill")[0].origin == (-100, 3250)


class TestStateIsolation:
    """Tests that no render state leaks out of a cell."""

    @staticmethod
    def _mess_up(surface):
        surface.set_color(Colors.MAGENTA)
        surface.set_stroke(Stroke(7))
        surface.set_font(FontSpec(size=40))
        surface.set_composite(CompositeRule.XOR, 0.3)
        surface.rotate(1.0)
        surface.clip_rect(0, 0, 3, 3)

    def test_state_restored_after_success(self, recording_surface):
        """Attribute, transform and clip changes are undone."""
        grid = TileGrid(recording_surface, 100, 65)
        result = grid.place_and_run(0, 0, TILE, lambda b: self._mess_up(recording_surface))
        assert isinstance(result, CellOk)
        assert recording_surface.state == RenderState()
        assert recording_surface.state_depth == 0

    def test_state_restored_after_failure(self, recording_surface):
        """State is restored even when the procedure raises mid-way."""
        def procedure(bounds):
            self._mess_up(recording_surface)
            recording_surface.save()
            recording_surface.save()
            raise ValueError("boom")

        grid = TileGrid(recording_surface, 100, 65)
        result = grid.place_and_run(0, 0, TILE, procedure)
        assert isinstance(result, CellFailed)
        assert recording_surface.state == RenderState()
        assert recording_surface.state_depth == 0

    def test_next_cell_sees_clean_state(self, recording_surface):
        """A cell after a failed cell draws with the default attributes."""
        def failing(bounds):
            self._mess_up(recording_surface)
            raise RuntimeError("boom")

        grid = TileGrid(recording_surface, 100, 65)
        grid.place_and_run(0, 0, TILE, failing)
        recording_surface.reset()
        grid.place_and_run(1, 0, TILE, lambda b: recording_surface.fill_rect(0, 0, 1, 1))
        (call,) = recording_surface.calls_of("fill")
        assert call.paint == Colors.BLACK
        assert call.clip is None
        assert call.stroke == Stroke()
        assert call.transform == AffineTransform.translation(100, 0)

    @pytest.mark.parametrize("raises", [False, True])
    def test_extra_restore_does_not_leak(self, recording_surface, raises):
        """A cell popping the compositor's saved state cannot leak into later cells."""
        def procedure(bounds):
            recording_surface.restore()
            recording_surface.clip_rect(40, 40, 1, 1)
            recording_surface.set_color(Colors.MAGENTA)
            if raises:
                raise RuntimeError("boom")

        grid = TileGrid(recording_surface, 100, 65)
        result = grid.place_and_run(0, 0, TILE, procedure)
        assert isinstance(result, CellFailed) is raises
        assert recording_surface.state == RenderState()
        assert recording_surface.state_depth == 0
        if raises:
            (box,) = recording_surface.calls_of("fill")
            assert box.clip is None
        recording_surface.reset()
        grid.place_and_run(1, 0, TILE, lambda b: recording_surface.fill_rect(0, 0, 1, 1))
        (call,) = recording_surface.calls_of("fill")
        assert call.clip is None
        assert call.paint == Colors.BLACK

    def test_outer_state_is_preserved(self, recording_surface):
        """State set by the caller is active again after the cell."""
        recording_surface.set_color(Colors.CYAN)
        recording_surface.clip_rect(0, 0, 50, 50)
        clip = recording_surface.get_clip()
        grid = TileGrid(recording_surface, 100, 65)
        grid.place_and_run(0, 0, TILE, lambda b: self._mess_up(recording_surface))
        assert recording_surface.state.paint == Colors.CYAN
        assert recording_surface.get_clip() is clip

    def test_base_exceptions_propagate(self, recording_surface):
        """Only Exception subclasses are turned into failed cells."""
        def interrupted(bounds):
            recording_surface.set_color(Colors.RED)
            raise KeyboardInterrupt

        grid = TileGrid(recording_surface, 100, 65)
        with pytest.raises(KeyboardInterrupt):
            grid.place_and_run(0, 0, TILE, interrupted)
        assert recording_surface.state == RenderState()


class TestFailurePlaceholder:
    """Tests for failed cells and their placeholder."""

    def test_failure_result(self, recording_surface):
        """A raising procedure is reported, not propagated."""
        def failing(bounds):
            raise ZeroDivisionError("division by zero")

        grid = TileGrid(recording_surface, 100, 65)
        result = grid.place_and_run(1, 0, TILE, failing, case_id="divide")
        assert result == CellFailed(
            case_id="divide", address=CellAddress(1, 0), reason="division by zero",
            error_type="ZeroDivisionError", elapsed=result.elapsed, placeholder_drawn=True,
        )
        assert not result.ok

    def test_placeholder_drawn_in_cell(self, recording_surface):
        """The placeholder is a light gray box with a centered label."""
        grid = TileGrid(recording_surface, 100, 65)
        grid.place_and_run(1, 0, TILE, lambda b: 1 / 0)
        (box,) = recording_surface.calls_of("fill")
        assert box.paint == Colors.LIGHT_GRAY
        assert box.origin == (100, 0)
        assert box.args[0].bounds() == Rect(2, 2, 96, 61)
        (label,) = recording_surface.calls_of("draw_string")
        assert label.args[0] == PLACEHOLDER_LABEL
        assert label.paint == Colors.BLACK
        assert label.font.bold
        assert 0 < label.args[1] < 50

    def test_partial_output_is_kept(self, recording_surface):
        """Drawing done before the failure stays, the placeholder goes on top."""
        def partial(bounds):
            recording_surface.set_color(Colors.RED)
            recording_surface.fill_rect(0, 0, 10, 10)
            raise RuntimeError("half way")

        grid = TileGrid(recording_surface, 100, 65)
        grid.place_and_run(0, 0, TILE, partial)
        fills = recording_surface.calls_of("fill")
        assert [c.paint for c in fills] == [Colors.RED, Colors.LIGHT_GRAY]

    def test_placeholder_ignores_failed_state(self, recording_surface):
        """The placeholder uses default attributes and the cell translation only."""
        def failing(bounds):
            recording_surface.set_composite(CompositeRule.CLEAR)
            recording_surface.translate(40, 40)
            recording_surface.clip_rect(0, 0, 1, 1)
            raise RuntimeError("boom")

        grid = TileGrid(recording_surface, 100, 65)
        grid.place_and_run(2, 1, TILE, failing)
        (box,) = recording_surface.calls_of("fill")
        assert box.composite.rule is CompositeRule.SRC_OVER
        assert box.transform == AffineTransform.translation(200, 65)
        assert box.clip is None

    def test_failure_is_logged(self, recording_surface, caplog):
        """Cell failures are logged as warnings with the traceback."""
        grid = TileGrid(recording_surface, 100, 65)
        with caplog.at_level(logging.WARNING, logger="sheettester.compositor"):
            grid.place_and_run(0, 0, TILE, lambda b: 1 / 0, case_id="divide")
        (record,) = [r for r in caplog.records if r.name == "sheettester.compositor"]
        assert record.levelno == logging.WARNING
        assert "divide" in record.getMessage()
        assert record.exc_info is not None

    def test_placeholder_failure_is_reported(self, caplog):
        """If the placeholder cannot be drawn either, the pass continues."""
        surface = RecordingSurface(300, 65, fail_on={"fill"})
        grid = TileGrid(surface, 100, 65)
        with caplog.at_level(logging.WARNING, logger="sheettester.compositor"):
            result = grid.place_and_run(0, 0, TILE, lambda b: surface.fill_rect(0, 0, 5, 5))
        assert isinstance(result, CellFailed)
        assert not result.placeholder_drawn
        assert [r.levelno for r in caplog.records if r.name == "sheettester.compositor"] == [logging.WARNING, logging.ERROR]
        assert surface.state == RenderState()
        assert surface.state_depth == 0

        ok = grid.place_and_run(1, 0, TILE, lambda b: surface.draw_line(0, 0, 5, 5))
        assert ok.ok

    def test_draw_failure_placeholder_directly(self, recording_surface):
        """The helper draws into the given bounds of the current user space."""
        draw_failure_placeholder(recording_surface, Rect(0, 0, 200, 130))
        (box,) = recording_surface.calls_of("fill")
        assert box.args[0].bounds() == Rect(2, 2, 196, 126)


class TestThreeCaseSheet:
    """Red square, failing case, red square in three adjacent cells."""

    def test_results(self, recording_surface, three_case_registry, test_settings):
        """The middle case fails, its neighbours succeed."""
        sheet = TestSheet(three_case_registry)
        report = sheet.render_full_sheet(recording_surface, three_case_registry.prepare(test_settings))
        assert [r.ok for r in report.results] == [True, False, True]
        assert report.failed_ids == ["middle"]
        assert report.failures[0].error_type == "RuntimeError"

    def test_recorded_calls(self, recording_surface, three_case_registry, test_settings):
        """Red squares at (0, 0) and (200, 0), placeholder at (100, 0)."""
        sheet = TestSheet(three_case_registry)
        sheet.render_full_sheet(recording_surface, three_case_registry.prepare(test_settings))
        fills = recording_surface.calls_of("fill")
        assert [(c.paint, c.origin) for c in fills] == [
            (Colors.RED, (0, 0)),
            (Colors.LIGHT_GRAY, (100, 0)),
            (Colors.RED, (200, 0)),
        ]
        assert fills[2].clip is None
        assert fills[2].depth == 1

    def test_raster_pixels(self, three_case_registry, test_settings):
        """The raster sheet shows both squares and the gray placeholder."""
        surface = RasterSurface(300, 65, supersample=1)
        sheet = TestSheet(three_case_registry)
        sheet.render_full_sheet(surface, three_case_registry.prepare(test_settings))
        pixels = surface.to_array()
        red = [255, 0, 0, 255]
        gray = [192, 192, 192, 255]
        np.testing.assert_array_equal(pixels[30, 30], red)
        np.testing.assert_array_equal(pixels[30, 230], red)
        np.testing.assert_array_equal(pixels[5, 105], gray)
        np.testing.assert_array_equal(pixels[60, 195], gray)
        # Outside the squares the background is untouched
        np.testing.assert_array_equal(pixels[60, 60], [255, 255, 255, 255])
        np.testing.assert_array_equal(pixels[0, 100], [255, 255, 255, 255])

    def test_repeated_passes_are_identical(self, three_case_registry, test_settings):
        """Two passes on a freshly cleared canvas give identical pixels."""
        surface = RasterSurface(300, 65, supersample=1)
        sheet = TestSheet(three_case_registry)
        context = three_case_registry.prepare(test_settings)
        sheet.render_full_sheet(surface, context)
        first = surface.to_array()
        surface.clear(Colors.WHITE)
        sheet.render_full_sheet(surface, context)
        np.testing.assert_array_equal(surface.to_array(), first)

    def test_empty_registry(self, recording_surface, test_settings):
        """An empty registry renders nothing and reports no results."""
        registry = TileRegistry()
        report = TestSheet(registry).render_full_sheet(recording_surface,
                                                       registry.prepare(test_settings))
        assert report.results == []
        assert report.all_ok
        assert recording_surface.calls == []
