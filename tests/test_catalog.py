"""
Tests for the built-in tile catalog.
"""

from types import MappingProxyType

import numpy as np
import pytest

from sheettester.backends.raster import RasterSurface
from sheettester.backends.recording import RecordingSurface
from sheettester.backends.svg import SvgSurface
from sheettester.catalog import CATALOG_MODULES, register_all
from sheettester.catalog.common import fill_stroke_variants
from sheettester.catalog.gradients import make_texture
from sheettester.catalog.header import property_lines
from sheettester.paint import Colors
from sheettester.registry import PreparedContext, TileRegistry, build_default_registry
from sheettester.sheet import SheetLayout, TestSheet


@pytest.fixture(scope="module")
def catalog() -> TileRegistry:
    return build_default_registry()


@pytest.fixture(scope="module")
def offline_context() -> PreparedContext:
    """Context with a synthetic photo, so the catalog runs without sample data."""
    photo = np.zeros((185, 290, 4), dtype=np.uint8)
    photo[..., 0] = np.linspace(0, 255, 290, dtype=np.uint8)[None, :]
    photo[..., 2] = np.linspace(0, 255, 185, dtype=np.uint8)[:, None]
    photo[..., 3] = 255
    return PreparedContext(
        resources=MappingProxyType({"texture": make_texture(), "photo": photo}),
        target_label="tests",
    )


class TestCatalogLayout:
    """Tests for the layout of the default catalog."""

    def test_every_module_registers_cases(self):
        """Each catalog module adds at least one case."""
        for module in CATALOG_MODULES:
            registry = TileRegistry()
            module.register(registry)
            assert len(registry) > 0, module.__name__

    def test_no_overlapping_spans(self, catalog):
        """The built-in cases tile the sheet without overlaps."""
        assert catalog.overlaps() == []

    def test_cases_fit_the_grid(self, catalog):
        """Every covered cell lies on the 11 x 34 grid."""
        layout = SheetLayout()
        for case in catalog:
            for column, row in case.cells():
                assert 0 <= column < layout.columns, case.id
                assert 0 <= row < layout.rows, case.id

    def test_feature_groups_present(self, catalog):
        """Representative cases of every feature group are registered."""
        for case_id in ("header", "properties", "line_caps_hairline", "line_fan_dashed",
                        "rect_fill", "area_xor_fill_outline3", "composite_src_over",
                        "composite_dst_atop_60", "gradient_lines_horizontal_rainbow",
                        "radial_focus_reflect", "texture_ellipse_scaled", "rotate_rect",
                        "shear_x_ellipse", "fill_arc_45_270", "font_families", "text_metrics",
                        "clip_regions", "clip_arc", "image_rotated"):
            assert case_id in catalog, case_id

    def test_shape_rows_have_six_variants(self, catalog):
        """Every shape row holds the six fill and stroke variants."""
        variants = [name for name, *_ in fill_stroke_variants(Colors.RED)]
        assert len(variants) == 6
        for variant in variants:
            assert f"ellipse_{variant}" in catalog

    def test_composite_rows(self, catalog):
        """Both composite rows contain the same rules."""
        opaque = [c.id for c in catalog if c.row == 17]
        translucent = [c.id for c in catalog if c.row == 18]
        assert len(opaque) == len(translucent) == 11
        assert [i + "_60" for i in opaque] == translucent

    def test_preparers(self, catalog):
        """The texture and the photo are prepared once per run."""
        assert catalog.preparer_names == ["texture", "photo"]

    def test_register_all_returns_registry(self):
        """register_all fills and returns the given registry."""
        registry = TileRegistry()
        assert register_all(registry) is registry
        assert len(registry) == len(build_default_registry())


class TestCatalogRendering:
    """Runs every tile against a recording surface."""

    def test_all_tiles_succeed(self, catalog, offline_context):
        """No built-in tile raises on a surface that accepts everything."""
        sheet = TestSheet(catalog)
        surface = RecordingSurface(sheet.sheet_width(), sheet.sheet_height())
        report = sheet.render_full_sheet(surface, offline_context)
        assert report.failed_ids == []
        assert len(report.results) == len(catalog)
        assert surface.state_depth == 0

    def test_every_tile_draws(self, catalog, offline_context):
        """Every tile issues at least one drawing call."""
        sheet = TestSheet(catalog)
        surface = RecordingSurface(sheet.sheet_width(), sheet.sheet_height())
        for case in catalog:
            surface.reset()
            result = sheet.render_single_case(surface, offline_context, case.id)
            assert result.ok, case.id
            assert surface.calls, case.id

    def test_missing_resource_fails_only_its_tiles(self, catalog):
        """Without prepared resources only texture and image tiles fail."""
        sheet = TestSheet(catalog)
        surface = RecordingSurface(sheet.sheet_width(), sheet.sheet_height())
        report = sheet.render_full_sheet(surface, PreparedContext())
        failed = set(report.failed_ids)
        assert failed
        assert all(i.startswith(("texture_", "image_")) for i in failed)

    @pytest.mark.parametrize("case_id", ["composite_src_in", "rect_fill_dashed", "clip_regions"])
    def test_raster_single_case(self, catalog, offline_context, case_id):
        """Selected tiles render on the raster backend and change pixels."""
        sheet = TestSheet(catalog)
        surface = RasterSurface(*sheet.single_case_size((1, 1)), supersample=1)
        result = sheet.render_single_case(surface, offline_context, case_id, span=(1, 1))
        assert result.ok
        assert (surface.to_array()[:, :, :3] != 255).any()

    def test_raster_passes_are_identical(self, catalog, offline_context):
        """Two full passes on a cleared raster surface give the same pixels."""
        sheet = TestSheet(catalog)
        surface = RasterSurface(sheet.sheet_width(), sheet.sheet_height(), supersample=1)
        passes = []
        for _ in range(2):
            surface.clear(Colors.WHITE)
            report = sheet.render_full_sheet(surface, offline_context)
            assert report.failed_ids == []
            passes.append(surface.to_array())
        np.testing.assert_array_equal(passes[0], passes[1])

    def test_svg_passes_are_identical(self, catalog, offline_context):
        """Two full passes on a cleared SVG surface give the same markup."""
        sheet = TestSheet(catalog)
        surface = SvgSurface(sheet.sheet_width(), sheet.sheet_height())
        passes = []
        for _ in range(2):
            surface.clear(Colors.WHITE)
            report = sheet.render_full_sheet(surface, offline_context)
            assert report.failed_ids == []
            passes.append(surface.to_svg())
        assert passes[0] == passes[1]


class TestHelpers:
    """Tests for catalog helpers."""

    def test_texture_swatch(self):
        """The texture preparer builds an opaque RGBA swatch."""
        texture = make_texture()
        assert texture.dtype == np.uint8
        assert texture.ndim == 3 and texture.shape[2] == 4

    def test_property_lines(self):
        """The properties panel lists target and versions."""
        lines = property_lines("raster", PreparedContext(target_label="ci"))
        assert lines[0] == "target -> ci (raster)"
        assert any(line.startswith("numpy -> ") for line in lines)
