"""
Tests for the numpy reference renderer.
"""

import numpy as np
import pytest
from PIL import Image

from sheettester.backends.raster import RasterSurface, rasterize_rings
from sheettester.paint import (
    Colors,
    CompositeRule,
    GradientPaint,
    RadialGradientPaint,
    Stroke,
    TexturePaint,
)
from sheettester.geometry import Rect
from sheettester.shapes import WindingRule

WHITE = [255, 255, 255, 255]
BLACK = [0, 0, 0, 255]
RED = [255, 0, 0, 255]
BLUE = [0, 0, 255, 255]
CLEAR = [0, 0, 0, 0]


@pytest.fixture
def surface() -> RasterSurface:
    return RasterSurface(60, 40, supersample=1)


class TestRasterizeRings:
    """Tests for the scanline rasterizer."""

    def test_square_coverage(self):
        """An axis aligned square covers exactly its area."""
        ring = np.array([[2, 2], [12, 2], [12, 7], [2, 7]], dtype=np.float64)
        coverage = rasterize_rings([ring], WindingRule.NON_ZERO, (0, 0, 20, 10), 2)
        assert coverage.sum() == pytest.approx(50)
        assert coverage[4, 5] == 1.0
        assert coverage[0, 0] == 0.0

    def test_half_pixel_edge(self):
        """An edge through the middle of a pixel covers half of it."""
        ring = np.array([[0.5, 0], [4, 0], [4, 4], [0.5, 4]], dtype=np.float64)
        coverage = rasterize_rings([ring], WindingRule.NON_ZERO, (0, 0, 4, 4), 2)
        assert coverage[1, 0] == pytest.approx(0.5)

    def test_even_odd_hole(self):
        """Nested rings leave a hole with the even-odd rule."""
        outer = np.array([[0, 0], [10, 0], [10, 10], [0, 10]], dtype=np.float64)
        inner = np.array([[3, 3], [7, 3], [7, 7], [3, 7]], dtype=np.float64)
        even_odd = rasterize_rings([outer, inner], WindingRule.EVEN_ODD, (0, 0, 10, 10), 1)
        non_zero = rasterize_rings([outer, inner], WindingRule.NON_ZERO, (0, 0, 10, 10), 1)
        assert even_odd[5, 5] == 0.0
        assert non_zero[5, 5] == 1.0
        assert even_odd.sum() == pytest.approx(84)

    def test_roi_offset(self):
        """Coverage is computed relative to the region origin."""
        ring = np.array([[100, 50], [102, 50], [102, 52], [100, 52]], dtype=np.float64)
        coverage = rasterize_rings([ring], WindingRule.NON_ZERO, (100, 50, 104, 54), 1)
        np.testing.assert_array_equal(coverage[:2, :2], np.ones((2, 2)))
        assert coverage[2:, 2:].sum() == 0


class TestRasterDrawing:
    """Pixel level tests of drawing operations."""

    def test_background(self, surface):
        """A new surface is white and opaque."""
        pixels = surface.to_array()
        assert pixels.shape == (40, 60, 4)
        assert pixels.dtype == np.uint8
        assert (pixels == 255).all()

    def test_fill_rect(self, surface):
        """Filled rectangles cover whole pixels inside their bounds."""
        surface.fill_rect(10, 10, 20, 20)
        pixels = surface.to_array()
        np.testing.assert_array_equal(pixels[10, 10], BLACK)
        np.testing.assert_array_equal(pixels[29, 29], BLACK)
        np.testing.assert_array_equal(pixels[30, 30], WHITE)
        np.testing.assert_array_equal(pixels[9, 15], WHITE)

    def test_antialiased_edge(self):
        """Partially covered pixels are blended."""
        surface = RasterSurface(20, 10, supersample=4)
        surface.fill_rect(5.5, 0, 10, 10)
        value = int(surface.to_array()[5, 5, 0])
        assert 100 < value < 160

    def test_translation(self, surface):
        """Shapes are placed through the current transform."""
        surface.translate(20, 20)
        surface.fill_rect(0, 0, 5, 5)
        pixels = surface.to_array()
        np.testing.assert_array_equal(pixels[22, 22], BLACK)
        np.testing.assert_array_equal(pixels[2, 2], WHITE)

    def test_clip(self, surface):
        """Nothing is drawn outside of the clip."""
        surface.clip_rect(0, 0, 10, 10)
        surface.fill_rect(0, 0, 50, 30)
        pixels = surface.to_array()
        np.testing.assert_array_equal(pixels[5, 5], BLACK)
        np.testing.assert_array_equal(pixels[15, 15], WHITE)

    def test_empty_clip_draws_nothing(self, surface):
        """Disjoint clips intersect to an empty region."""
        surface.clip_rect(0, 0, 10, 10)
        surface.clip_rect(20, 20, 10, 10)
        surface.fill_rect(0, 0, 60, 40)
        assert (surface.to_array() == 255).all()

    def test_line(self, surface):
        """A one pixel line on a pixel row fills that row."""
        surface.set_stroke(Stroke(1.0))
        surface.draw_line(5, 10.5, 50, 10.5)
        pixels = surface.to_array()
        np.testing.assert_array_equal(pixels[10, 25], BLACK)
        np.testing.assert_array_equal(pixels[12, 25], WHITE)

    def test_clear(self, surface):
        """Clear resets every pixel and ignores the clip."""
        surface.fill_rect(0, 0, 60, 40)
        surface.clip_rect(0, 0, 1, 1)
        surface.clear(Colors.RED)
        assert (surface.to_array() == RED).all()


class TestRasterCompositing:
    """Tests for Porter-Duff compositing and alpha."""

    def test_alpha_blend(self, surface):
        """Half transparent blue over white is light blue."""
        surface.set_composite(CompositeRule.SRC_OVER, 0.5)
        surface.set_color(Colors.BLUE)
        surface.fill_rect(0, 0, 10, 10)
        r, g, b, a = surface.to_array()[5, 5]
        assert (b, a) == (255, 255)
        assert 126 <= r <= 129 and r == g

    def test_clear_rule(self, surface):
        """CLEAR makes the covered pixels transparent."""
        surface.set_composite(CompositeRule.CLEAR)
        surface.fill_rect(0, 0, 10, 10)
        np.testing.assert_array_equal(surface.to_array()[5, 5], CLEAR)

    def test_src_in_on_transparent(self):
        """SRC_IN leaves nothing where the destination is transparent."""
        surface = RasterSurface(10, 10, supersample=1, background=Colors.TRANSPARENT)
        surface.set_composite(CompositeRule.SRC_IN)
        surface.set_color(Colors.RED)
        surface.fill_rect(0, 0, 10, 10)
        assert (surface.to_array() == 0).all()

    def test_xor(self, surface):
        """XOR of two opaque shapes removes the overlap."""
        surface.clear(Colors.TRANSPARENT)
        surface.set_color(Colors.RED)
        surface.fill_rect(0, 0, 20, 20)
        surface.set_composite(CompositeRule.XOR)
        surface.set_color(Colors.BLUE)
        surface.fill_rect(10, 0, 20, 20)
        pixels = surface.to_array()
        np.testing.assert_array_equal(pixels[5, 5], RED)
        np.testing.assert_array_equal(pixels[5, 15], CLEAR)
        np.testing.assert_array_equal(pixels[5, 25], BLUE)

    def test_dst_keeps_destination(self, surface):
        """DST ignores the source."""
        surface.set_composite(CompositeRule.DST)
        surface.fill_rect(0, 0, 60, 40)
        assert (surface.to_array() == 255).all()


class TestRasterPaints:
    """Tests for gradient, texture and image paints."""

    def test_linear_gradient(self, surface):
        """A horizontal gradient brightens from left to right."""
        surface.set_paint(GradientPaint(0, 0, Colors.BLACK, 60, 0, Colors.WHITE))
        surface.fill_rect(0, 0, 60, 40)
        row = surface.to_array()[20, :, 0].astype(int)
        assert row[0] < 10
        assert row[-1] > 245
        assert (np.diff(row) >= 0).all()

    def test_radial_gradient(self, surface):
        """A radial gradient is brightest away from the center."""
        surface.set_paint(RadialGradientPaint((30, 20), 15, (0.0, 1.0),
                                              (Colors.BLACK, Colors.WHITE)))
        surface.fill_rect(0, 0, 60, 40)
        pixels = surface.to_array()
        assert pixels[20, 30, 0] < 20
        assert pixels[20, 50, 0] == 255

    def test_texture_repeats(self, surface, swatch):
        """Texture paints tile their image from the anchor."""
        surface.set_paint(TexturePaint(swatch, Rect(0, 0, 4, 2)))
        surface.fill_rect(0, 0, 8, 4)
        pixels = surface.to_array()
        np.testing.assert_array_equal(pixels[0, 0], RED)
        np.testing.assert_array_equal(pixels[0, 2], BLUE)
        np.testing.assert_array_equal(pixels[3, 4], RED)
        np.testing.assert_array_equal(pixels[3, 7], BLUE)

    def test_draw_image_scaled(self, surface, swatch):
        """Images are scaled into the destination rectangle."""
        surface.draw_image(swatch, 0, 0, 8, 4)
        pixels = surface.to_array()
        np.testing.assert_array_equal(pixels[0, 0], RED)
        np.testing.assert_array_equal(pixels[3, 7], BLUE)
        np.testing.assert_array_equal(pixels[5, 5], WHITE)

    def test_draw_string_marks_pixels(self):
        """Text leaves dark pixels around its baseline."""
        surface = RasterSurface(120, 40, supersample=1)
        surface.draw_string("Hello", 5, 25)
        pixels = surface.to_array()
        assert (pixels[5:30, :, 0] < 128).any()
        assert (pixels[32:, :, 0] == 255).all()


class TestRasterOutput:
    """Tests for to_array and export."""

    def test_export_png(self, surface, tmp_path):
        """The exported PNG holds the rendered pixels."""
        surface.set_color(Colors.RED)
        surface.fill_rect(0, 0, 10, 10)
        path = surface.export(tmp_path / "out" / "sheet.png")
        with Image.open(path) as img:
            assert img.size == (60, 40)
            np.testing.assert_array_equal(np.array(img.convert("RGBA")), surface.to_array())

    def test_deterministic(self):
        """The same calls always give the same pixels."""
        def render():
            surface = RasterSurface(50, 50, supersample=2)
            surface.rotate(0.3, 25, 25)
            surface.set_paint(GradientPaint(0, 0, Colors.RED, 50, 50, Colors.BLUE))
            surface.fill_oval(5, 5, 40, 30)
            surface.set_stroke(Stroke(3, dash=(4, 2)))
            surface.draw_oval(5, 5, 40, 30)
            return surface.to_array()

        np.testing.assert_array_equal(render(), render())
