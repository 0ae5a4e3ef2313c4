"""
Tests for sheet comparison utilities.
"""

import numpy as np
import pytest
from PIL import Image

from sheettester.comparison import (
    compare_cells,
    compare_images,
    compute_pixel_diff,
    images_match,
    load_image,
    normalize_to_float,
    save_comparison_image,
)
from sheettester.sheet import TestSheet


def white(h=65, w=300):
    return np.full((h, w, 4), 255, dtype=np.uint8)


class TestNormalize:
    """Tests for normalize_to_float."""

    def test_uint8(self):
        """uint8 values are divided by 255."""
        result = normalize_to_float(np.array([0, 255], dtype=np.uint8))
        assert result.dtype == np.float32
        np.testing.assert_allclose(result, [0.0, 1.0])

    def test_float_passthrough(self):
        """Float images are already normalized."""
        result = normalize_to_float(np.array([0.25, 1.0], dtype=np.float64))
        assert result.dtype == np.float32
        np.testing.assert_allclose(result, [0.25, 1.0])

    @pytest.mark.parametrize("dtype", [np.uint16, np.int32])
    def test_unsupported_dtype(self, dtype):
        """Only uint8 and float images are accepted."""
        with pytest.raises(ValueError):
            normalize_to_float(np.array([1], dtype=dtype))


class TestPixelDiff:
    """Tests for compute_pixel_diff and compare_images."""

    def test_identical(self):
        """Identical images match without differences."""
        result = compare_images(white(), white())
        assert result.match
        assert result.diff_count == 0
        assert result.message.startswith("PASS:")

    def test_small_difference_within_tolerance(self):
        """Differences below the tolerance are ignored."""
        candidate = white()
        candidate[..., 0] = 250
        diff_ratio, mask, max_diff = compute_pixel_diff(white(), candidate, 0.1)
        assert diff_ratio == 0.0
        assert not mask.any()
        assert max_diff == pytest.approx(5 / 255)

    def test_large_difference(self):
        """A differing block is counted pixel by pixel."""
        candidate = white(10, 10)
        candidate[:5, :, :3] = 0
        result = compare_images(white(10, 10), candidate)
        assert not result.match
        assert result.diff_count == 50
        assert result.total_pixels == 100
        assert result.diff_ratio == pytest.approx(0.5)
        assert result.message.startswith("FAIL:")

    def test_max_diff_ratio(self):
        """A few differing pixels are accepted up to max_diff_ratio."""
        candidate = white(10, 10)
        candidate[0, 0, :3] = 0
        assert not compare_images(white(10, 10), candidate, max_diff_ratio=0.0).match
        assert compare_images(white(10, 10), candidate, max_diff_ratio=0.05).match
        assert images_match(white(10, 10), candidate, max_diff_ratio=0.05)

    def test_shape_mismatch(self):
        """Different sizes never match."""
        result = compare_images(white(10, 10), white(10, 20))
        assert not result.match
        assert result.diff_ratio == 1.0
        assert "Shape mismatch" in result.message
        assert not images_match(white(10, 10), white(10, 20))
        with pytest.raises(ValueError):
            compute_pixel_diff(white(10, 10), white(10, 20))


class TestCompareCells:
    """Tests for per tile comparison."""

    def test_names_differing_case(self, three_case_registry):
        """Only the tile with differences fails."""
        candidate = white()
        candidate[10:50, 120:180, :3] = 0
        cells = compare_cells(white(), candidate, TestSheet(three_case_registry))
        assert [c.case_id for c in cells] == ["left", "middle", "right"]
        assert [c.result.match for c in cells] == [True, False, True]

    def test_shape_mismatch(self, three_case_registry):
        """Sheets of different sizes cannot be compared tile by tile."""
        with pytest.raises(ValueError):
            compare_cells(white(), white(65, 200), TestSheet(three_case_registry))


class TestComparisonImage:
    """Tests for save_comparison_image."""

    def test_layout(self, tmp_path):
        """Reference, candidate and diff are placed side by side under a header."""
        candidate = white(30, 40)
        candidate[:10, :10, :3] = 0
        path = save_comparison_image(white(30, 40), candidate, tmp_path / "diff" / "cmp.png")
        assert path.exists()
        pixels = load_image(path)
        assert pixels.shape == (50, 140, 4)
        np.testing.assert_array_equal(pixels[0, 0], [64, 64, 64, 255])
        diff_x = 2 * 40 + 2 * 10
        np.testing.assert_array_equal(pixels[20, diff_x], [255, 0, 0, 255])
        assert tuple(pixels[45, diff_x + 35, :3]) in ((200, 200, 200), (150, 150, 150))

    def test_shape_mismatch_writes_nothing(self, tmp_path, caplog):
        """Nothing is written when the shapes differ."""
        path = tmp_path / "cmp.png"
        assert save_comparison_image(white(10, 10), white(20, 10), path) is None
        assert not path.exists()
        assert any(r.levelname == "WARNING" for r in caplog.records)

    def test_load_image_converts_to_rgba(self, tmp_path):
        """Grayscale files are loaded as RGBA."""
        path = tmp_path / "gray.png"
        Image.new("L", (4, 3), 128).save(path)
        pixels = load_image(path)
        assert pixels.shape == (3, 4, 4)
        np.testing.assert_array_equal(pixels[0, 0], [128, 128, 128, 255])
