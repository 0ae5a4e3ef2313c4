"""
Pytest fixtures for SheetTester tests
"""

import numpy as np
import pytest

from sheettester.backends.recording import RecordingSurface
from sheettester.config import Settings
from sheettester.geometry import Rect
from sheettester.paint import Colors
from sheettester.registry import TileCase, TileRegistry


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings writing into a temporary directory with a single pass."""
    return Settings(OUTPUT_DIR=tmp_path / "sheets", REPEATS=1, SUPERSAMPLE=1)


@pytest.fixture
def recording_surface() -> RecordingSurface:
    """A 300x130 recording surface (3 x 2 tiles of 100 x 65)."""
    return RecordingSurface(300, 130)


def red_square(surface, bounds: Rect, context) -> None:
    """Fills the local rectangle (10, 10, 40, 40) red."""
    surface.set_color(Colors.RED)
    surface.fill_rect(10, 10, 40, 40)


def broken_tile(surface, bounds: Rect, context) -> None:
    """Changes every attribute, then raises."""
    surface.set_color(Colors.BLUE)
    surface.translate(17, 23)
    surface.clip_rect(0, 0, 5, 5)
    surface.save()
    raise RuntimeError("broken on purpose")


@pytest.fixture
def three_case_registry() -> TileRegistry:
    """Red square at (0, 0), failing case at (1, 0), red square at (2, 0)."""
    registry = TileRegistry()
    registry.add(TileCase("left", 0, 0, red_square))
    registry.add(TileCase("middle", 1, 0, broken_tile))
    registry.add(TileCase("right", 2, 0, red_square))
    return registry


@pytest.fixture
def swatch() -> np.ndarray:
    """A 4x2 RGBA image: left half red, right half blue."""
    image = np.zeros((2, 4, 4), dtype=np.uint8)
    image[:, :2] = [255, 0, 0, 255]
    image[:, 2:] = [0, 0, 255, 255]
    return image
