# SheetTester - Image tiles
"""
Image tiles (rows 31-33).

Three multi-tile cells draw the same photograph: plain, clipped to an
ellipse, and rotated by 45 degrees around the cell center while clipped to
the cell. The photograph is the scikit-image astronaut sample, decoded once
per run by the ``photo`` preparer and cropped to the cell aspect ratio.
"""

from __future__ import annotations

import math

import numpy as np
from PIL import Image

from ..geometry import Rect
from ..registry import TileCase, TileRegistry
from ..shapes import ellipse
from .common import MARGIN

IMAGE_ROW = 31
IMAGE_SPAN = (3, 3)


def load_photo(settings) -> np.ndarray:
    """Astronaut photograph as RGBA uint8, sized to fit an image cell.

    Args:
        settings: Settings providing the tile size

    Returns:
        RGBA array of shape (height, width, 4)
    """
    from skimage import data

    width = int(IMAGE_SPAN[0] * settings.TILE_WIDTH - 2 * MARGIN)
    height = int(IMAGE_SPAN[1] * settings.TILE_HEIGHT - 2 * MARGIN)

    array = data.astronaut()
    if array.dtype != np.uint8:
        array = (array * 255).astype(np.uint8)

    # Center crop to the target aspect ratio before scaling
    src_h, src_w = array.shape[:2]
    target = width / height
    if src_w / src_h > target:
        crop_w = int(round(src_h * target))
        x0 = (src_w - crop_w) // 2
        array = array[:, x0:x0 + crop_w]
    else:
        crop_h = int(round(src_w / target))
        y0 = (src_h - crop_h) // 2
        array = array[y0:y0 + crop_h]

    image = Image.fromarray(np.ascontiguousarray(array)).convert("RGBA")
    image = image.resize((width, height), Image.Resampling.LANCZOS)
    return np.array(image, dtype=np.uint8)


def _draw_photo(surface, bounds: Rect, context) -> None:
    photo = context["photo"]
    box = bounds.inset(MARGIN)
    surface.draw_image(photo, box.x, box.y, box.width, box.height)


def image_plain(surface, bounds: Rect, context) -> None:
    """Photograph scaled into the cell."""
    _draw_photo(surface, bounds, context)


def image_ellipse_clip(surface, bounds: Rect, context) -> None:
    """Photograph clipped to an inner ellipse."""
    inset = 3 * MARGIN
    surface.clip(ellipse(inset, inset, bounds.width - 2 * inset, bounds.height - 2 * inset))
    _draw_photo(surface, bounds, context)


def image_rotated(surface, bounds: Rect, context) -> None:
    """Photograph rotated around the cell center, clipped to the cell."""
    surface.clip(bounds)
    surface.rotate(math.pi / 4, bounds.center_x, bounds.center_y)
    _draw_photo(surface, bounds, context)


def register(registry: TileRegistry) -> None:
    registry.preparer("photo")(load_photo)
    registry.add(TileCase("image_plain", 0, IMAGE_ROW, image_plain, IMAGE_SPAN))
    registry.add(TileCase("image_ellipse_clip", 4, IMAGE_ROW, image_ellipse_clip, IMAGE_SPAN))
    registry.add(TileCase("image_rotated", 8, IMAGE_ROW, image_rotated, IMAGE_SPAN))
