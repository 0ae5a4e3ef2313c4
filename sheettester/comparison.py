"""Image comparison utilities for backend parity.

Compares the sheet of a backend against the sheet of the reference backend,
for the whole sheet and tile by tile, and writes visual diff reports.

All comparisons are done in normalized float space (0.0-1.0) to allow
comparing u8 and float outputs fairly.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

import numpy as np
from PIL import Image

if TYPE_CHECKING:
    from .sheet import TestSheet

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.1
# Fraction of pixels allowed to exceed the tolerance (anti-aliasing differs per backend)
DEFAULT_MAX_DIFF_RATIO = 0.01


class ComparisonResult(NamedTuple):
    """Result of comparing two images."""
    match: bool
    diff_ratio: float
    diff_count: int
    total_pixels: int
    message: str
    max_diff: float = 0.0  # Maximum per-channel difference in normalized space


class CellComparison(NamedTuple):
    """Comparison of one tile of two sheets."""
    case_id: str
    result: ComparisonResult


def normalize_to_float(image: np.ndarray) -> np.ndarray:
    """Normalize image to float32 in range [0.0, 1.0].

    Backends return uint8 arrays; float input (already 0.0-1.0) is passed
    through.

    Args:
        image: Input image array

    Returns:
        float32 array with values in [0.0, 1.0]
    """
    if image.dtype == np.uint8:
        return image.astype(np.float32) / 255.0
    elif image.dtype in (np.float32, np.float64):
        return image.astype(np.float32)
    else:
        raise ValueError(f"Unsupported dtype for normalization: {image.dtype}")



def load_image(path: str | Path) -> np.ndarray:
    """Load an image file as an RGBA uint8 array."""
    with Image.open(path) as img:
        return np.array(img.convert("RGBA"), dtype=np.uint8)


def compute_pixel_diff(
    img1: np.ndarray,
    img2: np.ndarray,
    tolerance: float = DEFAULT_TOLERANCE,
) -> tuple[float, np.ndarray, float]:
    """Compute pixel difference between two images in normalized float space.

    Args:
        img1: First image (uint8 or float)
        img2: Second image (uint8 or float)
        tolerance: Maximum allowed per-channel difference in [0.0, 1.0] space

    Returns:
        Tuple of (diff_ratio, diff_mask, max_diff)
        - diff_ratio: Fraction of pixels that differ (0.0 to 1.0)
        - diff_mask: Boolean array where True = pixel differs
        - max_diff: Maximum per-channel difference found (in normalized space)
    """
    if img1.shape != img2.shape:
        raise ValueError(
            f"Image shapes don't match: {img1.shape} vs {img2.shape}"
        )

    diff = np.abs(normalize_to_float(img1) - normalize_to_float(img2))
    if diff.ndim == 2:
        diff = diff[:, :, np.newaxis]

    max_diff = float(diff.max()) if diff.size else 0.0

    # A pixel is "different" if ANY channel differs by more than tolerance
    diff_mask = np.any(diff > tolerance, axis=2)

    total_pixels = diff_mask.size
    diff_ratio = float(np.sum(diff_mask)) / total_pixels if total_pixels else 0.0

    return diff_ratio, diff_mask, max_diff


def compare_images(
    reference: np.ndarray,
    candidate: np.ndarray,
    tolerance: float = DEFAULT_TOLERANCE,
    max_diff_ratio: float = DEFAULT_MAX_DIFF_RATIO,
) -> ComparisonResult:
    """Compare a candidate image against a reference image.

    Args:
        reference: Reference image
        candidate: Image under test
        tolerance: Maximum allowed per-channel difference in [0.0, 1.0] space
        max_diff_ratio: Fraction of differing pixels still counted as a match

    Returns:
        ComparisonResult with match status and details
    """
    if reference.shape != candidate.shape:
        return ComparisonResult(
            match=False,
            diff_ratio=1.0,
            diff_count=0,
            total_pixels=0,
            message=f"Shape mismatch: reference {reference.shape} vs candidate {candidate.shape}"
        )

    diff_ratio, diff_mask, max_diff = compute_pixel_diff(reference, candidate, tolerance)
    total_pixels = diff_mask.size
    diff_count = int(np.sum(diff_mask))

    match = diff_ratio <= max_diff_ratio

    if match:
        message = f"PASS: {diff_ratio*100:.4f}% pixels differ, max_diff={max_diff:.6f}"
    else:
        message = (f"FAIL: {diff_ratio*100:.4f}% pixels differ (max_diff={max_diff:.6f}) "
                   f"exceeds {max_diff_ratio*100:.2f}%")

    return ComparisonResult(
        match=match,
        diff_ratio=diff_ratio,
        diff_count=diff_count,
        total_pixels=total_pixels,
        message=message,
        max_diff=max_diff
    )


def compare_cells(
    reference: np.ndarray,
    candidate: np.ndarray,
    sheet: TestSheet,
    tolerance: float = DEFAULT_TOLERANCE,
    max_diff_ratio: float = DEFAULT_MAX_DIFF_RATIO,
) -> list[CellComparison]:
    """Compare two full sheets tile by tile.

    Each registered case is compared within its own cell (including its
    span), so divergent features can be named.

    Args:
        reference: Full sheet of the reference backend
        candidate: Full sheet of the backend under test
        sheet: Sheet both images were rendered from
        tolerance: Maximum allowed per-channel difference in [0.0, 1.0] space
        max_diff_ratio: Fraction of differing pixels still counted as a match

    Returns:
        One CellComparison per case in registry order
    """
    if reference.shape != candidate.shape:
        raise ValueError(
            f"Image shapes don't match: {reference.shape} vs {candidate.shape}"
        )
    layout = sheet.layout
    height, width = reference.shape[:2]
    comparisons = []
    for case in sheet.registry.cases():
        x0 = case.column * layout.tile_width
        y0 = case.row * layout.tile_height
        x1 = min(width, x0 + case.span[0] * layout.tile_width)
        y1 = min(height, y0 + case.span[1] * layout.tile_height)
        if x0 < 0 or y0 < 0 or x1 <= x0 or y1 <= y0:
            continue
        result = compare_images(reference[y0:y1, x0:x1], candidate[y0:y1, x0:x1],
                                tolerance, max_diff_ratio)
        comparisons.append(CellComparison(case.id, result))
    return comparisons


def _checkerboard(h: int, w: int, checker_size: int = 8) -> np.ndarray:
    ys, xs = np.mgrid[0:h, 0:w]
    is_light = ((ys // checker_size) + (xs // checker_size)) % 2 == 0
    checker = np.zeros((h, w, 4), dtype=np.uint8)
    checker[:, :, :3] = np.where(is_light, 200, 150)[:, :, np.newaxis]
    checker[:, :, 3] = 255
    return checker


def _to_rgba_u8(image: np.ndarray) -> np.ndarray:
    if image.dtype != np.uint8:
        image = (normalize_to_float(image) * 255).astype(np.uint8)
    if image.ndim == 2:
        image = np.stack([image] * 3, axis=-1)
    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        image = np.concatenate([image, alpha], axis=2)
    return image


def save_comparison_image(
    reference: np.ndarray,
    candidate: np.ndarray,
    path: str | Path,
    tolerance: float = DEFAULT_TOLERANCE,
) -> Path | None:
    """Save a visual comparison image showing reference, candidate and diff.

    Args:
        reference: Reference image
        candidate: Image under test
        path: Output PNG path
        tolerance: Minimum normalized difference to highlight

    Returns:
        Path to saved comparison image, or None if the shapes differ
    """
    if reference.shape != candidate.shape:
        logger.warning(f"Not writing {path}: shapes {reference.shape} and {candidate.shape} differ")
        return None

    h, w = reference.shape[:2]

    _, diff_mask, _ = compute_pixel_diff(reference, candidate, tolerance)

    reference = _to_rgba_u8(reference)
    candidate = _to_rgba_u8(candidate)

    # Create side-by-side: [Reference | Candidate | Diff overlay on checkerboard]
    gap = 10
    label_h = 20
    combined_w = w * 3 + gap * 2
    full_img = np.zeros((h + label_h, combined_w, 4), dtype=np.uint8)
    full_img[:, :, :3] = 64  # Dark gray header and gaps
    full_img[:, :, 3] = 255

    full_img[label_h:, 0:w] = reference
    full_img[label_h:, w+gap:2*w+gap] = candidate

    # Red where pixels differ, checkerboard where they match
    diff_view = _checkerboard(h, w)
    diff_view[diff_mask] = [255, 0, 0, 255]
    full_img[label_h:, 2*w+2*gap:] = diff_view

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(full_img).save(path, format='PNG')
    return path


def images_match(
    img1: np.ndarray,
    img2: np.ndarray,
    tolerance: float = DEFAULT_TOLERANCE,
    max_diff_ratio: float = DEFAULT_MAX_DIFF_RATIO,
) -> bool:
    """Check if two images match within tolerance.

    Args:
        img1: First image (uint8 or float)
        img2: Second image (uint8 or float)
        tolerance: Maximum allowed per-channel difference in [0.0, 1.0] space
        max_diff_ratio: Fraction of differing pixels still counted as a match

    Returns:
        True if images match within tolerance
    """
    if img1.shape != img2.shape:
        return False

    diff_ratio, _, _ = compute_pixel_diff(img1, img2, tolerance)
    return diff_ratio <= max_diff_ratio


__all__ = [
    'DEFAULT_TOLERANCE',
    'DEFAULT_MAX_DIFF_RATIO',
    'ComparisonResult',
    'CellComparison',
    'normalize_to_float',
    'load_image',
    'compute_pixel_diff',
    'compare_images',
    'compare_cells',
    'save_comparison_image',
    'images_match',
]
