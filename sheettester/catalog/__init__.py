"""Built-in tile catalog.

Each module registers the tiles of one feature group; :func:`register_all`
adds all of them to a registry, laid out on the 11 x 34 grid of the test
sheet:

========  ==========================================================
Rows      Content
========  ==========================================================
0         Header band; run properties on the right of rows 1-3
1-2       Line caps, dashes and stroke widths
3-16      Shapes in six fill and stroke variants each
17-18     Porter-Duff rules at alpha 1.0 and 0.6
19-22     Linear, radial and texture paints
23-27     Translation, rotation, shear, fill_arc and draw_arc
28-30     Text, string metrics and clipping
31-33     Images
========  ==========================================================
"""
from __future__ import annotations

from ..registry import TileRegistry
from . import clipping, compositing, gradients, header, images, lines, shapes, text, transforms

CATALOG_MODULES = (header, lines, shapes, compositing, gradients, transforms, text, clipping, images)


def register_all(registry: TileRegistry) -> TileRegistry:
    """Register the complete catalog and its preparers."""
    for module in CATALOG_MODULES:
        module.register(registry)
    return registry


__all__ = ["CATALOG_MODULES", "register_all"]
