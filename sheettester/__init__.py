"""
SheetTester - Tiled visual regression sheets for 2D drawing backends
"""

from .config import Settings, settings, get_output_path
from .exceptions import (
    SheetTesterError,
    SurfaceError,
    RegistryError,
    PreparationError,
    BackendUnavailableError,
)
from .geometry import Rect, CellAddress, AffineTransform
from .paint import (
    Color,
    Colors,
    CycleMethod,
    GradientPaint,
    LinearGradientPaint,
    RadialGradientPaint,
    TexturePaint,
    LineCap,
    LineJoin,
    Stroke,
    CompositeRule,
    Composite,
    FontSpec,
)
from .shapes import Path, Area, WindingRule, ArcClosure
from .surface import DrawingSurface, RenderState
from .compositor import CellOk, CellFailed, CellResult, TileGrid, draw_failure_placeholder
from .registry import TileCase, TileRegistry, PreparedContext, build_default_registry
from .sheet import SheetLayout, SheetReport, TestSheet
from .backends import available_backends, create_surface

__all__ = [
    # Configuration
    "Settings",
    "settings",
    "get_output_path",
    # Errors
    "SheetTesterError",
    "SurfaceError",
    "RegistryError",
    "PreparationError",
    "BackendUnavailableError",
    # Geometry
    "Rect",
    "CellAddress",
    "AffineTransform",
    # Paints, strokes, composites and fonts
    "Color",
    "Colors",
    "CycleMethod",
    "GradientPaint",
    "LinearGradientPaint",
    "RadialGradientPaint",
    "TexturePaint",
    "LineCap",
    "LineJoin",
    "Stroke",
    "CompositeRule",
    "Composite",
    "FontSpec",
    # Shapes
    "Path",
    "Area",
    "WindingRule",
    "ArcClosure",
    # Drawing surface
    "DrawingSurface",
    "RenderState",
    # Compositor
    "CellOk",
    "CellFailed",
    "CellResult",
    "TileGrid",
    "draw_failure_placeholder",
    # Registry
    "TileCase",
    "TileRegistry",
    "PreparedContext",
    "build_default_registry",
    # Sheet
    "SheetLayout",
    "SheetReport",
    "TestSheet",
    # Backends
    "available_backends",
    "create_surface",
]
