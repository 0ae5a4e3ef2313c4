"""Rendering backends.

Each backend is created through a factory registered under its name. Imports
happen inside the factories, so a missing optional library (pycairo) only
disables the backends that need it.

Example:
    >>> surface = create_surface("raster", 1100, 2145)
"""

from __future__ import annotations

from typing import Callable

from ..config import Settings, settings as default_settings
from ..exceptions import BackendUnavailableError
from ..surface import DrawingSurface

SurfaceFactory = Callable[[int, int, Settings], DrawingSurface]

BACKENDS: dict[str, SurfaceFactory] = {}


def register_backend(name: str):
    """Decorator to register a surface factory.

    Example:
        @register_backend("raster")
        def create_raster(width, height, settings):
            ...
    """
    def decorator(func: SurfaceFactory) -> SurfaceFactory:
        BACKENDS[name] = func
        return func
    return decorator


@register_backend("raster")
def _create_raster(width: int, height: int, settings: Settings) -> DrawingSurface:
    from .raster import RasterSurface
    return RasterSurface(width, height, supersample=settings.SUPERSAMPLE)


@register_backend("svg")
def _create_svg(width: int, height: int, settings: Settings) -> DrawingSurface:
    from .svg import SvgSurface
    return SvgSurface(width, height)


def _import_cairo_backend():
    try:
        from . import cairo_backend
    except ImportError as e:
        raise BackendUnavailableError(
            f"Cairo backends need pycairo (pip install sheettester[cairo]): {e}"
        ) from e
    return cairo_backend


@register_backend("cairo")
def _create_cairo(width: int, height: int, settings: Settings) -> DrawingSurface:
    return _import_cairo_backend().CairoSurface(width, height)


@register_backend("cairo-pdf")
def _create_cairo_pdf(width: int, height: int, settings: Settings) -> DrawingSurface:
    return _import_cairo_backend().CairoSurface(width, height, vector=True)


def available_backends() -> list[str]:
    """Names of all registered backends."""
    return list(BACKENDS)


def create_surface(name: str, width: int, height: int,
                   settings: Settings | None = None) -> DrawingSurface:
    """Create a fresh surface of the named backend.

    Args:
        name: Backend name (see :func:`available_backends`)
        width: Surface width in pixels
        height: Surface height in pixels
        settings: Settings, defaults to the global settings

    Returns:
        A new surface with its own render state

    Raises:
        BackendUnavailableError: If the backend is unknown or cannot be loaded
    """
    factory = BACKENDS.get(name)
    if factory is None:
        raise BackendUnavailableError(
            f"Unknown backend '{name}', available: {', '.join(BACKENDS)}")
    return factory(width, height, settings or default_settings)


__all__ = ["BACKENDS", "register_backend", "available_backends", "create_surface"]
