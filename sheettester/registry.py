# SheetTester - Tile case registry
"""
Registry of tile test cases.

A tile case is a plain record: an id, the grid cell it occupies, how many
tiles it spans and the procedure drawing it. Cases are registered in a
:class:`TileRegistry`, either directly or with the :meth:`TileRegistry.tile`
decorator:

    registry = TileRegistry()

    @registry.tile("rect_fill", column=0, row=3)
    def rect_fill(surface, bounds, context):
        surface.fill_rect(5, 5, 90, 55)

Shared resources (decoded images, textures) are built in a preparation phase
that runs once per backend run, before any cell is drawn. Preparers are
registered with :meth:`TileRegistry.preparer` and their results are handed to
every procedure in an immutable :class:`PreparedContext`.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping

from .exceptions import PreparationError, RegistryError
from .geometry import CellAddress, Rect

if TYPE_CHECKING:
    from .config import Settings
    from .surface import DrawingSurface

logger = logging.getLogger(__name__)

# Procedure drawing one tile: (surface, local bounds, prepared context)
TileProcedure = Callable[["DrawingSurface", Rect, "PreparedContext"], None]
# Builds one shared resource from the settings
Preparer = Callable[["Settings"], Any]


@dataclass(frozen=True)
class TileCase:
    """A single tile test case."""
    id: str
    column: int
    row: int
    procedure: TileProcedure
    span: tuple[int, int] = (1, 1)
    description: str = ""

    def __post_init__(self):
        if self.span[0] < 1 or self.span[1] < 1:
            raise RegistryError(f"Tile '{self.id}' has invalid span {self.span}")

    @property
    def address(self) -> CellAddress:
        return CellAddress(self.column, self.row)

    def cells(self) -> set[tuple[int, int]]:
        """All grid cells covered by the case."""
        return {(self.column + dx, self.row + dy)
                for dx in range(self.span[0]) for dy in range(self.span[1])}


@dataclass(frozen=True)
class PreparedContext:
    """Immutable shared data handed to every tile procedure.

    Attributes:
        resources: Read-only mapping of preparer name to resource
        target_label: Label identifying the run target (shown on the sheet)
        timestamp: Creation time, captured once per preparation
    """
    resources: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    target_label: str = ""
    timestamp: datetime.datetime = field(default_factory=datetime.datetime.now)

    def __getitem__(self, name: str) -> Any:
        try:
            return self.resources[name]
        except KeyError:
            raise KeyError(f"Resource '{name}' was not prepared") from None

    def get(self, name: str, default: Any = None) -> Any:
        return self.resources.get(name, default)


class TileRegistry:
    """Ordered collection of tile cases and resource preparers."""

    def __init__(self):
        self._cases: dict[str, TileCase] = {}
        self._addresses: dict[tuple[int, int], str] = {}
        self._preparers: dict[str, Preparer] = {}

    def add(self, case: TileCase) -> TileCase:
        """Register a case.

        Raises:
            RegistryError: If the id or the anchor cell is already taken
        """
        if case.id in self._cases:
            raise RegistryError(f"Duplicate tile id '{case.id}'")
        key = (case.column, case.row)
        if key in self._addresses:
            raise RegistryError(
                f"Tile '{case.id}' placed at {key}, already used by '{self._addresses[key]}'")
        self._cases[case.id] = case
        self._addresses[key] = case.id
        return case

    def tile(self, id: str, column: int, row: int, span: tuple[int, int] = (1, 1),
             description: str = ""):
        """Decorator to register a tile procedure.

        Example:
            @registry.tile("header", column=0, row=0, span=(11, 1))
            def header(surface, bounds, context):
                ...
        """
        def decorator(func: TileProcedure) -> TileProcedure:
            self.add(TileCase(id=id, column=column, row=row, procedure=func,
                              span=span, description=description or (func.__doc__ or "").strip()))
            return func
        return decorator

    def get(self, id: str) -> TileCase:
        """Get a case by id.

        Raises:
            RegistryError: If no case with this id is registered
        """
        case = self._cases.get(id)
        if case is None:
            raise RegistryError(f"Unknown tile '{id}'")
        return case

    def ids(self) -> list[str]:
        return [case.id for case in self.cases()]

    def cases(self) -> list[TileCase]:
        """All cases in row-major order (row, then column)."""
        return sorted(self._cases.values(), key=lambda c: (c.row, c.column))

    def __len__(self) -> int:
        return len(self._cases)

    def __contains__(self, id: object) -> bool:
        return id in self._cases

    def __iter__(self) -> Iterator[TileCase]:
        return iter(self.cases())

    def overlaps(self) -> list[tuple[str, str]]:
        """Pairs of cases whose spans cover a common cell.

        Overlapping spans are allowed; this is only a diagnostic.
        """
        owners: dict[tuple[int, int], str] = {}
        found: list[tuple[str, str]] = []
        for case in self.cases():
            for cell in sorted(case.cells()):
                other = owners.get(cell)
                if other is not None and (other, case.id) not in found:
                    found.append((other, case.id))
                owners.setdefault(cell, case.id)
        return found

    # -- preparation -------------------------------------------------------

    def preparer(self, name: str):
        """Decorator to register a resource preparer.

        Example:
            @registry.preparer("texture")
            def texture(settings) -> np.ndarray:
                ...
        """
        def decorator(func: Preparer) -> Preparer:
            if name in self._preparers:
                raise RegistryError(f"Duplicate preparer '{name}'")
            self._preparers[name] = func
            return func
        return decorator

    @property
    def preparer_names(self) -> list[str]:
        return list(self._preparers)

    def prepare(self, settings: Settings) -> PreparedContext:
        """Build a fresh context with all shared resources.

        Calling this repeatedly builds equivalent contexts; no state is
        carried over between calls.

        Raises:
            PreparationError: If a preparer fails
        """
        resources: dict[str, Any] = {}
        for name, func in self._preparers.items():
            try:
                resources[name] = func(settings)
            except Exception as e:
                raise PreparationError(name, f"{type(e).__name__}: {e}") from e
        logger.debug(f"Prepared {len(resources)} resources: {', '.join(resources)}")
        return PreparedContext(
            resources=MappingProxyType(resources),
            target_label=settings.TARGET_LABEL,
            timestamp=datetime.datetime.now(),
        )


def build_default_registry() -> TileRegistry:
    """Create a registry holding the complete built-in tile catalog."""
    from .catalog import register_all

    registry = TileRegistry()
    register_all(registry)
    return registry


__all__ = [
    "TileProcedure",
    "Preparer",
    "TileCase",
    "PreparedContext",
    "TileRegistry",
    "build_default_registry",
]
