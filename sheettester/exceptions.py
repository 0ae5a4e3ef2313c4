"""Exceptions raised by the sheet tester.

Per-cell drawing failures are never surfaced through these classes: the
compositor catches them and turns them into failed cell results. Everything
listed here aborts the operation that raised it.
"""


class SheetTesterError(Exception):
    """Base exception for all sheet tester errors."""
    pass


class SurfaceError(SheetTesterError):
    """Invalid use of a drawing surface (e.g. restore without save)."""
    pass


class RegistryError(SheetTesterError):
    """Invalid tile registration or lookup of an unknown tile."""
    pass


class PreparationError(SheetTesterError):
    """A shared resource could not be built before the first pass."""

    def __init__(self, resource: str, message: str):
        self.resource = resource
        super().__init__(f"Preparing '{resource}' failed: {message}")


class BackendUnavailableError(SheetTesterError):
    """The requested backend is unknown or its library is not installed."""
    pass
