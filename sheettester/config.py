"""Sheet tester configuration.

All values can be overridden through environment variables prefixed with
``SHEETTESTER_``, e.g. ``SHEETTESTER_REPEATS=1``.
"""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Sheet tester settings."""

    # Paths
    BASE_DIR: Path = Path(__file__).parent.parent
    OUTPUT_DIR: Path = BASE_DIR / "tmp" / "sheets"

    # Sheet geometry
    TILE_WIDTH: int = 100
    TILE_HEIGHT: int = 65
    TILE_COUNT_H: int = 11
    TILE_COUNT_V: int = 34
    MARGIN: int = 5  # Inner margin of a tile's local bounds

    # Single case debug mode
    SINGLE_SPAN_H: int = 4
    SINGLE_SPAN_V: int = 4

    # Runs
    REPEATS: int = 10  # Render passes per backend
    SUPERSAMPLE: int = 2  # Raster backend samples per pixel edge
    TARGET_LABEL: str = "sheettester"

    # Comparison
    REFERENCE_BACKEND: str = "raster"
    DIFF_TOLERANCE: float = 0.1  # Per-channel tolerance in [0.0, 1.0]

    model_config = {"env_prefix": "SHEETTESTER_"}


settings = Settings()


def get_output_path(backend: str, extension: str, settings: Settings = settings,
                    suffix: str = "") -> Path:
    """Get the output file path of a backend, creating the directory.

    Naming convention: {OUTPUT_DIR}/sheet_{backend}{suffix}.{extension}

    Args:
        backend: Backend name (e.g. "raster", "svg")
        extension: File extension without the dot
        settings: Settings providing the output directory
        suffix: Optional name suffix (e.g. "_diff")

    Returns:
        Path for the output file
    """
    out_dir = Path(settings.OUTPUT_DIR)
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir / f"sheet_{backend}{suffix}.{extension}"


__all__ = ["Settings", "settings", "get_output_path"]
