# SheetTester - Backend runner
"""
Backend runner.

Renders the sheet on one or more backends. Each backend gets its own surface;
resources are prepared once per backend run and shared read-only by all
passes. The output file is written after the first pass, the remaining passes
only contribute timings.

Usage:
    sheettester raster svg --repeats 3
    sheettester raster --single composite_src_over
"""
from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .backends import available_backends, create_surface
from .config import Settings, get_output_path, settings as default_settings
from .paint import Colors
from .registry import TileRegistry, build_default_registry
from .sheet import SheetLayout, SheetReport, TestSheet

logger = logging.getLogger(__name__)

# Output file extension per backend
OUTPUT_EXTENSIONS = {
    "raster": "png",
    "svg": "svg",
    "cairo": "png",
    "cairo-pdf": "pdf",
}


@dataclass
class BackendRun:
    """Outcome of rendering the sheet on one backend."""
    backend: str
    output_path: Path | None = None
    timings: list[float] = field(default_factory=list)
    report: SheetReport = field(default_factory=SheetReport)
    image: np.ndarray | None = None  # RGBA content after the first pass

    @property
    def best_time(self) -> float:
        return min(self.timings) if self.timings else 0.0

    @property
    def mean_time(self) -> float:
        return sum(self.timings) / len(self.timings) if self.timings else 0.0


def run_backend(
    backend: str,
    settings: Settings = default_settings,
    registry: TileRegistry | None = None,
    single_case: str | None = None,
) -> BackendRun:
    """Render the sheet ``settings.REPEATS`` times on a backend.

    Args:
        backend: Backend name
        settings: Settings providing layout, repeats and output directory
        registry: Cases to render, defaults to the built-in catalog
        single_case: Render only this case id at the top left, enlarged

    Returns:
        BackendRun with output path, per-pass timings and the first report

    Raises:
        BackendUnavailableError: If the backend cannot be created
        PreparationError: If a shared resource cannot be built
        RegistryError: If ``single_case`` is not registered
    """
    registry = registry if registry is not None else build_default_registry()
    sheet = TestSheet(registry, SheetLayout.from_settings(settings))
    context = registry.prepare(settings)

    if single_case is not None:
        span = (settings.SINGLE_SPAN_H, settings.SINGLE_SPAN_V)
        registry.get(single_case)
        width, height = sheet.single_case_size(span)
    else:
        width, height = sheet.sheet_width(), sheet.sheet_height()

    surface = create_surface(backend, width, height, settings)
    run = BackendRun(backend)

    for index in range(max(1, settings.REPEATS)):
        surface.clear(Colors.WHITE)
        start = time.perf_counter()
        if single_case is not None:
            result = sheet.render_single_case(surface, context, single_case, span)
            report = SheetReport([result], time.perf_counter() - start)
        else:
            report = sheet.render_full_sheet(surface, context)
        run.timings.append(time.perf_counter() - start)

        if index == 0:
            run.report = report
            suffix = f"_{single_case}" if single_case else ""
            extension = OUTPUT_EXTENSIONS.get(backend, "png")
            run.output_path = surface.export(get_output_path(backend, extension, settings, suffix))
            run.image = surface.to_array()

    logger.info(f"{backend}: {len(run.timings)} passes, best {run.best_time * 1000:.1f} ms, "
                f"mean {run.mean_time * 1000:.1f} ms, {run.report.summary()}")
    return run


def run_backends(names: list[str], settings: Settings = default_settings,
                 single_case: str | None = None) -> dict[str, BackendRun]:
    """Run several backends one after another, each on its own surface."""
    registry = build_default_registry()
    return {name: run_backend(name, settings, registry, single_case) for name in names}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render the test sheet on drawing backends")
    parser.add_argument("backends", nargs="*", default=["raster"],
                        help=f"Backends to run ({', '.join(available_backends())})")
    parser.add_argument("--single", metavar="CASE_ID", help="Render only one case, enlarged")
    parser.add_argument("--repeats", type=int, help="Render passes per backend")
    parser.add_argument("--output-dir", type=Path, help="Directory for the output files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    overrides = {}
    if args.repeats is not None:
        overrides["REPEATS"] = args.repeats
    if args.output_dir is not None:
        overrides["OUTPUT_DIR"] = args.output_dir
    settings = Settings(**overrides)

    runs = run_backends(args.backends, settings, args.single)
    failed = False
    for run in runs.values():
        print(f"{run.backend}: {run.output_path} ({run.report.summary()})")
        failed = failed or not run.report.all_ok
    return 1 if failed else 0


__all__ = ["OUTPUT_EXTENSIONS", "BackendRun", "run_backend", "run_backends", "main"]
