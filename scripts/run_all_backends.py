#!/usr/bin/env python3
"""
Render the test sheet on every backend and compare them against the reference.

This script:
1. Renders the sheet on each selected backend (REPEATS passes each)
2. Saves one output file per backend
3. Compares every backend with the reference backend, tile by tile
4. Writes [reference | backend | diff] comparison images

Usage:
    python scripts/run_all_backends.py [backend ...] [--single CASE_ID]
        [--repeats N] [--output-dir DIR] [--no-compare]

Output directory: tmp/sheets/
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sheettester.backends import available_backends  # noqa: E402
from sheettester.comparison import compare_cells, compare_images, save_comparison_image  # noqa: E402
from sheettester.config import Settings, get_output_path  # noqa: E402
from sheettester.exceptions import BackendUnavailableError  # noqa: E402
from sheettester.registry import build_default_registry  # noqa: E402
from sheettester.runner import run_backend  # noqa: E402
from sheettester.sheet import SheetLayout, TestSheet  # noqa: E402


def render_all(backends, settings, registry, single_case):
    """Render the sheet on all backends, skipping unavailable ones."""
    print("\n" + "=" * 60)
    print("RENDERING")
    print("=" * 60)

    runs = {}
    for index, name in enumerate(backends, 1):
        print(f"\n[{index}/{len(backends)}] {name}...")
        try:
            run = run_backend(name, settings, registry, single_case)
        except BackendUnavailableError as e:
            print(f"      SKIPPED: {e}")
            continue
        runs[name] = run
        print(f"      {run.output_path}")
        print(f"      best {run.best_time * 1000:.1f} ms, mean {run.mean_time * 1000:.1f} ms")
        print(f"      {run.report.summary()}")
    return runs


def generate_comparisons(runs, settings, registry, single_case):
    """Compare every backend against the reference backend."""
    print("\n" + "=" * 60)
    print("GENERATING COMPARISONS")
    print("=" * 60)

    reference_name = settings.REFERENCE_BACKEND
    reference = runs.get(reference_name)
    if reference is None or reference.image is None:
        print(f"\n      Reference backend '{reference_name}' was not rendered, nothing to compare")
        return {}

    sheet = TestSheet(registry, SheetLayout.from_settings(settings))
    results = {}
    for name, run in runs.items():
        if name == reference_name or run.image is None:
            continue
        overall = compare_images(reference.image, run.image, settings.DIFF_TOLERANCE)
        status = "✓" if overall.match else "✗"
        print(f"\n      {status} {name}: {overall.message}")

        if single_case is None and reference.image.shape == run.image.shape:
            diverging = [c for c in compare_cells(reference.image, run.image, sheet,
                                                  settings.DIFF_TOLERANCE)
                         if not c.result.match]
            for cell in diverging:
                print(f"        - {cell.case_id}: {cell.result.message}")

        path = save_comparison_image(reference.image, run.image,
                                     get_output_path(name, "png", settings, "_diff"),
                                     settings.DIFF_TOLERANCE)
        if path is not None:
            print(f"        comparison: {path}")
        results[name] = overall
    return results


def print_summary(runs, comparisons):
    """Print final summary."""
    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)

    for name, run in runs.items():
        comparison = comparisons.get(name)
        match = "reference" if comparison is None else ("match" if comparison.match else "differs")
        failed = len(run.report.failures)
        print(f"  {name:<10} {run.best_time * 1000:8.1f} ms  {failed} failed tiles  {match}")

    failed_tiles = sum(len(run.report.failures) for run in runs.values())
    return failed_tiles == 0 and all(c.match for c in comparisons.values())


def main():
    parser = argparse.ArgumentParser(description="Render and compare the test sheet on all backends")
    parser.add_argument("backends", nargs="*", help="Backends to run (default: all)")
    parser.add_argument("--single", metavar="CASE_ID", help="Render only one case, enlarged")
    parser.add_argument("--repeats", type=int, help="Render passes per backend")
    parser.add_argument("--output-dir", type=Path, help="Directory for the output files")
    parser.add_argument("--no-compare", action="store_true", help="Skip the comparison step")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    overrides = {}
    if args.repeats is not None:
        overrides["REPEATS"] = args.repeats
    if args.output_dir is not None:
        overrides["OUTPUT_DIR"] = args.output_dir
    settings = Settings(**overrides)

    backends = args.backends or available_backends()
    registry = build_default_registry()

    runs = render_all(backends, settings, registry, args.single)
    comparisons = {} if args.no_compare else generate_comparisons(runs, settings, registry, args.single)
    ok = print_summary(runs, comparisons)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
