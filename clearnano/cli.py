"""
ClearNano - Command Line Interface
==================================
Removes the corner watermark from images by reverse alpha blending.

Usage:
    clearnano photo.png other.jpg -o cleaned/
    clearnano input_dir/ --assets path/to/masks -o cleaned/
    python -m clearnano ...

Architecture:
    - Model: clearnano/core/ (pure algorithms)
    - Worker: clearnano/workers/ (QThread batch runner)
    - Controller: This module (signal/slot connections)

Output files are named <name>_clean.png.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication

from . import __app_name__, __version__
from .core import MaskRegistry, ProcessedResult, ResultStore, is_supported_image
from .workers import CleanConfig, CleanWorker


class CleanController:
    """
    Controller class that connects worker signals to console output.

    Responsibilities:
    - Create and run the worker thread
    - Report progress and per-image outcomes
    - Export successful results and release every handle
    """

    def __init__(self, app: QCoreApplication, registry: MaskRegistry, output_dir: Path):
        """
        Initialize the controller.

        Args:
            app: The running Qt application.
            registry: Loaded masks.
            output_dir: Directory for cleaned images.
        """
        self.app = app
        self.registry = registry
        self.output_dir = output_dir
        self.store = ResultStore()
        self.exit_code = 0

        # Worker reference (to prevent garbage collection)
        self._worker: Optional[CleanWorker] = None

    def start(self, image_paths: List[Path]):
        """Start processing the given images."""
        config = CleanConfig(image_paths=image_paths)
        self._worker = CleanWorker(config, self.registry)

        # Connect worker signals
        self._worker.progress.connect(self._on_progress)
        self._worker.image_completed.connect(self._on_image_completed)
        self._worker.finished_all.connect(self._on_finished)
        self._worker.error.connect(self._on_error)

        print(f"Processing... (0/{len(image_paths)})")
        self._worker.start()

    def _on_progress(self, completed: int, total: int):
        print(f"Processing... ({completed}/{total})")

    def _on_image_completed(self, result: ProcessedResult):
        """Handle single image completion."""
        if result.success:
            print(
                f"  ✅ {result.filename} ({result.width} x {result.height}, "
                f"{result.mask_size}px mask)"
            )
        else:
            print(f"  ❌ {result.filename}: {result.error_message}")

    def _on_error(self, error_message: str):
        print(f"❌ Error: {error_message}", file=sys.stderr)
        self.exit_code = 1

    def _on_finished(self, results: list):
        """Handle batch completion: export, release and quit."""
        self.store.extend(results)

        try:
            written = self.store.export_all(self.output_dir)
            for path in written:
                print(f"  → {path}")
        except OSError as e:
            print(f"❌ Export failed: {e}", file=sys.stderr)
            self.exit_code = 1
        finally:
            failed = len(self.store.failed())
            print(f"Done: {len(self.store) - failed} cleaned, {failed} failed")
            if failed:
                self.exit_code = 1
            self.store.clear()

        # Cleanup worker
        if self._worker is not None:
            self._worker.wait()
            self._worker.deleteLater()
            self._worker = None

        self.app.exit(self.exit_code)


def collect_inputs(inputs: List[str]) -> List[Path]:
    """
    Expand directories into their supported image files.

    Explicit file arguments are kept as given, even without an image
    extension, so that unreadable files are reported rather than skipped.
    """
    paths: List[Path] = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            paths.extend(
                sorted(p for p in path.iterdir() if p.is_file() and is_supported_image(p))
            )
        else:
            paths.append(path)
    return paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clearnano",
        description="Remove the corner watermark from images by reverse alpha blending."
    )
    parser.add_argument("inputs", nargs="+", help="Image files or directories")
    parser.add_argument(
        "-o", "--output-dir", default="output",
        help="Directory for cleaned images (default: ./output)"
    )
    parser.add_argument(
        "--assets", default=None,
        help="Directory containing bg_48.png and bg_96.png"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    image_paths = collect_inputs(args.inputs)
    if not image_paths:
        print("No images to process", file=sys.stderr)
        return 1

    registry = MaskRegistry.from_directory(args.assets)
    if len(registry) == 0:
        print("No watermark masks could be loaded", file=sys.stderr)
        return 1

    # Create application (or reuse the one already running)
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv[:1])
    app.setApplicationName(__app_name__)
    app.setApplicationVersion(__version__)

    controller = CleanController(app, registry, Path(args.output_dir))
    controller.start(image_paths)

    # Run event loop
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
