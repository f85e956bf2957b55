"""
Clean Worker - Async Watermark Removal
======================================
QThread worker that runs a batch of images through the ImagePipeline.

Workflow:
1. For each image in the list, in order:
   a. Decode, locate, reverse-blend and re-encode it
   b. Emit progress and the per-image result
2. Emit finished signal with all results

The batch is sequential and cannot be cancelled once started.
Results own their output handles; the receiver must release them.
"""

import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from PyQt6.QtCore import QThread, pyqtSignal

from clearnano.core.batch import BatchProcessor
from clearnano.core.blend import MAX_ALPHA
from clearnano.core.masks import MaskRegistry
from clearnano.core.pipeline import ImagePipeline, InputFile
from clearnano.core.results import ProcessedResult


@dataclass
class CleanConfig:
    """Configuration for a watermark removal batch."""
    image_paths: List[Union[Path, InputFile]] = field(default_factory=list)
    max_alpha: float = MAX_ALPHA


class CleanWorker(QThread):
    """
    Worker thread for removing watermarks from images.

    Signals:
        progress(int, int): (completed, total)
        image_completed(ProcessedResult): Emitted when each image is processed
        finished_all(list[ProcessedResult]): Emitted when all images are done
        error(str): Emitted on critical errors
    """

    # Signals
    progress = pyqtSignal(int, int)  # completed, total
    image_completed = pyqtSignal(object)  # ProcessedResult
    finished_all = pyqtSignal(list)  # List[ProcessedResult]
    error = pyqtSignal(str)  # Error message

    def __init__(self, config: CleanConfig, registry: MaskRegistry, parent=None):
        """
        Initialize the clean worker.

        Args:
            config: CleanConfig with the images to process.
            registry: Loaded masks, shared read-only.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self.config = config
        self.registry = registry
        self._processor: Optional[BatchProcessor] = None

    def run(self):
        """
        Main worker execution.

        Processes all images in the config and emits progress signals.
        """
        results: List[ProcessedResult] = []
        total = len(self.config.image_paths)

        if total == 0:
            self.error.emit("No images to process")
            self.finished_all.emit(results)
            return

        if len(self.registry) == 0:
            self.error.emit("No watermark masks are loaded")

        try:
            pipeline = ImagePipeline(self.registry, max_alpha=self.config.max_alpha)
            self._processor = BatchProcessor(pipeline)

            results = self._processor.process_all(
                self.config.image_paths,
                on_progress=self.progress.emit,
                on_result=self.image_completed.emit
            )

        except Exception as e:
            self.error.emit(f"Critical error: {str(e)}")
            traceback.print_exc()

        finally:
            self._processor = None

        # Emit final results
        self.finished_all.emit(results)
