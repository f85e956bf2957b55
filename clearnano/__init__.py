"""
ClearNano Package
=================
Removes the semi-transparent corner watermark from images by reverse
alpha blending.

Modules:
    - core: Pure algorithm logic (no Qt dependencies)
    - workers: QThread worker for batch processing

Usage:
    from clearnano.core import MaskRegistry, ImagePipeline, BatchProcessor
    from clearnano.workers import CleanWorker, CleanConfig
"""

__version__ = "1.0.0"
__author__ = "ClearNano"
__app_name__ = "ClearNano"

# Core exports
from .core import (
    BatchProcessor,
    ImageHandle,
    ImagePipeline,
    InputFile,
    Mask,
    MaskConfig,
    MaskRegistry,
    ProcessedResult,
    ResultStore,
    WatermarkPlacement,
    blend,
    locate,
    output_filename,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__app_name__",

    # Core
    "Mask",
    "MaskConfig",
    "MaskRegistry",
    "WatermarkPlacement",
    "locate",
    "blend",
    "ImagePipeline",
    "InputFile",
    "ImageHandle",
    "ProcessedResult",
    "output_filename",
    "BatchProcessor",
    "ResultStore",
]
