"""
Core Module - Pure Algorithm Logic
==================================
This module contains no UI or threading dependencies.
Mask loading, placement, reverse blending and batch processing live here.
"""

from .batch import BatchProcessor, ResultStore
from .blend import MAX_ALPHA, alpha_map, blend
from .errors import (
    AssetLoadError,
    DecodeError,
    EncodeError,
    ErrorKind,
    MaskShapeError,
    NoSuitableMaskError,
    RegionOutOfBoundsError,
    WatermarkRemovalError,
)
from .locator import WatermarkPlacement, locate
from .masks import Mask, MaskConfig, MaskRegistry, default_mask_configs
from .pipeline import ImagePipeline, InputFile, SourceImage, is_supported_image
from .results import ImageHandle, ProcessedResult, output_filename

__all__ = [
    # Masks
    "Mask",
    "MaskConfig",
    "MaskRegistry",
    "default_mask_configs",
    # Placement
    "WatermarkPlacement",
    "locate",
    # Blending
    "MAX_ALPHA",
    "alpha_map",
    "blend",
    # Pipeline
    "ImagePipeline",
    "InputFile",
    "SourceImage",
    "is_supported_image",
    "ImageHandle",
    "ProcessedResult",
    "output_filename",
    # Batch
    "BatchProcessor",
    "ResultStore",
    # Errors
    "ErrorKind",
    "WatermarkRemovalError",
    "AssetLoadError",
    "NoSuitableMaskError",
    "RegionOutOfBoundsError",
    "DecodeError",
    "EncodeError",
    "MaskShapeError",
]
