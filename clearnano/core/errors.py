"""
Error Taxonomy
==============
Exceptions raised while loading masks and cleaning images.

Every per-file failure carries an ErrorKind so that the batch layer can
turn it into an error-shaped result without inspecting exception types.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Classification of a failed processing step."""
    ASSET_LOAD = "asset_load"
    NO_SUITABLE_MASK = "no_suitable_mask"
    REGION_OUT_OF_BOUNDS = "region_out_of_bounds"
    DECODE = "decode"
    ENCODE = "encode"
    MASK_SHAPE = "mask_shape"
    UNEXPECTED = "unexpected"


class WatermarkRemovalError(Exception):
    """Base class for all ClearNano errors."""

    kind = ErrorKind.UNEXPECTED


class AssetLoadError(WatermarkRemovalError):
    """A mask asset could not be decoded into a usable pixel buffer."""

    kind = ErrorKind.ASSET_LOAD

    def __init__(self, size: int, message: str):
        super().__init__(f"Failed to load {size}px mask: {message}")
        self.size = size


class NoSuitableMaskError(WatermarkRemovalError):
    """The placement policy selected a mask size that is not loaded."""

    kind = ErrorKind.NO_SUITABLE_MASK

    def __init__(
            self,
            size: int,
            width: Optional[int] = None,
            height: Optional[int] = None
    ):
        if width is not None and height is not None:
            message = (
                f"No suitable mask found for image size {width}x{height} "
                f"(needs {size}px mask)"
            )
        else:
            message = f"No {size}px mask is loaded"
        super().__init__(message)
        self.size = size


class RegionOutOfBoundsError(WatermarkRemovalError):
    """The watermark region does not fit inside the image."""

    kind = ErrorKind.REGION_OUT_OF_BOUNDS


class DecodeError(WatermarkRemovalError):
    """Input bytes could not be interpreted as an image."""

    kind = ErrorKind.DECODE


class EncodeError(WatermarkRemovalError):
    """The processed buffer could not be serialized."""

    kind = ErrorKind.ENCODE


class MaskShapeError(WatermarkRemovalError, ValueError):
    """Region and mask dimensions differ."""

    kind = ErrorKind.MASK_SHAPE
