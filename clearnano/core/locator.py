"""
Watermark Locator
=================
Maps image dimensions to the watermark region.

Placement rule (two buckets, no interpolation):
- Large (96x96, margin 64): width AND height both > 1024px
- Small (48x48, margin 32): every other image

The margin is measured from the bottom-right corner, so the region's
top-left origin is (width - margin - size, height - margin - size).
"""

from dataclasses import dataclass
from typing import Tuple

from .errors import RegionOutOfBoundsError

LARGE_IMAGE_THRESHOLD = 1024

LARGE_MASK_SIZE = 96
LARGE_MARGIN = 64

SMALL_MASK_SIZE = 48
SMALL_MARGIN = 32


@dataclass(frozen=True)
class WatermarkPlacement:
    """Where the watermark sits in one image."""
    mask_size: int
    margin: int
    origin_x: int
    origin_y: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(left, top, right, bottom) of the region, PIL crop order."""
        return (
            self.origin_x,
            self.origin_y,
            self.origin_x + self.mask_size,
            self.origin_y + self.mask_size,
        )


def select_mask_geometry(width: int, height: int) -> Tuple[int, int]:
    """Return (mask_size, margin) for an image size."""
    if width > LARGE_IMAGE_THRESHOLD and height > LARGE_IMAGE_THRESHOLD:
        return LARGE_MASK_SIZE, LARGE_MARGIN
    return SMALL_MASK_SIZE, SMALL_MARGIN


def locate(width: int, height: int) -> WatermarkPlacement:
    """
    Compute the watermark placement for an image.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        WatermarkPlacement for the selected mask.

    Raises:
        RegionOutOfBoundsError: If the image is too small to contain the
            margin plus the mask.
    """
    if width <= 0 or height <= 0:
        raise RegionOutOfBoundsError(f"Invalid image size {width}x{height}")

    mask_size, margin = select_mask_geometry(width, height)
    origin_x = width - margin - mask_size
    origin_y = height - margin - mask_size

    if origin_x < 0 or origin_y < 0:
        raise RegionOutOfBoundsError(
            f"Image {width}x{height} is too small for a {mask_size}px "
            f"watermark with {margin}px margin"
        )

    return WatermarkPlacement(
        mask_size=mask_size,
        margin=margin,
        origin_x=origin_x,
        origin_y=origin_y,
    )
