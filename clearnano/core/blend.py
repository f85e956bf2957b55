"""
Reverse Alpha Blending
======================
Recovers the pixels underneath a white, alpha-blended watermark.

The watermark was composited as:
    observed = alpha * 255 + (1 - alpha) * original

so the original is recovered with:
    original = (observed - alpha * 255) / (1 - alpha)

Technical Notes:
- alpha comes from the mask's RGB intensity, max(R, G, B) / 255
- Pixels with alpha == 0 carry no watermark and are left untouched
- alpha is capped at MAX_ALPHA; pixels blended above the cap keep a
  residual bias after recovery
- Rounding is half-up to stay bit-compatible with the browser tool
- Only R, G, B are rewritten; the region's alpha channel is preserved
"""

import numpy as np

from .errors import MaskShapeError
from .masks import Mask

# Ceiling applied to alpha before dividing by (1 - alpha).
# Tunable heuristic; changing it changes every recovered pixel.
MAX_ALPHA = 0.99

# Color of the watermark logo
LOGO_VALUE = 255.0


def alpha_map(mask: Mask) -> np.ndarray:
    """Return the float64 (size, size) alpha map encoded in a mask's RGB."""
    return mask.pixels[:, :, :3].max(axis=2).astype(np.float64) / 255.0


def blend(region: np.ndarray, mask: Mask, max_alpha: float = MAX_ALPHA) -> np.ndarray:
    """
    Apply reverse alpha blending to a region in place.

    Args:
        region: uint8 array of shape (mask.height, mask.width, C), C >= 3.
        mask: The mask whose alpha map produced the watermark.
        max_alpha: Alpha ceiling, defaults to MAX_ALPHA.

    Returns:
        The same region array, for chaining.

    Raises:
        MaskShapeError: If region and mask dimensions differ.
        ValueError: If the region is not a uint8 color buffer.
    """
    if region.ndim != 3 or region.shape[2] < 3:
        raise ValueError(f"Region must be an (H, W, C>=3) array, got {region.shape}")
    if region.dtype != np.uint8:
        raise ValueError(f"Region must be uint8, got {region.dtype}")
    if region.shape[:2] != (mask.height, mask.width):
        raise MaskShapeError(
            f"Region is {region.shape[1]}x{region.shape[0]} but mask is "
            f"{mask.width}x{mask.height}"
        )

    alpha = alpha_map(mask)
    covered = alpha > 0
    if not covered.any():
        return region

    alpha = np.minimum(alpha[covered], max_alpha)[:, np.newaxis]

    color = region[:, :, :3]
    observed = color[covered].astype(np.float64)

    recovered = np.floor((observed - alpha * LOGO_VALUE) / (1.0 - alpha) + 0.5)
    color[covered] = np.clip(recovered, 0, 255).astype(np.uint8)

    return region
