"""
Mask Registry
=============
Loads the watermark alpha masks used by the reverse blend.

Technical Notes:
- Each mask is the watermark logo rendered on pure black, so the blend
  alpha at a pixel is max(R, G, B) / 255
- The mask's own alpha channel carries no information
- Masks are immutable once loaded and may be shared freely
- Asset sizes are tied to the placement policy in locator.py (48 -> 32px
  margin, 96 -> 64px margin); swap both together
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import AssetLoadError, NoSuitableMaskError

logger = logging.getLogger(__name__)

DEFAULT_ASSET_DIR = Path(__file__).resolve().parent.parent / "assets"

# Nominal sizes shipped with the placement policy
DEFAULT_MASK_SIZES = (48, 96)


@dataclass(frozen=True)
class MaskConfig:
    """One requested mask asset."""
    size: int
    asset_path: Path


@dataclass(frozen=True, eq=False)
class Mask:
    """
    A square alpha mask.

    Attributes:
        size: Width and height in pixels.
        pixels: Read-only RGBA uint8 array of shape (size, size, 4).
    """
    size: int
    pixels: np.ndarray

    def __post_init__(self):
        expected = (self.size, self.size, 4)
        if self.pixels.shape != expected:
            raise ValueError(
                f"Mask pixels must have shape {expected}, got {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Mask pixels must be uint8, got {self.pixels.dtype}")
        # Own a private read-only copy
        pixels = self.pixels.copy()
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return self.size

    @property
    def height(self) -> int:
        return self.size

    @classmethod
    def from_image(cls, size: int, image: Image.Image) -> "Mask":
        """
        Build a mask from a decoded PIL image.

        Raises:
            ValueError: If the image is not size x size.
        """
        if image.size != (size, size):
            raise ValueError(
                f"Expected a {size}x{size} image, got {image.size[0]}x{image.size[1]}"
            )
        rgba = image.convert("RGBA")
        pixels = np.array(rgba, dtype=np.uint8)
        return cls(size=size, pixels=pixels)


def default_mask_configs(asset_dir: Union[str, Path, None] = None) -> List[MaskConfig]:
    """Return the bg_48.png / bg_96.png configs for an asset directory."""
    asset_dir = Path(asset_dir) if asset_dir is not None else DEFAULT_ASSET_DIR
    return [
        MaskConfig(size=size, asset_path=asset_dir / f"bg_{size}.png")
        for size in DEFAULT_MASK_SIZES
    ]


class MaskRegistry:
    """
    In-memory mapping from nominal mask size to Mask.

    The mapping is populated by load() and is read-only afterwards.
    A failed asset is logged and skipped, so the registry may hold
    fewer sizes than were requested.
    """

    def __init__(self):
        self._masks: Dict[int, Mask] = {}

    def _load_one(self, config: MaskConfig) -> Mask:
        """
        Decode a single mask asset.

        Raises:
            AssetLoadError: If the file is missing, unreadable, or not
                config.size pixels square.
        """
        path = Path(config.asset_path)
        try:
            with Image.open(path) as img:
                img.load()
                return Mask.from_image(config.size, img)
        except (OSError, UnidentifiedImageError, ValueError) as e:
            raise AssetLoadError(config.size, f"{path}: {e}") from e

    def load(self, configs: Iterable[MaskConfig]) -> Dict[int, Mask]:
        """
        Load every configured mask, skipping the ones that fail.

        Args:
            configs: Mask configs, one per nominal size.

        Returns:
            Mapping of size to Mask for the assets that loaded.
        """
        for config in configs:
            try:
                mask = self._load_one(config)
            except AssetLoadError as e:
                logger.error("%s", e)
                continue

            self._masks[config.size] = mask
            logger.info("Loaded mask: %dx%d", config.size, config.size)

        return dict(self._masks)

    @classmethod
    def from_directory(cls, asset_dir: Union[str, Path, None] = None) -> "MaskRegistry":
        """Create a registry loaded with the default assets of a directory."""
        registry = cls()
        registry.load(default_mask_configs(asset_dir))
        return registry

    @classmethod
    def from_masks(cls, masks: Iterable[Mask]) -> "MaskRegistry":
        """Create a registry from already decoded masks."""
        registry = cls()
        for mask in masks:
            registry._masks[mask.size] = mask
        return registry

    def get(self, size: int) -> Optional[Mask]:
        return self._masks.get(size)

    def require(self, size: int) -> Mask:
        """
        Return the mask for a size.

        Raises:
            NoSuitableMaskError: If no mask of that size is loaded.
        """
        mask = self._masks.get(size)
        if mask is None:
            raise NoSuitableMaskError(size)
        return mask

    @property
    def sizes(self) -> List[int]:
        return sorted(self._masks)

    def __contains__(self, size: int) -> bool:
        return size in self._masks

    def __len__(self) -> int:
        return len(self._masks)
