"""
Image Pipeline
==============
Cleans a single image file.

Workflow:
1. Read and decode the input into an RGBA buffer
2. Locate the watermark region from the image size
3. Fetch the matching mask from the registry
4. Copy the region out, reverse-blend it, write it back
5. Encode the full buffer to PNG
6. Wrap the encoded output and the original bytes in handles

Any failing step raises; the caller never sees a half-processed image.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .blend import MAX_ALPHA, blend
from .errors import DecodeError, EncodeError, NoSuitableMaskError, RegionOutOfBoundsError
from .locator import WatermarkPlacement, locate
from .masks import Mask, MaskRegistry
from .results import OUTPUT_FORMAT, OUTPUT_MIME_TYPE, OUTPUT_SUFFIX, ImageHandle, ProcessedResult

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_SUFFIXES = {
    ".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif", ".tif", ".tiff"
}


def is_supported_image(path: Union[str, Path]) -> bool:
    """Check whether a file name has a supported image extension."""
    return Path(path).suffix.lower() in SUPPORTED_IMAGE_SUFFIXES


@dataclass(frozen=True)
class InputFile:
    """A named blob of input bytes."""
    name: str
    data: bytes

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "InputFile":
        """
        Read a file from disk.

        Raises:
            DecodeError: If the file cannot be read.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise DecodeError(f"Failed to read file {path}: {e}") from e
        return cls(name=path.name, data=data)


FileLike = Union[str, Path, InputFile]


def input_name(file: FileLike) -> str:
    """Display name of an input, without reading it."""
    if isinstance(file, InputFile):
        return file.name
    return Path(file).name


@dataclass
class SourceImage:
    """A decoded input image."""
    name: str
    pixels: np.ndarray  # (height, width, 4) uint8, RGBA
    format: str = ""

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def mime_type(self) -> str:
        return Image.MIME.get(self.format, "application/octet-stream")


def _to_8bit(img: Image.Image) -> Image.Image:
    """Scale 16-bit and 32-bit integer grayscale down to mode L."""
    if not (img.mode == "I" or img.mode.startswith("I;16")):
        return img
    arr = np.array(img).astype(np.int64)
    arr = np.clip(arr, 0, 65535) >> 8
    return Image.fromarray(arr.astype(np.uint8))


def decode_image(input_file: InputFile) -> SourceImage:
    """
    Decode input bytes into an RGBA buffer.

    EXIF orientation is applied, matching how browsers draw photos.

    Raises:
        DecodeError: If the bytes are not a decodable image.
    """
    try:
        with Image.open(BytesIO(input_file.data)) as img:
            img.load()
            fmt = img.format or ""
            oriented = ImageOps.exif_transpose(img)
            rgba = _to_8bit(oriented).convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"Cannot decode {input_file.name}: {e}") from e

    pixels = np.array(rgba, dtype=np.uint8)
    return SourceImage(name=input_file.name, pixels=pixels, format=fmt)


def encode_png(pixels: np.ndarray) -> bytes:
    """
    Encode an RGBA buffer as PNG.

    Raises:
        EncodeError: If Pillow cannot serialize the buffer.
    """
    buffer = BytesIO()
    try:
        Image.fromarray(pixels).save(buffer, format=OUTPUT_FORMAT)
    except (OSError, ValueError, TypeError) as e:
        raise EncodeError(f"Failed to encode {OUTPUT_FORMAT}: {e}") from e
    return buffer.getvalue()


def extract_region(pixels: np.ndarray, placement: WatermarkPlacement, mask: Mask) -> np.ndarray:
    """
    Copy the mask-sized region at the placement origin.

    Raises:
        RegionOutOfBoundsError: If the region leaves the image.
    """
    height, width = pixels.shape[:2]
    x, y = placement.origin_x, placement.origin_y
    if x < 0 or y < 0 or x + mask.width > width or y + mask.height > height:
        raise RegionOutOfBoundsError(
            f"Region {mask.width}x{mask.height} at ({x}, {y}) "
            f"exceeds image {width}x{height}"
        )
    return pixels[y:y + mask.height, x:x + mask.width].copy()


def paste_region(pixels: np.ndarray, region: np.ndarray, placement: WatermarkPlacement):
    """Write a region back at the placement origin."""
    h, w = region.shape[:2]
    x, y = placement.origin_x, placement.origin_y
    pixels[y:y + h, x:x + w] = region


class ImagePipeline:
    """
    Removes the corner watermark from one image at a time.

    The registry is only read, so one pipeline (and one registry) may
    serve any number of files.
    """

    def __init__(self, registry: MaskRegistry, max_alpha: float = MAX_ALPHA):
        self.registry = registry
        self.max_alpha = max_alpha

    def process(self, file: FileLike) -> ProcessedResult:
        """
        Clean a single file.

        Args:
            file: A path or an InputFile.

        Returns:
            A successful ProcessedResult.

        Raises:
            DecodeError, RegionOutOfBoundsError, NoSuitableMaskError,
            MaskShapeError, EncodeError
        """
        input_file = file if isinstance(file, InputFile) else InputFile.from_path(file)
        source = decode_image(input_file)

        placement = locate(source.width, source.height)
        mask = self.registry.get(placement.mask_size)
        if mask is None:
            raise NoSuitableMaskError(placement.mask_size, source.width, source.height)

        region = extract_region(source.pixels, placement, mask)
        blend(region, mask, self.max_alpha)
        paste_region(source.pixels, region, placement)

        encoded = encode_png(source.pixels)
        logger.debug(
            "Cleaned %s (%dx%d, %dpx mask at %d,%d)",
            source.name, source.width, source.height,
            placement.mask_size, placement.origin_x, placement.origin_y
        )

        original_suffix = Path(input_file.name).suffix.lower() or OUTPUT_SUFFIX
        return ProcessedResult(
            filename=input_file.name,
            original=ImageHandle(input_file.data, source.mime_type, original_suffix),
            processed=ImageHandle(encoded, OUTPUT_MIME_TYPE, OUTPUT_SUFFIX),
            dimensions=(source.width, source.height),
            mask_size=placement.mask_size,
        )
