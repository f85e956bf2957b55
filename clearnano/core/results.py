"""
Result Records and Output Handles
=================================
What the pipeline hands back for each input file.

Ownership:
- Every ImageHandle owns its bytes and, once materialized, a temporary
  file on disk
- Whoever holds a ProcessedResult must call release() when it is no
  longer needed, otherwise the temporary files are left behind
- release() is idempotent
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image

from .errors import ErrorKind, WatermarkRemovalError

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "PNG"
OUTPUT_MIME_TYPE = "image/png"
OUTPUT_SUFFIX = ".png"
OUTPUT_NAME_TAG = "_clean"


def output_filename(filename: str) -> str:
    """
    Suggested download name for a cleaned image.

    photo.jpg -> photo_clean.png
    """
    return f"{Path(filename).stem}{OUTPUT_NAME_TAG}{OUTPUT_SUFFIX}"


class ImageHandle:
    """
    An owned, releasable reference to encoded image bytes.

    The bytes can be referenced by URL: the first access to `url` or
    `materialize()` writes them to a temporary file.
    """

    def __init__(self, data: bytes, mime_type: str = OUTPUT_MIME_TYPE,
                 suffix: str = OUTPUT_SUFFIX):
        self._data: Optional[bytes] = data
        self.mime_type = mime_type
        self.suffix = suffix
        self._path: Optional[Path] = None

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise ValueError("Image handle has been released")
        return self._data

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def path(self) -> Optional[Path]:
        """Temporary file backing this handle, if one was materialized."""
        return self._path

    def materialize(self) -> Path:
        """Write the bytes to a temporary file (once) and return its path."""
        data = self.data
        if self._path is None:
            fd, name = tempfile.mkstemp(prefix="clearnano_", suffix=self.suffix)
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            self._path = Path(name)
        return self._path

    @property
    def url(self) -> str:
        return self.materialize().as_uri()

    def open_image(self) -> Image.Image:
        """Decode the bytes into a new PIL image."""
        img = Image.open(BytesIO(self.data))
        img.load()
        return img

    def save(self, output_path: Union[str, Path]) -> Path:
        """Write the bytes to output_path, creating parent directories."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.data)
        return output_path

    def release(self):
        """Drop the bytes and delete the temporary file, if any."""
        if self._path is not None:
            try:
                self._path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Could not delete %s: %s", self._path, e)
            self._path = None
        self._data = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def __repr__(self):
        state = "released" if self.released else f"{len(self._data)} bytes"
        return f"<ImageHandle {self.mime_type} {state}>"


@dataclass
class ProcessedResult:
    """
    Outcome of cleaning one file.

    Exactly one of `processed` and `error_kind` is set.
    """
    filename: str
    original: Optional[ImageHandle] = None
    processed: Optional[ImageHandle] = None
    dimensions: Optional[Tuple[int, int]] = None  # (width, height)
    mask_size: Optional[int] = None
    error_kind: Optional[ErrorKind] = None
    error_message: str = ""

    def __post_init__(self):
        if (self.processed is None) == (self.error_kind is None):
            raise ValueError(
                "ProcessedResult needs either a processed handle or an error kind"
            )

    @classmethod
    def from_error(cls, filename: str, error: BaseException) -> "ProcessedResult":
        """Build the error-shaped result for a failed file."""
        if isinstance(error, WatermarkRemovalError):
            kind = error.kind
        else:
            kind = ErrorKind.UNEXPECTED
        message = str(error) or type(error).__name__
        return cls(filename=filename, error_kind=kind, error_message=message)

    @property
    def success(self) -> bool:
        return self.error_kind is None

    @property
    def width(self) -> Optional[int]:
        return self.dimensions[0] if self.dimensions else None

    @property
    def height(self) -> Optional[int]:
        return self.dimensions[1] if self.dimensions else None

    @property
    def output_filename(self) -> str:
        return output_filename(self.filename)

    def release(self):
        """Release both handles. Safe to call more than once."""
        for handle in (self.original, self.processed):
            if handle is not None:
                handle.release()
