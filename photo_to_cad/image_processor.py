"""
Image processing utilities for photo preparation.

Handles:
- Loading images from various sources (file upload, path, bytes)
- Fitting images into the processing canvas as RGBA pixel buffers
- Pixel buffer validation
- Grayscale reduction (luminance into R, G and B)
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import BinaryIO

import numpy as np
from PIL import Image

from .config import CANVAS_MAX_HEIGHT, CANVAS_MAX_WIDTH
from .errors import InvalidBufferError

logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


@dataclass
class LoadedImage:
    """Pixel buffer fitted to the canvas plus the source image size."""
    buffer: np.ndarray
    original_width: int
    original_height: int

    @property
    def width(self) -> int:
        return self.buffer.shape[1]

    @property
    def height(self) -> int:
        return self.buffer.shape[0]


def validate_buffer(buffer: np.ndarray) -> np.ndarray:
    """
    Check that ``buffer`` is a (height, width, 4) uint8 RGBA array.

    Returns:
        The same buffer, for chaining

    Raises:
        InvalidBufferError: if the buffer is missing or mis-shaped
    """
    if buffer is None:
        raise InvalidBufferError("Pixel buffer is required")
    if not isinstance(buffer, np.ndarray):
        raise InvalidBufferError(f"Pixel buffer must be a numpy array, got {type(buffer).__name__}")
    if buffer.ndim != 3 or buffer.shape[2] != 4:
        raise InvalidBufferError(f"Pixel buffer must have shape (height, width, 4), got {buffer.shape}")
    if buffer.dtype != np.uint8:
        raise InvalidBufferError(f"Pixel buffer must be uint8, got {buffer.dtype}")
    return buffer


def to_grayscale(buffer: np.ndarray) -> np.ndarray:
    """
    Reduce an RGBA buffer to luminance.

    Each pixel's R, G and B become ``round(0.299R + 0.587G + 0.114B)``
    (half to even, like an 8-bit clamped canvas array); alpha is copied.
    The input is not modified.

    Args:
        buffer: RGBA pixel buffer

    Returns:
        New RGBA buffer of the same dimensions
    """
    validate_buffer(buffer)
    rgb = buffer[..., :3].astype(np.float64)
    luma = rgb[..., 0] * LUMA_WEIGHTS[0] + rgb[..., 1] * LUMA_WEIGHTS[1] + rgb[..., 2] * LUMA_WEIGHTS[2]
    gray = np.clip(np.rint(luma), 0, 255).astype(np.uint8)

    output = np.empty_like(buffer)
    output[..., 0] = gray
    output[..., 1] = gray
    output[..., 2] = gray
    output[..., 3] = buffer[..., 3]
    return output


class ImageProcessor:
    """Handle image loading and conversion to pixel buffers."""

    @classmethod
    def load_from_upload(cls, uploaded_file: BinaryIO) -> LoadedImage:
        """
        Load image from a Streamlit uploaded file or file-like object.

        Args:
            uploaded_file: File-like object (e.g., Streamlit UploadedFile)

        Returns:
            LoadedImage fitted to the processing canvas
        """
        image = Image.open(uploaded_file)
        return cls._prepare(image)

    @classmethod
    def load_from_path(cls, file_path: str) -> LoadedImage:
        """Load image from a file path."""
        image = Image.open(file_path)
        return cls._prepare(image)

    @classmethod
    def load_from_bytes(cls, image_bytes: bytes) -> LoadedImage:
        """Load image from raw encoded bytes."""
        image = Image.open(BytesIO(image_bytes))
        return cls._prepare(image)

    @classmethod
    def _prepare(cls, image: Image.Image) -> LoadedImage:
        original_width, original_height = image.size
        image = cls.fit_to_canvas(image)
        buffer = cls.to_pixel_buffer(image)
        logger.info(
            "Loaded %dx%d image into %dx%d canvas",
            original_width, original_height, buffer.shape[1], buffer.shape[0],
        )
        return LoadedImage(buffer=buffer, original_width=original_width, original_height=original_height)

    @classmethod
    def fit_to_canvas(
        cls,
        image: Image.Image,
        max_width: int = CANVAS_MAX_WIDTH,
        max_height: int = CANVAS_MAX_HEIGHT,
    ) -> Image.Image:
        """
        Scale an image to fit the canvas box, preserving aspect ratio.

        Small images are scaled up as well as large ones scaled down, so the
        classifier's canvas-relative thresholds see comparable sizes.
        """
        width, height = image.size
        ratio = min(max_width / width, max_height / height)
        new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))
        if new_size == image.size:
            return image
        return image.resize(new_size, Image.Resampling.LANCZOS)

    @classmethod
    def to_pixel_buffer(cls, image: Image.Image) -> np.ndarray:
        """Convert a PIL image to an RGBA uint8 pixel buffer."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return np.array(image, dtype=np.uint8)

    @classmethod
    def to_image(cls, buffer: np.ndarray) -> Image.Image:
        """Convert a pixel buffer back to a PIL image (e.g. for preview)."""
        validate_buffer(buffer)
        return Image.fromarray(buffer)

    @classmethod
    def to_bytes(cls, image: Image.Image, format: str = "PNG") -> bytes:
        """
        Convert PIL Image to bytes.

        Args:
            image: PIL Image object
            format: Output format (PNG, JPEG, etc.)

        Returns:
            Image as bytes
        """
        buffer = BytesIO()
        image.save(buffer, format=format)
        buffer.seek(0)
        return buffer.getvalue()
