"""
Edge detection over grayscale pixel buffers.

Produces a binary edge buffer: interior pixels are white (255 in R, G, B,
alpha 255) where the gradient response exceeds the threshold and black
otherwise. The 1-pixel border is never computed and stays (0, 0, 0, 0),
as in a freshly allocated canvas buffer.

Threshold is a raw, unnormalized response magnitude; 50-200 is the usable
range for 8-bit imagery.
"""

import logging
from typing import Union

import cv2
import numpy as np

from .errors import UnsupportedConfigurationError
from .geometry_models import EdgeMethod
from .image_processor import to_grayscale, validate_buffer

logger = logging.getLogger(__name__)

LAPLACIAN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 4, -1],
        [0, -1, 0],
    ],
    dtype=np.float64,
)


def _luminance(gray: np.ndarray) -> np.ndarray:
    """Single luminance channel (R) of a grayscale buffer as float64."""
    return gray[..., 0].astype(np.float64)


def _to_edge_buffer(mask: np.ndarray) -> np.ndarray:
    """Build an RGBA edge buffer from a boolean mask of the interior."""
    height, width = mask.shape
    output = np.zeros((height, width, 4), dtype=np.uint8)
    if height < 3 or width < 3:
        return output

    interior = np.where(mask[1:-1, 1:-1], 255, 0).astype(np.uint8)
    output[1:-1, 1:-1, 0] = interior
    output[1:-1, 1:-1, 1] = interior
    output[1:-1, 1:-1, 2] = interior
    output[1:-1, 1:-1, 3] = 255
    return output


def sobel_magnitude(gray: np.ndarray) -> np.ndarray:
    """
    Gradient magnitude ``sqrt(Gx^2 + Gy^2)`` from the 3x3 Sobel kernels.

    Gx = [[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], Gy is its transpose.
    Border values are not meaningful and are discarded by the caller.
    """
    luma = _luminance(gray)
    gx = cv2.Sobel(luma, cv2.CV_64F, 1, 0, ksize=3)
    gy = cv2.Sobel(luma, cv2.CV_64F, 0, 1, ksize=3)
    return np.sqrt(gx * gx + gy * gy)


def laplacian_response(gray: np.ndarray) -> np.ndarray:
    """Response of the 4-neighbour Laplacian kernel."""
    luma = _luminance(gray)
    return cv2.filter2D(luma, cv2.CV_64F, LAPLACIAN_KERNEL)


def apply_sobel(gray: np.ndarray, threshold: float) -> np.ndarray:
    """Binary edges where the Sobel magnitude exceeds ``threshold``."""
    validate_buffer(gray)
    if gray.shape[0] < 3 or gray.shape[1] < 3:
        return _to_edge_buffer(np.zeros(gray.shape[:2], dtype=bool))
    return _to_edge_buffer(sobel_magnitude(gray) > threshold)


def apply_laplacian(gray: np.ndarray, threshold: float) -> np.ndarray:
    """Binary edges where the absolute Laplacian response exceeds ``threshold``."""
    validate_buffer(gray)
    if gray.shape[0] < 3 or gray.shape[1] < 3:
        return _to_edge_buffer(np.zeros(gray.shape[:2], dtype=bool))
    return _to_edge_buffer(np.abs(laplacian_response(gray)) > threshold)


def detect_edges(
    gray: np.ndarray,
    method: Union[EdgeMethod, str],
    threshold: float,
) -> np.ndarray:
    """
    Run the selected edge operator on a grayscale buffer.

    ``canny`` currently runs the Sobel operator; there is no separate
    Canny implementation (no blur, non-maximum suppression or hysteresis).

    Args:
        gray: Grayscale RGBA buffer (see image_processor.to_grayscale)
        method: Edge detection method
        threshold: Raw response threshold

    Returns:
        New binary edge buffer of the same dimensions

    Raises:
        UnsupportedConfigurationError: for an unknown method
    """
    try:
        method = EdgeMethod(method)
    except ValueError:
        raise UnsupportedConfigurationError(f"Unsupported edge method: {method!r}") from None

    if method in (EdgeMethod.CANNY, EdgeMethod.SOBEL):
        edges = apply_sobel(gray, threshold)
    else:
        edges = apply_laplacian(gray, threshold)

    logger.debug(
        "%s edge pass (threshold=%s): %d edge pixels",
        method.value, threshold, int(np.count_nonzero(edges[..., 0])),
    )
    return edges


def apply_edge_detection(
    image: np.ndarray,
    method: Union[EdgeMethod, str],
    threshold: float,
) -> np.ndarray:
    """Convert a color buffer to grayscale and run edge detection on it."""
    return detect_edges(to_grayscale(image), method, threshold)
