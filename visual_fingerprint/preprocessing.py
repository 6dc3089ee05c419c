"""
Image preprocessing shared by both fingerprint extractors.

Handles decoding (raw bytes, data URLs, files), readiness checks, format
normalization, resampling to a fixed grid, and rendering the sampled grid
as a PNG data URL for display. All OpenCV calls that touch the sampling
surface are wrapped so that backend failures surface as
RenderingSurfaceError instead of a bare cv2.error.
"""

import base64
import binascii
import logging
from typing import Union

import cv2
import numpy as np

from .errors import ImageNotReadyError, InvalidSizeError, RenderingSurfaceError

logger = logging.getLogger(__name__)

# Accepted range for the fingerprint grid size
MIN_SIZE = 8
MAX_SIZE = 128

PNG_DATA_URL_PREFIX = "data:image/png;base64,"


def validate_size(size) -> int:
    """Reject sizes outside [MIN_SIZE, MAX_SIZE] instead of coercing them."""
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
        raise InvalidSizeError(
            f"Invalid fingerprint size {size!r}. Must be an integer between "
            f"{MIN_SIZE} and {MAX_SIZE}."
        )
    if size < MIN_SIZE or size > MAX_SIZE:
        raise InvalidSizeError(
            f"Invalid fingerprint size {size}. Must be between "
            f"{MIN_SIZE} and {MAX_SIZE}."
        )
    return int(size)


def ensure_ready(image_np) -> np.ndarray:
    """Fail fast on a missing, empty or zero-dimension image."""
    if image_np is None or not isinstance(image_np, np.ndarray):
        raise ImageNotReadyError("Image not loaded or invalid")
    if image_np.ndim not in (2, 3) or image_np.size == 0:
        raise ImageNotReadyError("Image not loaded or invalid")
    if image_np.ndim == 3 and image_np.shape[2] not in (1, 3, 4):
        raise ImageNotReadyError(
            f"Image not loaded or invalid: unsupported channel count {image_np.shape[2]}"
        )
    h, w = image_np.shape[:2]
    if h == 0 or w == 0:
        raise ImageNotReadyError("Image not loaded or invalid")
    return image_np


def normalize_image(image_np: np.ndarray) -> np.ndarray:
    """Ensure image is contiguous uint8 RGB format."""
    if image_np.dtype != np.uint8:
        if np.issubdtype(image_np.dtype, np.integer) and image_np.dtype.itemsize == 2:
            # 16-bit decodes: rescale the full depth onto 0..255
            depth_max = float(np.iinfo(image_np.dtype).max)
            scaled = np.clip(image_np, 0, None).astype(np.float64) * (255.0 / depth_max)
            image_np = np.clip(np.rint(scaled), 0, 255).astype(np.uint8)
        elif image_np.max() <= 1.0:
            image_np = (image_np * 255).astype(np.uint8)
        else:
            image_np = np.clip(image_np, 0, 255).astype(np.uint8)

    if image_np.ndim == 2:
        image_np = cv2.cvtColor(image_np, cv2.COLOR_GRAY2RGB)
    elif image_np.shape[2] == 4:
        image_np = cv2.cvtColor(image_np, cv2.COLOR_RGBA2RGB)
    elif image_np.shape[2] == 1:
        image_np = cv2.cvtColor(image_np[:, :, 0], cv2.COLOR_GRAY2RGB)

    return np.ascontiguousarray(image_np)


def decode_image(data: Union[bytes, str]) -> np.ndarray:
    """
    Decode an encoded image into an RGB uint8 array.

    Args:
        data: Encoded image bytes (PNG, JPEG, ...) or a ``data:`` URL such
              as the ones produced by browser canvas capture.

    Returns:
        RGB uint8 image.

    Raises:
        ImageNotReadyError: If the payload is empty or cannot be decoded.
    """
    if isinstance(data, str):
        if not data.startswith("data:") or "," not in data:
            raise ImageNotReadyError("Image not loaded or invalid: not a data URL")
        header, payload = data.split(",", 1)
        if not header.endswith(";base64"):
            raise ImageNotReadyError("Image not loaded or invalid: data URL is not base64")
        try:
            data = base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ImageNotReadyError(f"Image not loaded or invalid: {e}") from e

    if not data:
        raise ImageNotReadyError("Image not loaded or invalid: empty payload")

    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        raise ImageNotReadyError("Image not loaded or invalid: could not decode")

    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def load_image(path: str) -> np.ndarray:
    """Read an image file from disk as RGB uint8."""
    image = cv2.imread(path)
    if image is None:
        raise ImageNotReadyError(f"Image not loaded or invalid: could not read {path}")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def resample(image_np: np.ndarray,
             width: int,
             height: int,
             blur_sigma: float = 0.0) -> np.ndarray:
    """
    Resample an image to an exact width x height grid.

    Aspect ratio is ignored: the whole image is squeezed into the grid, no
    letterboxing or cropping. Area interpolation provides the anti-aliasing.

    Args:
        image_np: Image in any format accepted by normalize_image().
        width: Target grid width.
        height: Target grid height.
        blur_sigma: Optional Gaussian blur applied on the resampled grid.

    Returns:
        RGB uint8 array of shape (height, width, 3).

    Raises:
        ImageNotReadyError: If the image is missing or empty.
        RenderingSurfaceError: If OpenCV cannot produce the grid.
    """
    image_np = normalize_image(ensure_ready(image_np))

    try:
        grid = cv2.resize(image_np, (width, height), interpolation=cv2.INTER_AREA)
        if blur_sigma > 0:
            grid = cv2.GaussianBlur(grid, (0, 0), sigmaX=blur_sigma, sigmaY=blur_sigma)
    except cv2.error as e:
        raise RenderingSurfaceError(f"Cannot acquire drawing surface: {e}") from e

    if grid is None or grid.shape[:2] != (height, width):
        raise RenderingSurfaceError("Cannot acquire drawing surface")

    return grid


def encode_preview(grid: np.ndarray) -> str:
    """Render a sampled RGB grid as a PNG data URL."""
    try:
        ok, buffer = cv2.imencode(".png", cv2.cvtColor(grid, cv2.COLOR_RGB2BGR))
    except cv2.error as e:
        raise RenderingSurfaceError(f"Cannot acquire drawing surface: {e}") from e

    if not ok:
        raise RenderingSurfaceError("Cannot acquire drawing surface: PNG encoding failed")

    return PNG_DATA_URL_PREFIX + base64.b64encode(buffer.tobytes()).decode("ascii")
