"""
Legacy HSV-mean fingerprint extraction.

The image is resampled to a size x size grid, lightly blurred to suppress
compression noise, and converted to HSV. Only hue and saturation are kept,
so overall brightness changes do not move the fingerprint. The flattened
(hue, saturation) sequence is then mean-centered to cancel a global tint.

With the default size of 32 the fingerprint has 2 * 32 * 32 = 2048 floats.
HSV conversion is done here rather than with cv2.COLOR_RGB2HSV because the
stored fingerprints depend on exact hue values in [0, 360), not OpenCV's
8-bit [0, 180) encoding.
"""

import os
import logging
from typing import Tuple

import numpy as np

from .models import Fingerprint, FingerprintResult
from .preprocessing import encode_preview, resample, validate_size

logger = logging.getLogger(__name__)

FINGERPRINT_SIZE = int(os.environ.get("HSV_FINGERPRINT_SIZE", "32"))
BLUR_SIGMA = float(os.environ.get("HSV_BLUR_SIGMA", "1.0"))


def rgb_to_hsv(r: float, g: float, b: float) -> Tuple[float, float]:
    """
    Convert one 0-255 RGB triple to (hue in degrees, saturation).

    Value is not returned; the fingerprint never uses it.
    """
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    mx = max(r, g, b)
    mn = min(r, g, b)
    diff = mx - mn

    s = 0.0 if mx == 0 else diff / mx
    h = 0.0
    if diff != 0:
        if mx == r:
            h = ((g - b) / diff + (6 if g < b else 0)) / 6
        elif mx == g:
            h = ((b - r) / diff + 2) / 6
        else:
            h = ((r - g) / diff + 4) / 6

    return h * 360, s


def rgb_to_hsv_array(pixels: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorized rgb_to_hsv over an (..., 3) uint8 array.

    Returns:
        Tuple of (hue_degrees, saturation) arrays with the input's leading shape.
    """
    rgb = pixels.astype(np.float64) / 255.0
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    mx = rgb.max(axis=-1)
    mn = rgb.min(axis=-1)
    diff = mx - mn

    s = np.divide(diff, mx, out=np.zeros_like(mx), where=mx != 0)

    safe_diff = np.where(diff == 0, 1.0, diff)
    h_red = ((g - b) / safe_diff + np.where(g < b, 6.0, 0.0)) / 6
    h_green = ((b - r) / safe_diff + 2) / 6
    h_blue = ((r - g) / safe_diff + 4) / 6

    # Same precedence as the scalar version: red, then green, then blue
    h = np.select([mx == r, mx == g], [h_red, h_green], default=h_blue)
    h = np.where(diff == 0, 0.0, h)

    return h * 360, s


def extract_hsv_fingerprint(image_np: np.ndarray,
                            size: int = None) -> FingerprintResult:
    """
    Extract a mean-centered hue/saturation fingerprint.

    Process:
        1. Resample to size x size and apply a ~1px Gaussian blur
        2. Convert every pixel to HSV, keep hue/360 and saturation
        3. Interleave as (h, s) pairs in scan order
        4. Subtract the global mean from every value

    Args:
        image_np: Decoded RGB image of any size.
        size: Grid edge length, 8 to 128. Defaults to FINGERPRINT_SIZE.

    Returns:
        FingerprintResult with an HSV_MEAN fingerprint of 2 * size**2 floats.

    Raises:
        InvalidSizeError: If size is out of range.
        ImageNotReadyError: If the image is missing or empty.
        RenderingSurfaceError: If the grid cannot be sampled or rendered.
    """
    size = validate_size(FINGERPRINT_SIZE if size is None else size)

    grid = resample(image_np, size, size, blur_sigma=BLUR_SIGMA)
    hue, sat = rgb_to_hsv_array(grid)

    values = np.stack([hue / 360.0, sat], axis=-1).ravel()
    values = values - values.mean()

    preview = encode_preview(grid)

    logger.debug(f"Computed {values.size}-value HSV fingerprint at {size}x{size}")
    return FingerprintResult(fingerprint=Fingerprint.hsv_mean(values), preview=preview)
