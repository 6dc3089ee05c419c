"""
Perceptual difference hash (dHash) extraction.

The image is squeezed into a (hash_size + 1) x hash_size grid and each bit
records whether a sample is at least as bright as its right-hand neighbour.
Brightness is approximated by the red channel; the area resampling already
smooths the grid enough that a full luma conversion buys nothing.

With the default hash_size of 8 the result is a 64-bit string, stored as
16 hex digits (see codec.bits_to_hex).
"""

import os
import logging

import numpy as np

from .models import Fingerprint, FingerprintResult
from .preprocessing import encode_preview, resample, validate_size

logger = logging.getLogger(__name__)

HASH_SIZE = int(os.environ.get("DHASH_SIZE", "8"))

# Channel used as the brightness proxy (RGB order)
BRIGHTNESS_CHANNEL = 0


def compute_dhash_bits(grid: np.ndarray) -> str:
    """
    Compute the dHash bit string of an already resampled grid.

    Args:
        grid: RGB uint8 array of shape (hash_size, hash_size + 1, 3).

    Returns:
        Bit string of length hash_size * hash_size in row-major order.
    """
    brightness = grid[:, :, BRIGHTNESS_CHANNEL].astype(np.int16)
    left = brightness[:, :-1]
    right = brightness[:, 1:]
    bits = (left >= right).ravel()
    return "".join("1" if b else "0" for b in bits)


def extract_dhash(image_np: np.ndarray,
                  hash_size: int = None) -> FingerprintResult:
    """
    Extract a dHash fingerprint and a preview of the sampled grid.

    Args:
        image_np: Decoded RGB image of any size.
        hash_size: Grid height / bits per row, 8 to 128. Defaults to HASH_SIZE.

    Returns:
        FingerprintResult with a DHASH fingerprint of hash_size**2 bits.

    Raises:
        InvalidSizeError: If hash_size is out of range.
        ImageNotReadyError: If the image is missing or empty.
        RenderingSurfaceError: If the grid cannot be sampled or rendered.
    """
    hash_size = validate_size(HASH_SIZE if hash_size is None else hash_size)

    grid = resample(image_np, hash_size + 1, hash_size)
    bits = compute_dhash_bits(grid)
    preview = encode_preview(grid)

    logger.debug(f"Computed {len(bits)}-bit dHash from {image_np.shape[1]}x{image_np.shape[0]} image")
    return FingerprintResult(fingerprint=Fingerprint.dhash(bits), preview=preview)
