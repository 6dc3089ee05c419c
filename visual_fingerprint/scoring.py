"""
Similarity metrics between two fingerprints.

Float vectors (HSV-mean) get euclidean, cosine and manhattan metrics with
an euclidean threshold for "is similar". Bit strings (dHash) get Hamming
distance with a threshold expressed in differing bits. compare() dispatches
on the fingerprint kind; comparing different kinds or lengths is rejected,
never padded or truncated.

Cosine similarity is NaN when either vector is all zeros. That is reported
as-is rather than mapped to 0; is_similar never depends on it.
"""

import os
import math
import logging
from typing import Optional, Sequence, Union

import numpy as np

from .errors import FingerprintKindError, FingerprintLengthError
from .models import Fingerprint, FingerprintKind, HammingResult, SimilarityResult

logger = logging.getLogger(__name__)

# Euclidean distance below which two HSV-mean fingerprints count as similar
SIMILARITY_THRESHOLD = float(os.environ.get("SIMILARITY_THRESHOLD", "0.5"))

# Fraction of differing bits up to which two dHashes count as similar
DHASH_SIMILAR_FRACTION = float(os.environ.get("DHASH_SIMILAR_FRACTION", "0.10"))


def _check_lengths(len_a: int, len_b: int) -> None:
    if len_a != len_b:
        raise FingerprintLengthError(
            f"Fingerprint lengths differ: {len_a} vs {len_b}"
        )


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.sqrt(np.sum((a - b) ** 2)))


def manhattan_distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.sum(np.abs(a - b)))


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine of the angle between a and b; NaN if either is a zero vector."""
    norm_product = float(np.linalg.norm(a) * np.linalg.norm(b))
    if norm_product == 0:
        return math.nan
    return float(np.dot(a, b) / norm_product)


def calculate_similarity(fp1: Sequence[float],
                         fp2: Sequence[float],
                         threshold: float = None) -> SimilarityResult:
    """
    Compare two equal-length float vectors.

    Args:
        fp1: First vector.
        fp2: Second vector.
        threshold: Euclidean distance below which the pair is similar.
                   Defaults to SIMILARITY_THRESHOLD.

    Returns:
        SimilarityResult with euclidean, cosine, manhattan and is_similar.

    Raises:
        FingerprintLengthError: If the vectors differ in length.
    """
    threshold = SIMILARITY_THRESHOLD if threshold is None else threshold

    a = np.asarray(fp1, dtype=np.float64).ravel()
    b = np.asarray(fp2, dtype=np.float64).ravel()
    _check_lengths(a.size, b.size)

    euclidean = euclidean_distance(a, b)
    cosine = cosine_similarity(a, b)
    manhattan = manhattan_distance(a, b)

    # NaN compares False, so a degenerate distance is never "similar"
    is_similar = bool(euclidean < threshold)

    return SimilarityResult(
        euclidean=euclidean,
        cosine=cosine,
        manhattan=manhattan,
        is_similar=is_similar,
    )


def hamming_distance(bits1: str, bits2: str) -> int:
    """Count differing positions between two equal-length bit strings."""
    _check_lengths(len(bits1), len(bits2))
    if not bits1:
        return 0
    return bin(int(bits1, 2) ^ int(bits2, 2)).count("1")


def default_max_bits(bit_length: int) -> int:
    """Largest Hamming distance still considered similar for a hash length."""
    return int(math.floor(DHASH_SIMILAR_FRACTION * bit_length))


def calculate_bit_similarity(bits1: str,
                             bits2: str,
                             max_bits: Optional[int] = None) -> HammingResult:
    """
    Compare two equal-length dHash bit strings.

    Args:
        bits1: First bit string.
        bits2: Second bit string.
        max_bits: Largest Hamming distance still similar. Defaults to
                  DHASH_SIMILAR_FRACTION of the bit length (6 of 64).

    Returns:
        HammingResult.

    Raises:
        FingerprintLengthError: If the bit strings differ in length.
    """
    distance = hamming_distance(bits1, bits2)
    bit_length = len(bits1)
    if max_bits is None:
        max_bits = default_max_bits(bit_length)

    return HammingResult(
        hamming=distance,
        bit_length=bit_length,
        is_similar=distance <= max_bits,
    )


def compare(fp1: Fingerprint,
            fp2: Fingerprint,
            threshold: Optional[float] = None) -> Union[SimilarityResult, HammingResult]:
    """
    Compare two fingerprints with the metrics appropriate to their kind.

    Args:
        fp1: First fingerprint.
        fp2: Second fingerprint.
        threshold: Similarity threshold in the kind's distance unit:
                   euclidean distance (strict) for HSV-mean, differing
                   bits (inclusive) for dHash. None uses the defaults.

    Raises:
        FingerprintKindError: If the fingerprints were made by different methods.
        FingerprintLengthError: If the fingerprints differ in length.
    """
    if fp1.kind != fp2.kind:
        raise FingerprintKindError(
            f"Cannot compare {fp1.kind.value} fingerprint with {fp2.kind.value} fingerprint"
        )

    if fp1.kind == FingerprintKind.DHASH:
        max_bits = None if threshold is None else int(math.floor(threshold))
        return calculate_bit_similarity(fp1.value, fp2.value, max_bits=max_bits)

    return calculate_similarity(fp1.value, fp2.value, threshold=threshold)
