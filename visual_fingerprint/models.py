"""
Value types shared across the fingerprinting pipeline.

A Fingerprint is a tagged value: the kind says which extractor produced it
and therefore which metrics apply. dHash values are bit strings ("0101...");
HSV-mean values are tuples of floats. All types here are immutable.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


class FingerprintKind(str, Enum):
    """Fingerprint algorithm that produced a descriptor."""

    DHASH = "dhash"
    HSV_MEAN = "hsv_mean"


@dataclass(frozen=True)
class Fingerprint:
    kind: FingerprintKind
    value: Union[str, Tuple[float, ...]]

    @classmethod
    def dhash(cls, bits: str) -> "Fingerprint":
        return cls(FingerprintKind.DHASH, bits)

    @classmethod
    def hsv_mean(cls, values) -> "Fingerprint":
        return cls(FingerprintKind.HSV_MEAN, tuple(float(v) for v in values))

    def __len__(self) -> int:
        return len(self.value)


@dataclass(frozen=True)
class FingerprintResult:
    """Extractor output: the descriptor plus a PNG data URL of the sampled grid."""

    fingerprint: Fingerprint
    preview: str


@dataclass(frozen=True)
class SimilarityResult:
    """Float-vector comparison metrics (HSV-mean fingerprints)."""

    euclidean: float
    cosine: float
    manhattan: float
    is_similar: bool

    @property
    def distance(self) -> float:
        return self.euclidean


@dataclass(frozen=True)
class HammingResult:
    """Bit-string comparison metrics (dHash fingerprints)."""

    hamming: int
    bit_length: int
    is_similar: bool

    @property
    def distance(self) -> float:
        return float(self.hamming)

    @property
    def normalized(self) -> float:
        if self.bit_length == 0:
            return math.nan
        return self.hamming / self.bit_length


@dataclass(frozen=True)
class CatalogItem:
    """A stored collection item with its decoded fingerprint."""

    id: str
    name: str
    fingerprint: Fingerprint
    description: str = ""
    photo_url: Optional[str] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)
    created_at: Optional[str] = None


@dataclass(frozen=True)
class RankedItem:
    """A catalogue item annotated for one ranking query. Never persisted."""

    item: CatalogItem
    similarity: Union[SimilarityResult, HammingResult]
    match_percentage: float
