"""
Fingerprint engine.

Binds one fingerprint method (the system of record for a deployment) and
its thresholds, and runs the pipeline:
    1. Extract a fingerprint + preview from the query image
    2. Score it against every item of the supplied catalogue snapshot
    3. Rank, optionally gate by threshold, and trim

Catalogue items are always passed in by the caller; the engine holds no
collection state and can be shared between threads.
"""

import os
import logging
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .dhash import extract_dhash
from .errors import FingerprintKindError
from .hsv_mean import extract_hsv_fingerprint
from .models import CatalogItem, Fingerprint, FingerprintKind, FingerprintResult, RankedItem
from .preprocessing import decode_image
from .ranking import collection_kind, find_similar, rank_collection, search_by_text
from .scoring import compare

logger = logging.getLogger(__name__)

DEFAULT_METHOD = os.environ.get("FINGERPRINT_METHOD", FingerprintKind.DHASH.value)

_EXTRACTORS = {
    FingerprintKind.DHASH: extract_dhash,
    FingerprintKind.HSV_MEAN: extract_hsv_fingerprint,
}


class FingerprintEngine:
    """
    Extracts fingerprints with one configured method and searches
    catalogue snapshots with them.
    """

    def __init__(self,
                 method: str = None,
                 size: int = None,
                 threshold: float = None,
                 metric: str = None):
        """
        Args:
            method: "dhash" or "hsv_mean". Defaults to FINGERPRINT_METHOD.
            size: Grid size passed to the extractor (8-128). None uses the
                  extractor's own default.
            threshold: Similarity threshold in the method's distance unit
                       (euclidean for hsv_mean, differing bits for dhash).
            metric: Ranking metric, see ranking.rank_collection().

        Raises:
            ValueError: On an unknown method.
        """
        method = method or DEFAULT_METHOD
        try:
            self.kind = FingerprintKind(method)
        except ValueError:
            raise ValueError(
                f"Unknown fingerprint method {method!r}. "
                f"Expected one of {[k.value for k in FingerprintKind]}"
            ) from None

        self.size = size
        self.threshold = threshold
        self.metric = metric
        self._extract = _EXTRACTORS[self.kind]

        logger.info(f"Fingerprint engine ready: method={self.kind.value}, size={size or 'default'}")

    def fingerprint(self, image_np: np.ndarray) -> FingerprintResult:
        """Extract a fingerprint and preview from a decoded RGB image."""
        return self._extract(image_np, self.size)

    def fingerprint_bytes(self, data: Union[bytes, str]) -> FingerprintResult:
        """Extract a fingerprint from encoded image bytes or a data URL."""
        return self.fingerprint(decode_image(data))

    def compare(self, fp1: Fingerprint, fp2: Fingerprint):
        return compare(fp1, fp2, threshold=self.threshold)

    def search(self,
               query_image: np.ndarray,
               items: Sequence[CatalogItem],
               top_k: Optional[int] = None,
               gated: bool = False) -> Tuple[FingerprintResult, List[RankedItem]]:
        """
        Search a catalogue snapshot by visual similarity.

        Args:
            query_image: Decoded RGB query image.
            items: Catalogue snapshot to rank.
            top_k: Maximum number of results, None for all.
            gated: Only return items below the similarity threshold.

        Returns:
            Tuple of (query FingerprintResult, ranked items). The query
            result carries the preview for display.

        Raises:
            FingerprintKindError: If the catalogue holds fingerprints of
                another kind; those need an explicit migration.
        """
        query = self.fingerprint(query_image)

        kind = collection_kind(items)
        if items and kind != self.kind:
            raise FingerprintKindError(
                f"Catalogue fingerprints are {kind.value if kind else 'mixed'}, "
                f"engine uses {self.kind.value}; re-fingerprint the catalogue first"
            )

        if gated:
            results = find_similar(query.fingerprint, items,
                                   threshold=self.threshold, metric=self.metric)
        else:
            results = rank_collection(query.fingerprint, items,
                                      metric=self.metric, threshold=self.threshold)

        if top_k is not None:
            results = results[:top_k]

        logger.info(
            f"Search complete: {len(items)} candidates → {len(results)} results"
            f"{' (gated)' if gated else ''}"
        )
        return query, results

    def search_text(self, items: Sequence[CatalogItem], query: str) -> List[CatalogItem]:
        return search_by_text(items, query)
