"""
Ranking of a catalogue snapshot against a query fingerprint.

Two modes:
    rank_collection  every item, most similar first (photo search)
    find_similar     only items passing the similarity threshold

match_percentage is relative to the worst match in the same call:
(max_distance - distance) / max_distance * 100. It ranks items within one
query and is not comparable between queries.

All functions take the collection explicitly and never mutate it.
"""

import os
import logging
from typing import List, Optional, Sequence

from .models import CatalogItem, Fingerprint, FingerprintKind, RankedItem
from .scoring import compare

logger = logging.getLogger(__name__)

# "distance" = the kind's primary distance (euclidean / hamming).
# "manhattan" reproduces the legacy ordering for HSV-mean fingerprints.
RANKING_METRIC = os.environ.get("RANKING_METRIC", "distance")

_METRICS = ("distance", "manhattan")


def _distance_of(similarity, metric: str) -> float:
    if metric == "manhattan" and hasattr(similarity, "manhattan"):
        return similarity.manhattan
    return similarity.distance


def rank_collection(query: Fingerprint,
                    items: Sequence[CatalogItem],
                    metric: Optional[str] = None,
                    threshold: Optional[float] = None) -> List[RankedItem]:
    """
    Rank every catalogue item by distance to the query.

    Args:
        query: Query fingerprint.
        items: Snapshot of the catalogue.
        metric: "distance" (default) or "manhattan". Manhattan only applies
                to HSV-mean fingerprints; dHash always uses Hamming.
        threshold: Passed to the scorer for each item's is_similar flag.

    Returns:
        RankedItems sorted by ascending distance. Ties keep collection order.

    Raises:
        ValueError: On an unknown metric.
        FingerprintKindError, FingerprintLengthError: If an item's
            fingerprint cannot be compared with the query.
    """
    metric = metric or RANKING_METRIC
    if metric not in _METRICS:
        raise ValueError(f"Unknown ranking metric {metric!r}. Expected one of {_METRICS}")

    scored = []
    for item in items:
        similarity = compare(query, item.fingerprint, threshold=threshold)
        scored.append((item, similarity, _distance_of(similarity, metric)))

    if not scored:
        return []

    max_distance = max(distance for _, _, distance in scored)

    ranked = [
        RankedItem(
            item=item,
            similarity=similarity,
            match_percentage=(
                (max_distance - distance) / max_distance * 100
                if max_distance > 0 else 0.0
            ),
        )
        for item, similarity, distance in scored
    ]

    # sorted() is stable, so equal distances keep collection order
    ranked = sorted(ranked, key=lambda r: _distance_of(r.similarity, metric))

    logger.debug(
        f"Ranked {len(ranked)} items by {metric} "
        f"({query.kind.value}, max distance {max_distance:.4f})"
    )
    return ranked


def find_similar(query: Fingerprint,
                 items: Sequence[CatalogItem],
                 threshold: Optional[float] = None,
                 metric: Optional[str] = None) -> List[RankedItem]:
    """
    Threshold-gated search: only items whose is_similar flag is set.

    The threshold is in the query kind's distance unit: euclidean distance
    for HSV-mean (item kept if distance < threshold), differing bits for
    dHash (item kept if hamming <= threshold). Match percentages are still
    normalized against the whole collection, not just the kept items.
    """
    ranked = rank_collection(query, items, metric=metric, threshold=threshold)
    similar = [r for r in ranked if r.similarity.is_similar]

    logger.debug(f"{len(similar)} of {len(ranked)} items passed the similarity threshold")
    return similar


def search_by_text(items: Sequence[CatalogItem], query: str) -> List[CatalogItem]:
    """
    Case-insensitive substring search over name, description and tags.

    A blank query matches nothing. Otherwise the query is matched as typed,
    so surrounding spaces take part in the match. Results keep collection
    order.
    """
    if not query or not query.strip():
        return []

    needle = query.lower()
    return [
        item for item in items
        if needle in item.name.lower()
        or needle in (item.description or "").lower()
        or any(needle in tag.lower() for tag in item.tags)
    ]


def collection_kind(items: Sequence[CatalogItem]) -> Optional[FingerprintKind]:
    """Fingerprint kind shared by the collection, or None if empty or mixed."""
    kinds = {item.fingerprint.kind for item in items}
    if len(kinds) == 1:
        return kinds.pop()
    return None
