"""Tests for collection ranking, threshold gating and text search."""

import pytest

from visual_fingerprint.errors import FingerprintLengthError
from visual_fingerprint.models import CatalogItem, Fingerprint, FingerprintKind
from visual_fingerprint.ranking import (
    collection_kind, find_similar, rank_collection, search_by_text,
)


def _item(item_id, fingerprint):
    return CatalogItem(id=item_id, name=item_id, fingerprint=fingerprint)


class TestRankCollection:
    """Tests for rank-entire-collection mode."""

    def test_orders_by_distance(self, vector_catalog):
        query = Fingerprint.hsv_mean([0, 0])
        ranked = rank_collection(query, list(reversed(vector_catalog)))
        assert [r.item.id for r in ranked] == ["origin", "far"]
        assert ranked[0].similarity.euclidean == 0
        assert ranked[1].similarity.euclidean == pytest.approx(5)

    def test_match_percentage_relative_to_worst(self, vector_catalog):
        ranked = rank_collection(Fingerprint.hsv_mean([0, 0]), vector_catalog)
        assert ranked[0].match_percentage == pytest.approx(100)
        assert ranked[1].match_percentage == pytest.approx(0)

    def test_match_percentage_midpoint(self):
        items = [
            _item("a", Fingerprint.hsv_mean([0, 0])),
            _item("b", Fingerprint.hsv_mean([0, 5])),
            _item("c", Fingerprint.hsv_mean([0, 10])),
        ]
        ranked = rank_collection(Fingerprint.hsv_mean([0, 0]), items)
        assert [r.match_percentage for r in ranked] == pytest.approx([100, 50, 0])

    def test_all_identical_gives_zero_percentage(self):
        items = [_item(str(i), Fingerprint.hsv_mean([1, 1])) for i in range(3)]
        ranked = rank_collection(Fingerprint.hsv_mean([1, 1]), items)
        assert all(r.match_percentage == 0 for r in ranked)

    def test_ties_keep_collection_order(self):
        items = [
            _item("first", Fingerprint.hsv_mean([3, 4])),
            _item("second", Fingerprint.hsv_mean([4, 3])),
            _item("third", Fingerprint.hsv_mean([0, 5])),
        ]
        ranked = rank_collection(Fingerprint.hsv_mean([0, 0]), items)
        assert [r.item.id for r in ranked] == ["first", "second", "third"]

    def test_manhattan_metric_changes_order(self):
        items = [
            _item("diagonal", Fingerprint.hsv_mean([3, 3])),  # euclid 4.24, manhattan 6
            _item("axis", Fingerprint.hsv_mean([0, 5])),      # euclid 5, manhattan 5
        ]
        query = Fingerprint.hsv_mean([0, 0])
        by_distance = rank_collection(query, items)
        by_manhattan = rank_collection(query, items, metric="manhattan")
        assert [r.item.id for r in by_distance] == ["diagonal", "axis"]
        assert [r.item.id for r in by_manhattan] == ["axis", "diagonal"]

    def test_dhash_ranks_by_hamming(self):
        items = [
            _item("far", Fingerprint.dhash("1111")),
            _item("near", Fingerprint.dhash("0001")),
            _item("same", Fingerprint.dhash("0000")),
        ]
        ranked = rank_collection(Fingerprint.dhash("0000"), items)
        assert [r.item.id for r in ranked] == ["same", "near", "far"]
        assert [r.match_percentage for r in ranked] == pytest.approx([100, 75, 0])

    def test_does_not_mutate_input(self, vector_catalog):
        snapshot = list(vector_catalog)
        rank_collection(Fingerprint.hsv_mean([3, 4]), vector_catalog)
        assert vector_catalog == snapshot

    def test_empty_collection(self):
        assert rank_collection(Fingerprint.hsv_mean([0, 0]), []) == []

    def test_unknown_metric_raises(self, vector_catalog):
        with pytest.raises(ValueError, match="metric"):
            rank_collection(Fingerprint.hsv_mean([0, 0]), vector_catalog, metric="cosine")

    def test_length_mismatch_propagates(self, vector_catalog):
        with pytest.raises(FingerprintLengthError):
            rank_collection(Fingerprint.hsv_mean([0, 0, 0]), vector_catalog)


class TestFindSimilar:
    """Tests for threshold-gated mode."""

    def test_wide_threshold_keeps_both(self, vector_catalog):
        similar = find_similar(Fingerprint.hsv_mean([0, 0]), vector_catalog, threshold=6)
        assert [r.item.id for r in similar] == ["origin", "far"]
        assert [r.similarity.euclidean for r in similar] == pytest.approx([0, 5])

    def test_narrow_threshold_keeps_closest(self, vector_catalog):
        similar = find_similar(Fingerprint.hsv_mean([0, 0]), vector_catalog, threshold=1)
        assert [r.item.id for r in similar] == ["origin"]

    def test_default_threshold(self, vector_catalog):
        similar = find_similar(Fingerprint.hsv_mean([0, 0]), vector_catalog)
        assert [r.item.id for r in similar] == ["origin"]

    def test_dhash_threshold_in_bits(self):
        items = [
            _item("two_off", Fingerprint.dhash("11" + "0" * 62)),
            _item("ten_off", Fingerprint.dhash("1" * 10 + "0" * 54)),
        ]
        query = Fingerprint.dhash("0" * 64)
        assert [r.item.id for r in find_similar(query, items)] == ["two_off"]
        assert len(find_similar(query, items, threshold=10)) == 2


class TestSearchByText:
    """Tests for name/description/tag text search."""

    def test_matches_name_case_insensitive(self, tagged_catalog):
        assert [i.id for i in search_by_text(tagged_catalog, "mug")] == ["1"]

    def test_matches_description(self, tagged_catalog):
        assert [i.id for i in search_by_text(tagged_catalog, "LISBON")] == ["3"]

    def test_matches_tags_in_order(self, tagged_catalog):
        assert [i.id for i in search_by_text(tagged_catalog, "kitchen")] == ["1", "2"]

    def test_blank_query_matches_nothing(self, tagged_catalog):
        assert search_by_text(tagged_catalog, "   ") == []
        assert search_by_text(tagged_catalog, "") == []

    def test_query_matched_as_typed(self, tagged_catalog):
        assert [i.id for i in search_by_text(tagged_catalog, " mug")] == ["1"]
        assert search_by_text(tagged_catalog, "mug ") == []

    def test_no_match(self, tagged_catalog):
        assert search_by_text(tagged_catalog, "bicycle") == []


class TestCollectionKind:

    def test_uniform(self, vector_catalog):
        assert collection_kind(vector_catalog) == FingerprintKind.HSV_MEAN

    def test_mixed_or_empty(self, vector_catalog):
        mixed = vector_catalog + [_item("d", Fingerprint.dhash("0000"))]
        assert collection_kind(mixed) is None
        assert collection_kind([]) is None
