"""Tests for collection-prefixed document ids."""

import pytest

from searchsync.sync.ids import add_collection_prefix, prefixed_id


class TestPrefixedId:
    """prefixed_id tests."""

    def test_given_natural_key_when_prefixed_then_collection_dash_key(self) -> None:
        assert prefixed_id("article", 42) == "article-42"

    def test_given_custom_key_when_prefixed_then_collection_dash_key(self) -> None:
        assert prefixed_id("article", "intro") == "article-intro"


class TestAddCollectionPrefix:
    """add_collection_prefix tests."""

    def test_given_entries_when_prefixed_then_primary_key_attached(self) -> None:
        # Given
        entries = [{"id": 1}, {"id": 2, "slug": "b"}]

        # When
        result = add_collection_prefix("posts", entries, [1, "b"])

        # Then
        assert result == [
            {"id": 1, "_meilisearch_id": "posts-1"},
            {"id": 2, "slug": "b", "_meilisearch_id": "posts-b"},
        ]
        assert "_meilisearch_id" not in entries[0]

    def test_given_key_count_mismatch_when_prefixed_then_value_error(self) -> None:
        with pytest.raises(ValueError):
            add_collection_prefix("posts", [{"id": 1}], [])
