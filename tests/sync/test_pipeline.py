"""Tests for the entry transform/filter pipeline."""

from __future__ import annotations

from typing import Any

import pytest
from structlog.testing import capture_logs

from searchsync.config.models import EntityTypeConfig, EntriesQuery
from searchsync.sync.pipeline import (
    EntryPipeline,
    remove_other_locales,
    remove_sensitive_fields,
    remove_unpublished,
    resolve_key,
)
from searchsync.sync.resolver import ConfigResolver
from tests.sync.fakes import ARTICLES, POSTS, FakeRecordStore


def make_pipeline(**configs: EntityTypeConfig) -> EntryPipeline:
    return EntryPipeline(ConfigResolver(configs, FakeRecordStore()))


def published(entry_id: int, **fields: Any) -> dict[str, Any]:
    return {"id": entry_id, "publishedAt": "2024-01-01", **fields}


class TestRedaction:
    """Sensitive field removal."""

    def test_given_author_fields_when_redacted_then_removed(self) -> None:
        """createdBy and updatedBy never survive."""
        # Given
        entries = [{"id": 1, "title": "a", "createdBy": {"id": 9}, "updatedBy": {"id": 9}}]

        # When
        result = remove_sensitive_fields(entries)

        # Then
        assert result == [{"id": 1, "title": "a"}]

    def test_given_entries_when_redacted_then_inputs_untouched(self) -> None:
        """Redaction works on copies."""
        entries = [{"id": 1, "createdBy": "x"}]

        remove_sensitive_fields(entries)

        assert entries == [{"id": 1, "createdBy": "x"}]

    @pytest.mark.asyncio
    async def test_given_transform_adding_author_when_run_then_still_redacted(self) -> None:
        """Redaction runs after the transform hook."""
        # Given
        pipeline = make_pipeline(
            posts=EntityTypeConfig(transform_entry=lambda entry, entity_type: {**entry, "createdBy": "me"})
        )

        # When
        result = await pipeline.run(POSTS, [published(1)])

        # Then
        assert len(result.documents) == 1
        assert "createdBy" not in result.documents[0]
        assert "updatedBy" not in result.documents[0]


class TestPublicationState:
    """Draft removal."""

    def test_given_draft_when_live_then_excluded(self) -> None:
        """Entries with publishedAt None are dropped."""
        entries = [published(1), {"id": 2, "publishedAt": None}]

        result = remove_unpublished(entries, EntriesQuery())

        assert [e["id"] for e in result] == [1]

    def test_given_draft_when_preview_then_kept(self) -> None:
        """Preview keeps drafts."""
        entries = [published(1), {"id": 2, "publishedAt": None}]

        result = remove_unpublished(entries, EntriesQuery(publication_state="preview"))

        assert [e["id"] for e in result] == [1, 2]

    def test_given_no_published_at_field_when_live_then_kept(self) -> None:
        """Types without a draft system are not filtered."""
        result = remove_unpublished([{"id": 1}], EntriesQuery())

        assert result == [{"id": 1}]

    def test_given_camel_case_yaml_key_when_parsed_then_preview(self) -> None:
        """publicationState is accepted as written in the store's query language."""
        query = EntriesQuery.model_validate({"publicationState": "preview"})

        assert query.publication_state == "preview"
        assert query.to_query() == {"publicationState": "preview"}

    @pytest.mark.asyncio
    async def test_given_unpublished_transform_when_run_then_applied_before_filter(self) -> None:
        """The unpublished transform sees every entry, then drafts are dropped."""
        # Given
        seen: list[int] = []

        def publish_even(entry: dict, entity_type: str) -> dict:
            seen.append(entry["id"])
            if entry["id"] % 2 == 0:
                return {**entry, "publishedAt": "2024-02-02"}
            return entry

        pipeline = make_pipeline(posts=EntityTypeConfig(transform_unpublished_entry=publish_even))
        entries = [{"id": i, "publishedAt": None} for i in range(1, 5)]

        # When
        result = await pipeline.run(POSTS, entries)

        # Then
        assert seen == [1, 2, 3, 4]
        assert [d["id"] for d in result.documents] == [2, 4]

    @pytest.mark.asyncio
    async def test_given_unpublished_transform_adding_author_when_run_then_redacted(self) -> None:
        """Author fields added by the unpublished transform never reach documents."""
        pipeline = make_pipeline(
            posts=EntityTypeConfig(
                transform_unpublished_entry=lambda entry, entity_type: {
                    **entry,
                    "createdBy": {"email": "a@b.c"},
                    "updatedBy": {"email": "a@b.c"},
                }
            )
        )

        result = await pipeline.run(POSTS, [published(1)])

        assert result.documents == [
            {"id": 1, "publishedAt": "2024-01-01", "_meilisearch_id": "posts-1"}
        ]

    @pytest.mark.asyncio
    async def test_given_unpublished_transform_failing_when_run_then_aborted(self) -> None:
        """A failing unpublished transform drops the batch."""

        def boom(entry: dict, entity_type: str) -> dict:
            raise RuntimeError("nope")

        pipeline = make_pipeline(posts=EntityTypeConfig(transform_unpublished_entry=boom))

        result = await pipeline.run(POSTS, [published(1)])

        assert result.aborted
        assert result.documents == []


class TestLocale:
    """Locale filtering."""

    def test_given_locale_en_when_filtered_then_others_excluded(self) -> None:
        entries = [{"id": 1, "locale": "en"}, {"id": 2, "locale": "fr"}, {"id": 3}]

        result = remove_other_locales(entries, EntriesQuery(locale="en"))

        assert [e["id"] for e in result] == [1]

    @pytest.mark.parametrize("locale", [None, "all"])
    def test_given_unset_or_all_when_filtered_then_nothing_excluded(self, locale: str | None) -> None:
        entries = [{"id": 1, "locale": "en"}, {"id": 2, "locale": "fr"}]

        result = remove_other_locales(entries, EntriesQuery(locale=locale))

        assert result == entries


class TestTransform:
    """transform_entry hook."""

    @pytest.mark.asyncio
    async def test_given_async_transform_when_run_then_order_preserved(self) -> None:
        """Concurrent transforms keep input order."""
        import asyncio

        async def slow_first(entry: dict, entity_type: str) -> dict:
            await asyncio.sleep(0.01 if entry["id"] == 1 else 0)
            return {**entry, "title": f"t{entry['id']}"}

        pipeline = make_pipeline(posts=EntityTypeConfig(transform_entry=slow_first))

        result = await pipeline.transform(POSTS, [published(1), published(2), published(3)])

        assert [e["title"] for e in result] == ["t1", "t2", "t3"]

    @pytest.mark.asyncio
    async def test_given_transform_throwing_when_run_then_empty_not_partial(self) -> None:
        """One failing entry drops the whole batch."""
        # Given
        def fail_on_two(entry: dict, entity_type: str) -> dict:
            if entry["id"] == 2:
                raise ValueError("bad entry")
            return entry

        pipeline = make_pipeline(posts=EntityTypeConfig(transform_entry=fail_on_two))

        # When
        with capture_logs() as logs:
            result = await pipeline.run(POSTS, [published(1), published(2), published(3)])

        # Then
        assert result.aborted
        assert result.documents == []
        assert logs[0]["event"] == "indexing_aborted"
        assert logs[0]["log_level"] == "error"
        assert logs[0]["error_code"] == "TRANSFORM_FAILED"

    @pytest.mark.asyncio
    async def test_given_transform_returning_non_dict_when_run_then_aborted(self) -> None:
        """A transform must return mappings."""
        pipeline = make_pipeline(posts=EntityTypeConfig(transform_entry=lambda entry, entity_type: "x"))

        result = await pipeline.run(POSTS, [published(1)])

        assert result.aborted
        assert result.documents == []

    @pytest.mark.asyncio
    async def test_given_later_result_not_dict_when_run_then_aborted(self) -> None:
        """Every transform result is checked, not only the first."""
        pipeline = make_pipeline(
            posts=EntityTypeConfig(
                transform_entry=lambda entry, entity_type: entry if entry["id"] == 1 else None
            )
        )

        with capture_logs() as logs:
            result = await pipeline.run(POSTS, [published(1), published(2)])

        assert result.aborted
        assert result.documents == []
        assert logs[0]["error_code"] == "TRANSFORM_FAILED"

    @pytest.mark.asyncio
    async def test_given_transform_receives_type_uid(self) -> None:
        """Hooks are called with entry and entity_type keywords."""
        calls: list[str] = []

        def record(entry: dict, entity_type: str) -> dict:
            calls.append(entity_type)
            return entry

        pipeline = make_pipeline(posts=EntityTypeConfig(transform_entry=record))

        await pipeline.transform(POSTS, [published(1)])

        assert calls == ["api::post.post"]


class TestFilter:
    """filter_entry predicate."""

    @pytest.mark.asyncio
    async def test_given_predicate_when_filtered_then_sequential_and_stable(self) -> None:
        order: list[int] = []

        def keep_odd(entry: dict, entity_type: str) -> bool:
            order.append(entry["id"])
            return entry["id"] % 2 == 1

        pipeline = make_pipeline(posts=EntityTypeConfig(filter_entry=keep_odd))

        result = await pipeline.filter(POSTS, [published(i) for i in (5, 4, 3, 2, 1)])

        assert order == [5, 4, 3, 2, 1]
        assert [e["id"] for e in result] == [5, 3, 1]

    @pytest.mark.asyncio
    async def test_given_predicate_throwing_when_run_then_aborted(self) -> None:
        def boom(entry: dict, entity_type: str) -> bool:
            raise KeyError("missing")

        pipeline = make_pipeline(posts=EntityTypeConfig(filter_entry=boom))

        with capture_logs() as logs:
            result = await pipeline.run(POSTS, [published(1)])

        assert result.aborted
        assert logs[0]["error_code"] == "FILTER_FAILED"


class TestCustomId:
    """Key resolution and document ids."""

    def test_given_no_custom_id_when_resolved_then_natural_key(self) -> None:
        assert resolve_key({"id": 42, "slug": "intro"}, EntityTypeConfig()) == 42

    def test_given_custom_id_when_resolved_then_field_value(self) -> None:
        assert resolve_key({"id": 42, "slug": "intro"}, EntityTypeConfig(custom_id="slug")) == "intro"

    @pytest.mark.asyncio
    async def test_given_custom_id_when_run_then_prefixed_with_collection(self) -> None:
        pipeline = make_pipeline(article=EntityTypeConfig(custom_id="slug"))

        result = await pipeline.run(ARTICLES, [{"id": 42, "slug": "intro"}])

        assert result.documents[0]["_meilisearch_id"] == "article-intro"

    @pytest.mark.asyncio
    async def test_given_missing_custom_id_field_when_run_then_aborted(self) -> None:
        pipeline = make_pipeline(article=EntityTypeConfig(custom_id="slug"))

        with capture_logs() as logs:
            result = await pipeline.run(ARTICLES, [{"id": 42, "slug": "a"}, {"id": 43}])

        assert result.aborted
        assert result.documents == []
        assert logs[0]["error_code"] == "CUSTOM_ID_FAILED"


class TestRun:
    """Whole pipeline."""

    @pytest.mark.asyncio
    async def test_given_plain_entry_when_run_then_document_built(self) -> None:
        """No configuration: redaction, draft filter and prefixed id only."""
        pipeline = make_pipeline()
        entry = {"id": 7, "publishedAt": "2024-01-01", "locale": "en", "createdBy": 1, "title": "x"}

        result = await pipeline.run(POSTS, [entry])

        assert not result.aborted
        assert result.documents == [
            {
                "id": 7,
                "publishedAt": "2024-01-01",
                "locale": "en",
                "title": "x",
                "_meilisearch_id": "posts-7",
            }
        ]

    @pytest.mark.asyncio
    async def test_given_everything_filtered_when_run_then_empty_not_aborted(self) -> None:
        pipeline = make_pipeline(posts=EntityTypeConfig(entries_query=EntriesQuery(locale="fr")))

        result = await pipeline.run(POSTS, [published(1, locale="en")])

        assert result.documents == []
        assert not result.aborted

    @pytest.mark.asyncio
    async def test_given_empty_batch_with_transform_when_run_then_empty(self) -> None:
        pipeline = make_pipeline(posts=EntityTypeConfig(transform_entry=lambda entry, entity_type: "x"))

        result = await pipeline.run(POSTS, [])

        assert result.documents == []
        assert not result.aborted
