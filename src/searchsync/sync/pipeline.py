"""Transform, redact and filter entries before they reach the index.

Stages run in a fixed order over the whole batch:

1. ``transform_entry`` hook (concurrent, order preserved)
2. removal of sensitive fields
3. draft removal, after the optional ``transform_unpublished_entry`` hook
   (whose output is redacted again)
4. locale filtering
5. ``filter_entry`` predicate (sequential)
6. key resolution and collection-prefixed ids

The pipeline is fail-closed. When a hook raises or returns something that is
not a mapping, the batch is dropped whole and an error is logged; a partial
or unredacted batch is never returned.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Sequence
from typing import Any

import structlog

from searchsync.config.constants import (
    ALL_LOCALES,
    ENTRY_ID_FIELD,
    LOCALE_FIELD,
    PREVIEW_STATE,
    PUBLISHED_AT_FIELD,
    SENSITIVE_FIELDS,
)
from searchsync.config.models import EntityTypeConfig, EntriesQuery
from searchsync.core.errors import PipelineError
from searchsync.sync.ids import add_collection_prefix
from searchsync.sync.resolver import ConfigResolver
from searchsync.sync.types import EntityType, Entry, PipelineResult

logger = structlog.get_logger()


class _Aborted(Exception):
    """Internal signal: a stage rejected the batch."""

    def __init__(self, action: str, reason: str) -> None:
        super().__init__(reason)
        self.action = action
        self.reason = reason


async def _call_hook(hook: Callable[..., Any], entry: Entry, entity_type: EntityType) -> Any:
    result = hook(entry=entry, entity_type=entity_type.uid)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _map_hook(
    hook: Callable[..., Any], entries: Sequence[Entry], entity_type: EntityType
) -> list[Any]:
    try:
        mapped = await asyncio.gather(*(_call_hook(hook, e, entity_type) for e in entries))
    except Exception as e:
        raise _Aborted("transformed", f"{type(e).__name__}: {e}") from e
    for result in mapped:
        if not isinstance(result, dict):
            raise _Aborted("transformed", f"hook returned {type(result).__name__}, not a dict")
    return list(mapped)


def remove_sensitive_fields(entries: Sequence[Entry]) -> list[Entry]:
    """Copies of ``entries`` without author fields; inputs are left intact."""
    return [{k: v for k, v in entry.items() if k not in SENSITIVE_FIELDS} for entry in entries]


def _is_draft(entry: Entry) -> bool:
    # A missing publishedAt means the type has no draft system.
    return PUBLISHED_AT_FIELD in entry and entry[PUBLISHED_AT_FIELD] is None


def remove_unpublished(entries: Sequence[Entry], query: EntriesQuery) -> list[Entry]:
    if query.publication_state == PREVIEW_STATE:
        return list(entries)
    return [entry for entry in entries if not _is_draft(entry)]


def remove_other_locales(entries: Sequence[Entry], query: EntriesQuery) -> list[Entry]:
    if not query.locale or query.locale == ALL_LOCALES:
        return list(entries)
    return [entry for entry in entries if entry.get(LOCALE_FIELD) == query.locale]


def resolve_key(entry: Entry, config: EntityTypeConfig) -> Any:
    """Natural key, or the configured custom id field.

    Raises:
        KeyError: The key field is missing or empty.
    """
    field = config.custom_id or ENTRY_ID_FIELD
    key = entry[field]
    if key is None:
        raise KeyError(field)
    return key


class EntryPipeline:
    """Turn raw entries into index documents for one entity type at a time."""

    def __init__(self, resolver: ConfigResolver) -> None:
        self._resolver = resolver

    async def run(self, entity_type: EntityType, entries: Sequence[Entry]) -> PipelineResult:
        """Run every stage; never raises for hook or key failures."""
        config = self._resolver.resolve(entity_type)
        try:
            documents = await self._apply(entity_type, config, entries)
        except _Aborted as e:
            return self._aborted(entity_type, e.action, e.reason)
        return PipelineResult(documents=documents)

    async def transform(self, entity_type: EntityType, entries: Sequence[Entry]) -> list[Entry]:
        """Stage 1 alone. Returns [] when the hook fails."""
        config = self._resolver.resolve(entity_type)
        try:
            return await self._transform(entity_type, config, entries)
        except _Aborted as e:
            return self._aborted(entity_type, e.action, e.reason).documents

    async def filter(self, entity_type: EntityType, entries: Sequence[Entry]) -> list[Entry]:
        """Stage 5 alone. Returns [] when the predicate fails."""
        config = self._resolver.resolve(entity_type)
        try:
            return await self._filter(entity_type, config, entries)
        except _Aborted as e:
            return self._aborted(entity_type, e.action, e.reason).documents

    async def _apply(
        self, entity_type: EntityType, config: EntityTypeConfig, entries: Sequence[Entry]
    ) -> list[Entry]:
        query = config.entries_query
        result = await self._transform(entity_type, config, entries)
        result = remove_sensitive_fields(result)
        if config.transform_unpublished_entry is not None:
            result = await _map_hook(config.transform_unpublished_entry, result, entity_type)
            result = remove_sensitive_fields(result)
        result = remove_unpublished(result, query)
        result = remove_other_locales(result, query)
        result = await self._filter(entity_type, config, result)

        try:
            keys = [resolve_key(entry, config) for entry in result]
        except (KeyError, TypeError) as e:
            raise _Aborted("mapped", f"missing key field {e}") from e
        return add_collection_prefix(self._resolver.collection_name(entity_type), result, keys)

    async def _transform(
        self, entity_type: EntityType, config: EntityTypeConfig, entries: Sequence[Entry]
    ) -> list[Entry]:
        if config.transform_entry is None:
            return list(entries)
        return await _map_hook(config.transform_entry, entries, entity_type)

    async def _filter(
        self, entity_type: EntityType, config: EntityTypeConfig, entries: Sequence[Entry]
    ) -> list[Entry]:
        if config.filter_entry is None:
            return list(entries)
        kept: list[Entry] = []
        try:
            for entry in entries:
                if await _call_hook(config.filter_entry, entry, entity_type):
                    kept.append(entry)
        except Exception as e:
            raise _Aborted("filtered", f"{type(e).__name__}: {e}") from e
        return kept

    @staticmethod
    def _aborted(entity_type: EntityType, action: str, reason: str) -> PipelineResult:
        err = PipelineError.aborted(entity_type.uid, action, reason)
        logger.error(
            "indexing_aborted",
            entity_type=entity_type.uid,
            error_code=err.error_name,
            message=err.message,
            reason=reason,
        )
        return PipelineResult(aborted=True)
