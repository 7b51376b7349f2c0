"""Interfaces of the collaborators the synchronization core drives.

The record store, its hook facility and its type registry are supplied by
the host application; the index client is normally a ``SearchIndexer``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol

from searchsync.sync.types import EntityType, Entry, LifecycleEvent

LifecycleHandler = Callable[[LifecycleEvent], Awaitable[None]]


class LifecycleHooks(Protocol):
    """Hook registration facility of the record store."""

    async def subscribe(
        self, models: Sequence[str], handlers: Mapping[str, LifecycleHandler]
    ) -> None:
        """Register handlers keyed by event kind name for the given type uids."""
        ...


class RecordReader(Protocol):
    """Read access to the record store."""

    async def get_entry(self, uid: str, entry_id: Any, query: Mapping[str, Any]) -> Entry | None:
        """Fetch one complete entry, or None when it does not exist."""
        ...

    async def get_entries(
        self, uid: str, filters: Mapping[str, Any] | None, start: int, limit: int
    ) -> list[Entry]:
        """Fetch one page of entries matching ``filters`` in store order."""
        ...

    async def count(self, uid: str, where: Mapping[str, Any] | None) -> int:
        """Number of entries matching ``where``."""
        ...


class EntityTypeRegistry(Protocol):
    """Entity type metadata of the record store."""

    def resolve(self, name: str) -> EntityType:
        """Look up a type by uid or collection name."""
        ...

    def collection_name(self, entity_type: EntityType) -> str: ...

    def list_all(self) -> list[EntityType]: ...


class IndexClient(Protocol):
    """Accepts entry batches for one entity type and mutates the search index."""

    async def add(self, entity_type: EntityType, entries: list[Entry]) -> None: ...

    async def update(self, entity_type: EntityType, entries: list[Entry]) -> None: ...

    async def delete(self, entity_type: EntityType, entries: list[Entry]) -> None: ...


class ListenedTypes(Protocol):
    """Bookkeeping of entity types with registered hooks."""

    def record_listened(self, uid: str) -> None: ...


class DocumentIndex(Protocol):
    """Wire-level document API of the search engine (see ``MeilisearchClient``)."""

    async def add_documents(self, index_name: str, documents: list[dict[str, Any]]) -> dict: ...

    async def update_documents(self, index_name: str, documents: list[dict[str, Any]]) -> dict: ...

    async def delete_documents(self, index_name: str, document_ids: list[str]) -> dict: ...

    async def update_settings(self, index_name: str, settings: dict[str, Any]) -> dict: ...
