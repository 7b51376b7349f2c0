"""Wiring of the synchronization components."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from searchsync.config.models import SearchSyncConfig
from searchsync.index.client import MeilisearchClient
from searchsync.sync.capture import DeleteCaptureStore
from searchsync.sync.indexer import SearchIndexer
from searchsync.sync.lifecycle import LifecycleSubscriber
from searchsync.sync.pipeline import EntryPipeline
from searchsync.sync.ports import DocumentIndex, EntityTypeRegistry, LifecycleHooks, RecordReader
from searchsync.sync.reader import BatchedReader
from searchsync.sync.resolver import ConfigResolver
from searchsync.sync.store import ListenedTypeStore
from searchsync.sync.tasks import BackgroundTasks
from searchsync.sync.types import EntityType

logger = structlog.get_logger()


@dataclass
class SyncService:
    """
    Orchestrates synchronization components.

    Components:
    - ConfigResolver: per entity type settings
    - BatchedReader: re-fetches from the record store
    - SearchIndexer: pipeline + ids + document index
    - LifecycleSubscriber: hook registration
    - BackgroundTasks: detached index mutations

    Collaborators are resolved once here and injected into each component.
    """

    config: SearchSyncConfig
    hooks: LifecycleHooks
    records: RecordReader
    registry: EntityTypeRegistry
    documents: DocumentIndex | None = None

    resolver: ConfigResolver = field(init=False)
    reader: BatchedReader = field(init=False)
    indexer: SearchIndexer = field(init=False)
    subscriber: LifecycleSubscriber = field(init=False)
    tasks: BackgroundTasks = field(init=False)
    listened: ListenedTypeStore = field(init=False)
    _owned_client: MeilisearchClient | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.documents is None:
            self._owned_client = MeilisearchClient(self.config.meilisearch)
            self.documents = self._owned_client

        store_path = self.config.sync.listened_store_path
        self.listened = ListenedTypeStore(Path(store_path) if store_path else None)
        self.resolver = ConfigResolver(self.config.entity_types, self.registry)
        self.reader = BatchedReader(self.records)
        self.indexer = SearchIndexer(
            documents=self.documents,
            resolver=self.resolver,
            pipeline=EntryPipeline(self.resolver),
            reader=self.reader,
        )
        self.tasks = BackgroundTasks(timeout_sec=self.config.sync.task_timeout_sec)
        self.subscriber = LifecycleSubscriber(
            hooks=self.hooks,
            reader=self.reader,
            resolver=self.resolver,
            index=self.indexer,
            listened=self.listened,
            tasks=self.tasks,
            captures=DeleteCaptureStore(expire_sec=self.config.sync.capture_expire_sec),
        )

    async def subscribe(self, name: str) -> EntityType:
        """Subscribe the entity type named by uid or collection name."""
        entity_type = self.registry.resolve(name)
        await self.subscriber.subscribe_entity_type(entity_type)
        return entity_type

    async def resume(self) -> list[EntityType]:
        """Re-subscribe every type recorded as listened by a previous run."""
        resumed = []
        for uid in self.listened.listened_types():
            resumed.append(await self.subscribe(uid))
        return resumed

    async def stop(self, timeout_sec: float | None = None) -> None:
        """Wait for in-flight index tasks, then release the HTTP client."""
        timeout = timeout_sec if timeout_sec is not None else self.config.sync.task_timeout_sec
        try:
            async with asyncio.timeout(timeout):
                await self.tasks.drain()
        except TimeoutError:
            logger.warning(
                "sync_stop_timeout",
                message=f"Pending index tasks cancelled after {timeout}s",
                pending=self.tasks.status.pending,
            )
            await self.tasks.cancel_all()

        if self._owned_client is not None:
            await self._owned_client.aclose()
        logger.info("sync_stopped", failures=self.tasks.status.failures)
