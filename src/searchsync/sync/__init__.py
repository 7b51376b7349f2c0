"""Lifecycle-driven synchronization of the search index."""

from searchsync.sync.capture import DeleteCaptureStore
from searchsync.sync.ids import add_collection_prefix, prefixed_id
from searchsync.sync.indexer import SearchIndexer
from searchsync.sync.lifecycle import LifecycleSubscriber
from searchsync.sync.pipeline import EntryPipeline
from searchsync.sync.reader import BatchedReader
from searchsync.sync.resolver import ConfigResolver
from searchsync.sync.service import SyncService
from searchsync.sync.store import ListenedTypeStore
from searchsync.sync.tasks import BackgroundTasks
from searchsync.sync.types import EntityType, Entry, EventKind, LifecycleEvent, PipelineResult

__all__ = [
    "BackgroundTasks",
    "BatchedReader",
    "ConfigResolver",
    "DeleteCaptureStore",
    "EntityType",
    "Entry",
    "EntryPipeline",
    "EventKind",
    "LifecycleEvent",
    "LifecycleSubscriber",
    "ListenedTypeStore",
    "PipelineResult",
    "SearchIndexer",
    "SyncService",
    "add_collection_prefix",
    "prefixed_id",
]
