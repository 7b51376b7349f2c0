"""Lifecycle hook subscription keeping the search index in sync with the store."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog

from searchsync.core.errors import CaptureError, ErrorCode, FetchError, InternalError
from searchsync.core.logging import bind_operation
from searchsync.sync.capture import DeleteCaptureStore
from searchsync.sync.ports import IndexClient, LifecycleHandler, LifecycleHooks, ListenedTypes
from searchsync.sync.reader import BatchedReader
from searchsync.sync.resolver import ConfigResolver
from searchsync.sync.tasks import BackgroundTasks
from searchsync.sync.types import EntityType, EventKind, LifecycleEvent

logger = structlog.get_logger()

_Step = Callable[[EntityType, LifecycleEvent], Awaitable[None]]


class LifecycleSubscriber:
    """
    Register search index handlers for the lifecycle events of entity types.

    Handler contract:
    - Authoritative data is always re-fetched; notification payloads may be partial
    - The re-fetch is the only awaited step; index calls are detached tasks
    - Delete handlers capture entries before the delete and send them after it
    - Nothing raised here ever reaches the write that fired the event
    """

    def __init__(
        self,
        hooks: LifecycleHooks,
        reader: BatchedReader,
        resolver: ConfigResolver,
        index: IndexClient,
        listened: ListenedTypes,
        tasks: BackgroundTasks,
        captures: DeleteCaptureStore | None = None,
    ) -> None:
        self._hooks = hooks
        self._reader = reader
        self._resolver = resolver
        self._index = index
        self._listened = listened
        self._tasks = tasks
        self._captures = captures if captures is not None else DeleteCaptureStore()

    async def subscribe_entity_type(self, entity_type: EntityType) -> None:
        """Register all eight handlers for ``entity_type`` and record it as listened.

        Returns once registration is done; no indexing happens here.
        """
        steps: dict[EventKind, _Step] = {
            EventKind.AFTER_CREATE: self._after_create,
            EventKind.AFTER_CREATE_MANY: self._after_create_many,
            EventKind.AFTER_UPDATE: self._after_update,
            EventKind.AFTER_UPDATE_MANY: self._after_update_many,
            EventKind.BEFORE_DELETE: self._before_delete,
            EventKind.BEFORE_DELETE_MANY: self._before_delete_many,
            EventKind.AFTER_DELETE: self._after_delete,
            EventKind.AFTER_DELETE_MANY: self._after_delete_many,
        }
        handlers = {
            kind.value: self._guard(kind, entity_type, step) for kind, step in steps.items()
        }
        await self._hooks.subscribe([entity_type.uid], handlers)
        self._listened.record_listened(entity_type.uid)
        logger.info("entity_type_subscribed", entity_type=entity_type.uid)

    def _guard(self, kind: EventKind, entity_type: EntityType, step: _Step) -> LifecycleHandler:
        async def handle(event: LifecycleEvent) -> None:
            with bind_operation(event.operation_id):
                try:
                    await step(entity_type, event)
                except Exception as e:
                    err = InternalError.unexpected(
                        f"{type(e).__name__}: {e}", kind=kind.value, entity_type=entity_type.uid
                    )
                    logger.error(
                        "lifecycle_handler_failed",
                        kind=kind.value,
                        entity_type=entity_type.uid,
                        error_code=err.error_name,
                        error=err.message,
                    )

        return handle

    async def _fetch_one(self, entity_type: EntityType, event: LifecycleEvent) -> list:
        query = self._resolver.entries_query(entity_type).to_query()
        try:
            return [await self._reader.read_one(entity_type, event.entry_id, query)]
        except FetchError as e:
            logger.error(
                "entry_fetch_failed",
                kind=event.kind.value,
                entity_type=entity_type.uid,
                entity_id=event.entry_id,
                error=e.message,
            )
            return []

    async def _fetch_many(self, entity_type: EntityType, event: LifecycleEvent) -> list | None:
        try:
            return await self._reader.read_all(entity_type, event.where)
        except FetchError as e:
            logger.error(
                "entries_fetch_failed",
                kind=event.kind.value,
                entity_type=entity_type.uid,
                error=e.message,
            )
            return None

    async def _after_create(self, entity_type: EntityType, event: LifecycleEvent) -> None:
        entries = await self._fetch_one(entity_type, event)
        if not entries:
            return
        self._tasks.spawn(
            self._index.add(entity_type, entries),
            failure_event="entry_add_failed",
            entity_type=entity_type.uid,
            entity_id=event.entry_id,
        )

    async def _after_create_many(self, entity_type: EntityType, event: LifecycleEvent) -> None:
        logger.warning(
            "bulk_create_unsupported",
            entity_type=entity_type.uid,
            error_code=ErrorCode.UNSUPPORTED_OPERATION.name,
            message="afterCreateMany provides entries without their id; nothing is indexed",
        )

    async def _after_update(self, entity_type: EntityType, event: LifecycleEvent) -> None:
        entries = await self._fetch_one(entity_type, event)
        if not entries:
            return
        self._tasks.spawn(
            self._index.update(entity_type, entries),
            failure_event="entry_update_failed",
            entity_type=entity_type.uid,
            entity_id=event.entry_id,
        )

    async def _after_update_many(self, entity_type: EntityType, event: LifecycleEvent) -> None:
        entries = await self._fetch_many(entity_type, event)
        if not entries:
            return
        self._tasks.spawn(
            self._index.update(entity_type, entries),
            failure_event="entries_update_failed",
            entity_type=entity_type.uid,
            count=len(entries),
        )

    async def _before_delete(self, entity_type: EntityType, event: LifecycleEvent) -> None:
        entries = await self._fetch_one(entity_type, event)
        if entries:
            self._capture(entity_type, event, entries)

    async def _before_delete_many(self, entity_type: EntityType, event: LifecycleEvent) -> None:
        entries = await self._fetch_many(entity_type, event)
        if entries is not None:
            self._capture(entity_type, event, entries)

    def _capture(self, entity_type: EntityType, event: LifecycleEvent, entries: list) -> None:
        try:
            self._captures.put(event.operation_id, entries)
        except CaptureError as e:
            logger.error(
                "delete_capture_failed",
                entity_type=entity_type.uid,
                error_code=e.error_name,
                error=e.message,
            )

    def _release(self, entity_type: EntityType, event: LifecycleEvent) -> list | None:
        try:
            return self._captures.take(event.operation_id)
        except CaptureError as e:
            logger.warning(
                "delete_capture_missing",
                kind=event.kind.value,
                entity_type=entity_type.uid,
                entity_id=event.entry_id,
                error=e.message,
            )
            return None

    async def _after_delete(self, entity_type: EntityType, event: LifecycleEvent) -> None:
        entries = self._release(entity_type, event)
        if not entries:
            return
        self._tasks.spawn(
            self._index.delete(entity_type, entries),
            failure_event="entry_delete_failed",
            entity_type=entity_type.uid,
            entity_id=entries[0].get("id"),
        )

    async def _after_delete_many(self, entity_type: EntityType, event: LifecycleEvent) -> None:
        entries = self._release(entity_type, event)
        if not entries:
            return
        self._tasks.spawn(
            self._index.delete(entity_type, entries),
            failure_event="entries_delete_failed",
            entity_type=entity_type.uid,
            count=len(entries),
        )
