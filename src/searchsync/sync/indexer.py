"""Ingestion path from entry batches to search index mutations."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from searchsync.config.constants import PRIMARY_KEY
from searchsync.sync.ids import prefixed_id
from searchsync.sync.pipeline import EntryPipeline, resolve_key
from searchsync.sync.ports import DocumentIndex
from searchsync.sync.reader import BatchedReader
from searchsync.sync.resolver import ConfigResolver
from searchsync.sync.types import EntityType, Entry

logger = structlog.get_logger()


class SearchIndexer:
    """Index client used by the lifecycle subscriber.

    ``add`` and ``update`` run the entry pipeline and send the surviving
    documents; an aborted pipeline sends nothing at all. ``delete`` only
    needs document ids and skips the transform chain.

    Errors from the document index propagate to the caller, which for
    lifecycle hooks is a detached background task that logs them.
    """

    def __init__(
        self,
        documents: DocumentIndex,
        resolver: ConfigResolver,
        pipeline: EntryPipeline,
        reader: BatchedReader,
    ) -> None:
        self._documents = documents
        self._resolver = resolver
        self._pipeline = pipeline
        self._reader = reader

    async def add(self, entity_type: EntityType, entries: list[Entry]) -> None:
        result = await self._pipeline.run(entity_type, entries)
        if not result.documents:
            logger.debug("nothing_to_add", entity_type=entity_type.uid, aborted=result.aborted)
            return
        index_name = self._resolver.index_name(entity_type)
        await self._documents.add_documents(index_name, result.documents)
        logger.info(
            "documents_added",
            entity_type=entity_type.uid,
            index_name=index_name,
            count=len(result.documents),
        )

    async def update(self, entity_type: EntityType, entries: list[Entry]) -> None:
        """Update surviving documents and remove the ones the pipeline dropped.

        Entries that became drafts or stopped matching the filter must leave
        the index; when the pipeline aborts, nothing is touched.
        """
        result = await self._pipeline.run(entity_type, entries)
        if result.aborted:
            return

        index_name = self._resolver.index_name(entity_type)
        kept = {doc[PRIMARY_KEY] for doc in result.documents}
        stale = [
            doc_id for doc_id in self._document_ids(entity_type, entries) if doc_id not in kept
        ]
        if stale:
            await self._documents.delete_documents(index_name, stale)
            logger.info(
                "stale_documents_removed",
                entity_type=entity_type.uid,
                index_name=index_name,
                count=len(stale),
            )
        if result.documents:
            await self._documents.update_documents(index_name, result.documents)
            logger.info(
                "documents_updated",
                entity_type=entity_type.uid,
                index_name=index_name,
                count=len(result.documents),
            )

    async def delete(self, entity_type: EntityType, entries: list[Entry]) -> None:
        document_ids = self._document_ids(entity_type, entries)
        if not document_ids:
            return
        index_name = self._resolver.index_name(entity_type)
        await self._documents.delete_documents(index_name, document_ids)
        logger.info(
            "documents_deleted",
            entity_type=entity_type.uid,
            index_name=index_name,
            count=len(document_ids),
        )

    async def update_settings(self, entity_type: EntityType) -> None:
        settings = self._resolver.settings(entity_type)
        if not settings:
            return
        await self._documents.update_settings(self._resolver.index_name(entity_type), settings)

    async def reindex(self, entity_type: EntityType) -> int:
        """Push index settings, then send every entry of the type page by page.

        Returns the number of entries read from the store.
        """
        await self.update_settings(entity_type)
        entries = await self._reader.read_all(entity_type, None)
        await self.add(entity_type, entries)
        logger.info("entity_type_reindexed", entity_type=entity_type.uid, entries=len(entries))
        return len(entries)

    def _document_ids(self, entity_type: EntityType, entries: Sequence[Entry]) -> list[str]:
        config = self._resolver.resolve(entity_type)
        collection_name = self._resolver.collection_name(entity_type)
        document_ids: list[str] = []
        for entry in entries:
            try:
                key = resolve_key(entry, config)
            except (KeyError, TypeError) as e:
                logger.warning(
                    "document_id_unresolved",
                    entity_type=entity_type.uid,
                    entity_id=entry.get("id") if isinstance(entry, dict) else None,
                    missing=str(e),
                )
                continue
            document_ids.append(prefixed_id(collection_name, key))
        return document_ids
