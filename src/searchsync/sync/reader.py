"""Re-fetch authoritative entries from the record store."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from searchsync.config.constants import BATCH_SIZE
from searchsync.core.errors import FetchError
from searchsync.sync.ports import RecordReader
from searchsync.sync.types import EntityType, Entry

logger = structlog.get_logger()


class BatchedReader:
    """Fetch single entries, or every entry matching a filter page by page.

    Bulk reads are bounded to ``BATCH_SIZE`` entries per store call whatever
    the size of the matching set.
    """

    def __init__(self, reader: RecordReader, batch_size: int = BATCH_SIZE) -> None:
        self._reader = reader
        self.batch_size = batch_size

    async def read_one(
        self, entity_type: EntityType, entry_id: Any, query: Mapping[str, Any]
    ) -> Entry:
        """Fetch the complete entry; notification payloads may be partial.

        Raises:
            FetchError: The store failed or the entry does not exist.
        """
        try:
            entry = await self._reader.get_entry(entity_type.uid, entry_id, query)
        except Exception as e:
            raise FetchError.entry(entity_type.uid, entry_id, str(e)) from e
        if entry is None:
            raise FetchError.not_found(entity_type.uid, entry_id)
        return entry

    async def read_all(
        self, entity_type: EntityType, where: Mapping[str, Any] | None
    ) -> list[Entry]:
        """Collect every entry matching ``where``, preserving store order.

        Raises:
            FetchError: Counting or any page fetch failed.
        """
        try:
            total = await self._reader.count(entity_type.uid, where)
            entries: list[Entry] = []
            for start in range(0, total, self.batch_size):
                batch = await self._reader.get_entries(
                    entity_type.uid, where, start, self.batch_size
                )
                entries.extend(batch)
        except Exception as e:
            raise FetchError.entries(entity_type.uid, str(e)) from e

        logger.debug(
            "entries_fetched",
            entity_type=entity_type.uid,
            total=total,
            fetched=len(entries),
        )
        return entries
