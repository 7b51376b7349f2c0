"""Entries captured before a delete, handed to the paired after-delete handler."""

from __future__ import annotations

import copy
import threading
import time
from collections.abc import Callable

import structlog

from searchsync.core.errors import CaptureError
from searchsync.sync.types import Entry

logger = structlog.get_logger()


class DeleteCaptureStore:
    """Write-once, read-once correlation store keyed by delete operation id.

    ``put`` stores a deep copy so later mutation of the caller's objects
    cannot alter what the after-delete handler sees. ``take`` removes the
    record, so a capture is consumed at most once.

    A capture whose after-delete never arrives (failed or rolled back write)
    expires after ``expire_sec``; expired captures are swept on ``put``.
    """

    def __init__(
        self,
        expire_sec: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._captured: dict[str, tuple[float, list[Entry]]] = {}
        self._lock = threading.Lock()
        self._expire_sec = expire_sec
        self._clock = clock

    def put(self, operation_id: str, entries: list[Entry]) -> None:
        """Raises CaptureError when the operation was already captured."""
        with self._lock:
            now = self._clock()
            self._sweep(now)
            if operation_id in self._captured:
                raise CaptureError.conflict(operation_id)
            self._captured[operation_id] = (now + self._expire_sec, copy.deepcopy(entries))

    def take(self, operation_id: str) -> list[Entry]:
        """Raises CaptureError when nothing was captured for the operation."""
        with self._lock:
            try:
                _, entries = self._captured.pop(operation_id)
            except KeyError:
                raise CaptureError.missing(operation_id) from None
            return entries

    def _sweep(self, now: float) -> None:
        expired = [oid for oid, (expires_at, _) in self._captured.items() if expires_at <= now]
        for oid in expired:
            _, entries = self._captured.pop(oid)
            logger.warning(
                "delete_capture_expired",
                capture_operation_id=oid,
                entries=len(entries),
                expire_sec=self._expire_sec,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._captured)

    def __contains__(self, operation_id: object) -> bool:
        with self._lock:
            return operation_id in self._captured
