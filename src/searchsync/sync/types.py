"""Data model shared by the synchronization components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

Entry = dict[str, Any]
"""One record of the primary store. Read and observed, never persisted here."""


class EventKind(str, Enum):
    """Lifecycle notification kinds emitted by the record store."""

    AFTER_CREATE = "afterCreate"
    AFTER_CREATE_MANY = "afterCreateMany"
    AFTER_UPDATE = "afterUpdate"
    AFTER_UPDATE_MANY = "afterUpdateMany"
    BEFORE_DELETE = "beforeDelete"
    BEFORE_DELETE_MANY = "beforeDeleteMany"
    AFTER_DELETE = "afterDelete"
    AFTER_DELETE_MANY = "afterDeleteMany"


@dataclass(frozen=True, slots=True)
class EntityType:
    """A named category of entries, e.g. ``api::article.article``."""

    uid: str
    collection_name: str
    locales: tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.uid


@dataclass
class LifecycleEvent:
    """A lifecycle notification.

    Single-entry kinds carry ``result``; bulk kinds carry the ``where`` filter
    of the write. A "before" event and its paired "after" event share the
    same ``operation_id``.
    """

    kind: EventKind
    model: str
    result: Entry | None = None
    where: dict[str, Any] | None = None
    operation_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def entry_id(self) -> Any:
        if self.result is None:
            return None
        return self.result.get("id")


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Outcome of running entries through the transform/filter pipeline.

    ``aborted`` is set when a stage failed and the batch was dropped whole;
    ``documents`` is then empty. An empty, non-aborted result means every
    entry was filtered out legitimately (drafts, other locales, predicate).
    """

    documents: list[Entry] = field(default_factory=list)
    aborted: bool = False
