"""Bookkeeping of entity types whose lifecycle hooks are registered.

Optionally persisted to a YAML state file so a restarted process knows which
types it synchronized before.
"""

from __future__ import annotations

import threading
from pathlib import Path

import structlog
import yaml

logger = structlog.get_logger()

STATE_HEADER = """\
# AUTO-GENERATED - DO NOT EDIT MANUALLY
# Entity types with registered search index hooks.

"""


class ListenedTypeStore:
    """Set of listened entity type uids."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._listened: set[str] = set(self._load())

    def _load(self) -> list[str]:
        if self._path is None or not self._path.exists():
            return []
        try:
            with self._path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.warning("listened_types_unreadable", path=str(self._path), error=str(e))
            return []
        uids = data.get("listened_types", []) if isinstance(data, dict) else None
        if not isinstance(uids, list):
            logger.warning(
                "listened_types_unreadable",
                path=str(self._path),
                error="expected a mapping with a listened_types list",
            )
            return []
        return [str(uid) for uid in uids]

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = {"listened_types": sorted(self._listened)}
        self._path.write_text(STATE_HEADER + yaml.dump(data, default_flow_style=False))

    def record_listened(self, uid: str) -> None:
        with self._lock:
            if uid in self._listened:
                return
            self._listened.add(uid)
            self._save()
        logger.debug("entity_type_listened", entity_type=uid)

    def listened_types(self) -> list[str]:
        with self._lock:
            return sorted(self._listened)

    def is_listened(self, uid: str) -> bool:
        with self._lock:
            return uid in self._listened
