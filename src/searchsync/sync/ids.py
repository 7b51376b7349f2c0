"""Collection-prefixed document ids.

Several entity types may share one index, so natural keys are prefixed with
the owning collection name to keep document ids unique:
``"<collection_name>-<key>"``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from searchsync.config.constants import PRIMARY_KEY
from searchsync.sync.types import Entry


def prefixed_id(collection_name: str, key: Any) -> str:
    """Document id of the entry keyed ``key`` in ``collection_name``."""
    return f"{collection_name}-{key}"


def add_collection_prefix(
    collection_name: str, entries: Sequence[Entry], keys: Sequence[Any]
) -> list[Entry]:
    """Attach the prefixed id of each entry under the index primary key.

    ``keys`` are the already resolved natural or custom keys, one per entry.
    """
    if len(entries) != len(keys):
        raise ValueError(f"Got {len(keys)} keys for {len(entries)} entries")
    return [
        {**entry, PRIMARY_KEY: prefixed_id(collection_name, key)}
        for entry, key in zip(entries, keys, strict=True)
    ]
