"""Config module exports."""

from searchsync.config.loader import SearchSyncSettings, load_config
from searchsync.config.models import (
    EntityTypeConfig,
    EntriesQuery,
    LoggingConfig,
    MeilisearchConfig,
    SearchSyncConfig,
    SyncConfig,
)

__all__ = [
    "load_config",
    "EntityTypeConfig",
    "EntriesQuery",
    "LoggingConfig",
    "MeilisearchConfig",
    "SearchSyncConfig",
    "SearchSyncSettings",
    "SyncConfig",
]
