"""Configuration constants.

This module contains values that should NOT be user-configurable.
For configurable values, see models.py (SyncConfig, MeilisearchConfig, etc.).
"""

BATCH_SIZE = 500
"""Page size used by every bulk re-fetch (afterUpdateMany, beforeDeleteMany, reindex)."""

SENSITIVE_FIELDS = ("createdBy", "updatedBy")
"""Fields stripped from every entry before it reaches the index."""

PRIMARY_KEY = "_meilisearch_id"
"""Document field holding the collection-prefixed id."""

ENTRY_ID_FIELD = "id"
"""Natural primary key of an entry in the record store."""

PUBLISHED_AT_FIELD = "publishedAt"
LOCALE_FIELD = "locale"

ALL_LOCALES = "all"
PREVIEW_STATE = "preview"
