"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SEARCHSYNC__SECTION__KEY)
3. YAML config file (searchsync.yaml)
4. Built-in defaults (this file)

Environment Variable Format:
    SEARCHSYNC__<SECTION>__<KEY>=<VALUE>

Examples:
    SEARCHSYNC__LOGGING__LEVEL=DEBUG
    SEARCHSYNC__MEILISEARCH__HOST=http://search:7700
    SEARCHSYNC__SYNC__TASK_TIMEOUT_SEC=10

Per entity type settings live under ``entity_types`` keyed by collection name.
Hook callables are given as dotted import strings (``"myproject.hooks.to_document"``)
in YAML, or as Python callables when passed directly.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ImportString, SecretStr, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

EntryHook = ImportString[Callable[..., Any]]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SEARCHSYNC__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every index batch.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class MeilisearchConfig(BaseModel):
    """Search engine connection.

    Env vars:
        SEARCHSYNC__MEILISEARCH__HOST: Base URL of the search engine
        SEARCHSYNC__MEILISEARCH__API_KEY: API key sent as a bearer token
        SEARCHSYNC__MEILISEARCH__TIMEOUT_SEC: Per-request HTTP timeout
    """

    host: str = Field(
        default="http://127.0.0.1:7700",
        description="Base URL of the search engine.",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key. Omit for an unprotected local instance.",
    )
    timeout_sec: float = Field(
        default=10.0,
        description="HTTP timeout for a single index request.",
    )

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Host must be an http(s) URL, got {v}")
        return v.rstrip("/")


class SyncConfig(BaseModel):
    """Synchronization behaviour.

    Env vars:
        SEARCHSYNC__SYNC__TASK_TIMEOUT_SEC: Upper bound for one detached index call
        SEARCHSYNC__SYNC__LISTENED_STORE_PATH: YAML file persisting listened types
        SEARCHSYNC__SYNC__CAPTURE_EXPIRE_SEC: Lifetime of an unconsumed delete capture
    """

    task_timeout_sec: float = Field(
        default=30.0,
        description="Upper bound for a detached index mutation. Expiry is logged as a failure.",
    )
    listened_store_path: str | None = Field(
        default=None,
        description="Where listened entity types are persisted. In-memory when unset.",
    )
    capture_expire_sec: float = Field(
        default=300.0,
        description="Entries captured before a delete are dropped after this long if no after-delete arrives.",
    )

    @field_validator("task_timeout_sec", "capture_expire_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


class EntriesQuery(BaseModel):
    """Query options applied when fetching entries from the record store.

    Unknown keys (``populate``, ``fields``...) are passed through to the store.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    publication_state: Literal["live", "preview"] | None = Field(
        default=None,
        alias="publicationState",
        description="'preview' keeps drafts in the index.",
    )
    locale: str | None = Field(
        default=None,
        description="Only index entries of this locale. 'all' or unset keeps every locale.",
    )

    def to_query(self) -> dict[str, Any]:
        """Store-facing representation, using the store's camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


class EntityTypeConfig(BaseModel):
    """Indexing configuration of one entity type.

    Every field is optional; absent values resolve to the defaults documented
    on each field.
    """

    model_config = ConfigDict(frozen=True)

    index_name: str | None = Field(
        default=None,
        description="Target index. Defaults to the collection name.",
    )
    entries_query: EntriesQuery = Field(default_factory=EntriesQuery)
    transform_entry: EntryHook | None = Field(
        default=None,
        description="Called as fn(entry=..., entity_type=...) and must return a dict.",
    )
    filter_entry: EntryHook | None = Field(
        default=None,
        description="Predicate called as fn(entry=..., entity_type=...). Falsy drops the entry.",
    )
    transform_unpublished_entry: EntryHook | None = Field(
        default=None,
        description="Applied to every entry before drafts are dropped.",
    )
    custom_id: str | None = Field(
        default=None,
        description="Entry field used instead of the natural id in document ids.",
    )
    settings: dict[str, Any] = Field(
        default_factory=dict,
        description="Index settings pushed before a full reindex.",
    )


class SearchSyncConfig(BaseModel):
    """Root configuration for searchsync.

    All settings can be configured via:
    1. Environment variables: SEARCHSYNC__SECTION__KEY
    2. YAML config file
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    meilisearch: MeilisearchConfig = Field(default_factory=MeilisearchConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    entity_types: dict[str, EntityTypeConfig] = Field(default_factory=dict)
