"""Per entity type configuration lookup."""

from __future__ import annotations

from collections.abc import Mapping

from searchsync.config.models import EntityTypeConfig, EntriesQuery
from searchsync.sync.ports import EntityTypeRegistry
from searchsync.sync.types import EntityType

_DEFAULT = EntityTypeConfig()


class ConfigResolver:
    """Resolve the indexing configuration of an entity type by collection name.

    Lookups are pure: the configuration mapping is read-only for the life of
    the process and every absent field falls back to a no-op default.
    """

    def __init__(
        self,
        entity_types: Mapping[str, EntityTypeConfig],
        registry: EntityTypeRegistry,
    ) -> None:
        self._configs = dict(entity_types)
        self._registry = registry

    def collection_name(self, entity_type: EntityType) -> str:
        return self._registry.collection_name(entity_type)

    def resolve(self, entity_type: EntityType) -> EntityTypeConfig:
        return self._configs.get(self.collection_name(entity_type), _DEFAULT)

    def index_name(self, entity_type: EntityType) -> str:
        """Target index, defaulting to the collection name."""
        return self.resolve(entity_type).index_name or self.collection_name(entity_type)

    def entries_query(self, entity_type: EntityType) -> EntriesQuery:
        return self.resolve(entity_type).entries_query

    def settings(self, entity_type: EntityType) -> dict:
        return dict(self.resolve(entity_type).settings)

    def types_with_index_name(self, index_name: str) -> list[str]:
        """Collection names of every known type stored in ``index_name``."""
        return [
            self.collection_name(entity_type)
            for entity_type in self._registry.list_all()
            if self.index_name(entity_type) == index_name
        ]
