"""Search engine wire client."""

from searchsync.index.client import MeilisearchClient

__all__ = ["MeilisearchClient"]
