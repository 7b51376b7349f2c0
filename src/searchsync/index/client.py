"""Meilisearch HTTP client for document mutations.

Only the endpoints the synchronizer needs are wrapped. Every call returns the
enqueued task summary Meilisearch answers with; the engine applies the
mutation asynchronously on its side.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from searchsync.config.constants import PRIMARY_KEY
from searchsync.config.models import MeilisearchConfig
from searchsync.core.errors import IndexClientError

logger = structlog.get_logger()


class MeilisearchClient:
    """Thin async wrapper over the Meilisearch documents and settings API."""

    def __init__(
        self,
        config: MeilisearchConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or MeilisearchConfig()
        headers = {"Content-Type": "application/json"}
        if self.config.api_key is not None:
            headers["Authorization"] = f"Bearer {self.config.api_key.get_secret_value()}"
        self._http = httpx.AsyncClient(
            base_url=self.config.host,
            headers=headers,
            timeout=self.config.timeout_sec,
            transport=transport,
        )

    async def __aenter__(self) -> MeilisearchClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def add_documents(self, index_name: str, documents: list[dict[str, Any]]) -> dict:
        """Add or replace documents."""
        return await self._request(
            "POST",
            f"/indexes/{index_name}/documents",
            index_name=index_name,
            action="add",
            params={"primaryKey": PRIMARY_KEY},
            json=documents,
        )

    async def update_documents(self, index_name: str, documents: list[dict[str, Any]]) -> dict:
        """Add or partially update documents."""
        return await self._request(
            "PUT",
            f"/indexes/{index_name}/documents",
            index_name=index_name,
            action="update",
            params={"primaryKey": PRIMARY_KEY},
            json=documents,
        )

    async def delete_documents(self, index_name: str, document_ids: list[str]) -> dict:
        return await self._request(
            "POST",
            f"/indexes/{index_name}/documents/delete-batch",
            index_name=index_name,
            action="delete",
            json=document_ids,
        )

    async def update_settings(self, index_name: str, settings: dict[str, Any]) -> dict:
        return await self._request(
            "PATCH",
            f"/indexes/{index_name}/settings",
            index_name=index_name,
            action="configure",
            json=settings,
        )

    async def _request(
        self, method: str, url: str, *, index_name: str, action: str, **kwargs: Any
    ) -> dict:
        try:
            response = await self._http.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise IndexClientError.request_failed(
                index_name, action, _error_message(e.response)
            ) from e
        except httpx.RequestError as e:
            raise IndexClientError.request_failed(index_name, action, str(e) or repr(e)) from e

        task: dict = response.json() if response.content else {}
        logger.debug(
            "index_task_enqueued",
            index_name=index_name,
            action=action,
            task_uid=task.get("taskUid"),
        )
        return task


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict) and "message" in body:
        return f"HTTP {response.status_code}: {body['message']}"
    return f"HTTP {response.status_code}"
