"""
Per-collection API facade built on the query client.
"""

from typing import Any, Dict, List, Optional

import httpx

from .api_client import ApiClient
from .notifications import Notifier
from .query_cache import QueryCache, QueryClient

COLLECTIONS = ("partners", "clients", "licenses", "devices", "updates", "users")


class ResourceApi:
    """CRUD calls for one collection.

    Collection reads are cached under ``(collection_path,)`` and item reads
    under ``(collection_path, id)``; every successful write invalidates the
    collection prefix, which covers both.
    """

    def __init__(self, api: ApiClient, queries: QueryClient, collection: str, prefix: str = "/api/v1"):
        self.api = api
        self.queries = queries
        self.collection = collection
        self.path = f"{prefix.rstrip('/')}/{collection}/"
        self.label = collection[:-1]

    @property
    def key(self):
        return (self.path,)

    def _item_url(self, record_id: int) -> str:
        return f"{self.path}{record_id}"

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self.queries.fetch_query(self.key, lambda: self.api.get_json(self.path))

    async def get_by_id(self, record_id: int) -> Dict[str, Any]:
        return await self.queries.fetch_query(
            (self.path, record_id),
            lambda: self.api.get_json(self._item_url(record_id)),
        )

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.queries.mutate(
            lambda: self.api.request_json("POST", self.path, data),
            invalidate=[self.key],
            error_title=f"Failed to create {self.label}",
        )

    async def update(self, record_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.queries.mutate(
            lambda: self.api.request_json("PUT", self._item_url(record_id), data),
            invalidate=[self.key],
            error_title=f"Failed to update {self.label}",
        )

    async def delete(self, record_id: int) -> None:
        await self.queries.mutate(
            lambda: self.api.request_json("DELETE", self._item_url(record_id)),
            invalidate=[self.key],
            error_title=f"Failed to delete {self.label}",
        )


class ConsoleApi:
    """Entry point: one :class:`ResourceApi` attribute per collection."""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        *,
        prefix: str = "/api/v1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        notifier: Optional[Notifier] = None,
        cache: Optional[QueryCache] = None,
        query_client: Optional[QueryClient] = None,
    ):
        self.api = ApiClient(base_url, timeout=timeout, transport=transport)
        self.queries = query_client or QueryClient(cache=cache, notifier=notifier)
        self.prefix = prefix

        for collection in COLLECTIONS:
            setattr(self, collection, ResourceApi(self.api, self.queries, collection, prefix))

    @property
    def cache(self) -> QueryCache:
        return self.queries.cache

    @property
    def notifier(self) -> Notifier:
        return self.queries.notifier

    async def __aenter__(self) -> "ConsoleApi":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        await self.api.close()
