"""
Client data layer for the Partner Console API.

- api_client: fetch wrapper raising typed errors for non-2xx answers.
- query_cache: keyed cache with staleness, in-flight dedup and invalidation,
  plus the query client applying retry policy and mutation notifications.
- notifications: toast sink for failed mutations.
- resources: per-collection CRUD facade.
- status: API availability probe.
"""

from .api_client import ApiClient, ApiRequestError
from .notifications import Notification, Notifier
from .query_cache import QueryCache, QueryClient, is_transient
from .resources import ConsoleApi, ResourceApi
from .status import ApiStatus, ApiStatusMonitor

__all__ = [
    "ApiClient",
    "ApiRequestError",
    "Notification",
    "Notifier",
    "QueryCache",
    "QueryClient",
    "is_transient",
    "ConsoleApi",
    "ResourceApi",
    "ApiStatus",
    "ApiStatusMonitor",
]
