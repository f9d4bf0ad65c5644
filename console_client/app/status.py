"""
API availability probe.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from shared.logging import get_logger
from .api_client import ApiClient


@dataclass
class ApiStatus:
    state: str  # online | offline | error
    message: Optional[str] = None

    @property
    def online(self) -> bool:
        return self.state == "online"


class ApiStatusMonitor:
    """Probes the partners collection to tell whether the API is reachable."""

    def __init__(self, api: ApiClient, path: str = "/api/v1/partners/", timeout: float = 5.0):
        self.api = api
        self.path = path
        self.timeout = timeout
        self.last_status: Optional[ApiStatus] = None
        self.logger = get_logger("console_client.status")

    async def check(self) -> ApiStatus:
        try:
            response = await self.api.client.get(
                self.path,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except httpx.TransportError as exc:
            status = ApiStatus("offline", str(exc) or type(exc).__name__)
        else:
            if response.is_success:
                status = ApiStatus("online")
            else:
                status = ApiStatus("error", f"Request error: {response.status_code} - {response.reason_phrase}")

        if not status.online:
            self.logger.warning("API unavailable", state=status.state, message=status.message)
        self.last_status = status
        return status
