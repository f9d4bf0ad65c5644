"""
HTTP fetch wrapper for the Console API.
"""

import json
from typing import Any, Dict, Literal, Optional

import httpx

from shared.errors import ConsoleError
from shared.logging import get_logger

UnauthorizedBehavior = Literal["throw", "return_null"]


class ApiRequestError(ConsoleError):
    """Non-2xx answer from the Console API."""

    def __init__(self, status: int, message: str, url: Optional[str] = None, method: Optional[str] = None):
        self.status = status
        self.url = url
        self.method = method
        super().__init__(
            "API_REQUEST_FAILED",
            message,
            {"url": url, "method": method},
            status_code=status,
        )

    def __str__(self) -> str:
        return f"{self.status}: {self.message}"


def decode_json(response: httpx.Response) -> Any:
    """Decode a JSON body; 204 and empty bodies yield None."""
    if response.status_code == 204 or not response.content:
        return None
    return response.json()


def extract_error_message(response: httpx.Response) -> str:
    """Best-effort error text: JSON message, JSON error, JSON text, body, reason."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase

    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if message:
            return str(message)
    return json.dumps(payload)


class ApiClient:
    """Thin async wrapper issuing one request per call with standard headers."""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger("console_client.api_client")
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        await self.client.aclose()

    async def request(self, method: str, url: str, data: Any = None) -> httpx.Response:
        """Send one request; raise ApiRequestError on a non-2xx answer."""
        headers: Dict[str, str] = {"Accept": "application/json"}
        content = None
        if data is not None:
            headers["Content-Type"] = "application/json"
            content = json.dumps(data).encode("utf-8")

        response = await self.client.request(method, url, content=content, headers=headers)
        await self.raise_for_status(response)
        return response

    async def raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        message = extract_error_message(response)
        self.logger.warning(
            "API error",
            status_code=response.status_code,
            method=response.request.method,
            url=str(response.request.url),
            message=message,
        )
        raise ApiRequestError(
            response.status_code,
            message,
            url=str(response.request.url),
            method=response.request.method,
        )

    async def request_json(self, method: str, url: str, data: Any = None) -> Any:
        """Like :meth:`request` but decode the body; empty bodies yield None."""
        response = await self.request(method, url, data)
        return decode_json(response)

    async def get_json(self, url: str, on_401: UnauthorizedBehavior = "throw") -> Any:
        """GET ``url``; with ``on_401="return_null"`` an unauthenticated answer yields None."""
        response = await self.client.get(url, headers={"Accept": "application/json"})
        if on_401 == "return_null" and response.status_code == 401:
            return None

        await self.raise_for_status(response)
        return decode_json(response)
