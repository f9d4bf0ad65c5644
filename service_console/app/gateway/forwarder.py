"""
Upstream relay for the Console gateway (proxy mode).
"""

import json
import time
from typing import Dict, Optional

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse

from shared.errors import UpstreamUnavailableError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

EMPTY_RESPONSE_BODY = {"message": "Empty response from API"}

# Methods whose requests never carry a body upstream
BODYLESS_METHODS = {"GET", "HEAD"}

# Statuses that must not carry a body downstream
EMPTY_STATUSES = {204, 304}


def build_upstream_url(base_url: str, path: str, query: str = "", inbound_path: Optional[str] = None) -> str:
    """Join ``base_url`` with the inbound ``path`` and ``query``.

    A trailing slash on the inbound path is always kept: the upstream
    answers 404 for collection paths without it.
    """
    inbound_path = path if inbound_path is None else inbound_path

    url = base_url.rstrip("/") + "/" + path.lstrip("/")
    if inbound_path.endswith("/") and not url.endswith("/"):
        url += "/"
    if query:
        url += "?" + query
    return url


class UpstreamForwarder:
    """Relays requests verbatim to the upstream API and normalizes the answer."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        *,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        probe_path: str = "/api/v1/partners/",
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.metrics = metrics
        self.probe_path = probe_path
        self.logger = get_logger("console.gateway.forwarder")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self):
        """Close the pooled upstream connections."""
        await self.client.aclose()

    @staticmethod
    def _inbound_path(request: Request) -> str:
        raw_path = request.scope.get("raw_path")
        if raw_path:
            # some ASGI clients include the query string in raw_path
            return raw_path.split(b"?", 1)[0].decode("latin-1")
        return request.url.path

    @staticmethod
    def _serialize_body(raw: bytes) -> bytes:
        try:
            return json.dumps(json.loads(raw)).encode("utf-8")
        except ValueError:
            return raw

    def _build_headers(self, request: Request, has_body: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        authorization = request.headers.get("authorization")
        if authorization:
            headers["Authorization"] = authorization
        return headers

    def _record(self, method: str, status_code: str, duration: float):
        if self.metrics:
            self.metrics.increment_counter("upstream_requests_total", method=method, status_code=status_code)
            self.metrics.observe_histogram("upstream_request_duration_seconds", duration, method=method)

    async def forward(self, request: Request) -> Response:
        """Relay ``request`` upstream and mirror the status and JSON body."""
        method = request.method
        inbound_path = self._inbound_path(request)
        query = request.url.query
        original_url = f"{inbound_path}?{query}" if query else inbound_path
        url = build_upstream_url(self.base_url, inbound_path, query)

        content = None
        if method not in BODYLESS_METHODS:
            raw = await request.body()
            if raw:
                content = self._serialize_body(raw)

        headers = self._build_headers(request, has_body=content is not None)

        self.logger.debug("Relaying request", method=method, url=url)
        start_time = time.time()
        try:
            upstream = await self.client.request(method, url, content=content, headers=headers)
        except httpx.TimeoutException as exc:
            self._fail(exc, method, url, original_url, start_time)
            raise UpstreamUnavailableError(
                "Gateway timeout", str(exc) or "Upstream request timed out", original_url, method, status_code=504
            )
        except (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError) as exc:
            self._fail(exc, method, url, original_url, start_time)
            raise UpstreamUnavailableError(
                "Gateway timeout", str(exc) or "Connection reset by server", original_url, method, status_code=504
            )
        except httpx.RequestError as exc:
            self._fail(exc, method, url, original_url, start_time)
            raise UpstreamUnavailableError(
                "API request failed", str(exc) or type(exc).__name__, original_url, method, status_code=500
            )

        duration = time.time() - start_time
        self._record(method, str(upstream.status_code), duration)

        if upstream.is_success:
            self.logger.info("Upstream response received", method=method, path=original_url, status_code=upstream.status_code)
        else:
            self.logger.warning("Upstream error response", method=method, path=original_url, status_code=upstream.status_code)

        if upstream.status_code in EMPTY_STATUSES or method == "HEAD":
            return Response(status_code=upstream.status_code)

        try:
            payload = upstream.json()
        except ValueError:
            payload = EMPTY_RESPONSE_BODY

        return JSONResponse(status_code=upstream.status_code, content=payload)

    def _fail(self, exc: Exception, method: str, url: str, original_url: str, start_time: float):
        self._record(method, "error", time.time() - start_time)
        self.logger.error(
            "Upstream relay failed",
            method=method,
            upstream_url=url,
            path=original_url,
            error_type=type(exc).__name__,
            error=str(exc),
        )

    async def probe(self) -> str:
        """Check that the upstream answers its partners collection."""
        url = build_upstream_url(self.base_url, self.probe_path)
        try:
            response = await self.client.get(url, headers={"Accept": "application/json"})
        except httpx.RequestError as exc:
            self.logger.warning("Upstream probe failed", url=url, error=str(exc))
            return "error"

        if response.is_success:
            return "ok"

        self.logger.warning("Upstream probe returned error status", url=url, status_code=response.status_code)
        return "error"
