"""
Tests for the Console gateway in proxy mode.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import get_config
from service_console.app.gateway import CORS_HEADERS, build_upstream_url
from service_console.app.main import ConsoleService

UPSTREAM = "http://upstream.test"


class UpstreamRecorder:
    """MockTransport handler recording requests and replaying a canned answer."""

    def __init__(self, response=None, error=None):
        self.requests = []
        self.response = response or httpx.Response(200, json=[])
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(request)
        return self.response


def make_client(upstream: UpstreamRecorder) -> TestClient:
    config = get_config("console", 5000, gateway_mode="proxy", upstream_base_url=UPSTREAM)
    service = ConsoleService(config, upstream_transport=httpx.MockTransport(upstream))
    return TestClient(service.app)


class TestBuildUpstreamUrl:
    """Test URL joining."""

    def test_keeps_trailing_slash(self):
        """Collection paths keep their trailing slash."""
        assert build_upstream_url(UPSTREAM, "/api/v1/partners/") == "http://upstream.test/api/v1/partners/"

    def test_no_slash_added_to_items(self):
        """Item paths are passed through as-is."""
        assert build_upstream_url(UPSTREAM + "/", "/api/v1/partners/3") == "http://upstream.test/api/v1/partners/3"

    def test_query_appended(self):
        """The query string is carried over."""
        url = build_upstream_url(UPSTREAM, "/api/v1/devices/", "status=ready&page=2")
        assert url == "http://upstream.test/api/v1/devices/?status=ready&page=2"

    def test_slash_restored_from_inbound_path(self):
        """A slash lost during routing is restored from the inbound path."""
        url = build_upstream_url(UPSTREAM, "/api/v1/partners", inbound_path="/api/v1/partners/")
        assert url.endswith("/api/v1/partners/")


class TestRelay:
    """Test request forwarding."""

    def test_get_is_relayed(self):
        """Status and JSON body are mirrored."""
        upstream = UpstreamRecorder(httpx.Response(200, json=[{"id": 1, "name": "Acme"}]))
        client = make_client(upstream)

        response = client.get("/api/v1/partners/")

        assert response.status_code == 200
        assert response.json() == [{"id": 1, "name": "Acme"}]
        assert str(upstream.requests[0].url) == "http://upstream.test/api/v1/partners/"
        assert upstream.requests[0].method == "GET"

    def test_query_string_is_forwarded(self):
        """Queries reach the upstream unchanged."""
        upstream = UpstreamRecorder()
        client = make_client(upstream)

        client.get("/api/v1/devices/?status=ready")

        assert upstream.requests[0].url.path == "/api/v1/devices/"
        assert upstream.requests[0].url.params["status"] == "ready"

    def test_body_and_headers_are_forwarded(self):
        """POST bodies are re-sent as JSON with the Authorization header."""
        upstream = UpstreamRecorder(httpx.Response(201, json={"id": 9}))
        client = make_client(upstream)

        response = client.post(
            "/api/v1/licenses/",
            json={"client_id": 3, "license_key": "ABC123"},
            headers={"Authorization": "Bearer token-1"},
        )

        assert response.status_code == 201
        sent = upstream.requests[0]
        assert json.loads(sent.content) == {"client_id": 3, "license_key": "ABC123"}
        assert sent.headers["content-type"] == "application/json"
        assert sent.headers["accept"] == "application/json"
        assert sent.headers["authorization"] == "Bearer token-1"

    def test_upstream_error_status_is_mirrored(self):
        """Upstream 404 bodies come back unchanged."""
        upstream = UpstreamRecorder(httpx.Response(404, json={"detail": "Partner not found"}))
        client = make_client(upstream)

        response = client.get("/api/v1/partners/99")

        assert response.status_code == 404
        assert response.json() == {"detail": "Partner not found"}

    def test_non_json_body_is_replaced(self):
        """A body that is not JSON becomes the empty-response message."""
        upstream = UpstreamRecorder(httpx.Response(200, content=b"<html>oops</html>"))
        client = make_client(upstream)

        response = client.get("/api/v1/partners/")

        assert response.status_code == 200
        assert response.json() == {"message": "Empty response from API"}

    def test_no_content_is_relayed_without_body(self):
        """204 answers stay empty."""
        upstream = UpstreamRecorder(httpx.Response(204))
        client = make_client(upstream)

        response = client.delete("/api/v1/partners/3")

        assert response.status_code == 204
        assert response.content == b""


class TestRelayFailures:
    """Test failure mapping."""

    def test_connection_reset_is_gateway_timeout(self):
        """A reset connection yields 504."""
        upstream = UpstreamRecorder(error=lambda request: httpx.ReadError("Connection reset by peer", request=request))
        client = make_client(upstream)

        response = client.get("/api/v1/partners/")

        assert response.status_code == 504
        assert response.json()["message"] == "Gateway timeout"

    def test_timeout_is_gateway_timeout(self):
        """Upstream timeouts yield 504."""
        upstream = UpstreamRecorder(error=lambda request: httpx.ReadTimeout("timed out", request=request))
        client = make_client(upstream)

        assert client.get("/api/v1/partners/").status_code == 504

    def test_connect_error_is_reported(self):
        """Other transport failures yield 500 with diagnostics."""
        upstream = UpstreamRecorder(error=lambda request: httpx.ConnectError("Connection refused", request=request))
        client = make_client(upstream)

        response = client.post("/api/v1/partners/?x=1", json={"name": "Acme"})

        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "API request failed"
        assert body["error"] == "Connection refused"
        assert body["url"] == "/api/v1/partners/?x=1"
        assert body["method"] == "POST"

    def test_failures_carry_cors_headers(self):
        """Error answers are CORS-decorated too."""
        upstream = UpstreamRecorder(error=lambda request: httpx.ConnectError("refused", request=request))
        client = make_client(upstream)

        response = client.get("/api/v1/partners/")
        assert response.headers["access-control-allow-origin"] == "*"


class TestCors:
    """Test preflight handling."""

    def test_preflight_short_circuits(self):
        """OPTIONS never reaches the upstream."""
        upstream = UpstreamRecorder()
        client = make_client(upstream)

        response = client.options("/api/v1/anything/at/all")

        assert response.status_code == 200
        for header, value in CORS_HEADERS.items():
            assert response.headers[header] == value
        assert upstream.requests == []

    def test_relayed_responses_carry_cors_headers(self):
        """Every relayed answer is CORS-decorated."""
        client = make_client(UpstreamRecorder())

        response = client.get("/api/v1/partners/")
        assert response.headers["access-control-allow-methods"] == CORS_HEADERS["Access-Control-Allow-Methods"]


class TestUpstreamHealth:
    """Test the upstream reachability check."""

    def test_healthz_reports_upstream_ok(self):
        """Reachable upstream reports ok."""
        client = make_client(UpstreamRecorder())

        body = client.get("/healthz").json()
        assert body["status"] == "ok"
        assert body["dependencies"] == {"upstream": "ok"}

    def test_healthz_reports_upstream_error(self):
        """Unreachable upstream reports error."""
        upstream = UpstreamRecorder(error=lambda request: httpx.ConnectError("refused", request=request))
        client = make_client(upstream)

        body = client.get("/healthz").json()
        assert body["status"] == "error"
        assert body["dependencies"] == {"upstream": "error"}
