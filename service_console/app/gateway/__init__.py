"""
Gateway package for the Console service.

- cors: preflight short-circuit and CORS headers on every response.
- forwarder: upstream relay with structured failure bodies.
- proxy: catch-all route wiring the forwarder under the API prefix.
"""

from .cors import CORS_HEADERS, GatewayCORSMiddleware
from .forwarder import UpstreamForwarder, build_upstream_url
from .proxy import build_proxy_router

__all__ = [
    "CORS_HEADERS",
    "GatewayCORSMiddleware",
    "UpstreamForwarder",
    "build_upstream_url",
    "build_proxy_router",
]
