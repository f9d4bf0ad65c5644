"""
Catch-all proxy route used when the gateway runs in proxy mode.
"""

from fastapi import APIRouter, Request

from .forwarder import UpstreamForwarder

PROXIED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def build_proxy_router(forwarder: UpstreamForwarder, prefix: str = "/api/v1") -> APIRouter:
    """Route every request under ``prefix`` to ``forwarder``."""
    router = APIRouter(prefix=prefix)

    async def relay(path: str, request: Request):
        return await forwarder.forward(request)

    router.add_api_route(
        "/{path:path}",
        relay,
        methods=PROXIED_METHODS,
        name="proxy_relay",
        include_in_schema=False,
    )
    return router
