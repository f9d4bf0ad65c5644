"""
Console service: partner/client/license/device management API.

In ``local`` mode the resource routers answer from the in-memory
database; in ``proxy`` mode every request under the API prefix is relayed
to the upstream API. Preflight and CORS handling is identical in both.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

import httpx

from shared.base_service import BaseService
from shared.config import ServiceConfig
from .domain.registry import RESOURCES
from .gateway import GatewayCORSMiddleware, UpstreamForwarder, build_proxy_router
from .persistence import ConsoleDatabase
from .resources import IntegrityChecker, build_resource_router


class ConsoleService(BaseService):
    """Console service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        database: Optional[ConsoleDatabase] = None,
        upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("console", 5000, config=config)

        self.database = database or ConsoleDatabase.in_memory(RESOURCES)
        self.integrity = IntegrityChecker(self.database, strict=self.config.strict_integrity)
        self.forwarder: Optional[UpstreamForwarder] = None

        if self.proxy_mode:
            self.forwarder = UpstreamForwarder(
                self.config.upstream_base_url,
                timeout=self.config.upstream_timeout_seconds,
                metrics=self.metrics,
                transport=upstream_transport,
                probe_path=f"{self.config.api_prefix.rstrip('/')}/partners/",
            )

        # Handlers resolve their collaborators from app state
        self.app.state.database = self.database
        self.app.state.integrity = self.integrity
        self.app.state.console_service = self

        self._setup_console_routes()
        self.app.add_middleware(GatewayCORSMiddleware, api_prefix=self.config.api_prefix)

        self.logger.info(
            "Console service configured",
            mode=self.config.gateway_mode,
            upstream=self.config.upstream_base_url if self.proxy_mode else None,
            strict_integrity=self.config.strict_integrity,
        )

    @property
    def proxy_mode(self) -> bool:
        return self.config.gateway_mode == "proxy"

    def _setup_console_routes(self):
        """Set up console-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "console",
                "message": "Partner Console API",
                "version": "1.0.0",
                "mode": self.config.gateway_mode,
                "resources": [resource.collection for resource in RESOURCES],
            }

        @self.app.get("/healthz")
        async def healthz():
            """Liveness endpoint with dependency status."""
            dependencies = await self._check_dependencies()
            status = "ok" if all(value in ("ok", "local") for value in dependencies.values()) else "error"
            return {
                "service": "console",
                "status": status,
                "dependencies": dependencies,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

        if self.proxy_mode:
            self.app.include_router(build_proxy_router(self.forwarder, prefix=self.config.api_prefix))
        else:
            self.app.include_router(
                build_resource_router(RESOURCES, prefix=self.config.api_prefix, metrics=self.metrics)
            )

    async def startup(self):
        if self.config.seed_sample_data and not self.proxy_mode:
            await self.database.seed_sample_data()

    async def shutdown(self):
        if self.forwarder:
            await self.forwarder.close()

    async def _check_dependencies(self) -> Dict[str, str]:
        if self.forwarder:
            return {"upstream": await self.forwarder.probe()}
        return {"store": "ok", "upstream": "local"}


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = ConsoleService(config, **kwargs)
    return service.app


def main():
    """Console script entry point."""
    ConsoleService().run()


if __name__ == "__main__":
    main()
