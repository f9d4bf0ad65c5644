"""
Base service class for Partner Console services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Dict, Optional
import random
import socket
import time
import sys
import os

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector
from shared.errors import ConsoleError, ErrorResponse, UpstreamUnavailableError

# Business outcomes the caller can fix; never logged as failures.
EXPECTED_ERROR_CODES = {"VALIDATION_ERROR", "INVALID_INPUT", "NOT_FOUND"}

# Codes for errors raised by the router itself
HTTP_ERROR_CODES = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, port: int, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.port = port
        self.config = config or get_config(service_name, port)
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)
        self._start_time = time.time()

        # Configure logging
        configure_logging(service_name, self.config.log_level)

        # Create FastAPI app
        self.app = self._create_app()

        # Set up middleware
        self._setup_middleware()

        # Set up routes
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await self.startup()
            try:
                yield
            finally:
                await self.shutdown()

        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"Partner Console - {self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=lifespan,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        @self.app.middleware("http")
        async def request_context(request: Request, call_next):
            request_id = set_request_id(request.headers.get("X-Request-ID"))
            start_time = time.time()

            try:
                response = await call_next(request)
            except Exception as exc:
                # Unhandled errors are answered here so outer middleware
                # (CORS) still decorates the response.
                self.logger.error(
                    "Unhandled exception",
                    method=request.method,
                    path=request.url.path,
                    error=str(exc),
                    exc_info=True
                )
                self.metrics.record_error(type(exc).__name__)
                response = JSONResponse(
                    status_code=500,
                    content={"message": "Internal server error", "code": "INTERNAL_ERROR"}
                )

            duration = time.time() - start_time
            self.metrics.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status_code=response.status_code,
                duration=duration
            )
            self.logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2)
            )

            response.headers["X-Request-ID"] = request_id
            clear_context()
            return response

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            try:
                dependencies = await self._check_dependencies()
                self.metrics.record_health_check("ok")

                return {
                    "service": self.service_name,
                    "status": "ok",
                    "uptime_seconds": self._get_uptime(),
                    "dependencies": dependencies,
                    "version": "1.0.0",
                    "commit": os.getenv("GIT_COMMIT", "unknown")
                }
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                self.metrics.record_health_check("error")
                return JSONResponse(
                    status_code=503,
                    content={
                        "service": self.service_name,
                        "status": "error",
                        "error": str(e)
                    }
                )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            from prometheus_client import CONTENT_TYPE_LATEST
            return Response(
                content=self.metrics.render(),
                media_type=CONTENT_TYPE_LATEST
            )

        @self.app.exception_handler(ConsoleError)
        async def console_exception_handler(request: Request, exc: ConsoleError):
            """Handle ConsoleError."""
            if exc.code in EXPECTED_ERROR_CODES:
                self.logger.info(
                    "Request rejected",
                    code=exc.code,
                    message=exc.message,
                    path=request.url.path
                )
            elif isinstance(exc, UpstreamUnavailableError):
                self.logger.error(
                    "Upstream unavailable",
                    code=exc.code,
                    message=exc.message,
                    details=exc.details
                )
                self.metrics.record_error(exc.code)
            else:
                self.logger.error(
                    "Console error",
                    code=exc.code,
                    message=exc.message,
                    details=exc.details
                )
                self.metrics.record_error(exc.code)

            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump()
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Render routing errors (unknown path, wrong method) in the console error shape."""
            code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
            self.logger.info(
                "Request rejected",
                code=code,
                status_code=exc.status_code,
                method=request.method,
                path=request.url.path
            )

            error = ErrorResponse(message=str(exc.detail), code=code)
            return JSONResponse(
                status_code=exc.status_code,
                content=error.model_dump(),
                headers=getattr(exc, "headers", None)
            )

    async def startup(self):
        """Acquire resources. Override in subclasses."""

    async def shutdown(self):
        """Release resources. Override in subclasses."""

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def _select_port(self) -> int:
        """Return the configured port, or a random fallback if it is taken."""
        port = self.config.port
        for attempt in range(self.config.port_retry_attempts + 1):
            if _port_available(self.config.host, port):
                return port
            self.logger.warning("Port in use, trying another port", port=port, attempt=attempt)
            port = random.randrange(self.config.port_retry_range_start, self.config.port_retry_range_end)

        self.logger.error("Failed to start server: no free port", last_port=port)
        sys.exit(1)

    def run(self):
        """Run the service."""
        import uvicorn
        port = self._select_port()
        self.logger.info("Serving", host=self.config.host, port=port)
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=port,
            log_level=self.config.log_level.lower()
        )


def _port_available(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True
