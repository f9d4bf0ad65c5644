"""
Shared utilities for the Partner Console.

This package aggregates common building blocks consumed by all packages:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Retry helpers with exponential backoff
- base_service: FastAPI service skeleton (middleware, health, metrics)

Do not import from service_console or console_client into shared/.
"""
