"""
Shared configuration management for the Partner Console.
"""

import os
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CONSOLE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # HTTP surface
    api_prefix: str = Field(default="/api/v1")

    # Gateway
    gateway_mode: Literal["local", "proxy"] = Field(default="local")
    upstream_base_url: str = Field(default="http://localhost:50000")
    upstream_timeout_seconds: float = Field(default=30.0, gt=0)

    # In-memory store
    strict_integrity: bool = Field(default=False)
    seed_sample_data: bool = Field(default=False)

    # Port selection on bind conflict
    port_retry_attempts: int = Field(default=10, ge=0)
    port_retry_range_start: int = Field(default=3000)
    port_retry_range_end: int = Field(default=5000)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    port = int(os.getenv("CONSOLE_PORT", port))
    return ServiceConfig(service_name=service_name, port=port, **overrides)
