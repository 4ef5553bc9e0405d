"""
Shared configuration management for the EliteScholar Access Layer.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="NAV_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Stores
    store_backend: str = Field(default="memory", description="memory | postgres")
    postgres_dsn: str = Field(default="postgres://localhost:5432/elitescholar")
    catalog_file: Optional[str] = Field(default=None, description="YAML catalog used to seed the memory backend")

    # Sessions
    redis_url: str = Field(default="redis://localhost:6379/0")
    session_ttl_seconds: int = Field(default=3600, ge=60)

    # External services
    auth_service_url: str = Field(default="http://localhost:8010")

    # Resolution
    resolution_timeout_seconds: float = Field(default=5.0, gt=0)

    # Observability
    enable_tracing: bool = Field(default=False)
    otel_exporter: str = Field(default="http://localhost:4317")
    enable_console_tracing: bool = Field(default=False)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
