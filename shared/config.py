"""
Shared configuration management for the Storefront gateway stack.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="STOREFRONT_",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment name")
    log_level: str = Field(default="info", description="Logging level")

    # Backend RPC services (host:port, no discovery)
    catalog_service_address: str = Field(default="localhost:50051")
    shipping_service_address: str = Field(default="localhost:50052")
    review_service_address: str = Field(default="localhost:50053")

    # Per-call deadline for backend RPCs. Unset means wait for the transport.
    rpc_timeout_seconds: Optional[float] = Field(default=None, gt=0)

    # Browser client origins
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins outside the local environment",
    )


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
