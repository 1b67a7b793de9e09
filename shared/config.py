"""
Shared configuration management for 254Carbon Access Layer.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # External services
    postgres_dsn: str = Field(default="postgres://localhost:5432/access")

    # Single sign-on
    sso_application_name: str = Field(default="sso")
    sso_server_identity: Optional[str] = Field(default=None)
    sso_default_tenant: str = Field(default="default")
    sso_account_store: str = Field(default="memory")
    sso_accounts_file: Optional[str] = Field(default=None)
    sso_properties_file: Optional[str] = Field(default=None)
    sso_session_idle_timeout_seconds: int = Field(default=1800)
    sso_session_cookie: str = Field(default="access_sso_session")

    # TLS (future)
    tls_enabled: bool = Field(default=False)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
