"""
Shared configuration management for the enterprise auth service.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    app_env: str = Field(default="prod")
    log_level: str = Field(default="info")

    # Token codec
    jwt_secret: Optional[str] = Field(default=None)
    token_ttl_seconds: int = Field(default=3600)

    # Verification gateway
    unionpay_3060_api: Optional[str] = Field(default=None)
    merchant_no: Optional[str] = Field(default=None)
    secss_config_path: Optional[str] = Field(default=None)
    secss_key_password: Optional[str] = Field(default=None)
    gateway_timeout_seconds: float = Field(default=30.0)

    # Bank directory
    bank_json_path: str = Field(default="bank.json")

    @property
    def is_development(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_production(self) -> bool:
        return not self.is_development


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "enterprise-auth"
    port: int = 2342
    host: str = "0.0.0.0"


def get_config(service_name: str = "enterprise-auth", **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
