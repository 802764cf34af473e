"""
Shared Configuration Module

Centralized configuration management for the catalog service using Pydantic Settings.
Supports environment variables, .env files, and runtime overrides.
"""

from functools import lru_cache
from typing import Literal
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = Field(default=True, description="Enable debug mode")

    # HTTP
    catalog_http_host: str = "0.0.0.0"
    catalog_http_port: int = 8080

    # MongoDB - Product store
    mongodb_user: str = "catalog"
    mongodb_password: str = "catalog_dev_password"
    mongodb_host: str = "localhost"
    mongodb_port: int = 27017
    mongodb_db: str = "catalogdb"
    mongodb_products_collection: str = "products"

    @property
    def mongodb_url(self) -> str:
        """Construct MongoDB connection URL."""
        return f"mongodb://{quote_plus(self.mongodb_user)}:{quote_plus(self.mongodb_password)}@{self.mongodb_host}:{self.mongodb_port}/{self.mongodb_db}?authSource=admin"

    # Circuit breaker guarding product reads
    circuit_breaker_max_failures: int = Field(default=3, ge=1)
    circuit_breaker_call_timeout: float = Field(default=1.0, gt=0, description="Seconds")
    circuit_breaker_reset_timeout: float = Field(default=5.0, gt=0, description="Seconds")

    # Health checks
    health_check_timeout: float = Field(default=1.0, gt=0, description="Seconds")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "json"

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = False
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["GET", "POST"])
    cors_allow_headers: list[str] = Field(default_factory=lambda: ["*"])


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()


# Convenience exports
settings = get_settings()
