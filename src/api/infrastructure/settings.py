"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

import re
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SCHEMA_PREFIX_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")
# Room for a 36-character UUID within the 63-byte identifier limit
MAX_SCHEMA_PREFIX_LENGTH = 63 - 36


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        SHIFTBOARD_DB_HOST: Database host (default: localhost)
        SHIFTBOARD_DB_PORT: Database port (default: 5432)
        SHIFTBOARD_DB_DATABASE: Database name (default: shiftboard)
        SHIFTBOARD_DB_USERNAME: Database user (default: shiftboard)
        SHIFTBOARD_DB_PASSWORD: Database password (required in production)
        SHIFTBOARD_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        SHIFTBOARD_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
        SHIFTBOARD_DB_POOL_ENABLED: Enable connection pooling (default: true)
        SHIFTBOARD_DB_STATEMENT_TIMEOUT_MS: Per-statement timeout, 0 keeps the
            server default (default: 0)
        SHIFTBOARD_DB_PROVISIONING_TIMEOUT_MS: Upper bound for the tenant DDL
            batch (default: 30000)
    """

    model_config = SettingsConfigDict(
        env_prefix="SHIFTBOARD_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="shiftboard", description="Database name")
    username: str = Field(default="shiftboard", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )
    pool_enabled: bool = Field(
        default=True,
        description="Enable connection pooling",
    )
    statement_timeout_ms: int = Field(
        default=0,
        description="Statement timeout applied to pooled connections (0 = server default)",
        ge=0,
    )
    provisioning_timeout_ms: int = Field(
        default=30_000,
        description="Statement timeout for the tenant provisioning DDL batch",
        gt=0,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class TenancySettings(BaseSettings):
    """Tenant isolation settings.

    Environment variables:
        SHIFTBOARD_TENANCY_SCHEMA_PREFIX: Prefix for per-tenant schemas
            (default: business_, at most 27 characters)
        SHIFTBOARD_TENANCY_HANDLE_TTL_SECONDS: Idle time before a cached
            tenant accessor is evicted (default: 1800)
        SHIFTBOARD_TENANCY_SWEEP_INTERVAL_SECONDS: How often the cache sweep
            runs (default: 60)
    """

    model_config = SettingsConfigDict(
        env_prefix="SHIFTBOARD_TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    schema_prefix: str = Field(
        default="business_",
        description="Prefix prepended to the sanitized tenant id",
        max_length=MAX_SCHEMA_PREFIX_LENGTH,
    )
    handle_ttl_seconds: float = Field(
        default=1800,
        description="Idle seconds before a cached accessor is evicted",
        gt=0,
    )
    sweep_interval_seconds: float = Field(
        default=60,
        description="Seconds between cache sweeps",
        gt=0,
    )

    @field_validator("schema_prefix")
    @classmethod
    def validate_schema_prefix(cls, value: str) -> str:
        """Schema prefix must be a lowercase SQL identifier fragment."""
        if not _SCHEMA_PREFIX_PATTERN.match(value):
            raise ValueError(
                f"schema_prefix '{value}' must start with a lowercase letter or "
                "underscore and contain only lowercase letters, digits and underscores"
            )
        return value


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Shiftboard API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def tenancy(self) -> TenancySettings:
        """Get tenancy settings."""
        return get_tenancy_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings."""
    return TenancySettings()
