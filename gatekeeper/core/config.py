"""
Gatekeeper settings.

Flat pydantic-settings model read from environment variables (names are
case-insensitive, unknown variables ignored). Defaults run the engine
locally on SQLite and a local Redis; production sets ``DATABASE_URL`` to a
``postgresql+asyncpg://`` URL.

Usage:
    from gatekeeper.core.config import settings

    ttl = settings.effective_permissions_ttl_seconds
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gatekeeper.core.enums import Environment


class Settings(BaseSettings):
    """Application settings. Environment variables override the defaults."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    # Runtime
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="development, testing, ci or production",
    )
    debug: bool = Field(default=False, description="Verbose errors and logging")
    log_level: str = Field(default="INFO", description="Minimum structlog level")
    app_name: str = Field(default="Gatekeeper", description="Reported by / and /health")
    app_version: str = Field(default="0.1.0", description="Reported by / and /health")

    # Persistence
    database_url: str = Field(
        default="sqlite+aiosqlite:///./gatekeeper.db",
        description="Async SQLAlchemy URL (asyncpg in production, aiosqlite locally)",
    )
    db_echo: bool = Field(default=False, description="Echo SQL statements")

    # Effective permission cache
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    cache_enabled: bool = Field(
        default=True,
        description="Cache resolved effective permissions; False resolves every check",
    )
    cache_key_prefix: str = Field(default="gatekeeper", description="Redis key namespace")
    effective_permissions_ttl_seconds: int = Field(
        default=900,
        ge=1,
        le=86400,
        description="Upper bound on how long a cached permission set can live",
    )

    # HTTP API
    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base of problem-details ``type`` URIs",
    )
    api_v1_prefix: str = Field(default="/api/v1", description="Route prefix of the v1 API")
    max_check_many_items: int = Field(
        default=50,
        ge=1,
        description="Largest accepted batch check",
    )

    # Roles the engine treats specially
    bootstrap_role_name: str = Field(
        default="USER",
        description="Baseline role granted by the seeders",
    )
    admin_role_names: list[str] = Field(
        default=["SUPER_ADMIN", "ADMIN"],
        description="Holding any of these roles unlocks the admin API",
    )
    admin_guard_enabled: bool = Field(
        default=True,
        description="Turn off only while bootstrapping the first administrator",
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @property
    def is_ci(self) -> bool:
        return self.environment == Environment.CI

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
