"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
Every value has a working default so the service boots without a .env file;
relay URLs can be blanked out to exercise the "relay required" failure path.

Production Mode:
    When app_env="production", additional validations apply:
    - debug must be False
    - cors_allowed_origins cannot be ["*"]
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of the console renderer",
    )
    api_host: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    api_port: int = Field(default=8000, description="Bind port for uvicorn")

    # -------------------------------------------------------------------------
    # HTTP Fetching
    # -------------------------------------------------------------------------
    http_timeout_seconds: float = Field(
        default=20.0,
        description="Timeout for a single upstream request",
    )
    http_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        description="User-Agent sent to source sites and relays",
    )

    # -------------------------------------------------------------------------
    # Relays / Workers
    # -------------------------------------------------------------------------
    fsiblog_worker_url: str = Field(
        default="https://fsiblog5.premiumhub.workers.dev",
        description="Relay used to fetch and proxy FSIBlog pages and assets",
    )
    kamababa_worker_url: str = Field(
        default="https://fsiblog5.premiumhub.workers.dev",
        description="Relay used to fetch and proxy Kamababa pages and assets",
    )
    indianpornhq_worker_url: str = Field(
        default="https://indianpornhq.premiumhub.workers.dev",
        description="Relay used to proxy IndianPornHQ thumbnails",
    )
    xhamster_worker_url: str = Field(
        default="https://xhamster.premiumhub.workers.dev",
        description="Relay used for xHamster embeds found on IndianPornHQ pages",
    )
    superporn_api_url: str = Field(
        default="http://localhost:3000/api/proxy/categories",
        description="JSON relay serving Superporn listings and categories",
    )
    superporn_search_url: str = Field(
        default="http://localhost:3000/api/proxy/search",
        description="JSON relay serving Superporn search results",
    )
    image_proxy_url: str = Field(
        default="http://localhost:8000/api/v2/image-proxy",
        description="Absolute URL of the generic image relay for providers without a worker",
    )

    # -------------------------------------------------------------------------
    # Redis (Provider Cache)
    # -------------------------------------------------------------------------
    redis_url: str | None = Field(default=None, description="Redis connection URL")
    cache_enabled: bool = Field(default=True, description="Enable the provider cache")
    cache_prefix: str = Field(
        default="premiumhub:provider_v2",
        description="Namespace prefix for provider cache keys",
    )

    # -------------------------------------------------------------------------
    # Circuit Breaker
    # -------------------------------------------------------------------------
    circuit_failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive upstream failures before a host circuit opens",
    )
    circuit_recovery_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds before an open host circuit lets a probe through",
    )

    # -------------------------------------------------------------------------
    # Aggregation
    # -------------------------------------------------------------------------
    aggregate_timeout_seconds: float = Field(
        default=45.0,
        description="Request-level timeout applied by API routes that fan out",
    )

    # -------------------------------------------------------------------------
    # CORS Settings
    # -------------------------------------------------------------------------
    cors_allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins. Use ['*'] for development only.",
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials in CORS requests",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production settings are safe."""
        if self.app_env == "production":
            errors = []

            if self.debug:
                errors.append("debug must be False in production")

            if "*" in self.cors_allowed_origins:
                errors.append("cors_allowed_origins cannot contain '*' in production")

            if errors:
                raise ValueError(
                    f"Production configuration errors: {'; '.join(errors)}"
                )

        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
