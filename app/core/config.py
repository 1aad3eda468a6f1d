"""Configuration management with pydantic-settings.

Provides type-safe configuration with environment variable validation.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    app_name: str = Field("Pricing Profiles API", description="Application title")
    app_version: str = Field("0.4.0", description="Application version")
    app_env: str = Field("production", description="Deployment environment label")
    cors_origins: str = Field("*", description="Comma-separated allowed CORS origins")

    # === Database ===
    database_url: str = Field(
        "sqlite:///./pricing_profiles.db",
        description="Database URL (SQLite for local use, Postgres in production)",
    )
    database_echo: bool = Field(False, description="Echo SQL statements (debug only)")

    # === Demo authentication stub ===
    demo_user_email: str = Field(
        "demo@foboh.local", description="Email used when no X-User-Email header is sent"
    )
    demo_user_name: str = Field("Demo User", description="Display name for the demo user")

    # === Pricing engine ===
    pricing_chain_max_depth: int = Field(
        10, ge=0, description="Maximum number of based-on hops followed when resolving prices"
    )

    # === Logging ===
    log_level: str = Field("INFO", description="Root log level")
    log_json: bool = Field(True, description="Emit JSON structured logs")
    log_file_path: str | None = Field(None, description="Optional rotating JSON log file")

    @property
    def cors_origin_list(self) -> list[str]:
        """Get list of allowed CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        RuntimeError: If environment variables fail validation.

    """
    try:
        return Settings()
    except ValidationError as e:
        bad_fields = [str(error["loc"][0]).upper() for error in e.errors()]
        error_msg = (
            f"Configuration error: invalid environment variables: "
            f"{', '.join(bad_fields)}\n"
            f"Please fix them in .env file or the process environment.\n"
            f"See .env.example for reference."
        )
        raise RuntimeError(error_msg) from e


__all__ = ["Settings", "get_settings"]
