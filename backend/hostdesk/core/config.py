"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly. Every setting can be overridden with
an environment variable prefixed with ``HOSTDESK_`` (for example
``HOSTDESK_DEFAULT_SERVICE_MINUTES=50``) or through a ``.env`` file.

The estimation tunables live here because they directly bias the published
wait times: the default service duration is used whenever a party size has no
recent history, and the fallback/damping values shape what guests see.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HOSTDESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Database - defaults to relative path for Docker, override via env for local dev
    database_url: str = "sqlite:///./data/hostdesk.db"

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Rate limiting (public check-in intake)
    rate_limit_enabled: bool = True
    checkin_rate_limit: str = "30/minute"

    # ==========================================================================
    # Wait estimation
    # ==========================================================================
    default_service_minutes: float = 45.0  # used when a party size has no samples
    history_window_days: int = 7
    confidence_spread_minutes: int = 5
    fallback_padding_minutes: int = 15  # added to the longest observed wait
    fallback_ceiling_minutes: int = 90
    # Largest share of the previous published estimate a single recompute may
    # remove. 1.0 disables damping.
    estimate_max_decrease_fraction: float = 0.5

    # ==========================================================================
    # Party lifecycle
    # ==========================================================================
    checkin_dedupe_minutes: int = 5
    notify_position_threshold: int = 2

    @field_validator("default_service_minutes", "history_window_days", "fallback_ceiling_minutes")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator(
        "confidence_spread_minutes",
        "fallback_padding_minutes",
        "checkin_dedupe_minutes",
        "notify_position_threshold",
    )
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("estimate_max_decrease_fraction")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("must be in the range (0, 1]")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Warn about development-only values when running in production mode."""
        import warnings

        if not self.debug and self.cors_origins == "*":
            warnings.warn(
                "CORS_ORIGINS is '*' in production mode. Set HOSTDESK_CORS_ORIGINS "
                "to the dashboard origins.",
                UserWarning,
                stacklevel=2,
            )
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def damping_fraction(self) -> Optional[float]:
        """Damping fraction, or None when damping is disabled."""
        if self.estimate_max_decrease_fraction >= 1:
            return None
        return self.estimate_max_decrease_fraction


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
