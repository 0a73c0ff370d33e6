"""
Application settings configuration for Meetboard.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        EVENTS_REQUIRE_APPROVAL: Submissions from regular users wait for
            moderation (default: True). When False every submission is
            approved immediately.
        FEATURED_DEFAULT_DAYS: How long a featured event stays featured when
            no explicit end is given, counted from its start (default: 30)
        PAST_EVENT_SWEEP_ENABLED: Materialize legacy completed events when the
            gallery is listed (default: True)
        SLUG_MAX_ATTEMPTS: Attempts to persist a record after losing a slug
            uniqueness race (default: 20)
        CORS_ORIGINS: Comma-separated allowed origins for the web frontend
    """

    events_require_approval: bool = Field(
        default=True,
        validation_alias="EVENTS_REQUIRE_APPROVAL",
        description="Hold non-admin submissions as pending until approved"
    )

    featured_default_days: int = Field(
        default=30,
        validation_alias="FEATURED_DEFAULT_DAYS",
        ge=1,
        le=365,
    )

    past_event_sweep_enabled: bool = Field(
        default=True,
        validation_alias="PAST_EVENT_SWEEP_ENABLED",
        description="Lazily materialize completed events without a gallery record"
    )

    slug_max_attempts: int = Field(
        default=20,
        validation_alias="SLUG_MAX_ATTEMPTS",
        ge=1,
        le=1000,
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        validation_alias="CORS_ORIGINS",
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("cors_origins")
    @classmethod
    def strip_origins(cls, v: str) -> str:
        """Drop surrounding whitespace."""
        return v.strip()

    @property
    def cors_origins_list(self) -> List[str]:
        """Allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
