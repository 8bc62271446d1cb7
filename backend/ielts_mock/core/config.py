"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Self

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "IELTS Mock API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
    ]

    # Security
    # Tokens are issued by the identity service; this service only verifies them
    JWT_SECRET_KEY: str = Field(..., description="JWT signing secret key (required)")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Test timing
    SUBMISSION_GRACE_SECONDS: int = Field(
        default=120,
        description="Seconds past the module deadline during which saves are still accepted",
    )

    # Reference-data and result caching
    CACHE_DEFAULT_TTL_SECONDS: int = Field(
        default=300,
        ge=0,
        description="Default TTL for cached questions, band tables and result views",
    )

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0, 0.1 = 10% of transactions)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_timing(self) -> Self:
        """Reject a negative grace period."""
        if self.SUBMISSION_GRACE_SECONDS < 0:
            raise ValueError(
                f"SUBMISSION_GRACE_SECONDS must be >= 0, got {self.SUBMISSION_GRACE_SECONDS}"
            )
        return self

    @model_validator(mode="after")
    def validate_log_level(self) -> Self:
        """Normalize LOG_LEVEL and reject unknown names."""
        level = self.LOG_LEVEL.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {self.LOG_LEVEL}"
            )
        self.LOG_LEVEL = level
        return self


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
