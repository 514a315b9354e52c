"""
Configuration management for the hrdash gateway
"""
from datetime import time
from typing import Optional, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator

from hrdash.core.constants import (
    DEFAULT_EMPLOYEE_CACHE_TTL_SECONDS,
    DEFAULT_GEO_MAXIMUM_AGE_MS,
    DEFAULT_GEO_TIMEOUT_MS,
    DEFAULT_LEAVE_CUTOFF_HOURS,
    DEFAULT_LIVE_TIMER_INTERVAL_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Required settings
    HR_API_BASE_URL: str = Field(..., description="Base URL of the HR REST API, e.g. https://hr.example.com/api")
    JWT_SECRET_KEY: str = Field(..., description="Secret shared with the HR platform for verifying bearer tokens")

    # Optional settings with defaults
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_EXPIRE_MINUTES: int = Field(default=120, description="Lifetime of tokens minted by create_access_token")

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    # Work dates, date-only leave boundaries and display times use this zone
    APP_TIMEZONE: str = Field(default="Asia/Kolkata", description="Business timezone (computations stay in UTC)")

    HR_API_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0, description="Timeout for every HR API call")

    # Geolocation options forwarded to / enforced for the dashboard
    GEO_TIMEOUT_MS: int = Field(default=DEFAULT_GEO_TIMEOUT_MS, gt=0)
    GEO_ENABLE_HIGH_ACCURACY: bool = Field(default=True)
    GEO_MAXIMUM_AGE_MS: int = Field(default=DEFAULT_GEO_MAXIMUM_AGE_MS, ge=0)

    LIVE_TIMER_INTERVAL_SECONDS: int = Field(default=DEFAULT_LIVE_TIMER_INTERVAL_SECONDS, gt=0)
    LEAVE_CUTOFF_HOURS: float = Field(default=DEFAULT_LEAVE_CUTOFF_HOURS, ge=0)

    # Shift policy used when the HR API does not report lateness / early leave itself
    SHIFT_START: str = Field(default="09:30", description="Shift start (HH:MM, business timezone)")
    SHIFT_REQUIRED_HOURS: float = Field(default=8.0, gt=0)
    LATE_GRACE_MINUTES: int = Field(default=0, ge=0)

    EMPLOYEE_CACHE_TTL_SECONDS: int = Field(default=DEFAULT_EMPLOYEE_CACHE_TTL_SECONDS, gt=0)
    EMPLOYEE_CACHE_MAX_ENTRIES: int = Field(default=256, gt=0)

    # Version (can be git SHA or semver)
    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate APP_ENV"""
        allowed = ["local", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    @field_validator("APP_TIMEZONE")
    @classmethod
    def validate_tz(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"APP_TIMEZONE must be an IANA timezone name, got {v!r}")
        return v

    @field_validator("SHIFT_START")
    @classmethod
    def validate_shift_start(cls, v: str) -> str:
        try:
            time.fromisoformat(v)
        except ValueError:
            raise ValueError("SHIFT_START must be HH:MM")
        return v

    @field_validator("HR_API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.APP_TIMEZONE)

    @property
    def shift_start_time(self) -> time:
        return time.fromisoformat(self.SHIFT_START)

    def validate_production(self) -> None:
        """
        Validate settings for production environment

        Raises:
            ValueError: If production settings are invalid
        """
        if self.APP_ENV == "prod":
            # JWT_SECRET_KEY must be at least 32 characters in production
            if len(self.JWT_SECRET_KEY) < 32:
                raise ValueError(
                    "JWT_SECRET_KEY must be at least 32 characters in production environment"
                )

            # ALLOWED_ORIGINS must not be wildcard in production
            if self.ALLOWED_ORIGINS == "*" or not self.ALLOWED_ORIGINS:
                raise ValueError(
                    "ALLOWED_ORIGINS must be explicitly set (not '*') in production environment"
                )

            if not self.HR_API_BASE_URL.startswith("https://"):
                raise ValueError("HR_API_BASE_URL must use https in production environment")

    def get_allowed_origins_list(self) -> List[str]:
        """
        Get list of allowed CORS origins

        Returns:
            List of allowed origins (or ['*'] for local)
        """
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Create settings instance
settings = Settings()

# Validate production settings if in prod
if settings.APP_ENV == "prod":
    settings.validate_production()
