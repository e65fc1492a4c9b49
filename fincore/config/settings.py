"""
Configuration Management for fincore

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engines take explicit parameters; settings only supply the defaults
(currency quantum, match tolerance, projection horizon) and the knobs of
the storage boundary and logging.
"""

from decimal import Decimal
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CalculationSettings(BaseSettings):
    """Defaults used by the computation engines."""

    model_config = SettingsConfigDict(
        env_prefix="FINCORE_CALC_",
        extra="ignore"
    )

    currency_quantum: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Smallest currency unit; all schedule amounts are quantized to it"
    )
    installment_match_tolerance: Decimal = Field(
        default=Decimal("1.00"),
        ge=0,
        description="Largest accepted difference between a payment and its installment"
    )
    default_projection_months: int = Field(
        default=12,
        ge=1,
        le=120,
        description="Projection horizon when no 'upto' date is supplied"
    )


class SourceSettings(BaseSettings):
    """Record source (storage collaborator) access configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINCORE_SOURCE_",
        extra="ignore"
    )

    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per source call when the source is unavailable"
    )
    retry_min_wait_seconds: float = Field(
        default=0.5,
        ge=0.0,
        description="Initial backoff between attempts"
    )
    retry_max_wait_seconds: float = Field(
        default=8.0,
        ge=0.0,
        description="Backoff ceiling between attempts"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FINCORE_",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    timezone: str = Field(
        default="UTC",
        description="IANA timezone for 'today' and for naive datetimes compared with aware ones"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum log level"
    )
    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON (console rendering otherwise)"
    )

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject unknown IANA zone names at load time."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def calculation(self) -> CalculationSettings:
        return CalculationSettings()

    @property
    def source(self) -> SourceSettings:
        return SourceSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus `<name>_error`
    entries describing any failure. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("calculation", "source", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
