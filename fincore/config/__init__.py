"""Configuration package."""

from fincore.config.settings import (
    AppSettings,
    CalculationSettings,
    Settings,
    SourceSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CalculationSettings",
    "Settings",
    "SourceSettings",
    "get_settings",
    "validate_all_settings",
]
