"""Configuration package."""

from src.config.settings import (
    AppSettings,
    MessagingSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "MessagingSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
