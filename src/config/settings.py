"""
Configuration Management for the Shop Credit Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every setting has a working default, so the ledger runs with no .env at all;
environment variables only override where the file lives and how the shop
is named.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where the ledger document is kept."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="json_file",
        pattern="^(json_file|memory)$",
        description="Storage backend: json_file or memory (nothing persisted)"
    )
    data_file: Path = Field(
        default=Path("data/ledger.json"),
        description="Path of the ledger JSON document"
    )

    @field_validator("data_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Expand ~ so paths from .env behave like shell paths."""
        return Path(v).expanduser()


class MessagingSettings(BaseSettings):
    """WhatsApp reminder link configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_MESSAGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="https://wa.me",
        description="Click-to-chat base URL"
    )
    country_code: str = Field(
        default="91",
        pattern=r"^\d{1,3}$",
        description="Country calling code prepended to local numbers"
    )
    phone_digits: int = Field(
        default=10,
        ge=6,
        le=15,
        description="Exact number of digits a local mobile number must have"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Environment name shown in logs and on the settings page"
    )
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG whatever log_level says"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )

    # Shop identity
    app_name: str = Field(
        default="oil_murugan",
        pattern=r"^[A-Za-z0-9_\-]+$",
        description="Short name used in backup file names"
    )
    business_name: str = Field(
        default="Oil Murugan",
        description="Shop name used in the default reminder message"
    )
    currency_symbol: str = Field(
        default="₹",
        description="Currency symbol for display"
    )

    # Activity log
    recent_log_limit: int = Field(
        default=200,
        ge=1,
        le=10000,
        description="Activity lines kept in the stored document"
    )
    recent_display_limit: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Activity lines shown on the dashboard"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return str(v).upper()


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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def messaging(self) -> MessagingSettings:
        return MessagingSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool | str]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the ones that failed.
    Useful for the settings page.
    """
    results: dict[str, bool | str] = {}

    settings = get_settings()

    for name in ("storage", "messaging", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
