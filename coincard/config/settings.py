"""
Configuration Management for CoinCard

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which storage backend and which remote service the
app talks to, and ensures bad values are rejected at startup.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="COINCARD_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["sqlite", "file", "memory"] = Field(
        default="sqlite",
        description="Key-value substrate used for records and tags"
    )
    path: str = Field(
        default="coincard.db",
        description="Database file (sqlite) or directory (file backend)"
    )

    # Keys within the substrate
    records_key: str = Field(
        default="money_records",
        min_length=1,
        description="Key holding the serialized record array"
    )
    hashtags_key: str = Field(
        default="hashtags",
        min_length=1,
        description="Key holding the hashtag vocabulary"
    )
    audit_key: str = Field(
        default="audit_log",
        min_length=1,
        description="Key holding persisted audit events"
    )
    audit_max_events: int = Field(
        default=500,
        ge=1,
        description="How many audit events are kept before the oldest are dropped"
    )

    @field_validator("records_key", "hashtags_key", "audit_key")
    @classmethod
    def strip_key(cls, v: str) -> str:
        return v.strip()


class ClassificationSettings(BaseSettings):
    """Remote classification service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="COINCARD_CLASSIFIER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    endpoint_url: str = Field(
        default="https://us-central1-coincard-bd6c8.cloudfunctions.net/analyzeMoneyInImage",
        description="URL accepting POST {image: base64}"
    )
    # None keeps the httpx client from timing out at all
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Request timeout in seconds (unset = wait indefinitely)"
    )
    check_connectivity: bool = Field(
        default=False,
        description="Probe connectivity_url before posting the image"
    )
    connectivity_url: str = Field(
        default="https://www.google.com",
        description="Well-known host used for the reachability probe"
    )
    max_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Attempts on transport failures (HTTP errors are never retried)"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )

    # Record defaults
    unknown_recipient: str = Field(
        default="Unknown",
        min_length=1,
        description="Recipient stored when the user leaves it empty"
    )
    placeholder_image_uri: str = Field(
        default="placeholder://manual-entry",
        description="Image reference used for manually entered records"
    )
    require_recipient: bool = Field(
        default=False,
        description="Reject drafts without a recipient instead of saving 'Unknown'"
    )

    # Validation thresholds
    max_record_amount: Decimal = Field(
        default=Decimal("1000000000"),
        gt=0,
        description="Amounts above this (VND) are flagged for review"
    )

    # Export
    export_dir: str = Field(
        default=".",
        description="Directory where exported workbooks are written"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def classification(self) -> ClassificationSettings:
        return ClassificationSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus "<name>_error"
    entries describing failures. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "classification", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
