"""
Configuration Management for FinTrack

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every knob the core reads (where data lives, how exports are named,
which locale new users start with) is visible in one place and
validated at startup.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from FINTRACK_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Storage
    data_dir: Path = Field(
        default=Path(".fintrack"),
        description="Directory holding one JSON file per storage key"
    )
    storage_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How often a failed storage write is retried"
    )
    audit_log_enabled: bool = Field(
        default=True,
        description="Persist audit events next to the ledger data"
    )

    # Export
    export_dir: Path = Field(
        default=Path("exports"),
        description="Where export artifacts are written"
    )
    product_name: str = Field(
        default="Finance-Tracker",
        min_length=1,
        description="Product name used in artifact file names and document titles"
    )

    # New-user defaults
    default_currency: str = Field(
        default="EUR",
        pattern="^[A-Z]{3}$",
        description="Currency for profiles created on first login"
    )
    default_locale: str = Field(
        default="pt-PT",
        description="Locale for profiles created on first login"
    )

    # Aggregation
    trend_days: int = Field(
        default=7,
        ge=1,
        le=366,
        description="Length of the dashboard trend series"
    )
    budget_alert_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=10.0,
        description="Utilization ratio at which a budget alert is raised"
    )

    @field_validator("product_name")
    @classmethod
    def validate_product_name(cls, v: str) -> str:
        """Product name ends up in file names, so no path separators."""
        if "/" in v or "\\" in v:
            raise ValueError("product_name must not contain path separators")
        return v.strip()

    @property
    def audit_log_path(self) -> Path:
        return self.data_dir / "audit.jsonl"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_settings() -> dict[str, object]:
    """
    Validate settings are properly configured.

    Returns a dict of {check_name: result}.
    Useful for startup checks.
    """
    results: dict[str, object] = {}

    try:
        settings = get_settings()
        results["settings"] = True
    except Exception as e:
        results["settings"] = False
        results["settings_error"] = str(e)
        return results

    from fintrack.export.formatting import SUPPORTED_LOCALES

    results["locale"] = settings.default_locale in SUPPORTED_LOCALES
    results["data_dir_writable"] = _is_writable(settings.data_dir)
    results["export_dir_writable"] = _is_writable(settings.export_dir)

    return results


def _is_writable(path: Path) -> bool:
    """A directory is usable if it exists and is writable, or can be created."""
    target = path
    while not target.exists():
        if target.parent == target:
            return False
        target = target.parent
    return os.access(target, os.W_OK)
