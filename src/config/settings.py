# src/config/settings.py — v1
"""Typed configuration loaded from the environment via pydantic-settings.

All variables use the RUNBOOK_ prefix (RUNBOOK_LOG_LEVEL, RUNBOOK_CREDS_PATH,
...) and may also come from a local .env file. Monitor credentials are
not settings: they live in the credentials document (config/loader.py).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from runbook.logging.handlers import parse_size


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="RUNBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Inputs ===
    creds_path: Path = Path("./creds.toml")

    # === Remote client ===
    http_timeout_s: float | None = None

    # === Execution ===
    confirm: bool = True

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @field_validator("http_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Timeout, when set, must be positive."""
        if v is not None and v <= 0:
            raise ValueError("http_timeout_s must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency of the logging options."""
        errors: list[str] = []

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        if self.log_file is not None:
            try:
                parse_size(self.log_rotation)
            except ValueError:
                errors.append(f"LOG_ROTATION {self.log_rotation!r} is not a size")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment with optional overrides.

    Args:
        **overrides: Field-level overrides (CLI flags, tests).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
