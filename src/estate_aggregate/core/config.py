"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .codes import (
    BLOCK_SEQUENCE_WIDTH,
    PROPERTY_CODE_PREFIX,
    PROPERTY_SEQUENCE_WIDTH,
    UNIT_NUMBER_WIDTH,
)
from .models import DEFAULT_CURRENCY


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class CodeConfig(BaseModel):
    property_prefix: str = PROPERTY_CODE_PREFIX
    property_sequence_width: int = PROPERTY_SEQUENCE_WIDTH
    block_sequence_width: int = BLOCK_SEQUENCE_WIDTH
    unit_number_width: int = UNIT_NUMBER_WIDTH


class BulkConfig(BaseModel):
    max_batch_size: int = Field(default=200, ge=1)  # Per bulk call


class CounterConfig(BaseModel):
    # Re-read + recount attempts when the property version token is stale
    refresh_attempts: int = Field(default=3, ge=1)


class PaginationConfig(BaseModel):
    default_limit: int = 50
    # Page size used when stats/health walk every unit of a property
    scan_page_size: int = 500


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level service settings.

    Loaded from TOML config files, overridden by environment variables
    (``ESTATE_DEFAULT_CURRENCY``, ``ESTATE_BULK__MAX_BATCH_SIZE`` ...).
    """

    service_name: str = "estate-aggregate"
    default_currency: str = DEFAULT_CURRENCY

    codes: CodeConfig = Field(default_factory=CodeConfig)
    bulk: BulkConfig = Field(default_factory=BulkConfig)
    counters: CounterConfig = Field(default_factory=CounterConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "ESTATE_", "env_nested_delimiter": "__"}

    def validate_limits(self) -> None:
        """Reject combinations the service cannot honour."""
        from .errors import ConfigError

        if self.pagination.scan_page_size < 1:
            raise ConfigError("pagination.scan_page_size must be positive")
        if len(self.default_currency) != 3:
            raise ConfigError(
                f"default_currency must be an ISO 4217 code, got {self.default_currency!r}"
            )
        if self.observability.log_format not in ("json", "console"):
            raise ConfigError(
                f"observability.log_format must be 'json' or 'console', "
                f"got {self.observability.log_format!r}"
            )


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

    if overrides:
        data.update(overrides)

    settings = Settings(**data)
    settings.validate_limits()
    return settings
