"""
Centralized configuration for rhocontracts.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit ``get_config()`` overrides
2. Environment variables (RHOCONTRACTS_*)
3. .env file
4. Default values

Example:
    from rhocontracts.config import get_config, set_error_message_inspection_depth

    config = get_config()
    print(config.inspection_depth)  # From RHOCONTRACTS_INSPECTION_DEPTH or 5

    # Render rejected values without a depth limit
    set_error_message_inspection_depth(None)
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ContractsConfig(BaseSettings):
    """
    Central configuration for rhocontracts.

    All settings can be overridden via environment variables
    prefixed with RHOCONTRACTS_.

    Example:
        export RHOCONTRACTS_INSPECTION_DEPTH=10
        export RHOCONTRACTS_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="RHOCONTRACTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )

    # Error message rendering
    inspection_depth: Optional[int] = Field(
        default=5,
        ge=0,
        description="Nesting depth used to render rejected values (None = unbounded)",
    )
    inspection_max_items: int = Field(
        default=20,
        ge=1,
        description="Container items rendered before eliding the rest",
    )
    inspection_max_string: int = Field(
        default=200,
        ge=10,
        description="Characters rendered per string or object repr",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        description="Logging level used by the rhocontracts CLI",
    )


# Global singleton
_config: Optional[ContractsConfig] = None


def get_config(**overrides) -> ContractsConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        ContractsConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = ContractsConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def set_error_message_inspection_depth(depth: Optional[int]) -> None:
    """Bound how deeply rejected values are rendered in error messages.

    ``None`` disables the limit.
    """
    get_config().inspection_depth = depth


def get_log_level() -> str:
    """Get the configured log level."""
    return get_config().log_level
