"""
LockBot - Configuration Module
==============================

Centralized configuration management with environment variable validation.

DESIGN:
    This module provides a single source of truth for all configuration,
    loaded from environment variables at startup. Using a dataclass ensures
    type safety once loaded.

    Key patterns:
    - Singleton pattern via get_config() ensures one Config instance
    - Validation happens once at load time, not on every access
    - Out-of-range integers are clamped with a warning instead of failing
"""

import os
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo

from src.core.constants import (
    DEFAULT_BYPASS_ROLE_NAME,
    DEFAULT_MAINTENANCE_CHANNEL_NAME,
    DEFAULT_STATE_FILE,
    DEFAULT_TEMP_ROLE_NAME,
    HEALTH_CHECK_PORT,
    MAINTENANCE_SLOWMODE_SECONDS,
    MAX_PENDING_ACTION_TTL,
    MAX_SLOWMODE_SECONDS,
    MIN_PENDING_ACTION_TTL,
    PENDING_ACTION_TTL,
)


# =============================================================================
# Timezone Configuration
# =============================================================================

NY_TZ = ZoneInfo("America/New_York")
"""Eastern timezone for human-facing timestamps (logs, embeds)."""


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class Config:
    """
    Bot configuration loaded from environment variables.

    DESIGN:
        Required fields raise ConfigValidationError if missing.
        Optional fields have sensible defaults for development.

    Attributes:
        discord_token: Discord bot authentication token.
        maintenance_channel_name: Name of the channel members are confined to.
        state_file: Path to the persisted JSON state document.
        temp_role_name: Name of the zero-permission role given to members.
        bypass_role_name: Name of the role whose holders are never restricted.
        slowmode_seconds: Slow-mode delay applied to the maintenance channel.
        pending_action_ttl: Seconds a confirmation prompt stays valid.
        error_webhook_url: Discord webhook for error alerts.
        health_port: Port for the health check server (0 disables it).
    """

    # -------------------------------------------------------------------------
    # Required: Discord
    # -------------------------------------------------------------------------

    discord_token: str

    # -------------------------------------------------------------------------
    # Optional: Maintenance
    # -------------------------------------------------------------------------

    maintenance_channel_name: str = DEFAULT_MAINTENANCE_CHANNEL_NAME
    state_file: str = DEFAULT_STATE_FILE
    temp_role_name: str = DEFAULT_TEMP_ROLE_NAME
    bypass_role_name: str = DEFAULT_BYPASS_ROLE_NAME
    slowmode_seconds: int = MAINTENANCE_SLOWMODE_SECONDS
    pending_action_ttl: int = PENDING_ACTION_TTL

    # -------------------------------------------------------------------------
    # Optional: Operations
    # -------------------------------------------------------------------------

    error_webhook_url: Optional[str] = None
    health_port: int = HEALTH_CHECK_PORT


# =============================================================================
# Embed Colors
# =============================================================================

class EmbedColors:
    """Color palette for maintenance embeds."""

    WARNING = 0xFFC857  # Maintenance enabled / prompts
    INFO = 0x5865F2     # Status, announcements, help
    SUCCESS = 0x57F287  # Maintenance complete
    DANGER = 0xED4245   # Disable prompt, failures


# =============================================================================
# Validation
# =============================================================================

class ConfigValidationError(Exception):
    """
    Raised when required configuration is missing or invalid.

    DESIGN:
        Custom exception type allows callers to distinguish config
        errors from other startup failures.
    """

    pass


def _parse_str_with_default(value: Optional[str], default: str) -> str:
    """Return the stripped value, or default when unset or blank."""
    if value is None:
        return default
    value = value.strip()
    return value or default


def _parse_int_with_default(value: Optional[str], default: int, name: str, min_val: int = None, max_val: int = None) -> int:
    """
    Parse optional integer with default and range validation.

    Args:
        value: String value from environment variable.
        default: Default value if not set or invalid.
        name: Variable name for warning messages.
        min_val: Minimum allowed value (inclusive).
        max_val: Maximum allowed value (inclusive).

    Returns:
        Parsed integer within valid range, or default.
    """
    if not value:
        return default
    try:
        parsed = int(value)
        if min_val is not None and parsed < min_val:
            from src.core.logger import logger
            logger.warning(f"Config {name}={parsed} below min {min_val}, using {min_val}")
            return min_val
        if max_val is not None and parsed > max_val:
            from src.core.logger import logger
            logger.warning(f"Config {name}={parsed} above max {max_val}, using {max_val}")
            return max_val
        return parsed
    except ValueError:
        from src.core.logger import logger
        logger.warning(f"Config {name}='{value}' invalid, using default {default}")
        return default


def _validate_url(value: Optional[str], name: str) -> Optional[str]:
    """
    Validate URL format for webhooks.

    Args:
        value: URL string to validate.
        name: Variable name for warning messages.

    Returns:
        URL if valid, None if invalid or empty.
    """
    if not value:
        return None
    if not value.startswith(("https://", "http://")):
        from src.core.logger import logger
        logger.warning(f"Config {name} invalid URL format, ignoring")
        return None
    return value


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Returns:
        Validated Config object with all settings.

    Raises:
        ConfigValidationError: If any required variable is missing or invalid.
    """
    discord_token = (os.getenv("DISCORD_TOKEN") or "").strip()
    if not discord_token:
        raise ConfigValidationError("Missing required environment variables: DISCORD_TOKEN")

    return Config(
        discord_token=discord_token,
        maintenance_channel_name=_parse_str_with_default(
            os.getenv("MAINTENANCE_CHANNEL_NAME"), DEFAULT_MAINTENANCE_CHANNEL_NAME
        ),
        state_file=_parse_str_with_default(os.getenv("STATE_FILE"), DEFAULT_STATE_FILE),
        temp_role_name=_parse_str_with_default(
            os.getenv("MAINTENANCE_TEMP_ROLE_NAME"), DEFAULT_TEMP_ROLE_NAME
        ),
        bypass_role_name=_parse_str_with_default(
            os.getenv("MAINTENANCE_BYPASS_ROLE_NAME"), DEFAULT_BYPASS_ROLE_NAME
        ),
        slowmode_seconds=_parse_int_with_default(
            os.getenv("MAINTENANCE_SLOWMODE_SECONDS"), MAINTENANCE_SLOWMODE_SECONDS,
            "MAINTENANCE_SLOWMODE_SECONDS", min_val=0, max_val=MAX_SLOWMODE_SECONDS
        ),
        pending_action_ttl=_parse_int_with_default(
            os.getenv("PENDING_ACTION_TTL_SECONDS"), PENDING_ACTION_TTL,
            "PENDING_ACTION_TTL_SECONDS", min_val=MIN_PENDING_ACTION_TTL, max_val=MAX_PENDING_ACTION_TTL
        ),
        error_webhook_url=_validate_url(os.getenv("ERROR_WEBHOOK_URL"), "ERROR_WEBHOOK_URL"),
        health_port=_parse_int_with_default(
            os.getenv("HEALTH_PORT"), HEALTH_CHECK_PORT, "HEALTH_PORT", min_val=0, max_val=65535
        ),
    )


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, loading if needed.

    Raises:
        ConfigValidationError: On first call if config is invalid.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


# =============================================================================
# Config Validation & Logging
# =============================================================================

def validate_and_log_config() -> None:
    """
    Validate configuration and log results at startup.

    Raises:
        ConfigValidationError: If required configuration is missing.
    """
    from src.core.logger import logger

    config = get_config()

    if not config.error_webhook_url:
        logger.info("Optional config not set: ERROR_WEBHOOK_URL")

    logger.tree("Configuration Validated", [
        ("Required", "✅ All required variables set"),
        ("Maintenance Channel", f"#{config.maintenance_channel_name}"),
        ("Temp Role", config.temp_role_name),
        ("Bypass Role", config.bypass_role_name),
        ("State File", config.state_file),
        ("Slowmode", f"{config.slowmode_seconds}s"),
        ("Prompt TTL", f"{config.pending_action_ttl}s"),
        ("Health Port", str(config.health_port) if config.health_port else "Disabled"),
    ], emoji="⚙️")


__all__ = [
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "NY_TZ",
    "get_config",
    "load_config",
    "validate_and_log_config",
]
