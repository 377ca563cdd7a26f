"""
LockBot - Centralized Constants
===============================

All magic numbers and constants are defined here for maintainability.
Import from this module instead of hardcoding values.
"""

# =============================================================================
# Time Constants (in seconds)
# =============================================================================

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

# =============================================================================
# Network Constants
# =============================================================================

# Health check server port (0 disables the server)
HEALTH_CHECK_PORT = 8081

# =============================================================================
# Maintenance Defaults
# =============================================================================

DEFAULT_MAINTENANCE_CHANNEL_NAME = "maintenance"
DEFAULT_TEMP_ROLE_NAME = "Maintenance"
DEFAULT_BYPASS_ROLE_NAME = "Maintenance Bypass"
DEFAULT_STATE_FILE = "data/state.json"

MAINTENANCE_CHANNEL_TOPIC = "Temporary maintenance channel"
MAINTENANCE_SLOWMODE_SECONDS = 10
MAX_SLOWMODE_SECONDS = 21600          # Discord's upper bound (6 hours)

# Auto-disable bounds for /maintenance enable (minutes)
MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 10080          # 7 days

# =============================================================================
# Confirmation Prompts
# =============================================================================

PENDING_ACTION_TTL = 120              # 2 minutes
MIN_PENDING_ACTION_TTL = 10
MAX_PENDING_ACTION_TTL = 900

# =============================================================================
# Limits
# =============================================================================

MAX_STATE_LOG_ENTRIES = 1000          # Per-guild log lines kept in state
MAX_ANNOUNCEMENT_LENGTH = 4000        # Embed description limit
STATUS_SUMMARY_LIMIT = 900            # Last-update preview in status embed

# =============================================================================
# Discord Permission Bits
# =============================================================================

VIEW_CHANNEL = 1 << 10


__all__ = [
    "SECONDS_PER_MINUTE",
    "SECONDS_PER_HOUR",
    "SECONDS_PER_DAY",
    "HEALTH_CHECK_PORT",
    "DEFAULT_MAINTENANCE_CHANNEL_NAME",
    "DEFAULT_TEMP_ROLE_NAME",
    "DEFAULT_BYPASS_ROLE_NAME",
    "DEFAULT_STATE_FILE",
    "MAINTENANCE_CHANNEL_TOPIC",
    "MAINTENANCE_SLOWMODE_SECONDS",
    "MAX_SLOWMODE_SECONDS",
    "MIN_DURATION_MINUTES",
    "MAX_DURATION_MINUTES",
    "PENDING_ACTION_TTL",
    "MIN_PENDING_ACTION_TTL",
    "MAX_PENDING_ACTION_TTL",
    "MAX_STATE_LOG_ENTRIES",
    "MAX_ANNOUNCEMENT_LENGTH",
    "STATUS_SUMMARY_LIMIT",
    "VIEW_CHANNEL",
]
