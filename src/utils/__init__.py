"""
LockBot - Utils Package
=======================

Helper functions and classes used across the bot.

DESIGN:
    Utils are stateless helpers that can be used anywhere in the codebase.
    They should not depend on bot state.

Available Utilities:
    async_utils: Safe background tasks and logged gathers
    discord_rate_limit: HTTP error logging and rate limit retries
    error_handler: Categorized handling for top-level failures
    interaction: Safe replies, prompt edits and service lookup for interactions
"""

# =============================================================================
# Utility Imports
# =============================================================================

from .async_utils import create_safe_task, gather_with_logging
from .discord_rate_limit import describe_error, log_http_error, with_rate_limit_retry
from .interaction import (
    get_maintenance_service,
    require_guild,
    respond_error,
    safe_defer,
    safe_edit,
    safe_replace,
    safe_respond,
)


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "create_safe_task",
    "gather_with_logging",
    "describe_error",
    "log_http_error",
    "with_rate_limit_retry",
    "get_maintenance_service",
    "require_guild",
    "respond_error",
    "safe_defer",
    "safe_edit",
    "safe_replace",
    "safe_respond",
]
