"""
LockBot - Error Handler
=======================

Detailed error context and categorized logging for top-level failures.

Features:
- Detailed error context with stack traces
- Error categorization (Discord, Storage, Config, Network)
- Recovery suggestions in the log line
- Critical error file logging
- Safe execution decorator for event listeners
"""

import functools
import json
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import discord

from src.core.config import ConfigValidationError
from src.core.errors import StateStoreError
from src.core.logger import logger, LOGS_DIR


class ErrorContext:
    """Captures and formats detailed error context"""

    @staticmethod
    def get_full_context(e: Exception, location: str, **kwargs) -> Dict[str, Any]:
        """
        Get comprehensive error context.

        Args:
            e: The exception
            location: Where the error occurred
            **kwargs: Additional context (guild, user, ...)

        Returns:
            Dictionary with full error context
        """
        context = {
            'timestamp': datetime.now().isoformat(),
            'location': location,
            'error_type': type(e).__name__,
            'error_message': str(e),
            'traceback': ''.join(traceback.format_exception(type(e), e, e.__traceback__)),
            'python_version': sys.version,
            'additional_context': {k: str(v)[:200] for k, v in kwargs.items()},
        }

        guild = kwargs.get('guild')
        if isinstance(guild, discord.Guild):
            context['guild_context'] = {
                'name': guild.name,
                'id': guild.id,
                'member_count': guild.member_count,
            }

        return context


class ErrorHandler:
    """Categorized error handling with recovery hints"""

    ERROR_CATEGORIES = {
        'discord': (discord.Forbidden, discord.NotFound, discord.HTTPException),
        'storage': (StateStoreError,),
        'config': (ConfigValidationError,),
        'network': (ConnectionError, TimeoutError, OSError),
    }

    SUGGESTIONS = {
        'discord': "Check the bot's role position and Manage Roles/Channels permissions",
        'storage': "State file is unreadable - fix or restore it manually, it is never overwritten",
        'config': "Check the .env file against the documented variables",
        'network': "Network or filesystem issue - check connectivity and disk",
    }

    @classmethod
    def categorize_error(cls, e: Exception) -> str:
        """Category name for an exception, 'general' when unknown."""
        for category, error_types in cls.ERROR_CATEGORIES.items():
            if isinstance(e, error_types):
                return category
        return 'general'

    @classmethod
    def get_recovery_suggestion(cls, category: str) -> str:
        return cls.SUGGESTIONS.get(category, "Unexpected error - check logs for details")

    @classmethod
    def handle(cls, e: Exception, location: str, critical: bool = False, **context) -> None:
        """
        Handle an error with full context.

        Args:
            e: The exception
            location: Where the error occurred
            critical: Whether this error should stop execution
            **context: Additional context
        """
        category = cls.categorize_error(e)
        suggestion = cls.get_recovery_suggestion(category)
        full_context = ErrorContext.get_full_context(e, location, **context)

        details = [
            ("Location", location),
            ("Category", category.upper()),
            ("Type", full_context['error_type']),
            ("Error", full_context['error_message'][:200]),
            ("Recovery", suggestion),
        ]
        if 'guild_context' in full_context:
            gc = full_context['guild_context']
            details.append(("Guild", f"{gc['name']} ({gc['id']})"))

        if critical:
            logger.error("💥 Critical Error", details)
            logger.info(f"Traceback:\n{full_context['traceback']}")
            cls._store_critical_error(full_context)
        else:
            logger.warning("Error Handled", details)

    @staticmethod
    def _store_critical_error(context: Dict[str, Any]) -> None:
        """Dump a critical error's context as JSON under the logs directory."""
        try:
            error_dir = Path(LOGS_DIR) / 'errors'
            error_dir.mkdir(exist_ok=True, parents=True)

            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            error_file = error_dir / f"error_{timestamp}.json"

            with open(error_file, 'w', encoding='utf-8') as f:
                json.dump(context, f, indent=2, default=str)

            logger.info(f"Critical error saved to {error_file}")
        except OSError as save_error:
            logger.info(f"Failed to save error details: {save_error}")


def safe_execute(func):
    """
    Decorator for event listeners that must never raise into discord.py.

    Usage:
        @safe_execute
        async def on_member_join(self, member):
            ...
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            ErrorHandler.handle(
                e,
                location=f"{func.__module__}.{func.__qualname__}",
                critical=False,
                function_args=str(args[1:])[:100],
            )
            return None

    return wrapper


__all__ = ["ErrorContext", "ErrorHandler", "safe_execute"]
