"""
LockBot - Discord Rate Limit Utilities
======================================

Rate limit handling and error description for Discord API operations.

Features:
- Automatic retry on rate limit (429) errors
- Respects Discord's retry_after header
- Exponential backoff for 5xx errors
- Uniform one-line error descriptions for the per-guild state log

Usage:
    from src.utils.discord_rate_limit import with_rate_limit_retry, log_http_error

    @with_rate_limit_retry()
    async def send(channel, embed):
        await channel.send(embed=embed)
"""

import asyncio
import random
from functools import wraps
from typing import Any, Callable, Optional

import discord

from src.core.logger import logger


# =============================================================================
# Configuration
# =============================================================================

class RateLimitConfig:
    """Configuration for Discord rate limit handling."""
    MAX_RETRIES: int = 3
    BASE_DELAY: float = 1.0  # seconds
    MAX_DELAY: float = 30.0  # seconds


# HTTP status code descriptions for logging
HTTP_STATUS_DESCRIPTIONS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    429: "Rate Limited",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


# =============================================================================
# Logging Helpers
# =============================================================================

def log_http_error(
    e: discord.HTTPException,
    operation: str,
    context: Optional[list] = None,
) -> None:
    """
    Log a Discord HTTPException with comprehensive details.

    Args:
        e: The HTTPException that occurred
        operation: Description of what operation failed
        context: Additional context tuples for logging [(key, value), ...]
    """
    status_desc = HTTP_STATUS_DESCRIPTIONS.get(e.status, "Unknown")
    retry_after = getattr(e, 'retry_after', None)

    log_items = [
        ("Status", f"{e.status} ({status_desc})"),
        ("Error", str(e.text) if hasattr(e, 'text') and e.text else str(e)),
    ]

    if retry_after:
        log_items.append(("Retry After", f"{retry_after:.1f}s"))

    if context:
        log_items.extend(context)

    # Warning for recoverable statuses, error for the rest
    if e.status == 429:
        logger.warning(f"🚦 {operation} Rate Limited", log_items)
    elif e.status == 403:
        logger.warning(f"🚫 {operation} Forbidden", log_items)
    elif e.status == 404:
        logger.warning(f"❓ {operation} Not Found", log_items)
    else:
        logger.error(f"❌ {operation} Failed", log_items)


def describe_error(e: Exception) -> str:
    """Short human-readable reason for a failed platform call."""
    if isinstance(e, discord.Forbidden):
        return "Missing permissions"
    if isinstance(e, discord.NotFound):
        return "Not found"
    if isinstance(e, discord.HTTPException):
        return e.text[:50] if e.text else f"HTTP {e.status}"
    return f"{type(e).__name__}: {str(e)[:50]}"


# =============================================================================
# Rate Limit Decorator
# =============================================================================

def with_rate_limit_retry(
    max_retries: int = RateLimitConfig.MAX_RETRIES,
    base_delay: float = RateLimitConfig.BASE_DELAY,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator that retries Discord calls on rate limits and server errors.

    Client errors (403, 404, ...) are raised immediately so callers can
    record them per entity.

    Args:
        max_retries: Maximum attempts
        base_delay: Base delay for exponential backoff
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)

                except discord.RateLimited as e:
                    delay = e.retry_after + 0.5

                    logger.warning("Discord Rate Limited", [
                        ("Function", func.__name__),
                        ("Attempt", f"{attempt + 1}/{max_retries}"),
                        ("Retry After", f"{delay:.1f}s"),
                    ])

                    if attempt < max_retries - 1 and delay < RateLimitConfig.MAX_DELAY:
                        await asyncio.sleep(delay)
                        continue
                    raise

                except discord.HTTPException as e:
                    if e.status == 429:
                        retry_after = getattr(e, 'retry_after', None)
                        delay = (retry_after + 0.5) if retry_after else min(
                            base_delay * (2 ** attempt), RateLimitConfig.MAX_DELAY
                        )
                    elif e.status >= 500:
                        delay = min(base_delay * (2 ** attempt), RateLimitConfig.MAX_DELAY)
                        delay += random.uniform(0, delay * 0.1)  # Jitter
                    else:
                        raise

                    if attempt < max_retries - 1:
                        logger.warning("Discord API Error", [
                            ("Function", func.__name__),
                            ("Attempt", f"{attempt + 1}/{max_retries}"),
                            ("Status", str(e.status)),
                            ("Retry In", f"{delay:.1f}s"),
                        ])
                        await asyncio.sleep(delay)
                        continue
                    raise

            raise RuntimeError(f"{func.__name__} failed without exception")

        return wrapper

    return decorator


__all__ = [
    "RateLimitConfig",
    "HTTP_STATUS_DESCRIPTIONS",
    "log_http_error",
    "describe_error",
    "with_rate_limit_retry",
]
