"""
LockBot - Maintenance Helpers
=============================

Shared helpers for the enable/disable operations.
"""

from typing import Iterable, List, Optional, Tuple

import discord

from src.core.logger import logger
from src.utils.discord_rate_limit import describe_error, log_http_error


def log_op_failure(
    e: Exception,
    operation: str,
    target: str,
    context: Optional[List[Tuple[str, str]]] = None,
) -> str:
    """
    Log a failed platform call and return a one-line description.

    The returned line is what goes into the guild's state log.

    Args:
        e: The exception raised by the platform.
        operation: What was being done (e.g. "Member Lock").
        target: Human-readable entity (e.g. "#general" or "user (123)").
        context: Extra (key, value) pairs for the log tree.
    """
    items = [("Target", target)] + list(context or [])

    if isinstance(e, discord.Forbidden):
        logger.warning(f"{operation} Failed", items + [
            ("Error", "Forbidden - missing permissions"),
        ])
    elif isinstance(e, discord.HTTPException):
        log_http_error(e, operation, items)
    else:
        logger.error(f"{operation} Error", items + [
            ("Error", str(e)[:100]),
            ("Type", type(e).__name__),
        ])

    return f"{operation} failed for {target}: {describe_error(e)}"


def unique(ids: Iterable[int]) -> List[int]:
    """Order-preserving de-duplication."""
    return list(dict.fromkeys(ids))


__all__ = ["log_op_failure", "unique"]
