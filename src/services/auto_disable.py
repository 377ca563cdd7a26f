"""
LockBot - Auto-Disable Scheduler
================================

One timer per guild that turns maintenance off at its deadline.

DESIGN:
    Timers are plain asyncio tasks sleeping until GuildState.timeout_at.
    arm() always cancels the previous timer first, so callers simply re-arm
    after every state change and the timer follows whatever was persisted.

    A deadline already in the past fires on the next loop iteration. This
    is what makes a deadline that passed while the bot was offline take
    effect right after startup.

    A failing callback is logged and not retried; the guild stays in
    maintenance until an operator disables it.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional

from src.core.logger import logger
from src.core.state.models import GuildState, utcnow


DisableCallback = Callable[[int], Awaitable[None]]


class AutoDisableScheduler:
    """
    Per-guild auto-disable timers.

    Args:
        on_expire: Coroutine function called with the guild id when a
            deadline is reached.
    """

    def __init__(self, on_expire: DisableCallback) -> None:
        self._on_expire = on_expire
        self._tasks: Dict[int, asyncio.Task] = {}

    def arm(self, guild_id: int, state: GuildState) -> bool:
        """
        Replace the guild's timer with one matching `state`.

        Returns:
            True if a timer is now pending.
        """
        self.cancel(guild_id)

        if not state.enabled or state.timeout_at is None:
            return False

        delay = max(0.0, (state.timeout_at - utcnow()).total_seconds())
        self._tasks[guild_id] = asyncio.create_task(
            self._run(guild_id, delay),
            name=f"Auto-Disable {guild_id}",
        )

        logger.tree("Auto-Disable Scheduled", [
            ("Guild", str(guild_id)),
            ("At", state.timeout_at.isoformat()),
            ("In", f"{int(delay)}s"),
        ], emoji="⏰")
        return True

    def cancel(self, guild_id: int) -> bool:
        """Cancel a guild's timer. Returns True if one was pending."""
        task = self._tasks.pop(guild_id, None)
        if task is None:
            return False
        if not task.done():
            task.cancel()
        return True

    def cancel_all(self) -> None:
        for guild_id in list(self._tasks):
            self.cancel(guild_id)

    def is_armed(self, guild_id: int) -> bool:
        task = self._tasks.get(guild_id)
        return task is not None and not task.done()

    async def _run(self, guild_id: int, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            logger.debug("Auto-Disable Cancelled", [("Guild", str(guild_id))])
            raise

        # The callback usually re-arms; it must not cancel this task
        current = self._tasks.get(guild_id)
        if current is asyncio.current_task():
            del self._tasks[guild_id]

        try:
            await self._on_expire(guild_id)
        except Exception as e:
            logger.error("Auto-Disable Failed", [
                ("Guild", str(guild_id)),
                ("Error", str(e)[:100]),
                ("Type", type(e).__name__),
                ("Retry", "No - disable manually"),
            ])


__all__ = ["AutoDisableScheduler", "DisableCallback"]
