"""
LockBot - Pending Action Registry
=================================

In-memory store of maintenance requests waiting for button confirmation.

DESIGN:
    A /maintenance enable or disable only records what was asked for. The
    confirm button carries the action id; pressing it looks the action up
    here and removes it, so each prompt can be confirmed at most once.

    Actions expire after a fixed TTL. Removal is scheduled on the event loop
    with call_later, and get() also checks the deadline, so an expired
    action is unreachable even if its timer has not fired yet.

    Nothing here is persisted: a restart drops every open prompt.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from src.core.constants import PENDING_ACTION_TTL
from src.core.logger import logger
from src.core.state.models import utcnow

if TYPE_CHECKING:
    from src.services.maintenance.constants import RoleRemap


# =============================================================================
# Types
# =============================================================================

class ActionType(str, Enum):
    ENABLE = "enable"
    DISABLE = "disable"


@dataclass
class PendingAction:
    """A confirmation prompt that has not been answered yet."""

    id: str
    type: ActionType
    guild_id: int
    user_id: int
    duration_minutes: Optional[int] = None
    role_mapping: Dict[int, "RoleRemap"] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    expires_at: Optional[datetime] = None

    @property
    def expired(self) -> bool:
        return self.expires_at is not None and utcnow() >= self.expires_at


# =============================================================================
# Registry
# =============================================================================

class PendingActionRegistry:
    """
    Keeps pending actions by id until they are confirmed, cancelled or expire.

    Must be used from inside a running event loop.
    """

    def __init__(self, ttl_seconds: int = PENDING_ACTION_TTL) -> None:
        self.ttl_seconds = ttl_seconds
        self._actions: Dict[str, PendingAction] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}

    def __len__(self) -> int:
        return len(self._actions)

    def register(
        self,
        action_type: ActionType,
        guild_id: int,
        user_id: int,
        duration_minutes: Optional[int] = None,
        role_mapping: Optional[Dict[int, "RoleRemap"]] = None,
    ) -> PendingAction:
        """
        Record a new action and schedule its expiry.

        Returns:
            The registered action; its id goes into the button custom ids.
        """
        now = utcnow()
        action = PendingAction(
            id=uuid.uuid4().hex,
            type=ActionType(action_type),
            guild_id=guild_id,
            user_id=user_id,
            duration_minutes=duration_minutes,
            role_mapping=dict(role_mapping or {}),
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )

        self._actions[action.id] = action
        loop = asyncio.get_running_loop()
        self._timers[action.id] = loop.call_later(self.ttl_seconds, self._expire, action.id)

        logger.debug("Pending Action Registered", [
            ("ID", action.id),
            ("Type", action.type.value),
            ("Guild", str(guild_id)),
            ("User", str(user_id)),
        ])
        return action

    def get(self, action_id: str) -> Optional[PendingAction]:
        """Live action by id, or None when unknown or expired."""
        action = self._actions.get(action_id)
        if action is None:
            return None
        if action.expired:
            self._expire(action_id)
            return None
        return action

    def remove(self, action_id: str) -> Optional[PendingAction]:
        """Remove and return an action. Safe to call twice."""
        timer = self._timers.pop(action_id, None)
        if timer is not None:
            timer.cancel()
        return self._actions.pop(action_id, None)

    def purge_guild(self, guild_id: int) -> int:
        """Drop every action for a guild. Returns how many were dropped."""
        ids: List[str] = [aid for aid, a in self._actions.items() if a.guild_id == guild_id]
        for action_id in ids:
            self.remove(action_id)
        return len(ids)

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._actions.clear()

    def _expire(self, action_id: str) -> None:
        action = self.remove(action_id)
        if action is not None:
            logger.debug("Pending Action Expired", [
                ("ID", action_id),
                ("Type", action.type.value),
                ("Guild", str(action.guild_id)),
            ])


__all__ = ["ActionType", "PendingAction", "PendingActionRegistry"]
