"""
LockBot - Guild Platform Interface
==================================

Everything the maintenance engine needs from Discord, expressed as a small
async interface over plain dataclasses.

DESIGN:
    The engine only ever talks to a GuildPlatform bound to one guild. The
    production implementation wraps discord.Guild (see discord_platform.py),
    tests use an in-memory fake. Every method may raise; the engine catches
    per entity and keeps going.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from src.core.state.models import OverwriteState


# =============================================================================
# Platform-Neutral Types
# =============================================================================

@dataclass
class ChannelInfo:
    """A guild channel as the engine sees it."""

    id: int
    name: str
    is_text: bool = True
    is_thread: bool = False
    manageable: bool = True


@dataclass
class RoleInfo:
    """A guild role as the engine sees it."""

    id: int
    name: str
    permissions: int = 0
    managed: bool = False


@dataclass
class MemberInfo:
    """A guild member as the engine sees it."""

    id: int
    name: str = ""
    bot: bool = False
    is_admin: bool = False
    role_ids: List[int] = field(default_factory=list)


# =============================================================================
# Platform Interface
# =============================================================================

class GuildPlatform(ABC):
    """Operations on one guild used by MaintenanceEngine."""

    guild_id: int
    guild_name: str

    # -------------------------------------------------------------------------
    # Channels
    # -------------------------------------------------------------------------

    @abstractmethod
    async def fetch_channels(self) -> List[ChannelInfo]:
        """All channels in the guild, threads included."""

    @abstractmethod
    async def get_channel(self, channel_id: int) -> Optional[ChannelInfo]:
        """A channel by id, or None when it no longer exists."""

    @abstractmethod
    async def create_text_channel(self, name: str, topic: str, reason: str) -> ChannelInfo:
        pass

    @abstractmethod
    async def delete_channel(self, channel_id: int, reason: str) -> None:
        pass

    @abstractmethod
    async def get_view_overwrite(self, channel_id: int, role_id: int) -> OverwriteState:
        """Current state of a role's view flag in a channel overwrite."""

    @abstractmethod
    async def set_view_overwrite(
        self, channel_id: int, role_id: int, state: OverwriteState, reason: str
    ) -> None:
        """
        Set a role's view flag in a channel.

        NEUTRAL clears the flag; an overwrite left empty is removed.
        """

    @abstractmethod
    async def set_maintenance_access(self, channel_id: int, role_id: int, reason: str) -> None:
        """Allow view, send and read history for a role in a channel."""

    @abstractmethod
    async def clear_maintenance_access(self, channel_id: int, role_id: int, reason: str) -> None:
        """Clear the view, send and history flags set by set_maintenance_access."""

    @abstractmethod
    async def remove_overwrite(self, channel_id: int, role_id: int, reason: str) -> None:
        pass

    @abstractmethod
    async def set_slowmode(self, channel_id: int, seconds: int, reason: str) -> None:
        pass

    @abstractmethod
    async def send_message(
        self,
        channel_id: int,
        content: Optional[str] = None,
        embed: Any = None,
        view: Any = None,
    ) -> None:
        pass

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def default_role_id(self) -> int:
        """Id of the implicit @everyone role."""

    @abstractmethod
    async def fetch_roles(self) -> List[RoleInfo]:
        pass

    @abstractmethod
    async def create_role(self, name: str, permissions: int, reason: str) -> RoleInfo:
        pass

    @abstractmethod
    async def delete_role(self, role_id: int, reason: str) -> None:
        pass

    @abstractmethod
    async def set_role_permissions(self, role_id: int, permissions: int, reason: str) -> None:
        pass

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    @abstractmethod
    async def fetch_members(self) -> List[MemberInfo]:
        pass

    @abstractmethod
    async def fetch_member(self, member_id: int) -> Optional[MemberInfo]:
        """A member by id, or None when they have left."""

    @abstractmethod
    async def set_member_roles(self, member_id: int, role_ids: Sequence[int], reason: str) -> None:
        """Replace a member's assignable roles with exactly role_ids."""


__all__ = [
    "ChannelInfo",
    "RoleInfo",
    "MemberInfo",
    "GuildPlatform",
]
