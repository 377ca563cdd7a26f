"""
LockBot - Test Fixtures
=======================

Shared fixtures for all tests.
"""

import os
import sys
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set up test environment before importing modules
os.environ["TESTING"] = "1"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="lockbot-logs-"))

from src.core.config import Config
from src.core.constants import VIEW_CHANNEL
from src.core.state.models import OverwriteState
from src.core.state.store import StateStore
from src.services.maintenance.engine import MaintenanceEngine
from src.services.maintenance.platform import ChannelInfo, GuildPlatform, MemberInfo, RoleInfo


SEND_MESSAGES = 1 << 11
GUILD_ID = 1000


# =============================================================================
# In-Memory Guild
# =============================================================================

class PlatformError(RuntimeError):
    """Injected failure."""


class FakeGuildPlatform(GuildPlatform):
    """
    Guild held entirely in memory.

    `overwrites` maps (channel_id, role_id) to the role's view flag in that
    channel; NEUTRAL is never stored. Add (operation, entity_id) pairs to
    `fail` to make a call raise PlatformError.
    """

    def __init__(
        self,
        guild_id: int = GUILD_ID,
        guild_name: str = "Test Guild",
        default_permissions: int = VIEW_CHANNEL | SEND_MESSAGES,
    ) -> None:
        self.guild_id = guild_id
        self.guild_name = guild_name
        self.roles: Dict[int, RoleInfo] = {guild_id: RoleInfo(guild_id, "@everyone", default_permissions)}
        self.channels: Dict[int, ChannelInfo] = {}
        self.members: Dict[int, MemberInfo] = {}
        self.overwrites: Dict[Tuple[int, int], OverwriteState] = {}
        self.access: Set[Tuple[int, int]] = set()
        self.slowmode: Dict[int, int] = {}
        self.sent: List[dict] = []
        self.fail: Set[Tuple[str, int]] = set()
        self._next_id = 5000

    # -------------------------------------------------------------------------
    # Setup Helpers
    # -------------------------------------------------------------------------

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def _check(self, operation: str, entity_id: int = 0) -> None:
        if (operation, entity_id) in self.fail:
            raise PlatformError(f"{operation} failed for {entity_id}")

    def add_role(self, name: str, permissions: int = 0, managed: bool = False) -> int:
        role_id = self._new_id()
        self.roles[role_id] = RoleInfo(role_id, name, permissions, managed)
        return role_id

    def add_channel(self, name: str, is_text: bool = True, is_thread: bool = False, manageable: bool = True) -> int:
        channel_id = self._new_id()
        self.channels[channel_id] = ChannelInfo(channel_id, name, is_text, is_thread, manageable)
        return channel_id

    def add_member(self, name: str, roles: Sequence[int] = (), bot: bool = False, admin: bool = False) -> int:
        member_id = self._new_id()
        self.members[member_id] = MemberInfo(member_id, name, bot, admin, list(roles))
        return member_id

    def remove_role(self, role_id: int) -> None:
        """Delete a role the way an admin would, outside the bot."""
        self.roles.pop(role_id, None)
        for member in self.members.values():
            member.role_ids = [r for r in member.role_ids if r != role_id]
        for key in [k for k in self.overwrites if k[1] == role_id]:
            del self.overwrites[key]

    def channel_named(self, name: str) -> Optional[ChannelInfo]:
        return next((c for c in self.channels.values() if c.name == name), None)

    def role_named(self, name: str) -> Optional[RoleInfo]:
        return next((r for r in self.roles.values() if r.name == name), None)

    # -------------------------------------------------------------------------
    # Channels
    # -------------------------------------------------------------------------

    async def fetch_channels(self) -> List[ChannelInfo]:
        self._check("fetch_channels")
        return [replace(c) for c in self.channels.values()]

    async def get_channel(self, channel_id: int) -> Optional[ChannelInfo]:
        channel = self.channels.get(channel_id)
        return replace(channel) if channel else None

    async def create_text_channel(self, name: str, topic: str, reason: str) -> ChannelInfo:
        self._check("create_text_channel")
        channel_id = self.add_channel(name)
        return replace(self.channels[channel_id])

    async def delete_channel(self, channel_id: int, reason: str) -> None:
        self._check("delete_channel", channel_id)
        self.channels.pop(channel_id, None)
        for key in [k for k in self.overwrites if k[0] == channel_id]:
            del self.overwrites[key]

    async def get_view_overwrite(self, channel_id: int, role_id: int) -> OverwriteState:
        self._check("get_view_overwrite", channel_id)
        return self.overwrites.get((channel_id, role_id), OverwriteState.NEUTRAL)

    async def set_view_overwrite(self, channel_id: int, role_id: int, state: OverwriteState, reason: str) -> None:
        self._check("set_view_overwrite", channel_id)
        if state == OverwriteState.NEUTRAL:
            self.overwrites.pop((channel_id, role_id), None)
        else:
            self.overwrites[(channel_id, role_id)] = state

    async def set_maintenance_access(self, channel_id: int, role_id: int, reason: str) -> None:
        self._check("set_maintenance_access", channel_id)
        self.access.add((channel_id, role_id))
        self.overwrites[(channel_id, role_id)] = OverwriteState.ALLOW

    async def clear_maintenance_access(self, channel_id: int, role_id: int, reason: str) -> None:
        self.access.discard((channel_id, role_id))
        self.overwrites.pop((channel_id, role_id), None)

    async def remove_overwrite(self, channel_id: int, role_id: int, reason: str) -> None:
        self.access.discard((channel_id, role_id))
        self.overwrites.pop((channel_id, role_id), None)

    async def set_slowmode(self, channel_id: int, seconds: int, reason: str) -> None:
        self.slowmode[channel_id] = seconds

    async def send_message(self, channel_id: int, content=None, embed=None, view=None) -> None:
        self._check("send_message", channel_id)
        self.sent.append({"channel_id": channel_id, "content": content, "embed": embed, "view": view})

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------

    @property
    def default_role_id(self) -> int:
        return self.guild_id

    async def fetch_roles(self) -> List[RoleInfo]:
        self._check("fetch_roles")
        return [replace(r) for r in self.roles.values()]

    async def create_role(self, name: str, permissions: int, reason: str) -> RoleInfo:
        self._check("create_role")
        role_id = self.add_role(name, permissions)
        return replace(self.roles[role_id])

    async def delete_role(self, role_id: int, reason: str) -> None:
        self._check("delete_role", role_id)
        self.remove_role(role_id)

    async def set_role_permissions(self, role_id: int, permissions: int, reason: str) -> None:
        self._check("set_role_permissions", role_id)
        self.roles[role_id].permissions = permissions

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def fetch_members(self) -> List[MemberInfo]:
        self._check("fetch_members")
        return [replace(m, role_ids=list(m.role_ids)) for m in self.members.values()]

    async def fetch_member(self, member_id: int) -> Optional[MemberInfo]:
        member = self.members.get(member_id)
        return replace(member, role_ids=list(member.role_ids)) if member else None

    async def set_member_roles(self, member_id: int, role_ids: Sequence[int], reason: str) -> None:
        self._check("set_member_roles", member_id)
        if member_id not in self.members:
            raise LookupError(f"Member {member_id} not found")
        self.members[member_id].role_ids = list(role_ids)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def state_path(tmp_path):
    """Path of a state file that does not exist yet."""
    return tmp_path / "data" / "state.json"


@pytest.fixture
def store(state_path):
    return StateStore(state_path)


@pytest.fixture
def engine(store):
    return MaintenanceEngine(store, slowmode_seconds=10)


@pytest.fixture
def platform():
    return FakeGuildPlatform()


@pytest.fixture
def guild(platform):
    """
    A small guild: one admin, one bot, two regular members.

    #general is open to everyone, #staff hides @everyone and allows Alpha.
    """
    alpha = platform.add_role("Alpha")
    beta = platform.add_role("Beta")
    admin_role = platform.add_role("Admin")

    general = platform.add_channel("general")
    staff = platform.add_channel("staff")
    platform.overwrites[(staff, platform.default_role_id)] = OverwriteState.DENY
    platform.overwrites[(staff, alpha)] = OverwriteState.ALLOW

    ids = {
        "alpha": alpha,
        "beta": beta,
        "admin_role": admin_role,
        "general": general,
        "staff": staff,
        "admin": platform.add_member("admin", [admin_role], admin=True),
        "bot": platform.add_member("helper-bot", [beta], bot=True),
        "alice": platform.add_member("alice", [alpha, beta]),
        "bob": platform.add_member("bob", [beta]),
    }
    return ids


@pytest.fixture
def test_config(state_path):
    return Config(discord_token="test-token", state_file=str(state_path), health_port=0)
