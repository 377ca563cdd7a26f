"""
LockBot - Discord Guild Platform
================================

GuildPlatform implementation backed by a live discord.Guild.

Reads come from the gateway cache; writes go through the REST API and
raise discord.HTTPException subclasses on failure, which the engine
records per entity.
"""

from typing import Any, List, Optional, Sequence

import discord

from src.core.state.models import OverwriteState
from src.utils.discord_rate_limit import with_rate_limit_retry

from .platform import ChannelInfo, GuildPlatform, MemberInfo, RoleInfo


# =============================================================================
# Conversions
# =============================================================================

def _state_from_flag(flag: Optional[bool]) -> OverwriteState:
    if flag is True:
        return OverwriteState.ALLOW
    if flag is False:
        return OverwriteState.DENY
    return OverwriteState.NEUTRAL


def _flag_from_state(state: OverwriteState) -> Optional[bool]:
    if state == OverwriteState.ALLOW:
        return True
    if state == OverwriteState.DENY:
        return False
    return None


# =============================================================================
# Platform
# =============================================================================

class DiscordGuildPlatform(GuildPlatform):
    """Wraps one discord.Guild for MaintenanceEngine."""

    def __init__(self, guild: discord.Guild) -> None:
        self.guild = guild
        self.guild_id = guild.id
        self.guild_name = guild.name

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _channel(self, channel_id: int) -> Any:
        channel = self.guild.get_channel_or_thread(channel_id)
        if channel is None:
            raise LookupError(f"Unknown channel {channel_id}")
        return channel

    def _role(self, role_id: int) -> discord.Role:
        role = self.guild.get_role(role_id)
        if role is None:
            raise LookupError(f"Unknown role {role_id}")
        return role

    def _to_channel_info(self, channel: Any) -> ChannelInfo:
        me = self.guild.me
        manageable = False
        if me is not None:
            perms = channel.permissions_for(me)
            manageable = perms.manage_roles and perms.view_channel
        return ChannelInfo(
            id=channel.id,
            name=channel.name,
            is_text=isinstance(channel, discord.TextChannel),
            is_thread=isinstance(channel, discord.Thread),
            manageable=manageable,
        )

    @staticmethod
    def _to_member_info(member: discord.Member) -> MemberInfo:
        return MemberInfo(
            id=member.id,
            name=member.name,
            bot=member.bot,
            is_admin=member.guild_permissions.administrator,
            role_ids=[r.id for r in member.roles if not r.is_default()],
        )

    # -------------------------------------------------------------------------
    # Channels
    # -------------------------------------------------------------------------

    async def fetch_channels(self) -> List[ChannelInfo]:
        return [self._to_channel_info(c) for c in self.guild.channels]

    async def get_channel(self, channel_id: int) -> Optional[ChannelInfo]:
        channel = self.guild.get_channel_or_thread(channel_id)
        return self._to_channel_info(channel) if channel is not None else None

    async def create_text_channel(self, name: str, topic: str, reason: str) -> ChannelInfo:
        channel = await self.guild.create_text_channel(name=name, topic=topic, reason=reason)
        return self._to_channel_info(channel)

    async def delete_channel(self, channel_id: int, reason: str) -> None:
        await self._channel(channel_id).delete(reason=reason)

    async def get_view_overwrite(self, channel_id: int, role_id: int) -> OverwriteState:
        channel = self._channel(channel_id)
        overwrite = channel.overwrites_for(discord.Object(id=role_id))
        return _state_from_flag(overwrite.view_channel)

    async def set_view_overwrite(
        self, channel_id: int, role_id: int, state: OverwriteState, reason: str
    ) -> None:
        channel = self._channel(channel_id)
        role = self._role(role_id)
        overwrite = channel.overwrites_for(role)
        overwrite.view_channel = _flag_from_state(state)

        # If overwrite is now empty, remove it entirely
        if overwrite.is_empty():
            await channel.set_permissions(role, overwrite=None, reason=reason)
        else:
            await channel.set_permissions(role, overwrite=overwrite, reason=reason)

    async def set_maintenance_access(self, channel_id: int, role_id: int, reason: str) -> None:
        channel = self._channel(channel_id)
        role = self._role(role_id)
        overwrite = channel.overwrites_for(role)
        overwrite.view_channel = True
        overwrite.send_messages = True
        overwrite.read_message_history = True
        await channel.set_permissions(role, overwrite=overwrite, reason=reason)

    async def clear_maintenance_access(self, channel_id: int, role_id: int, reason: str) -> None:
        channel = self._channel(channel_id)
        role = self._role(role_id)
        overwrite = channel.overwrites_for(role)
        overwrite.view_channel = None
        overwrite.send_messages = None
        overwrite.read_message_history = None

        if overwrite.is_empty():
            await channel.set_permissions(role, overwrite=None, reason=reason)
        else:
            await channel.set_permissions(role, overwrite=overwrite, reason=reason)

    async def remove_overwrite(self, channel_id: int, role_id: int, reason: str) -> None:
        channel = self._channel(channel_id)
        role = self.guild.get_role(role_id)

        # Deleting a role drops its overwrites with it
        if role is None:
            return
        await channel.set_permissions(role, overwrite=None, reason=reason)

    async def set_slowmode(self, channel_id: int, seconds: int, reason: str) -> None:
        channel = self._channel(channel_id)
        if isinstance(channel, discord.TextChannel):
            await channel.edit(slowmode_delay=seconds, reason=reason)

    @with_rate_limit_retry()
    async def send_message(
        self,
        channel_id: int,
        content: Optional[str] = None,
        embed: Any = None,
        view: Any = None,
    ) -> None:
        channel = self._channel(channel_id)
        kwargs: dict = {"allowed_mentions": discord.AllowedMentions(users=True, roles=False, everyone=False)}
        if content is not None:
            kwargs["content"] = content
        if embed is not None:
            kwargs["embed"] = embed
        if view is not None:
            kwargs["view"] = view
        await channel.send(**kwargs)

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------

    @property
    def default_role_id(self) -> int:
        return self.guild.default_role.id

    async def fetch_roles(self) -> List[RoleInfo]:
        return [
            RoleInfo(id=r.id, name=r.name, permissions=r.permissions.value, managed=r.managed)
            for r in self.guild.roles
        ]

    async def create_role(self, name: str, permissions: int, reason: str) -> RoleInfo:
        role = await self.guild.create_role(
            name=name,
            permissions=discord.Permissions(permissions),
            reason=reason,
        )
        return RoleInfo(id=role.id, name=role.name, permissions=role.permissions.value, managed=role.managed)

    async def delete_role(self, role_id: int, reason: str) -> None:
        await self._role(role_id).delete(reason=reason)

    async def set_role_permissions(self, role_id: int, permissions: int, reason: str) -> None:
        await self._role(role_id).edit(permissions=discord.Permissions(permissions), reason=reason)

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def fetch_members(self) -> List[MemberInfo]:
        if not self.guild.chunked:
            await self.guild.chunk()
        return [self._to_member_info(m) for m in self.guild.members]

    async def fetch_member(self, member_id: int) -> Optional[MemberInfo]:
        member = self.guild.get_member(member_id)
        if member is None:
            try:
                member = await self.guild.fetch_member(member_id)
            except discord.NotFound:
                return None
        return self._to_member_info(member)

    async def set_member_roles(self, member_id: int, role_ids: Sequence[int], reason: str) -> None:
        member = self.guild.get_member(member_id) or await self.guild.fetch_member(member_id)

        # Integration-managed roles can't be removed, keep them as they are
        roles = [r for r in member.roles if r.managed]
        for role_id in role_ids:
            role = self.guild.get_role(role_id)
            if role is not None and not role.is_default() and role not in roles:
                roles.append(role)

        await member.edit(roles=roles, reason=reason)


__all__ = ["DiscordGuildPlatform"]
