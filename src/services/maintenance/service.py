"""
LockBot - Maintenance Service
=============================

Process-wide owner of maintenance state, timers and pending prompts.

DESIGN:
    The service wires the engine to Discord. It keeps a per-guild cache of
    the last persisted state (created on first use, dropped when the guild
    is removed or the bot shuts down) and re-arms the auto-disable timer
    every time that cache changes, so the timer always follows what is on
    disk.

    Announcements posted around a transition are best effort: a failed post
    is logged and the transition still runs.
"""

from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import discord

from src.core.config import Config, get_config
from src.core.constants import MAX_ANNOUNCEMENT_LENGTH
from src.core.errors import ErrorCode, MaintenanceError
from src.core.logger import logger
from src.core.state.models import GuildState, utcnow
from src.core.state.store import StateStore
from src.services.auto_disable import AutoDisableScheduler
from src.services.pending_actions import ActionType, PendingAction, PendingActionRegistry
from src.utils.async_utils import gather_with_logging

from .constants import REASON_JOIN
from .discord_platform import DiscordGuildPlatform
from .embeds import (
    build_complete_embed,
    build_enabled_embed,
    build_join_embed,
    build_update_embed,
    build_window_complete_embed,
    plural,
)
from .engine import MaintenanceEngine, parse_role_mapping
from .platform import GuildPlatform
from .views import MaintenanceActionView

if TYPE_CHECKING:
    from src.bot import LockBot


PlatformFactory = Callable[[Any], GuildPlatform]


class MaintenanceService:
    """
    Maintenance mode for every guild the bot is in.

    Attributes:
        bot: The running bot.
        config: Loaded configuration.
        store: Persistent guild state.
        engine: State transitions.
        registry: Confirmation prompts waiting for a button press.
        scheduler: Auto-disable timers.
    """

    def __init__(
        self,
        bot: "LockBot",
        config: Optional[Config] = None,
        platform_factory: PlatformFactory = DiscordGuildPlatform,
    ) -> None:
        self.bot = bot
        self.config = config or get_config()
        self.platform_factory = platform_factory

        self.store = StateStore(self.config.state_file)
        self.engine = MaintenanceEngine(
            self.store,
            channel_name=self.config.maintenance_channel_name,
            temp_role_name=self.config.temp_role_name,
            bypass_role_name=self.config.bypass_role_name,
            slowmode_seconds=self.config.slowmode_seconds,
        )
        self.registry = PendingActionRegistry(self.config.pending_action_ttl)
        self.scheduler = AutoDisableScheduler(self.handle_auto_disable)
        self._states: Dict[int, GuildState] = {}

        logger.tree("Maintenance Service Loaded", [
            ("State File", str(self.store.path)),
            ("Channel", f"#{self.config.maintenance_channel_name}"),
            ("Temp Role", self.config.temp_role_name),
            ("Bypass Role", self.config.bypass_role_name),
            ("Prompt TTL", f"{self.config.pending_action_ttl}s"),
        ], emoji="🔧")

    # =========================================================================
    # State Cache
    # =========================================================================

    async def get_state(self, guild_id: int) -> GuildState:
        """Cached state for a guild, loaded from the store on first use."""
        state = self._states.get(guild_id)
        if state is None:
            state = await self.refresh_state(guild_id)
        return state

    async def refresh_state(self, guild_id: int) -> GuildState:
        state = await self.store.get(guild_id)
        self._states[guild_id] = state
        return state

    def _remember(self, guild_id: int, state: GuildState) -> GuildState:
        self._states[guild_id] = state
        self.scheduler.arm(guild_id, state)
        return state

    @property
    def cached_guilds(self) -> int:
        return len(self._states)

    def enabled_guilds(self) -> int:
        return sum(1 for s in self._states.values() if s.enabled)

    # =========================================================================
    # Confirmation Flow
    # =========================================================================

    def request_enable(
        self,
        guild: discord.Guild,
        user_id: int,
        duration_minutes: Optional[int] = None,
    ) -> PendingAction:
        return self.registry.register(ActionType.ENABLE, guild.id, user_id, duration_minutes=duration_minutes)

    def request_disable(
        self,
        guild: discord.Guild,
        user_id: int,
        role_mapping: Optional[str] = None,
    ) -> PendingAction:
        """
        Record a disable request.

        Raises:
            MaintenanceError: INVALID_ROLE_MAPPING when the mapping is malformed.
        """
        mapping = parse_role_mapping(role_mapping)
        return self.registry.register(ActionType.DISABLE, guild.id, user_id, role_mapping=mapping)

    async def confirm(self, guild: discord.Guild, action: PendingAction) -> str:
        """Run a confirmed action. Returns the reply for the operator."""
        logger.tree("Maintenance Request Confirmed", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("Type", action.type.value),
            ("User", str(action.user_id)),
        ], emoji="✅")

        if action.type == ActionType.ENABLE:
            return await self.perform_enable(guild, action.user_id, action.duration_minutes)
        return await self.perform_disable(guild, action.user_id, action.role_mapping)

    # =========================================================================
    # Transitions
    # =========================================================================

    async def perform_enable(
        self,
        guild: discord.Guild,
        requested_by: int,
        duration_minutes: Optional[int] = None,
    ) -> str:
        platform = self.platform_factory(guild)
        timeout_at = utcnow() + timedelta(minutes=duration_minutes) if duration_minutes else None

        state = await self.engine.enable(
            platform,
            timeout_at=timeout_at,
            timeout_set_by=requested_by if timeout_at else None,
        )
        self._remember(guild.id, state)

        locked = len(state.member_role_snapshots)
        try:
            state = await self.engine.send_announcement(
                platform,
                author_id=requested_by,
                embed=build_enabled_embed(guild.name, requested_by, locked, state.timeout_at),
                view=MaintenanceActionView(),
            )
            self._remember(guild.id, state)
        except Exception as e:
            logger.warning("Maintenance Announcement Failed", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Stage", "Enable"),
                ("Error", str(e)[:100]),
            ])

        reply = f"Maintenance mode enabled. Locked {plural(locked, 'member')} to the maintenance role."
        if state.timeout_at:
            unix = int(state.timeout_at.timestamp())
            reply += f" Auto-disable scheduled for <t:{unix}:f> (<t:{unix}:R>)."
        return reply

    async def perform_disable(
        self,
        guild: discord.Guild,
        requested_by: Optional[int] = None,
        role_mapping: Optional[dict] = None,
        announce: bool = True,
    ) -> str:
        platform = self.platform_factory(guild)
        before = await self.get_state(guild.id)

        if announce and before.enabled and not before.should_delete_maintenance_channel:
            await self._announce(platform, guild, build_complete_embed(guild.name), requested_by, "Disable")

        state = await self.engine.disable(platform, role_mapping)
        self.scheduler.cancel(guild.id)
        self._remember(guild.id, state)

        restored = len(before.member_role_snapshots)
        return f"Maintenance mode disabled. Restored up to {plural(restored, 'member')}."

    async def post_update(self, guild: discord.Guild, author_id: int, content: str) -> GuildState:
        """
        Post an operator update to the maintenance channel.

        Raises:
            MaintenanceError: When maintenance is off or the content is
                empty or too long.
        """
        content = (content or "").strip()
        state = await self.get_state(guild.id)
        if not state.enabled:
            raise MaintenanceError(ErrorCode.MAINTENANCE_NOT_ENABLED)
        if not content:
            raise MaintenanceError(ErrorCode.EMPTY_ANNOUNCEMENT)
        if len(content) > MAX_ANNOUNCEMENT_LENGTH:
            raise MaintenanceError(ErrorCode.ANNOUNCEMENT_TOO_LONG)

        state = await self.engine.send_announcement(
            self.platform_factory(guild),
            author_id=author_id,
            embed=build_update_embed(guild.name, author_id, content),
            view=MaintenanceActionView(),
        )
        return self._remember(guild.id, state)

    async def handle_auto_disable(self, guild_id: int) -> None:
        """Timer callback: announce and disable when the window is over."""
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            return

        state = await self.get_state(guild_id)
        if not state.enabled:
            return

        platform = self.platform_factory(guild)
        await self._announce(platform, guild, build_window_complete_embed(guild.name), None, "Auto-Disable")

        await self.perform_disable(guild, announce=False)
        logger.tree("Maintenance Auto-Disabled", [
            ("Guild", f"{guild.name} ({guild.id})"),
        ], emoji="⏰")

    async def find_missing_roles(self, guild: discord.Guild) -> Dict[int, str]:
        return await self.engine.find_missing_roles(self.platform_factory(guild))

    async def _announce(
        self,
        platform: GuildPlatform,
        guild: discord.Guild,
        embed: discord.Embed,
        author_id: Optional[int],
        stage: str,
    ) -> None:
        try:
            state = await self.engine.send_announcement(
                platform, author_id=author_id, embed=embed, view=MaintenanceActionView()
            )
            self._states[guild.id] = state
        except Exception as e:
            logger.warning("Maintenance Announcement Failed", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Stage", stage),
                ("Error", str(e)[:100]),
            ])

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def ensure_guild(self, guild: discord.Guild) -> None:
        """Restore the maintenance channel of an enabled guild and re-arm its timer."""
        state = await self.refresh_state(guild.id)
        if not state.enabled:
            self.scheduler.cancel(guild.id)
            return

        if not state.member_role_snapshots and not state.channel_permission_snapshots:
            logger.warning("Maintenance State Has No Snapshots", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Action", "Review roles and channel access manually"),
            ])

        try:
            state = await self.engine.ensure_maintenance_channel(self.platform_factory(guild))
        except Exception as e:
            logger.error("Maintenance Channel Check Failed", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Error", str(e)[:100]),
                ("Type", type(e).__name__),
            ])

        self._remember(guild.id, state)

    async def on_ready(self) -> None:
        # One broken guild must not hold up the rest
        await gather_with_logging(
            *[(f"Restore {guild.name} ({guild.id})", self.ensure_guild(guild)) for guild in self.bot.guilds],
            context="Maintenance Startup",
        )

        logger.tree("Maintenance State Loaded", [
            ("Guilds", str(self.cached_guilds)),
            ("In Maintenance", str(self.enabled_guilds())),
        ], emoji="📋")

    async def on_guild_join(self, guild: discord.Guild) -> None:
        await self.ensure_guild(guild)

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        self._states.pop(guild.id, None)
        self.scheduler.cancel(guild.id)
        purged = self.registry.purge_guild(guild.id)
        await self.store.delete(guild.id)

        logger.tree("Guild State Removed", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("Prompts Dropped", str(purged)),
        ], emoji="🗑️")

    async def on_member_join(self, member: discord.Member) -> None:
        """Hold new members in the temp role while maintenance is on, greet them either way."""
        guild = member.guild
        state = await self.get_state(guild.id)

        if state.enabled and state.maintenance_temp_role_id:
            role = guild.get_role(state.maintenance_temp_role_id)
            if role is not None:
                try:
                    await member.add_roles(role, reason=REASON_JOIN)
                except discord.HTTPException as e:
                    logger.error("Temp Role Assign Failed", [
                        ("Member", f"{member} ({member.id})"),
                        ("Guild", f"{guild.name} ({guild.id})"),
                        ("Error", str(e)[:100]),
                    ])

        channel_id = state.maintenance_channel_id if state.enabled else (
            guild.system_channel.id if guild.system_channel else None
        )
        if not channel_id:
            return

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.TextChannel):
            return

        try:
            await channel.send(embed=build_join_embed(guild.name, member.mention, state.enabled))
        except discord.HTTPException as e:
            logger.warning("Join Message Failed", [
                ("Member", f"{member} ({member.id})"),
                ("Channel", f"#{channel.name} ({channel.id})"),
                ("Error", str(e)[:100]),
            ])

    async def on_channel_create(self, channel: discord.abc.GuildChannel) -> None:
        state = await self.get_state(channel.guild.id)
        if not state.enabled:
            return

        state = await self.engine.apply_restrictions_to_channel(self.platform_factory(channel.guild), channel.id)
        self._states[channel.guild.id] = state

    def shutdown(self) -> None:
        """Drop timers, prompts and cached state."""
        self.scheduler.cancel_all()
        self.registry.clear()
        self._states.clear()
        logger.info("Maintenance Service Stopped")


__all__ = ["MaintenanceService"]
