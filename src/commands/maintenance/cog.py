"""
LockBot - Maintenance Cog
=========================

The /maintenance command group.

DESIGN:
    enable and disable never touch the guild directly: they register a
    pending action and reply with a confirm/cancel prompt. The actual work
    happens in ConfirmButton once the requester confirms.

    Everything except status needs administrator permission. The group is
    visible to everyone so members can check status themselves.
"""

from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands
from discord.ext import commands

from src.core.constants import (
    MAX_ANNOUNCEMENT_LENGTH,
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    SECONDS_PER_MINUTE,
)
from src.core.errors import MaintenanceError
from src.core.logger import logger
from src.services.maintenance.embeds import build_disable_prompt, build_enable_prompt, build_status_embed
from src.services.maintenance.views import ConfirmPromptView
from src.utils.error_handler import ErrorHandler
from src.utils.interaction import respond_error, safe_defer, safe_respond

if TYPE_CHECKING:
    from src.bot import LockBot
    from src.services.maintenance import MaintenanceService


NOT_ADMIN_MESSAGE = "You need administrator permissions to manage maintenance mode."
GENERIC_FAILURE_MESSAGE = "An error occurred while processing the maintenance command. Check the bot logs."


class MaintenanceCog(commands.Cog):
    """Cog for maintenance mode commands."""

    def __init__(self, bot: "LockBot") -> None:
        self.bot: "LockBot" = bot

        logger.tree("Maintenance Cog Loaded", [
            ("Commands", "/maintenance enable, disable, status, message"),
            ("Confirmation", "Button prompt"),
        ], emoji="🔧")

    @property
    def service(self) -> "MaintenanceService":
        return self.bot.maintenance_service

    # =========================================================================
    # Command Group
    # =========================================================================

    maintenance_group = app_commands.Group(
        name="maintenance",
        description="Manage server maintenance mode",
        guild_only=True,
    )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _is_admin(interaction: discord.Interaction) -> bool:
        perms = interaction.permissions
        return bool(perms and perms.administrator)

    async def _require_admin(self, interaction: discord.Interaction, command: str) -> bool:
        if self._is_admin(interaction):
            return True

        logger.tree("Maintenance Command Denied", [
            ("Command", f"/maintenance {command}"),
            ("User", f"{interaction.user} ({interaction.user.id})"),
            ("Reason", "Not an administrator"),
        ], emoji="🚫")
        await safe_respond(interaction, NOT_ADMIN_MESSAGE)
        return False

    def _ttl_minutes(self) -> int:
        return max(1, round(self.service.registry.ttl_seconds / SECONDS_PER_MINUTE))

    async def _fail(self, interaction: discord.Interaction, e: Exception, command: str) -> None:
        ErrorHandler.handle(
            e,
            location=f"/maintenance {command}",
            critical=True,
            guild=interaction.guild,
            user=interaction.user,
        )
        await safe_respond(interaction, GENERIC_FAILURE_MESSAGE)

    # =========================================================================
    # Enable
    # =========================================================================

    @maintenance_group.command(name="enable", description="Enable maintenance mode (asks for confirmation)")
    @app_commands.describe(duration_minutes="Automatically disable after this many minutes")
    async def enable(
        self,
        interaction: discord.Interaction,
        duration_minutes: Optional[app_commands.Range[int, MIN_DURATION_MINUTES, MAX_DURATION_MINUTES]] = None,
    ) -> None:
        if not await self._require_admin(interaction, "enable"):
            return
        await safe_defer(interaction)

        try:
            guild = interaction.guild
            action = self.service.request_enable(guild, interaction.user.id, duration_minutes)

            logger.tree("Maintenance Enable Requested", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("User", f"{interaction.user} ({interaction.user.id})"),
                ("Duration", f"{duration_minutes} min" if duration_minutes else "Until disabled"),
            ], emoji="⚠️")

            embed = build_enable_prompt(guild.name, interaction.user.id, duration_minutes, self._ttl_minutes())
            await safe_respond(interaction, embed=embed, view=ConfirmPromptView(action))

        except Exception as e:
            await self._fail(interaction, e, "enable")

    # =========================================================================
    # Disable
    # =========================================================================

    @maintenance_group.command(name="disable", description="Disable maintenance mode (asks for confirmation)")
    @app_commands.describe(
        role_mapping="For roles deleted during maintenance: old_id:new_id or old_id:remove, comma separated",
    )
    async def disable(
        self,
        interaction: discord.Interaction,
        role_mapping: Optional[str] = None,
    ) -> None:
        if not await self._require_admin(interaction, "disable"):
            return
        await safe_defer(interaction)

        try:
            guild = interaction.guild
            try:
                action = self.service.request_disable(guild, interaction.user.id, role_mapping)
            except MaintenanceError as e:
                await respond_error(interaction, e)
                return

            mapping_lines = [
                f"`{old}` → <@&{remap.target_role_id}>" if remap.target_role_id else f"`{old}` → removed"
                for old, remap in action.role_mapping.items()
            ]

            logger.tree("Maintenance Disable Requested", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("User", f"{interaction.user} ({interaction.user.id})"),
                ("Role Mapping", str(len(mapping_lines))),
            ], emoji="✅")

            embed = build_disable_prompt(guild.name, interaction.user.id, self._ttl_minutes(), mapping_lines)
            await safe_respond(interaction, embed=embed, view=ConfirmPromptView(action))

        except Exception as e:
            await self._fail(interaction, e, "disable")

    # =========================================================================
    # Status
    # =========================================================================

    @maintenance_group.command(name="status", description="Show the current maintenance status")
    async def status(self, interaction: discord.Interaction) -> None:
        await safe_defer(interaction)

        try:
            guild = interaction.guild
            state = await self.service.get_state(guild.id)
            missing = await self.service.find_missing_roles(guild) if state.enabled else {}
            await safe_respond(interaction, embed=build_status_embed(guild.name, state, missing))

        except Exception as e:
            await self._fail(interaction, e, "status")

    # =========================================================================
    # Message
    # =========================================================================

    @maintenance_group.command(name="message", description="Post an update to the maintenance channel")
    @app_commands.describe(content="Update to post")
    async def message(
        self,
        interaction: discord.Interaction,
        content: app_commands.Range[str, 1, MAX_ANNOUNCEMENT_LENGTH],
    ) -> None:
        if not await self._require_admin(interaction, "message"):
            return
        await safe_defer(interaction)

        try:
            guild = interaction.guild
            try:
                await self.service.post_update(guild, interaction.user.id, content)
            except MaintenanceError as e:
                await respond_error(interaction, e)
                return

            logger.tree("Maintenance Update Posted", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("User", f"{interaction.user} ({interaction.user.id})"),
                ("Length", str(len(content))),
            ], emoji="📢")
            await safe_respond(interaction, "Message posted to the maintenance channel.")

        except Exception as e:
            await self._fail(interaction, e, "message")


__all__ = ["MaintenanceCog"]
