"""
LockBot - Maintenance Views
===========================

Persistent buttons for maintenance announcements and confirmation prompts.

DESIGN:
    Every button is a DynamicItem whose custom id carries all it needs, so
    buttons keep working after a restart without re-sending messages.
    Callbacks reach the service through `interaction.client.maintenance_service`.

    Custom ids:
        maintenance_status           -> ephemeral status embed
        maintenance_help             -> ephemeral help embed
        maintenance_confirm:<id>     -> run a pending enable/disable
        maintenance_cancel:<id>      -> drop a pending enable/disable
"""

from typing import TYPE_CHECKING, Optional

import discord

from src.core.config import EmbedColors
from src.core.logger import logger
from src.services.pending_actions import ActionType, PendingAction
from src.utils.error_handler import ErrorHandler
from src.utils.interaction import (
    SERVICE_UNAVAILABLE_MESSAGE,
    get_maintenance_service,
    require_guild,
    safe_edit,
    safe_replace,
    safe_respond,
)

from .embeds import build_help_embed, build_notice_embed, build_status_embed

if TYPE_CHECKING:
    from src.bot import LockBot
    from .service import MaintenanceService


STATUS_BUTTON_ID = "maintenance_status"
HELP_BUTTON_ID = "maintenance_help"
CONFIRM_PREFIX = "maintenance_confirm:"
CANCEL_PREFIX = "maintenance_cancel:"


# =============================================================================
# Helpers
# =============================================================================

def _expired_embed(guild_name: str) -> discord.Embed:
    return build_notice_embed(
        "Request Expired",
        "This maintenance request is no longer available. Please run the command again.",
        guild_name,
    )


async def _resolve_action(
    interaction: discord.Interaction,
    service: "MaintenanceService",
    action_id: str,
) -> Optional[PendingAction]:
    """The live action for this prompt, answering the interaction when there is none."""
    guild = interaction.guild
    guild_name = guild.name if guild else "Maintenance"
    action = service.registry.get(action_id)

    if guild is None or action is None or action.guild_id != guild.id:
        await safe_replace(interaction, _expired_embed(guild_name))
        return None

    if interaction.user.id != action.user_id:
        await safe_respond(interaction, f"Only <@{action.user_id}> can confirm this action.")
        return None

    return action


# =============================================================================
# Announcement Buttons
# =============================================================================

class StatusButton(discord.ui.DynamicItem[discord.ui.Button], template=r"maintenance_status"):
    """Shows the current maintenance status to whoever presses it."""

    def __init__(self) -> None:
        super().__init__(
            discord.ui.Button(
                label="Get Status",
                style=discord.ButtonStyle.secondary,
                custom_id=STATUS_BUTTON_ID,
                emoji="📊",
            )
        )

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match,
    ) -> "StatusButton":
        return cls()

    async def callback(self, interaction: discord.Interaction) -> None:
        guild = await require_guild(interaction)
        if guild is None:
            return

        service = get_maintenance_service(interaction)
        if service is None:
            await safe_respond(interaction, SERVICE_UNAVAILABLE_MESSAGE)
            return

        state = await service.get_state(guild.id)
        await safe_respond(interaction, embed=build_status_embed(guild.name, state))


class HelpButton(discord.ui.DynamicItem[discord.ui.Button], template=r"maintenance_help"):
    """Answers with a friendly reassurance message."""

    def __init__(self) -> None:
        super().__init__(
            discord.ui.Button(
                label="Need Help?",
                style=discord.ButtonStyle.secondary,
                custom_id=HELP_BUTTON_ID,
                emoji="💬",
            )
        )

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match,
    ) -> "HelpButton":
        return cls()

    async def callback(self, interaction: discord.Interaction) -> None:
        guild = await require_guild(interaction)
        if guild is not None:
            await safe_respond(interaction, embed=build_help_embed(guild.name))


# =============================================================================
# Confirmation Buttons
# =============================================================================

class ConfirmButton(
    discord.ui.DynamicItem[discord.ui.Button],
    template=r"maintenance_confirm:(?P<action_id>[0-9a-f]{32})",
):
    """Runs the pending enable/disable it was created for."""

    def __init__(self, action_id: str, action_type: ActionType = ActionType.ENABLE) -> None:
        if action_type == ActionType.ENABLE:
            label, style, emoji = "Enable Maintenance", discord.ButtonStyle.danger, "⚠️"
        else:
            label, style, emoji = "Disable Maintenance", discord.ButtonStyle.success, "✅"

        super().__init__(
            discord.ui.Button(
                label=label,
                style=style,
                custom_id=f"{CONFIRM_PREFIX}{action_id}",
                emoji=emoji,
            )
        )
        self.action_id = action_id

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match,
    ) -> "ConfirmButton":
        return cls(match.group("action_id"))

    async def callback(self, interaction: discord.Interaction) -> None:
        service = get_maintenance_service(interaction)
        if service is None:
            await safe_respond(interaction, SERVICE_UNAVAILABLE_MESSAGE)
            return

        action = await _resolve_action(interaction, service, self.action_id)
        if action is None:
            return

        guild = interaction.guild
        stored = service.registry.remove(self.action_id)
        if stored is None:
            await safe_replace(interaction, _expired_embed(guild.name))
            return

        enabling = stored.type == ActionType.ENABLE
        await safe_replace(interaction, build_notice_embed(
            "Enabling Maintenance" if enabling else "Disabling Maintenance",
            "Hang tight while we update permissions.",
            guild.name,
        ))

        try:
            reply = await service.confirm(guild, stored)
        except Exception as e:
            ErrorHandler.handle(
                e, location="Maintenance Confirm", critical=True, guild=guild, user=interaction.user
            )
            await safe_respond(interaction, "Failed to apply maintenance changes. Check the bot logs.")
            return

        if enabling:
            done = build_notice_embed(
                "Maintenance Enabled", "Maintenance mode is now active.", guild.name, EmbedColors.WARNING
            )
        else:
            done = build_notice_embed(
                "Maintenance Disabled", "Maintenance mode has been turned off.", guild.name, EmbedColors.SUCCESS
            )
        await safe_edit(interaction, embed=done, view=None)
        await safe_respond(interaction, reply)


class CancelButton(
    discord.ui.DynamicItem[discord.ui.Button],
    template=r"maintenance_cancel:(?P<action_id>[0-9a-f]{32})",
):
    """Drops a pending enable/disable without touching the guild."""

    def __init__(self, action_id: str) -> None:
        super().__init__(
            discord.ui.Button(
                label="Cancel",
                style=discord.ButtonStyle.secondary,
                custom_id=f"{CANCEL_PREFIX}{action_id}",
                emoji="✖️",
            )
        )
        self.action_id = action_id

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match,
    ) -> "CancelButton":
        return cls(match.group("action_id"))

    async def callback(self, interaction: discord.Interaction) -> None:
        service = get_maintenance_service(interaction)
        if service is None:
            await safe_respond(interaction, SERVICE_UNAVAILABLE_MESSAGE)
            return

        action = await _resolve_action(interaction, service, self.action_id)
        if action is None:
            return

        service.registry.remove(self.action_id)
        logger.tree("Maintenance Request Cancelled", [
            ("Guild", f"{interaction.guild.name} ({interaction.guild.id})"),
            ("User", f"{interaction.user} ({interaction.user.id})"),
            ("Type", action.type.value),
        ], emoji="✖️")
        await safe_replace(interaction, build_notice_embed(
            "Action Cancelled", "No changes were made.", interaction.guild.name
        ))


# =============================================================================
# Views
# =============================================================================

class MaintenanceActionView(discord.ui.View):
    """Status and help buttons attached to every maintenance announcement."""

    def __init__(self) -> None:
        super().__init__(timeout=None)
        self.add_item(StatusButton())
        self.add_item(HelpButton())


class ConfirmPromptView(discord.ui.View):
    """Confirm/cancel buttons for a pending action."""

    def __init__(self, action: PendingAction) -> None:
        super().__init__(timeout=None)
        self.add_item(ConfirmButton(action.id, action.type))
        self.add_item(CancelButton(action.id))


# =============================================================================
# Setup Function (for persistent views)
# =============================================================================

def setup_maintenance_views(bot: "LockBot") -> None:
    """Register maintenance dynamic items for persistence."""
    bot.add_dynamic_items(StatusButton, HelpButton, ConfirmButton, CancelButton)
    logger.debug("Maintenance Views Registered")


__all__ = [
    "STATUS_BUTTON_ID",
    "HELP_BUTTON_ID",
    "CONFIRM_PREFIX",
    "CANCEL_PREFIX",
    "StatusButton",
    "HelpButton",
    "ConfirmButton",
    "CancelButton",
    "MaintenanceActionView",
    "ConfirmPromptView",
    "setup_maintenance_views",
]
