"""
LockBot - Interaction Utilities
===============================

Shared helpers for answering slash commands and button presses.

Every reply to an operator goes through here so expired or already
answered interactions never raise out of a command or button callback.
"""

from typing import TYPE_CHECKING, Any, Optional, Union

import discord

from src.core.errors import MaintenanceError
from src.core.logger import logger

if TYPE_CHECKING:
    from src.services.maintenance import MaintenanceService


GUILD_ONLY_MESSAGE = "This interaction only works inside a server."
SERVICE_UNAVAILABLE_MESSAGE = "Maintenance system unavailable."


# =============================================================================
# Replies
# =============================================================================

async def safe_respond(
    interaction: discord.Interaction,
    content: Optional[str] = None,
    *,
    embed: Optional[discord.Embed] = None,
    view: Optional[discord.ui.View] = None,
    ephemeral: bool = True,
) -> Optional[Union[discord.InteractionMessage, discord.WebhookMessage]]:
    """
    Reply to an interaction whether or not it was already answered.

    The first reply goes through response.send_message(), later ones
    through followup.send(). Replies are ephemeral unless told otherwise.

    Returns:
        The sent message, or None if Discord rejected the reply.
    """
    kwargs: dict[str, Any] = {"ephemeral": ephemeral}
    if content is not None:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = embed
    if view is not None:
        kwargs["view"] = view

    try:
        response_done = interaction.response.is_done()
    except discord.HTTPException:
        response_done = True

    try:
        if response_done:
            return await interaction.followup.send(**kwargs)

        await interaction.response.send_message(**kwargs)
        try:
            return await interaction.original_response()
        except discord.HTTPException:
            return None

    except discord.HTTPException as e:
        # Expired interactions land here
        logger.debug(f"safe_respond failed: {e.status} - {str(e)[:50]}")
        return None


async def respond_error(interaction: discord.Interaction, error: MaintenanceError) -> None:
    """Show a MaintenanceError's operator-facing message."""
    logger.debug(f"Maintenance request rejected: {error.code.value}")
    await safe_respond(interaction, error.message)


async def safe_defer(interaction: discord.Interaction, *, ephemeral: bool = True) -> bool:
    """Defer with a thinking state. False if already answered or Discord refused."""
    try:
        if interaction.response.is_done():
            return False
        await interaction.response.defer(ephemeral=ephemeral, thinking=True)
        return True
    except discord.HTTPException:
        return False


# =============================================================================
# Prompt Messages
# =============================================================================

async def safe_replace(interaction: discord.Interaction, embed: discord.Embed) -> bool:
    """
    Swap the message a button is attached to for `embed` and drop its buttons.

    Used the moment a prompt is confirmed, cancelled or found to be stale,
    so the same buttons cannot be pressed twice.
    """
    try:
        await interaction.response.edit_message(embed=embed, view=None)
        return True
    except discord.HTTPException as e:
        logger.debug(f"Prompt update failed: {e.status} - {str(e)[:50]}")
        return False


async def safe_edit(
    interaction: discord.Interaction,
    *,
    embed: Optional[discord.Embed] = discord.utils.MISSING,
    view: Optional[discord.ui.View] = discord.utils.MISSING,
) -> bool:
    """Edit the original response after the interaction was answered."""
    kwargs: dict[str, Any] = {}
    if embed is not discord.utils.MISSING:
        kwargs["embed"] = embed
    if view is not discord.utils.MISSING:
        kwargs["view"] = view

    try:
        await interaction.edit_original_response(**kwargs)
        return True
    except discord.HTTPException as e:
        logger.debug(f"safe_edit failed: {e.status} - {str(e)[:50]}")
        return False


# =============================================================================
# Lookups
# =============================================================================

def get_maintenance_service(interaction: discord.Interaction) -> Optional["MaintenanceService"]:
    return getattr(interaction.client, "maintenance_service", None)


async def require_guild(interaction: discord.Interaction) -> Optional[discord.Guild]:
    """The interaction's guild, replying with a notice when used outside one."""
    if interaction.guild is None:
        await safe_respond(interaction, GUILD_ONLY_MESSAGE)
        return None
    return interaction.guild


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "GUILD_ONLY_MESSAGE",
    "SERVICE_UNAVAILABLE_MESSAGE",
    "safe_respond",
    "respond_error",
    "safe_defer",
    "safe_replace",
    "safe_edit",
    "get_maintenance_service",
    "require_guild",
]
