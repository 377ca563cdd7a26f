"""
LockBot - Channel Events
========================

Handles channel creation while maintenance is active.
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from src.core.logger import logger
from src.utils.error_handler import safe_execute

if TYPE_CHECKING:
    from src.bot import LockBot


class ChannelEvents(commands.Cog):
    """Channel event handlers."""

    def __init__(self, bot: "LockBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    @safe_execute
    async def on_guild_channel_create(self, channel: discord.abc.GuildChannel) -> None:
        """Lock channels created during a maintenance window like the rest."""
        if not self.bot.maintenance_service:
            return
        await self.bot.maintenance_service.on_channel_create(channel)


async def setup(bot: "LockBot") -> None:
    """Add the channel events cog to the bot."""
    await bot.add_cog(ChannelEvents(bot))
    logger.debug("Channel Events Loaded")
