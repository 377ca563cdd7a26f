"""
LockBot - Guild Events
======================

Handles the bot joining and leaving guilds.
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from src.core.logger import logger
from src.utils.error_handler import safe_execute

if TYPE_CHECKING:
    from src.bot import LockBot


class GuildEvents(commands.Cog):
    """Guild event handlers."""

    def __init__(self, bot: "LockBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    @safe_execute
    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.tree("Guild Joined", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("Members", str(guild.member_count)),
        ], emoji="📥")
        if self.bot.maintenance_service:
            await self.bot.maintenance_service.on_guild_join(guild)

    @commands.Cog.listener()
    @safe_execute
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        """Forget everything about a guild the bot was removed from."""
        if self.bot.maintenance_service:
            await self.bot.maintenance_service.on_guild_remove(guild)


async def setup(bot: "LockBot") -> None:
    """Add the guild events cog to the bot."""
    await bot.add_cog(GuildEvents(bot))
    logger.debug("Guild Events Loaded")
