"""
LockBot - Member Events
=======================

Handles member join events.
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from src.core.logger import logger
from src.utils.error_handler import safe_execute

if TYPE_CHECKING:
    from src.bot import LockBot


class MemberEvents(commands.Cog):
    """Member event handlers."""

    def __init__(self, bot: "LockBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    @safe_execute
    async def on_member_join(self, member: discord.Member) -> None:
        """Hold newcomers in the temp role during maintenance and greet them."""
        if member.bot or not self.bot.maintenance_service:
            return
        await self.bot.maintenance_service.on_member_join(member)


async def setup(bot: "LockBot") -> None:
    """Add the member events cog to the bot."""
    await bot.add_cog(MemberEvents(bot))
    logger.debug("Member Events Loaded")
