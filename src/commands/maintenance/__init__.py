"""
LockBot - Maintenance Command Package
=====================================

/maintenance enable, disable, status and message.
"""

from typing import TYPE_CHECKING

from .cog import MaintenanceCog

if TYPE_CHECKING:
    from src.bot import LockBot


async def setup(bot: "LockBot") -> None:
    """Load the Maintenance cog."""
    await bot.add_cog(MaintenanceCog(bot))


__all__ = ["MaintenanceCog", "setup"]
