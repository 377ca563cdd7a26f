"""
LockBot - Events Package
========================

Event handler Cogs, loaded dynamically by the bot.

DESIGN:
    Each event file contains a Cog class with @commands.Cog.listener
    handlers that forward to MaintenanceService.

    Event routing:
    - members.py: Member join (temp role, greeting)
    - channels.py: Channel create (lock channels made mid-window)
    - guilds.py: Guild join/remove (state restore and cleanup)
"""

# =============================================================================
# Event Cog Registry
# =============================================================================

EVENT_COGS = [
    "src.events.members",
    "src.events.channels",
    "src.events.guilds",
]
"""List of event cog module paths for dynamic loading."""


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "EVENT_COGS",
]
