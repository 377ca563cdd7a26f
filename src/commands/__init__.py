"""
LockBot - Commands Package
==========================

Slash command implementations, one discord.py Cog per package.

DESIGN:
    Each command package exposes an async setup(bot) that adds its Cog.
    Cogs are loaded by the bot with load_extension().

    To add a new command:
    1. Create a package in this directory with a Cog class
    2. Add async def setup(bot) in its __init__.py
    3. Add the module path to COMMAND_COGS below

Available Commands:
    /maintenance enable|disable|status|message
"""

# =============================================================================
# Command Cog Registry
# =============================================================================

COMMAND_COGS = [
    "src.commands.maintenance",
]
"""List of command cog module paths for dynamic loading."""


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "COMMAND_COGS",
]
