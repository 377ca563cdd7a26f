"""
LockBot - Main Bot Class
========================

Core Discord client that puts a whole server into a reversible
maintenance mode.

Features:
- /maintenance enable, disable, status and message
- Button confirmation for every transition
- Auto-disable timers that survive restarts
- Health check HTTP endpoint
"""

from datetime import datetime
from typing import Optional

import discord
from discord.ext import commands

from src.core.config import get_config
from src.core.health import HealthCheckServer
from src.core.logger import logger
from src.services.maintenance import MaintenanceService, setup_maintenance_views


# =============================================================================
# LockBot Class
# =============================================================================

class LockBot(commands.Bot):
    """
    Main Discord bot class for LockBot.

    DESIGN: Central orchestrator that:
    - Routes Discord events to the maintenance service
    - Holds the service so cogs and views can reach it
    - Manages bot lifecycle (startup, shutdown)

    SERVICE INITIALIZATION ORDER:
    1. setup_hook (before on_ready):
       - Maintenance service
       - Command and event cog loading
       - Persistent view registration
       - Command tree syncing

    2. on_ready:
       - Stored state restore and timer re-arm
       - Health Check Server
       - Error webhook
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self) -> None:
        """Initialize the bot with the intents maintenance mode needs."""
        self.config = get_config()

        intents = discord.Intents.default()
        intents.members = True

        super().__init__(
            command_prefix="!",
            intents=intents,
            help_command=None,
        )

        self.start_time: datetime = datetime.now()

        self.maintenance_service: Optional[MaintenanceService] = None
        self.health_server: Optional[HealthCheckServer] = None

        # Ready state guard
        self._ready_initialized: bool = False

        logger.info("Bot Instance Created")

    # =========================================================================
    # Setup Hook
    # =========================================================================

    async def setup_hook(self) -> None:
        """Create the service, load cogs and sync commands before on_ready."""
        self.maintenance_service = MaintenanceService(self, self.config)

        from src.commands import COMMAND_COGS
        for cog in COMMAND_COGS:
            try:
                await self.load_extension(cog)
                logger.success(f"Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Cog", [("Cog", cog), ("Error", str(e))])

        from src.events import EVENT_COGS
        for cog in EVENT_COGS:
            try:
                await self.load_extension(cog)
                logger.debug(f"Event Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Event Cog", [("Cog", cog), ("Error", str(e))])

        # Register persistent views
        setup_maintenance_views(self)

        try:
            synced = await self.tree.sync()
            logger.tree("Commands Synced", [("Count", str(len(synced)))], emoji="✅")
        except Exception as e:
            logger.error("Command Sync Failed", [("Error", str(e))])

    # =========================================================================
    # On Ready
    # =========================================================================

    async def on_ready(self) -> None:
        """Restore stored maintenance state once the guild cache is filled."""
        if self._ready_initialized:
            logger.info("Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True

        if not self.user:
            return

        logger.tree("BOT ONLINE", [
            ("Name", self.user.name),
            ("ID", str(self.user.id)),
            ("Guilds", str(len(self.guilds))),
        ], emoji="🚀")

        if self.config.error_webhook_url:
            logger.set_webhook(self.config.error_webhook_url)

        if self.maintenance_service:
            await self.maintenance_service.on_ready()

        if self.config.health_port:
            self.health_server = HealthCheckServer(self, self.config.health_port)
            await self.health_server.start()

        logger.tree("LOCKBOT READY", [
            ("Guilds", str(len(self.guilds))),
            ("In Maintenance", str(self.maintenance_service.enabled_guilds() if self.maintenance_service else 0)),
            ("Health Server", "Running" if self.health_server else "Stopped"),
        ], emoji="🔒")

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> None:
        """Graceful shutdown with proper cleanup."""
        logger.info("Initiating Graceful Shutdown")

        if self.maintenance_service:
            self.maintenance_service.shutdown()

        if self.health_server:
            await self.health_server.stop()

        await super().close()

        logger.tree("SHUTDOWN COMPLETE", [
            ("Uptime", str(datetime.now() - self.start_time)),
        ], emoji="🛑")

    async def close(self) -> None:
        """Override close to ensure proper shutdown."""
        await self.shutdown()


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["LockBot"]
