"""
LockBot - Health Check Server
=============================

HTTP health check endpoint for external monitoring.

DESIGN:
    A small aiohttp server on the bot's event loop. GET /health returns
    connection state and how many cached guilds are in maintenance, so an
    uptime checker can alert when a window is left open.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from aiohttp import web

from src.core.config import NY_TZ
from src.core.constants import HEALTH_CHECK_PORT
from src.core.logger import logger

if TYPE_CHECKING:
    from src.bot import LockBot


# =============================================================================
# Health Check Server
# =============================================================================

class HealthCheckServer:
    """
    Simple HTTP health check server for monitoring.

    Attributes:
        bot: Reference to the main bot instance.
        port: Port number for the HTTP server.
        app: aiohttp Application instance.
        runner: aiohttp AppRunner for lifecycle management.
    """

    def __init__(self, bot: "LockBot", port: int = HEALTH_CHECK_PORT) -> None:
        self.bot = bot
        self.port = port
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None

        self.app.router.add_get("/health", self.health_handler)
        self.app.router.add_get("/", self.health_handler)

    # =========================================================================
    # Request Handlers
    # =========================================================================

    async def health_handler(self, request: web.Request) -> web.Response:
        """
        Handle health check requests.

        "healthy" means connected to Discord, "starting" means still
        initializing.
        """
        try:
            is_connected = self.bot.is_ready()
            service = getattr(self.bot, "maintenance_service", None)

            status = {
                "status": "healthy" if is_connected else "starting",
                "bot": "LockBot",
                "connected": is_connected,
                "guilds": len(self.bot.guilds),
                "maintenance_enabled": service.enabled_guilds() if service else 0,
                "pending_prompts": len(service.registry) if service else 0,
                "timestamp": datetime.now(NY_TZ).isoformat(),
            }

            logger.debug(f"Health check: {status['status']}")
            return web.json_response(status)

        except Exception as e:
            logger.error("Health Check Error", [
                ("Error", str(e)[:100]),
            ])
            return web.json_response({"status": "error", "error": str(e)}, status=500)

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def start(self) -> None:
        """Start listening on 0.0.0.0. Failure is logged, not raised."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, "0.0.0.0", self.port)
            await site.start()

            logger.tree("Health Server Started", [
                ("Port", str(self.port)),
                ("Endpoint", f"http://0.0.0.0:{self.port}/health"),
            ], emoji="🏥")

        except OSError as e:
            logger.error("Health Server Startup Failed", [
                ("Port", str(self.port)),
                ("Error", str(e)[:100]),
            ])

    async def stop(self) -> None:
        """Safe to call even if the server never started."""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Health check server stopped")


__all__ = ["HealthCheckServer"]
