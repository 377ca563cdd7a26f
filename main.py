#!/usr/bin/env python3
"""
LockBot - Entry Point
=====================

Loads the environment, validates configuration and runs the bot.

Features:
- Slash commands (/maintenance enable, disable, status, message)
- Startup configuration validation
- Graceful error handling
"""

import asyncio
import sys

from dotenv import load_dotenv

from src.core.config import ConfigValidationError, get_config, validate_and_log_config
from src.core.logger import logger
from src.utils.error_handler import ErrorHandler


async def main() -> None:
    """
    Main entry point for LockBot.

    Handles the complete bot lifecycle:
    1. Loads environment configuration
    2. Validates required settings
    3. Initializes bot instance with proper intents
    4. Establishes connection to Discord API

    Raises:
        SystemExit: If configuration is invalid or the bot fails to start
    """
    load_dotenv()

    logger.tree("LOCKBOT STARTING", [
        ("Structure", "Organized with src/"),
        ("Commands", "/maintenance enable, disable, status, message"),
    ], "🔒")

    try:
        validate_and_log_config()
    except ConfigValidationError as e:
        logger.error("Configuration Invalid", [("Error", str(e))])
        sys.exit(1)

    from src.bot import LockBot

    try:
        bot = LockBot()
        logger.info("Bot instance created successfully")

        async with bot:
            await bot.start(get_config().discord_token)

    except Exception as e:
        ErrorHandler.handle(
            e,
            location="main.main",
            critical=True,
        )
        sys.exit(1)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (Ctrl+C)")
    except Exception as e:
        ErrorHandler.handle(
            e,
            location="main.__main__",
            critical=True,
        )
        sys.exit(1)
