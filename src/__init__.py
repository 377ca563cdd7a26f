"""
LockBot - Source Package
========================

Discord bot that puts a server into a reversible maintenance mode.

Package Structure:
- bot.py: Main Discord bot class and event wiring
- commands/: Slash command cogs (/maintenance)
- core/: Configuration, logging, errors, persisted state, health server
- services/: Maintenance engine, confirmation prompts, auto-disable timers
- utils/: Helper functions and utilities

Version: v1.0.0
"""
