"""
LockBot - Maintenance Package
=============================

Reversible server-wide maintenance mode.

Structure:
    platform.py          GuildPlatform interface and platform-neutral types
    discord_platform.py  GuildPlatform on top of discord.Guild
    enable_ops.py        Per-entity operations for enable
    disable_ops.py       Per-entity operations for disable
    engine.py            MaintenanceEngine state transitions
    embeds.py            Announcement, prompt and status embeds
    views.py             Persistent status/help/confirm/cancel buttons
    service.py           MaintenanceService wiring it all to the bot
"""

from .constants import RoleRemap, TransitionResult
from .engine import MaintenanceEngine, parse_role_mapping
from .platform import ChannelInfo, GuildPlatform, MemberInfo, RoleInfo
from .service import MaintenanceService
from .views import setup_maintenance_views


__all__ = [
    "RoleRemap",
    "TransitionResult",
    "MaintenanceEngine",
    "parse_role_mapping",
    "ChannelInfo",
    "GuildPlatform",
    "MemberInfo",
    "RoleInfo",
    "MaintenanceService",
    "setup_maintenance_views",
]
