"""
LockBot - Maintenance Embeds
============================

Embed builders for maintenance announcements, prompts and status.
"""

import random
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import discord

from src.core.config import EmbedColors
from src.core.constants import STATUS_SUMMARY_LIMIT
from src.core.state.models import GuildState


HELP_RESPONSES = [
    "We're tuning things up! Thanks for sticking with us.",
    "Almost there, feel free to grab a coffee while we finish.",
    "We're double-checking everything so you have a smoother experience soon.",
    "Maintenance keeps the gears running smoothly. Thanks for your patience!",
    "Hang tight! The admins are working to bring everything back online safely.",
]

Field = Tuple[str, str, bool]


# =============================================================================
# Base Builder
# =============================================================================

def build_embed(
    title: Optional[str] = None,
    description: Optional[str] = None,
    color: int = EmbedColors.INFO,
    fields: Sequence[Field] = (),
    footer: Optional[str] = None,
) -> discord.Embed:
    """Timestamped embed with optional (name, value, inline) fields."""
    embed = discord.Embed(title=title, description=description, color=color, timestamp=discord.utils.utcnow())
    for name, value, inline in fields:
        embed.add_field(name=name, value=value, inline=inline)
    if footer:
        embed.set_footer(text=footer)
    return embed


def discord_timestamp(when: datetime) -> str:
    """`<t:..:f> (<t:..:R>)` pair for a datetime."""
    unix = int(when.timestamp())
    return f"<t:{unix}:f> (<t:{unix}:R>)"


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


# =============================================================================
# Announcements
# =============================================================================

def build_enabled_embed(
    guild_name: str,
    requested_by: int,
    locked_count: int,
    timeout_at: Optional[datetime],
) -> discord.Embed:
    return build_embed(
        title="Maintenance Mode Enabled",
        description="Non-administrator members are restricted to this channel while maintenance is underway.",
        color=EmbedColors.WARNING,
        fields=[
            ("Triggered by", f"<@{requested_by}>", True),
            ("Members Locked", str(locked_count), True),
            ("Scheduled Restore", discord_timestamp(timeout_at) if timeout_at else "Not scheduled", True),
        ],
        footer=guild_name,
    )


def build_complete_embed(guild_name: str) -> discord.Embed:
    return build_embed(
        title="Maintenance Complete",
        description="The maintenance window has ended. Restoring normal access now.",
        color=EmbedColors.SUCCESS,
        footer=guild_name,
    )


def build_window_complete_embed(guild_name: str) -> discord.Embed:
    return build_embed(
        title="Maintenance Window Complete",
        description="Maintenance finished automatically. Restoring access for everyone.",
        color=EmbedColors.SUCCESS,
        footer=guild_name,
    )


def build_update_embed(guild_name: str, author_id: int, content: str) -> discord.Embed:
    return build_embed(
        title="Maintenance Update",
        description=content,
        color=EmbedColors.INFO,
        fields=[("From", f"<@{author_id}>", True)],
        footer=guild_name,
    )


def build_join_embed(guild_name: str, member_mention: str, maintenance: bool) -> discord.Embed:
    if maintenance:
        return build_embed(
            title="Server Under Maintenance",
            description=f"Hey {member_mention}, the server is getting a tune-up right now. Thanks for your patience!",
            color=EmbedColors.WARNING,
            footer=guild_name,
        )
    return build_embed(
        title="Welcome!",
        description=f"We're glad you're here, {member_mention}. Enjoy your stay!",
        color=EmbedColors.SUCCESS,
        footer=guild_name,
    )


def build_help_embed(guild_name: str) -> discord.Embed:
    return build_embed(
        title="Thanks for checking in!",
        description=f"{random.choice(HELP_RESPONSES)}\n\nIf you need urgent help, reach out to an administrator.",
        color=EmbedColors.INFO,
        footer=guild_name,
    )


# =============================================================================
# Status
# =============================================================================

def build_status_embed(
    guild_name: str,
    state: GuildState,
    missing_roles: Optional[dict] = None,
) -> discord.Embed:
    """
    Current maintenance state for /maintenance status and the status button.

    Args:
        guild_name: Shown in the footer.
        state: Guild state to describe.
        missing_roles: Snapshot roles deleted during the window (id -> name).
    """
    description = (
        "The server is currently in maintenance mode. Only administrators have full access."
        if state.enabled
        else "Maintenance mode is disabled and the server is fully accessible."
    )

    fields: List[Field] = []

    if state.maintenance_channel_id:
        fields.append(("Maintenance Channel", f"<#{state.maintenance_channel_id}>", True))

    fields.append(("Members Restricted", str(len(state.member_role_snapshots)), True))

    if state.maintenance_temp_role_id:
        fields.append(("Temporary Role", f"<@&{state.maintenance_temp_role_id}>", True))
    if state.maintenance_bypass_role_id:
        fields.append(("Bypass Role", f"<@&{state.maintenance_bypass_role_id}>", True))

    if state.timeout_at:
        set_by = f" (set by <@{state.timeout_set_by}>)" if state.timeout_set_by else ""
        fields.append(("Scheduled Restore", f"{discord_timestamp(state.timeout_at)}{set_by}", True))
    else:
        fields.append(("Scheduled Restore", "Not scheduled", True))

    announcement = state.last_announcement
    if announcement:
        summary = f"**{announcement.title}**" if announcement.title else (announcement.content or "-")
        if len(summary) > STATUS_SUMMARY_LIMIT:
            summary = f"{summary[:STATUS_SUMMARY_LIMIT - 3]}…"
        author = f" by <@{announcement.author_id}>" if announcement.author_id else ""
        fields.append((
            "Last Update",
            f"{summary}\n<t:{int(announcement.timestamp.timestamp())}:R>{author}",
            False,
        ))

    if missing_roles:
        lines = [f"`{rid}` {name}" for rid, name in list(missing_roles.items())[:10]]
        if len(missing_roles) > 10:
            lines.append(f"... and {len(missing_roles) - 10} more")
        fields.append(("Deleted Roles (use role_mapping on disable)", "\n".join(lines), False))

    return build_embed(
        title="Maintenance Status",
        description=description,
        color=EmbedColors.WARNING if state.enabled else EmbedColors.SUCCESS,
        fields=fields,
        footer=guild_name,
    )


# =============================================================================
# Confirmation Prompts
# =============================================================================

def build_enable_prompt(
    guild_name: str,
    user_id: int,
    duration_minutes: Optional[int],
    ttl_minutes: int,
) -> discord.Embed:
    auto_disable = (
        f"{plural(duration_minutes, 'minute')} after confirmation" if duration_minutes else "Not scheduled"
    )
    return build_embed(
        title="Confirm Maintenance Enable",
        description="Enable maintenance mode? Non-admin members will be limited to the maintenance channel.",
        color=EmbedColors.WARNING,
        fields=[
            ("Requested by", f"<@{user_id}>", True),
            ("Auto-disable", auto_disable, True),
            ("Expires", f"Prompt expires in {plural(ttl_minutes, 'minute')}.", True),
        ],
        footer=guild_name,
    )


def build_disable_prompt(
    guild_name: str,
    user_id: int,
    ttl_minutes: int,
    mapping_lines: Sequence[str] = (),
) -> discord.Embed:
    fields: List[Field] = [
        ("Requested by", f"<@{user_id}>", True),
        ("Effect", "Restores channel visibility for non-admin roles.", True),
        ("Expires", f"Prompt expires in {plural(ttl_minutes, 'minute')}.", True),
    ]
    if mapping_lines:
        fields.append(("Role Mapping", "\n".join(mapping_lines), False))

    return build_embed(
        title="Confirm Maintenance Disable",
        description="Disable maintenance mode and restore access to the rest of the server?",
        color=EmbedColors.SUCCESS,
        fields=fields,
        footer=guild_name,
    )


def build_notice_embed(title: str, description: str, guild_name: str, color: int = EmbedColors.INFO) -> discord.Embed:
    """Short prompt-state embed (expired, cancelled, in progress, done)."""
    return build_embed(title=title, description=description, color=color, footer=guild_name)


__all__ = [
    "HELP_RESPONSES",
    "build_embed",
    "discord_timestamp",
    "plural",
    "build_enabled_embed",
    "build_complete_embed",
    "build_window_complete_embed",
    "build_update_embed",
    "build_join_embed",
    "build_help_embed",
    "build_status_embed",
    "build_enable_prompt",
    "build_disable_prompt",
    "build_notice_embed",
]
