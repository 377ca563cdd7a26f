"""
LockBot - Maintenance Enable Operations
=======================================

Per-entity operations used when turning maintenance on.

DESIGN:
    Every function here touches one role, channel or member and returns a
    tuple starting with (success, error). Nothing raises for a single
    failed entity; the engine folds the results into GuildState and keeps
    going. Batches run concurrently under a semaphore and are gathered in
    input order, so the fold is deterministic.
"""

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

from src.core.constants import MAINTENANCE_CHANNEL_TOPIC
from src.core.logger import logger
from src.core.state.models import OverwriteState
from src.utils.async_utils import create_safe_task

from .constants import MAX_CONCURRENT_OPS
from .helpers import log_op_failure
from .platform import ChannelInfo, GuildPlatform, MemberInfo, RoleInfo


MemberLockResult = Tuple[bool, Optional[str], Optional[List[int]]]
ChannelLockResult = Tuple[bool, Optional[str], Optional[OverwriteState], Dict[int, OverwriteState]]


# =============================================================================
# Roles
# =============================================================================

async def ensure_role(
    platform: GuildPlatform,
    roles: Dict[int, RoleInfo],
    stored_id: Optional[int],
    name: str,
    permissions: int,
    reason: str,
    reset_permissions: bool = False,
) -> Tuple[Optional[RoleInfo], bool, Optional[str]]:
    """
    Reuse a role by stored id, else by name, else create it.

    Args:
        platform: Guild platform.
        roles: Current guild roles by id.
        stored_id: Role id remembered from a previous cycle.
        name: Role name to look up or create.
        permissions: Permission bits for a created role.
        reason: Audit log reason.
        reset_permissions: Also force `permissions` onto a reused role.

    Returns:
        Tuple of (role, created, error_message).
    """
    role = roles.get(stored_id) if stored_id else None
    if role is None:
        role = next((r for r in roles.values() if r.name == name and not r.managed), None)

    try:
        if role is None:
            role = await platform.create_role(name, permissions, reason)
            roles[role.id] = role
            logger.debug("Role Created", [("Role", f"{role.name} ({role.id})")])
            return role, True, None

        if reset_permissions and role.permissions != permissions:
            await platform.set_role_permissions(role.id, permissions, reason)
            role.permissions = permissions
        return role, False, None

    except Exception as e:
        return role, False, log_op_failure(e, "Role Setup", name)


# =============================================================================
# Maintenance Channel
# =============================================================================

async def ensure_channel(
    platform: GuildPlatform,
    stored_id: Optional[int],
    name: str,
    reason: str,
) -> Tuple[Optional[ChannelInfo], bool, Optional[str]]:
    """
    Reuse the maintenance channel by stored id, else by name, else create it.

    Returns:
        Tuple of (channel, created, error_message).
    """
    try:
        channel = await platform.get_channel(stored_id) if stored_id else None
        if channel is None:
            channels = await platform.fetch_channels()
            channel = next(
                (c for c in channels if c.name == name and c.is_text and not c.is_thread),
                None,
            )
        if channel is not None:
            return channel, False, None

        channel = await platform.create_text_channel(name, MAINTENANCE_CHANNEL_TOPIC, reason)
        logger.debug("Maintenance Channel Created", [("Channel", f"#{channel.name} ({channel.id})")])
        return channel, True, None

    except Exception as e:
        return None, False, log_op_failure(e, "Maintenance Channel Setup", f"#{name}")


async def configure_channel(
    platform: GuildPlatform,
    channel: ChannelInfo,
    role_ids: Sequence[int],
    slowmode_seconds: int,
    reason: str,
) -> List[str]:
    """
    Let each role view and post in the maintenance channel, with slow-mode.

    Returns:
        Error messages, empty on full success.
    """
    errors: List[str] = []
    target = f"#{channel.name}"

    for role_id in role_ids:
        try:
            await platform.set_maintenance_access(channel.id, role_id, reason)
        except Exception as e:
            errors.append(log_op_failure(e, "Channel Access", target, [("Role ID", str(role_id))]))

    try:
        await platform.set_slowmode(channel.id, slowmode_seconds, reason)
    except Exception as e:
        errors.append(log_op_failure(e, "Channel Slowmode", target))

    return errors


# =============================================================================
# Members
# =============================================================================

async def lock_member(
    platform: GuildPlatform,
    member: MemberInfo,
    default_role_id: int,
    temp_role_id: Optional[int],
    reason: str,
) -> MemberLockResult:
    """
    Swap a member's roles for the temp role.

    Returns:
        Tuple of (success, error_message, snapshot_roles).
    """
    snapshot = [r for r in dict.fromkeys(member.role_ids) if r not in (default_role_id, temp_role_id)]
    target_roles = [temp_role_id] if temp_role_id else []

    try:
        await platform.set_member_roles(member.id, target_roles, reason)
        return True, None, snapshot
    except Exception as e:
        return False, log_op_failure(e, "Member Lock", f"{member.name} ({member.id})"), None


async def lock_all_members(
    platform: GuildPlatform,
    members: Sequence[MemberInfo],
    default_role_id: int,
    temp_role_id: Optional[int],
    reason: str,
) -> List[Tuple[MemberInfo, MemberLockResult]]:
    """Lock members concurrently; results come back in input order."""
    semaphore = asyncio.Semaphore(MAX_CONCURRENT_OPS)

    async def lock_with_semaphore(member: MemberInfo) -> MemberLockResult:
        async with semaphore:
            return await lock_member(platform, member, default_role_id, temp_role_id, reason)

    tasks = [
        create_safe_task(lock_with_semaphore(m), f"Lock Member {m.id}")
        for m in members
    ]
    results = await asyncio.gather(*tasks) if tasks else []

    paired: List[Tuple[MemberInfo, MemberLockResult]] = []
    for member, res in zip(members, results):
        if res is None:
            res = (False, f"Member Lock failed for {member.name} ({member.id}): task error", None)
        paired.append((member, res))
    return paired


# =============================================================================
# Channels
# =============================================================================

async def lock_channel(
    platform: GuildPlatform,
    channel: ChannelInfo,
    default_role_id: int,
    tracked_role_ids: Sequence[int],
    bypass_role_id: Optional[int],
    reason: str,
) -> ChannelLockResult:
    """
    Record prior view overwrites, then hide the channel from @everyone.

    The bypass role gets an explicit view allow so its holders keep access.

    Returns:
        Tuple of (success, error_message, prior_default_state,
        prior_state_per_tracked_role).
    """
    target = f"#{channel.name}"
    role_states: Dict[int, OverwriteState] = {}

    try:
        prior = await platform.get_view_overwrite(channel.id, default_role_id)
        for role_id in tracked_role_ids:
            role_states[role_id] = await platform.get_view_overwrite(channel.id, role_id)

        await platform.set_view_overwrite(channel.id, default_role_id, OverwriteState.DENY, reason)
    except Exception as e:
        return False, log_op_failure(e, "Channel Lock", target), None, role_states

    if bypass_role_id:
        try:
            await platform.set_view_overwrite(channel.id, bypass_role_id, OverwriteState.ALLOW, reason)
        except Exception as e:
            # Default role is already denied, so the channel still counts as locked
            return True, log_op_failure(e, "Bypass Access", target), prior, role_states

    logger.debug("Channel Locked", [
        ("Channel", target),
        ("ID", str(channel.id)),
        ("Prior", prior.value),
    ])
    return True, None, prior, role_states


async def lock_all_channels(
    platform: GuildPlatform,
    channels: Sequence[ChannelInfo],
    default_role_id: int,
    tracked_role_ids: Sequence[int],
    bypass_role_id: Optional[int],
    reason: str,
) -> List[Tuple[ChannelInfo, ChannelLockResult]]:
    """Lock channels concurrently; results come back in input order."""
    semaphore = asyncio.Semaphore(MAX_CONCURRENT_OPS)

    async def lock_with_semaphore(channel: ChannelInfo) -> ChannelLockResult:
        async with semaphore:
            return await lock_channel(
                platform, channel, default_role_id, tracked_role_ids, bypass_role_id, reason
            )

    tasks = [
        create_safe_task(lock_with_semaphore(c), f"Lock #{c.name}")
        for c in channels
    ]
    results = await asyncio.gather(*tasks) if tasks else []

    paired: List[Tuple[ChannelInfo, ChannelLockResult]] = []
    for channel, res in zip(channels, results):
        if res is None:
            res = (False, f"Channel Lock failed for #{channel.name}: task error", None, {})
        paired.append((channel, res))
    return paired


def is_lockable(channel: ChannelInfo, maintenance_channel_id: Optional[int]) -> bool:
    """Manageable, not a thread, not the maintenance channel."""
    return channel.manageable and not channel.is_thread and channel.id != maintenance_channel_id


__all__ = [
    "ensure_role",
    "ensure_channel",
    "configure_channel",
    "lock_member",
    "lock_all_members",
    "lock_channel",
    "lock_all_channels",
    "is_lockable",
]
