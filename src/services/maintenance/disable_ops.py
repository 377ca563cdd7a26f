"""
LockBot - Maintenance Disable Operations
========================================

Per-entity operations used when turning maintenance off.

DESIGN:
    Mirrors enable_ops: one entity per call, (success, error, ...) tuples
    instead of exceptions, concurrent batches gathered in input order.
    Role resolution for members is a pure function so the missing-role
    policy can be tested without a platform.
"""

import asyncio
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from src.core.logger import logger
from src.core.state.models import MemberRoleSnapshot, OverwriteState
from src.utils.async_utils import create_safe_task

from .constants import MAX_CONCURRENT_OPS, REMAP_REMOVE, REMAP_REPLACE, RoleRemap
from .helpers import log_op_failure, unique
from .platform import ChannelInfo, GuildPlatform


# (success, error, notes, substitutions, member_left)
MemberRestoreResult = Tuple[bool, Optional[str], List[str], Dict[int, int], bool]


# =============================================================================
# Role Resolution
# =============================================================================

def resolve_member_roles(
    member_id: int,
    snapshot_roles: Sequence[int],
    existing_role_ids: Set[int],
    role_mapping: Mapping[int, RoleRemap],
) -> Tuple[List[int], Dict[int, int], List[str]]:
    """
    Decide which roles a member gets back.

    Policy per snapshot role:
        exists                                  -> keep
        missing, mapped to replace, target ok   -> substitute
        missing, mapped to remove               -> drop
        anything else                           -> drop

    Returns:
        Tuple of (resolved_role_ids, substitutions old->new, log_notes).
    """
    resolved: List[int] = []
    substitutions: Dict[int, int] = {}
    notes: List[str] = []

    for role_id in snapshot_roles:
        if role_id in existing_role_ids:
            resolved.append(role_id)
            continue

        remap = role_mapping.get(role_id)
        if remap and remap.action == REMAP_REPLACE and remap.target_role_id in existing_role_ids:
            resolved.append(remap.target_role_id)
            substitutions[role_id] = remap.target_role_id
            notes.append(
                f"Member {member_id}: replaced missing role {role_id} with {remap.target_role_id}"
            )
        elif remap and remap.action == REMAP_REMOVE:
            notes.append(f"Member {member_id}: removed missing role {role_id} per mapping")
        elif remap and remap.action == REMAP_REPLACE:
            notes.append(
                f"Member {member_id}: replacement role {remap.target_role_id} for missing role "
                f"{role_id} does not exist, dropped"
            )
        else:
            notes.append(f"Member {member_id}: role {role_id} no longer exists, dropped")

    return unique(resolved), substitutions, notes


# =============================================================================
# Members
# =============================================================================

async def restore_member(
    platform: GuildPlatform,
    member_id: int,
    snapshot: MemberRoleSnapshot,
    existing_role_ids: Set[int],
    role_mapping: Mapping[int, RoleRemap],
    reason: str,
) -> MemberRestoreResult:
    """
    Set a member's roles to the resolved snapshot roles.

    Anything picked up during the window, the temp role included, is
    dropped. Integration-managed roles are left to the platform.
    """
    resolved, substitutions, notes = resolve_member_roles(
        member_id, snapshot.roles, existing_role_ids, role_mapping
    )

    try:
        member = await platform.fetch_member(member_id)
        if member is None:
            return False, None, notes, substitutions, True

        await platform.set_member_roles(member_id, resolved, reason)
        return True, None, notes, substitutions, False

    except Exception as e:
        error = log_op_failure(e, "Member Restore", f"member ({member_id})")
        return False, error, notes, substitutions, False


async def restore_all_members(
    platform: GuildPlatform,
    snapshots: Mapping[int, MemberRoleSnapshot],
    existing_role_ids: Set[int],
    role_mapping: Mapping[int, RoleRemap],
    reason: str,
) -> List[Tuple[int, MemberRestoreResult]]:
    """Restore members concurrently; results come back in snapshot order."""
    semaphore = asyncio.Semaphore(MAX_CONCURRENT_OPS)
    member_ids = list(snapshots)

    async def restore_with_semaphore(member_id: int) -> MemberRestoreResult:
        async with semaphore:
            return await restore_member(
                platform, member_id, snapshots[member_id], existing_role_ids,
                role_mapping, reason,
            )

    tasks = [
        create_safe_task(restore_with_semaphore(mid), f"Restore Member {mid}")
        for mid in member_ids
    ]
    results = await asyncio.gather(*tasks) if tasks else []

    paired: List[Tuple[int, MemberRestoreResult]] = []
    for member_id, res in zip(member_ids, results):
        if res is None:
            res = (False, f"Member Restore failed for member ({member_id}): task error", [], {}, False)
        paired.append((member_id, res))
    return paired


async def strip_temp_role(
    platform: GuildPlatform,
    temp_role_id: int,
    skip_member_ids: Set[int],
    reason: str,
) -> List[str]:
    """
    Remove the temp role from anyone still holding it.

    Catches members who joined during the window and members whose restore
    failed. Returns error messages.
    """
    errors: List[str] = []
    try:
        members = await platform.fetch_members()
    except Exception as e:
        return [log_op_failure(e, "Temp Role Cleanup", "member list")]

    for member in members:
        if member.id in skip_member_ids or temp_role_id not in member.role_ids:
            continue
        try:
            remaining = [r for r in member.role_ids if r != temp_role_id]
            await platform.set_member_roles(member.id, remaining, reason)
        except Exception as e:
            errors.append(log_op_failure(e, "Temp Role Cleanup", f"{member.name} ({member.id})"))

    return errors


# =============================================================================
# Channels
# =============================================================================

async def restore_overwrite(
    platform: GuildPlatform,
    channel_id: int,
    role_id: int,
    state: OverwriteState,
    reason: str,
) -> Tuple[bool, Optional[str]]:
    """Put one role's view flag in one channel back to `state`."""
    try:
        await platform.set_view_overwrite(channel_id, role_id, state, reason)
        return True, None
    except Exception as e:
        return False, log_op_failure(
            e, "Overwrite Restore", f"channel ({channel_id})", [("Role ID", str(role_id))]
        )


async def restore_all_overwrites(
    platform: GuildPlatform,
    restores: Sequence[Tuple[int, int, OverwriteState]],
    reason: str,
) -> List[Tuple[bool, Optional[str]]]:
    """Restore (channel_id, role_id, state) triples concurrently."""
    semaphore = asyncio.Semaphore(MAX_CONCURRENT_OPS)

    async def restore_with_semaphore(channel_id: int, role_id: int, state: OverwriteState):
        async with semaphore:
            return await restore_overwrite(platform, channel_id, role_id, state, reason)

    tasks = [
        create_safe_task(restore_with_semaphore(cid, rid, st), f"Restore {cid}/{rid}")
        for cid, rid, st in restores
    ]
    results = await asyncio.gather(*tasks) if tasks else []
    return [res if res is not None else (False, "Overwrite Restore: task error") for res in results]


async def release_maintenance_channel(
    platform: GuildPlatform,
    channel: ChannelInfo,
    default_role_id: int,
    prior_default: Optional[OverwriteState],
    temp_role_id: Optional[int],
    bypass_role_id: Optional[int],
    reason: str,
) -> List[str]:
    """
    Undo what maintenance did to a pre-existing maintenance channel.

    Strips slow-mode and the temp/bypass overwrites, clears the access flags
    given to @everyone, then puts @everyone's view flag back as it was.
    """
    errors: List[str] = []
    target = f"#{channel.name}"

    try:
        await platform.set_slowmode(channel.id, 0, reason)
    except Exception as e:
        errors.append(log_op_failure(e, "Channel Slowmode", target))

    for role_id in (temp_role_id, bypass_role_id):
        if not role_id:
            continue
        try:
            await platform.remove_overwrite(channel.id, role_id, reason)
        except Exception as e:
            errors.append(log_op_failure(e, "Overwrite Removal", target, [("Role ID", str(role_id))]))

    try:
        await platform.clear_maintenance_access(channel.id, default_role_id, reason)
        if prior_default is not None:
            await platform.set_view_overwrite(channel.id, default_role_id, prior_default, reason)
    except Exception as e:
        errors.append(log_op_failure(e, "Channel Access Reset", target))

    if not errors:
        logger.debug("Maintenance Channel Released", [("Channel", target)])
    return errors


__all__ = [
    "resolve_member_roles",
    "restore_member",
    "restore_all_members",
    "strip_temp_role",
    "restore_overwrite",
    "restore_all_overwrites",
    "release_maintenance_channel",
]
