"""
LockBot - State Models
======================

Dataclasses for the per-guild maintenance state document.

DESIGN:
    GuildState is the unit of persistence and locking. Everything the
    disable path needs to undo an enable lives in here, so the bot can be
    restarted mid-window without losing the ability to restore.

    Serialization keeps ids as strings in JSON keys (JSON objects only have
    string keys) and as plain integers in values. from_dict() tolerates
    unknown keys and fills in missing ones, so older documents keep loading
    after fields are added.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from src.core.constants import MAX_STATE_LOG_ENTRIES


# =============================================================================
# Enums
# =============================================================================

class OverwriteState(str, Enum):
    """Prior state of a role's view flag in a channel overwrite."""

    ALLOW = "allow"
    DENY = "deny"
    NEUTRAL = "neutral"


# =============================================================================
# Helpers
# =============================================================================

def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_overwrite(value: Any) -> Optional[OverwriteState]:
    if value is None:
        return None
    try:
        return OverwriteState(value)
    except ValueError:
        return None


# =============================================================================
# Snapshot Records
# =============================================================================

@dataclass
class MemberRoleSnapshot:
    """Roles a member held right before maintenance replaced them."""

    roles: List[int] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        # Ordered and unique
        self.roles = list(dict.fromkeys(self.roles))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roles": [str(role_id) for role_id in self.roles],
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemberRoleSnapshot":
        roles = [r for r in (_to_int(v) for v in data.get("roles") or []) if r is not None]
        return cls(roles=roles, timestamp=_parse_datetime(data.get("timestamp")) or utcnow())


@dataclass
class RoleChannelSnapshot:
    """A role's name and its view overwrite state in every locked channel."""

    name: str = ""
    channels: Dict[int, OverwriteState] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "channels": {str(cid): state.value for cid, state in self.channels.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoleChannelSnapshot":
        channels: Dict[int, OverwriteState] = {}
        for key, value in (data.get("channels") or {}).items():
            channel_id = _to_int(key)
            state = _parse_overwrite(value)
            if channel_id is not None and state is not None:
                channels[channel_id] = state
        return cls(name=data.get("name") or "", channels=channels)


@dataclass
class Announcement:
    """Summary of the last message posted to the maintenance channel."""

    content: Optional[str] = None
    title: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)
    author_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "title": self.title,
            "timestamp": self.timestamp.isoformat(),
            "author_id": str(self.author_id) if self.author_id is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Announcement":
        return cls(
            content=data.get("content"),
            title=data.get("title"),
            timestamp=_parse_datetime(data.get("timestamp")) or utcnow(),
            author_id=_to_int(data.get("author_id")),
        )


# =============================================================================
# Guild State
# =============================================================================

@dataclass
class GuildState:
    """
    Maintenance state for one guild.

    Invariants:
        enabled is False -> every snapshot map is empty and the timeout
        fields are None.
        should_delete_* is True only for resources LockBot created.
    """

    enabled: bool = False

    maintenance_channel_id: Optional[int] = None
    should_delete_maintenance_channel: bool = False
    maintenance_temp_role_id: Optional[int] = None
    should_delete_temp_role: bool = False
    maintenance_bypass_role_id: Optional[int] = None
    should_delete_bypass_role: bool = False

    member_role_snapshots: Dict[int, MemberRoleSnapshot] = field(default_factory=dict)
    channel_permission_snapshots: Dict[int, OverwriteState] = field(default_factory=dict)
    role_channel_snapshots: Dict[int, RoleChannelSnapshot] = field(default_factory=dict)
    everyone_view_permission: Optional[OverwriteState] = None

    timeout_at: Optional[datetime] = None
    timeout_set_by: Optional[int] = None

    last_announcement: Optional[Announcement] = None
    logs: List[str] = field(default_factory=list)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def default(cls) -> "GuildState":
        return cls()

    def copy(self) -> "GuildState":
        """Deep copy, so callers can mutate freely."""
        return copy.deepcopy(self)

    # -------------------------------------------------------------------------
    # Mutation Helpers
    # -------------------------------------------------------------------------

    def add_log(self, message: str) -> None:
        """Append a timestamped line, dropping the oldest past the cap."""
        self.logs.append(f"[{utcnow().isoformat()}] {message}")
        if len(self.logs) > MAX_STATE_LOG_ENTRIES:
            del self.logs[: len(self.logs) - MAX_STATE_LOG_ENTRIES]

    def clear_snapshots(self) -> None:
        self.member_role_snapshots = {}
        self.channel_permission_snapshots = {}
        self.role_channel_snapshots = {}
        self.everyone_view_permission = None
        self.timeout_at = None
        self.timeout_set_by = None

    def snapshot_role_ids(self) -> List[int]:
        """Union of every role id captured in member snapshots, in first-seen order."""
        seen: Dict[int, None] = {}
        for snapshot in self.member_role_snapshots.values():
            for role_id in snapshot.roles:
                seen.setdefault(role_id, None)
        return list(seen)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        def _id(value: Optional[int]) -> Optional[str]:
            return str(value) if value is not None else None

        return {
            "enabled": self.enabled,
            "maintenance_channel_id": _id(self.maintenance_channel_id),
            "should_delete_maintenance_channel": self.should_delete_maintenance_channel,
            "maintenance_temp_role_id": _id(self.maintenance_temp_role_id),
            "should_delete_temp_role": self.should_delete_temp_role,
            "maintenance_bypass_role_id": _id(self.maintenance_bypass_role_id),
            "should_delete_bypass_role": self.should_delete_bypass_role,
            "member_role_snapshots": {
                str(mid): snap.to_dict() for mid, snap in self.member_role_snapshots.items()
            },
            "channel_permission_snapshots": {
                str(cid): state.value for cid, state in self.channel_permission_snapshots.items()
            },
            "role_channel_snapshots": {
                str(rid): snap.to_dict() for rid, snap in self.role_channel_snapshots.items()
            },
            "everyone_view_permission": (
                self.everyone_view_permission.value if self.everyone_view_permission else None
            ),
            "timeout_at": self.timeout_at.isoformat() if self.timeout_at else None,
            "timeout_set_by": _id(self.timeout_set_by),
            "last_announcement": self.last_announcement.to_dict() if self.last_announcement else None,
            "logs": list(self.logs),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GuildState":
        """Build a state from a stored record; unknown keys are ignored."""
        if not data:
            return cls.default()

        member_snapshots: Dict[int, MemberRoleSnapshot] = {}
        for key, value in (data.get("member_role_snapshots") or {}).items():
            member_id = _to_int(key)
            if member_id is not None and isinstance(value, dict):
                member_snapshots[member_id] = MemberRoleSnapshot.from_dict(value)

        channel_snapshots: Dict[int, OverwriteState] = {}
        for key, value in (data.get("channel_permission_snapshots") or {}).items():
            channel_id = _to_int(key)
            state = _parse_overwrite(value)
            if channel_id is not None and state is not None:
                channel_snapshots[channel_id] = state

        role_snapshots: Dict[int, RoleChannelSnapshot] = {}
        for key, value in (data.get("role_channel_snapshots") or {}).items():
            role_id = _to_int(key)
            if role_id is not None and isinstance(value, dict):
                role_snapshots[role_id] = RoleChannelSnapshot.from_dict(value)

        announcement = data.get("last_announcement")
        logs = [str(line) for line in (data.get("logs") or [])][-MAX_STATE_LOG_ENTRIES:]

        return cls(
            enabled=bool(data.get("enabled", False)),
            maintenance_channel_id=_to_int(data.get("maintenance_channel_id")),
            should_delete_maintenance_channel=bool(data.get("should_delete_maintenance_channel", False)),
            maintenance_temp_role_id=_to_int(data.get("maintenance_temp_role_id")),
            should_delete_temp_role=bool(data.get("should_delete_temp_role", False)),
            maintenance_bypass_role_id=_to_int(data.get("maintenance_bypass_role_id")),
            should_delete_bypass_role=bool(data.get("should_delete_bypass_role", False)),
            member_role_snapshots=member_snapshots,
            channel_permission_snapshots=channel_snapshots,
            role_channel_snapshots=role_snapshots,
            everyone_view_permission=_parse_overwrite(data.get("everyone_view_permission")),
            timeout_at=_parse_datetime(data.get("timeout_at")),
            timeout_set_by=_to_int(data.get("timeout_set_by")),
            last_announcement=Announcement.from_dict(announcement) if isinstance(announcement, dict) else None,
            logs=logs,
        )


__all__ = [
    "OverwriteState",
    "MemberRoleSnapshot",
    "RoleChannelSnapshot",
    "Announcement",
    "GuildState",
    "utcnow",
]
