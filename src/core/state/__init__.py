"""
LockBot - State Package
=======================

Persisted maintenance state: dataclass models and the JSON store.
"""

from .models import (
    Announcement,
    GuildState,
    MemberRoleSnapshot,
    OverwriteState,
    RoleChannelSnapshot,
    utcnow,
)
from .store import StateStore


__all__ = [
    "Announcement",
    "GuildState",
    "MemberRoleSnapshot",
    "OverwriteState",
    "RoleChannelSnapshot",
    "StateStore",
    "utcnow",
]
