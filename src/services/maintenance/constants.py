"""
LockBot - Maintenance Constants
===============================

Constants and data classes shared by the maintenance engine and its ops.
"""

from dataclasses import dataclass, field
from typing import List, Optional


# Maximum concurrent member/channel operations (Discord rate limit friendly)
MAX_CONCURRENT_OPS: int = 10

# Audit log reasons
REASON_ENABLE = "Maintenance mode enabled"
REASON_DISABLE = "Maintenance mode disabled"
REASON_NEW_CHANNEL = "Maintenance mode active (new channel)"
REASON_RECREATE = "Maintenance channel recreated"
REASON_JOIN = "Maintenance mode active"

# Role mapping actions
REMAP_REPLACE = "replace"
REMAP_REMOVE = "remove"


@dataclass
class RoleRemap:
    """What to do with a snapshot role that no longer exists at disable time."""
    action: str
    target_role_id: Optional[int] = None


@dataclass
class TransitionResult:
    """Counts and errors collected across one enable/disable batch."""
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    errors: List[str] = field(default_factory=list)

    def record(self, success: bool, error: Optional[str]) -> None:
        if success:
            self.success_count += 1
        else:
            self.failed_count += 1
            if error:
                self.errors.append(error)


__all__ = [
    "MAX_CONCURRENT_OPS",
    "REASON_ENABLE",
    "REASON_DISABLE",
    "REASON_NEW_CHANNEL",
    "REASON_RECREATE",
    "REASON_JOIN",
    "REMAP_REPLACE",
    "REMAP_REMOVE",
    "RoleRemap",
    "TransitionResult",
]
