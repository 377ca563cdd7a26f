"""
LockBot - Error System
======================

Centralized error codes and exceptions for maintenance operations.

DESIGN:
    Validation and precondition failures carry a stable ErrorCode so the
    command layer can map them to user-facing text without string matching.
    Storage failures use their own type because they are fatal: the caller
    must not retry or fabricate state.
"""

from enum import Enum
from typing import Dict, Optional


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(str, Enum):
    """
    Error codes raised by the maintenance engine.

    Categories:
    - Validation: rejected before any mutation
    - Precondition: server is not in a state where the action makes sense
    """

    # Validation
    EMPTY_ANNOUNCEMENT = "EMPTY_ANNOUNCEMENT"
    ANNOUNCEMENT_TOO_LONG = "ANNOUNCEMENT_TOO_LONG"
    INVALID_ROLE_MAPPING = "INVALID_ROLE_MAPPING"

    # Precondition
    MAINTENANCE_NOT_ENABLED = "MAINTENANCE_NOT_ENABLED"
    MAINTENANCE_CHANNEL_INVALID = "MAINTENANCE_CHANNEL_INVALID"


# =============================================================================
# Error Messages
# =============================================================================

ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.EMPTY_ANNOUNCEMENT: "Please provide a message to post.",
    ErrorCode.ANNOUNCEMENT_TOO_LONG: "Maintenance updates must be 4000 characters or fewer.",
    ErrorCode.INVALID_ROLE_MAPPING: "Role mapping must look like `old_id:new_id,old_id:remove`.",
    ErrorCode.MAINTENANCE_NOT_ENABLED: "Maintenance mode is not enabled. Enable it before sending messages.",
    ErrorCode.MAINTENANCE_CHANNEL_INVALID: "Maintenance channel is not a text channel.",
}


# =============================================================================
# Exceptions
# =============================================================================

class MaintenanceError(Exception):
    """
    Raised for validation and precondition failures.

    Usage:
        raise MaintenanceError(ErrorCode.EMPTY_ANNOUNCEMENT)
        raise MaintenanceError(ErrorCode.INVALID_ROLE_MAPPING, "Unknown action: keep")
    """

    def __init__(self, code: ErrorCode, message: Optional[str] = None) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code.value)
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"MaintenanceError(code={self.code.value!r}, message={self.message!r})"


class StateStoreError(Exception):
    """Raised when the persisted state document cannot be read or parsed."""

    pass


__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "MaintenanceError",
    "StateStoreError",
]
