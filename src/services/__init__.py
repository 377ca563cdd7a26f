"""
LockBot - Services Package
==========================

Long-lived services owned by the bot.

DESIGN:
    Services are standalone classes created once in bot.py. They should:
    - Be async-compatible for non-blocking I/O
    - Handle their own per-entity error cases
    - Log through the global tree logger

Available Services:
    MaintenanceService: Maintenance mode, its state, timers and prompts
    PendingActionRegistry: Confirmation prompts waiting for a button press
    AutoDisableScheduler: Per-guild auto-disable timers
"""

# =============================================================================
# Service Imports
# =============================================================================

from .auto_disable import AutoDisableScheduler
from .pending_actions import ActionType, PendingAction, PendingActionRegistry
from .maintenance import MaintenanceService


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "AutoDisableScheduler",
    "ActionType",
    "PendingAction",
    "PendingActionRegistry",
    "MaintenanceService",
]
