"""
LockBot - Core Package
======================

Core components: configuration, logging, errors, persisted state and
health monitoring.

DESIGN:
    Core modules are singletons or global instances so state is consistent
    across the application:
    - get_config() returns the same Config instance
    - logger is a global TreeLogger instance
"""

# =============================================================================
# Core Imports
# =============================================================================

from .config import (
    Config,
    ConfigValidationError,
    EmbedColors,
    NY_TZ,
    get_config,
)

from .errors import ErrorCode, MaintenanceError, StateStoreError

from .logger import logger, TreeLogger


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "NY_TZ",
    "get_config",
    "ErrorCode",
    "MaintenanceError",
    "StateStoreError",
    "logger",
    "TreeLogger",
]
