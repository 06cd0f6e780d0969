"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from kds.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from kds.core.exceptions import (
    OrderError,
    ValidationError,
    NotFoundError,
    InvalidTransitionError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "OrderError",
    "ValidationError",
    "NotFoundError",
    "InvalidTransitionError",
    "StorageReadError",
    "StorageWriteError",
]
