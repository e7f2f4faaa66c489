"""
Core module initialization.
Exports configuration and logging utilities.
"""

from menu_admin.core.config import (
    BackendProvider,
    EnvironmentMode,
    Settings,
    get_settings,
    setup_logging,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "BackendProvider",
]
