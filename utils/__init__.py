"""Shared utilities package for Dropbin"""

from .storage import SettingsStore
from .secrets import KeyringSecretStore, get_access_token_name, get_refresh_token_name
from .debug_console import (
    DebugCapturingConsole,
    create_debug_console,
    setup_debug_logging,
    setup_logging,
)

__all__ = [
    "SettingsStore",
    "KeyringSecretStore",
    "get_access_token_name",
    "get_refresh_token_name",
    "DebugCapturingConsole",
    "create_debug_console",
    "setup_debug_logging",
    "setup_logging",
]
