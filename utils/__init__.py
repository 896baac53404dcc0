"""Shared utilities package for cloud-cli"""

from .storage import CredentialStore
from .debug_console import (
    DebugCapturingConsole,
    configure_logging,
    create_debug_console,
    setup_debug_logger,
)

__all__ = [
    "CredentialStore",
    "DebugCapturingConsole",
    "configure_logging",
    "create_debug_console",
    "setup_debug_logger",
]
