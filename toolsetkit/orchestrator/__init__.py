"""
Install and uninstall sessions.
"""

from .install import (
    InstallReport,
    InstallState,
    Installer,
    install_managed_tool,
    managed_install_args,
)
from .uninstall import (
    UninstallState,
    Uninstaller,
    locate_install_root,
    validate_install_root,
)

__all__ = [
    "InstallReport",
    "InstallState",
    "Installer",
    "install_managed_tool",
    "managed_install_args",
    "UninstallState",
    "Uninstaller",
    "locate_install_root",
    "validate_install_root",
]
