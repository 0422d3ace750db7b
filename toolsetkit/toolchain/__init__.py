"""
Toolchain bootstrap: the toolchain manager and its default toolchain.
"""

from .bootstrap import (
    MANAGER_INIT_PROGRAM,
    PKG_PROGRAM,
    install_toolchain,
    manager_init_url,
)

__all__ = [
    "MANAGER_INIT_PROGRAM",
    "PKG_PROGRAM",
    "install_toolchain",
    "manager_init_url",
]
