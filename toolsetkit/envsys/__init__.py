"""
Per-OS environment persistence (environment variables, PATH, installed
programs list).
"""

import os

from toolsetkit.envsys.base import DryRunEnvPlatform, EnvBinding, EnvPlatform


def get_env_platform(dry_run: bool = False) -> EnvPlatform:
    """
    Get the EnvPlatform for the running OS.

    Args:
        dry_run: Return a platform that only logs changes
    """
    if dry_run:
        return DryRunEnvPlatform()

    if os.name == "nt":
        from toolsetkit.envsys.windows import WindowsEnvPlatform

        return WindowsEnvPlatform()

    from toolsetkit.envsys.unix import UnixEnvPlatform

    return UnixEnvPlatform()


__all__ = [
    "EnvPlatform",
    "EnvBinding",
    "DryRunEnvPlatform",
    "get_env_platform",
]
