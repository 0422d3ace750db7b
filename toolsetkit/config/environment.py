"""
Environment variables persisted for an installation.

The toolchain manager and package manager locate their homes and download
servers through environment variables; compose_env_vars derives the ordered
list of bindings that the orchestrator hands to the EnvPlatform.
"""

import os
from pathlib import Path
from typing import List, Optional, Tuple

from toolsetkit.core.exceptions import InvalidInstallDirError

DIST_SERVER = "DIST_SERVER"
UPDATE_ROOT = "UPDATE_ROOT"
PKG_HOME = "PKG_HOME"
TOOLCHAIN_HOME = "TOOLCHAIN_HOME"

# Variables owned by an installation.
MANAGED_VARS = (DIST_SERVER, UPDATE_ROOT, PKG_HOME, TOOLCHAIN_HOME)

HTTP_PROXY = "http_proxy"
HTTPS_PROXY = "https_proxy"
NO_PROXY = "no_proxy"
PROXY_VARS = (HTTP_PROXY, HTTPS_PROXY, NO_PROXY)

# Everything compose_env_vars may persist; removed again on uninstall.
PERSISTED_VARS = MANAGED_VARS + PROXY_VARS


def path_to_str(path: Path) -> str:
    """
    Convert ``path`` to text the host environment can hold.

    Raises:
        InvalidInstallDirError: If the path is not representable
    """
    text = str(path)
    try:
        os.fsencode(text)
        text.encode("utf-8")
    except UnicodeError as e:
        raise InvalidInstallDirError(
            f"path '{text!r}' cannot be stored in an environment variable "
            "as it contains invalid characters"
        ) from e
    return text


def compose_env_vars(config, proxy=None) -> List[Tuple[str, str]]:
    """
    Derive the environment bindings to persist.

    Args:
        config: InstallConfiguration of the session
        proxy: Optional manifest proxy block

    Returns:
        Ordered ``(name, value)`` pairs: DIST_SERVER, UPDATE_ROOT, PKG_HOME,
        TOOLCHAIN_HOME, then any of http_proxy, https_proxy, no_proxy

    Raises:
        InvalidInstallDirError: If a path cannot be represented as text

    Example:
        >>> dict(compose_env_vars(config))["PKG_HOME"]
        '/opt/tools/.pkg'
    """
    pkg_home = path_to_str(config.layout.pkg_home())
    toolchain_home = path_to_str(config.layout.toolchain_home())

    env_vars = [
        (DIST_SERVER, str(config.dist_server)),
        (UPDATE_ROOT, str(config.update_root)),
        (PKG_HOME, pkg_home),
        (TOOLCHAIN_HOME, toolchain_home),
    ]

    if proxy is not None:
        if proxy.http:
            env_vars.append((HTTP_PROXY, proxy.http))
        if proxy.https:
            env_vars.append((HTTPS_PROXY, proxy.https))
        if proxy.no_proxy:
            env_vars.append((NO_PROXY, proxy.no_proxy))

    return env_vars


def env_var_names(bindings) -> Tuple[str, ...]:
    return tuple(name for name, _ in bindings)
