"""
Configuration: install session settings, toolset manifests, environment
bindings and the package manager's config file.
"""

from .install_config import (
    InstallConfiguration,
    UninstallConfiguration,
    DEFAULT_DIST_SERVER,
    DEFAULT_UPDATE_ROOT,
)

from .manifest import (
    ToolsetManifest,
    ToolchainSpec,
    Proxy,
    ToolKind,
    ToolDescriptor,
    Version,
    VersionDetailed,
    Git,
    LocalPath,
    Remote,
    load_manifest,
)

from .environment import compose_env_vars, MANAGED_VARS, PERSISTED_VARS

from .pkg_config import write_pkg_config

__all__ = [
    "InstallConfiguration",
    "UninstallConfiguration",
    "DEFAULT_DIST_SERVER",
    "DEFAULT_UPDATE_ROOT",
    "ToolsetManifest",
    "ToolchainSpec",
    "Proxy",
    "ToolKind",
    "ToolDescriptor",
    "Version",
    "VersionDetailed",
    "Git",
    "LocalPath",
    "Remote",
    "load_manifest",
    "compose_env_vars",
    "MANAGED_VARS",
    "PERSISTED_VARS",
    "write_pkg_config",
]
