"""
Core functionality for ToolsetKit.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    PathLayout,
    DirectoryError,
    DirectoryCreationError,
    default_install_dir,
    get_home_dir,
    is_install_root,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    host_target,
    clear_platform_cache,
)

from .progress import ProgressTicket

from .process import Executor, RecordingExecutor

from .exceptions import (
    ToolsetKitError,
    InvalidInstallDirError,
    MissingSourceError,
    UnusableUrlError,
    ManifestError,
    FetchFailedError,
    ExtractFailedError,
    CopyFailedError,
    SubprocessFailedError,
    NoCustomRecipeError,
    ToolInstallFailedError,
    UntrustedRootError,
    InstallLockedError,
    EnvPersistError,
    RemoveFailedError,
)

__all__ = [
    "PathLayout",
    "DirectoryError",
    "DirectoryCreationError",
    "default_install_dir",
    "get_home_dir",
    "is_install_root",
    "PlatformInfo",
    "detect_platform",
    "host_target",
    "clear_platform_cache",
    "ProgressTicket",
    "Executor",
    "RecordingExecutor",
    "ToolsetKitError",
    "InvalidInstallDirError",
    "MissingSourceError",
    "UnusableUrlError",
    "ManifestError",
    "FetchFailedError",
    "ExtractFailedError",
    "CopyFailedError",
    "SubprocessFailedError",
    "NoCustomRecipeError",
    "ToolInstallFailedError",
    "UntrustedRootError",
    "InstallLockedError",
    "EnvPersistError",
    "RemoveFailedError",
]
