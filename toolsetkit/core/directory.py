"""
Directory layout management for ToolsetKit.

This module computes (and lazily creates) the canonical directories of an
install root. It is the single source of truth for where things live, which
is what lets the uninstaller find and remove everything the installer made.

Directory Structure:
    <install_dir>/
        - .pkg/           : Package manager home (PKG_HOME)
          - bin/          : Toolchain manager, package manager and launchers
          - config.toml   : Package manager configuration
        - .toolchain/     : Toolchain manager home (TOOLCHAIN_HOME)
        - tools/<name>/   : Unmanaged tool installations
        - temp/           : Transient downloads and extraction scratch space
"""

import logging
import os
from pathlib import Path
from typing import Dict

from toolsetkit.core.exceptions import ToolsetKitError

logger = logging.getLogger(__name__)

PKG_HOME_DIRNAME = ".pkg"
TOOLCHAIN_HOME_DIRNAME = ".toolchain"
TEMP_DIRNAME = "temp"
TOOLS_DIRNAME = "tools"

APP_NAME = "toolsetkit"


class DirectoryError(ToolsetKitError):
    """Base exception for directory-related errors."""

    pass


class DirectoryCreationError(DirectoryError):
    """Raised when directory creation fails."""

    def __init__(self, path: Path, cause: OSError):
        self.path = path
        super().__init__(f"Failed to create directory at {path}: {cause}")


def get_home_dir() -> Path:
    """
    Get the current user's home directory.

    Returns:
        Path: %USERPROFILE% on Windows, $HOME elsewhere.

    Raises:
        DirectoryError: If the variable is not set on Windows.
    """
    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise DirectoryError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine default install directory."
            )
        return Path(user_profile)
    return Path.home()


def default_install_dir() -> Path:
    """
    Get the default install root.

    Example:
        >>> default_install_dir()
        PosixPath('/home/user/toolsetkit')  # on Linux
    """
    return get_home_dir() / APP_NAME


def ensure_dir(path: Path) -> Path:
    """Create ``path`` (and parents) if missing, raising DirectoryCreationError."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(path, e) from e
    return path


class PathLayout:
    """
    Derived view over an install root.

    Every accessor creates its directory the first time it is called and
    memoizes the result; later calls return the same path without touching
    the filesystem again. With ``create=False`` (dry runs) paths are computed
    but never created.

    Example:
        >>> layout = PathLayout(Path('/opt/tools'))
        >>> layout.pkg_bin()
        PosixPath('/opt/tools/.pkg/bin')
    """

    def __init__(self, install_dir: Path, create: bool = True):
        self.install_dir = Path(install_dir)
        self.create = create
        self._cache: Dict[str, Path] = {}

    def _get(self, key: str, path: Path) -> Path:
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        if self.create:
            ensure_dir(path)
            logger.debug(f"Ensured {key} exists: {path}")
        self._cache[key] = path
        return path

    def pkg_home(self) -> Path:
        return self._get("pkg_home", self.install_dir / PKG_HOME_DIRNAME)

    def pkg_bin(self) -> Path:
        return self._get("pkg_bin", self.pkg_home() / "bin")

    def toolchain_home(self) -> Path:
        return self._get(
            "toolchain_home", self.install_dir / TOOLCHAIN_HOME_DIRNAME
        )

    def temp(self) -> Path:
        return self._get("temp", self.install_dir / TEMP_DIRNAME)

    def tools(self) -> Path:
        return self._get("tools", self.install_dir / TOOLS_DIRNAME)

    def tool_dir(self, name: str) -> Path:
        """Directory holding the files of unmanaged tool ``name`` (not created)."""
        return self.tools() / name

    def create_all(self) -> None:
        """Create the install root and every canonical subdirectory."""
        if self.create:
            ensure_dir(self.install_dir)
        self.pkg_home()
        self.pkg_bin()
        self.toolchain_home()
        self.temp()
        self.tools()

    def __repr__(self) -> str:
        return f"PathLayout({str(self.install_dir)!r})"


def is_install_root(path: Path) -> bool:
    """Check that ``path`` carries the signature of an install root."""
    return (path / PKG_HOME_DIRNAME).is_dir() and (
        path / TOOLCHAIN_HOME_DIRNAME
    ).is_dir()
