"""
Session-level install configuration.

InstallConfiguration is created once per install session. It owns the
PathLayout of the install root, the user's overrides (package registry and
toolchain distribution URLs) and the session collaborators (Executor and
EnvPlatform) that tool recipes need. ``toolchain_ready`` flips to True
exactly once, when the toolchain bootstrap succeeds.

Example:
    >>> config = InstallConfiguration.init(Path('/opt/tools'))
    >>> config = config.with_package_registry(("mirror", "https://mirror/index"))
    >>> config.layout.pkg_bin()
    PosixPath('/opt/tools/.pkg/bin')
"""

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from toolsetkit.core.directory import PathLayout, default_install_dir
from toolsetkit.core.exceptions import InvalidInstallDirError
from toolsetkit.core.filesystem import EXE_SUFFIX, copy_as
from toolsetkit.core.process import Executor, RecordingExecutor
from toolsetkit.envsys import EnvPlatform, get_env_platform

logger = logging.getLogger(__name__)

DEFAULT_DIST_SERVER = "https://static.toolsetkit.dev/dist"
DEFAULT_UPDATE_ROOT = "https://static.toolsetkit.dev/manager"

PackageRegistry = Tuple[str, str]


class InstallConfiguration:
    """
    Configuration and state of one install session.

    Use :meth:`init` rather than the constructor: it validates the install
    directory and creates the layout.

    Attributes:
        install_dir: Root of the installation
        package_registry: Optional ``(name, url)`` registry override
        dist_server: Toolchain distribution server URL
        update_root: Toolchain manager update root URL
        toolchain_ready: Whether the toolchain bootstrap succeeded
        dry_run: Whether filesystem and environment side effects are skipped
    """

    def __init__(
        self,
        install_dir: Path,
        dry_run: bool = False,
        executor: Optional[Executor] = None,
        env_platform: Optional[EnvPlatform] = None,
    ):
        self.install_dir = Path(install_dir)
        self.package_registry: Optional[PackageRegistry] = None
        self.dist_server = DEFAULT_DIST_SERVER
        self.update_root = DEFAULT_UPDATE_ROOT
        self.dry_run = dry_run
        self.layout = PathLayout(self.install_dir, create=not dry_run)
        self.executor = executor or (RecordingExecutor() if dry_run else Executor())
        self.env_platform = env_platform or get_env_platform(dry_run)
        self._toolchain_ready = False

    @classmethod
    def init(
        cls,
        install_dir: Path,
        dry_run: bool = False,
        executor: Optional[Executor] = None,
        env_platform: Optional[EnvPlatform] = None,
    ) -> "InstallConfiguration":
        """
        Validate ``install_dir`` and create the install layout.

        On a dry run nothing is created, but the returned configuration is
        fully usable.

        Raises:
            InvalidInstallDirError: If ``install_dir`` is a filesystem root
        """
        install_dir = Path(install_dir).expanduser().absolute()
        if install_dir.parent == install_dir:
            raise InvalidInstallDirError("unable to install in root directory")

        config = cls(install_dir, dry_run, executor, env_platform)

        if dry_run:
            logger.info(f"[dry-run] would create install root at {install_dir}")
        else:
            config.layout.create_all()
            if os.environ.get("PROFILE") == "debug":
                config.promote_self()

        return config

    @classmethod
    def default(cls, **kwargs) -> "InstallConfiguration":
        """Configuration for the default install root (``~/toolsetkit``)."""
        return cls.init(default_install_dir(), **kwargs)

    def with_package_registry(
        self, registry: Optional[PackageRegistry]
    ) -> "InstallConfiguration":
        self.package_registry = registry
        return self

    def with_dist_server(self, url: Optional[str]) -> "InstallConfiguration":
        if url:
            self.dist_server = url
        return self

    def with_update_root(self, url: Optional[str]) -> "InstallConfiguration":
        if url:
            self.update_root = url
        return self

    @property
    def toolchain_ready(self) -> bool:
        return self._toolchain_ready

    def mark_toolchain_ready(self) -> None:
        """Record that the toolchain bootstrap succeeded (happens once)."""
        if self._toolchain_ready:
            raise RuntimeError("toolchain was already marked as installed")
        self._toolchain_ready = True

    def create_temp_dir(self, prefix: str) -> tempfile.TemporaryDirectory:
        """
        Create a temporary directory under ``temp/`` named ``<prefix>_XXXX``.

        Use it as a context manager; the directory is removed on exit.
        """
        return tempfile.TemporaryDirectory(
            prefix=f"{prefix}_", dir=self.layout.temp()
        )

    def promote_self(self) -> Path:
        """
        Copy the running program into ``pkg_bin`` as the manager.

        Development builds only (``PROFILE=debug``): the installer names
        itself "manager" in the installed copy and registers it as an
        installed program so it can later run the uninstall.
        """
        self_exe = Path(sys.argv[0]).resolve()
        name = self_exe.name.replace("installer", "manager")
        if name == self_exe.name and "manager" not in name:
            name = f"manager{EXE_SUFFIX}"

        manager_exe = self.layout.pkg_bin() / name
        copy_as(self_exe, manager_exe)
        self.env_platform.register_installed_program(manager_exe)
        logger.debug(f"Promoted '{self_exe}' to '{manager_exe}'")
        return manager_exe

    def __repr__(self) -> str:
        return (
            f"InstallConfiguration(install_dir={str(self.install_dir)!r}, "
            f"toolchain_ready={self._toolchain_ready}, dry_run={self.dry_run})"
        )


class UninstallConfiguration:
    """
    Configuration of one uninstall session.

    Carries what uninstall recipes need: the install root, its layout and
    the session collaborators. The layout is never created here.

    Attributes:
        install_dir: Root of the installation being removed
    """

    def __init__(
        self,
        install_dir: Path,
        executor: Optional[Executor] = None,
        env_platform: Optional[EnvPlatform] = None,
    ):
        self.install_dir = Path(install_dir)
        self.layout = PathLayout(self.install_dir, create=False)
        self.executor = executor or Executor()
        self.env_platform = env_platform or get_env_platform()

    def __repr__(self) -> str:
        return f"UninstallConfiguration(install_dir={str(self.install_dir)!r})"
