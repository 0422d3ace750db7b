"""
Uninstall orchestration.

Reverses an installation in the order::

    START -> CUSTOM_RECIPES_UNINSTALLED -> ENV_REMOVED -> FILES_REMOVED -> DONE

The manager program lives in ``<root>/.pkg/bin/``, so the install root is
found three levels above the running program. Nothing is removed unless the
candidate root carries both ``.pkg`` and ``.toolchain``.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

from toolsetkit.config.environment import PERSISTED_VARS
from toolsetkit.config.install_config import UninstallConfiguration
from toolsetkit.core.directory import (
    PKG_HOME_DIRNAME,
    TOOLCHAIN_HOME_DIRNAME,
    ensure_dir,
    is_install_root,
)
from toolsetkit.core.exceptions import RemoveFailedError, UntrustedRootError
from toolsetkit.core.filesystem import safe_rmtree
from toolsetkit.core.locking import install_lock
from toolsetkit.core.process import Executor
from toolsetkit.envsys import EnvPlatform
from toolsetkit.tools import recipes

logger = logging.getLogger(__name__)


class UninstallState(Enum):
    START = "start"
    CUSTOM_RECIPES_UNINSTALLED = "custom_recipes_uninstalled"
    ENV_REMOVED = "env_removed"
    FILES_REMOVED = "files_removed"
    DONE = "done"


def validate_install_root(candidate: Path) -> Path:
    """
    Check that ``candidate`` is an install root that may be removed.

    Raises:
        UntrustedRootError: If it is a filesystem root or lacks ``.pkg`` or
            ``.toolchain``
    """
    candidate = Path(candidate)
    if candidate.parent == candidate:
        raise UntrustedRootError(
            "unable to uninstall as it appears that this program was "
            "installed in a root directory"
        )
    if not is_install_root(candidate):
        raise UntrustedRootError(
            "unable to uninstall as the installation directory appears to be "
            f"corrupted (missing '{PKG_HOME_DIRNAME}' or "
            f"'{TOOLCHAIN_HOME_DIRNAME}'), try manually removing '{candidate}'"
        )
    return candidate


def locate_install_root(exe_path: Optional[Path] = None) -> Path:
    """
    Find the install root from the location of the running program.

    Args:
        exe_path: Program path (default: the running program)

    Raises:
        UntrustedRootError: If the derived root fails validation
    """
    exe_path = Path(exe_path or sys.argv[0]).resolve()
    parents = exe_path.parents
    if len(parents) < 3:
        raise UntrustedRootError(
            f"unable to determine the installation directory from '{exe_path}'"
        )
    return validate_install_root(parents[2])


class Uninstaller:
    """
    Runs an uninstall session.

    Args:
        executor: Executor for recipe uninstallers
        env_platform: EnvPlatform holding the persisted environment
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        env_platform: Optional[EnvPlatform] = None,
    ):
        self.executor = executor
        self.env_platform = env_platform
        self.state = UninstallState.START

    def run(
        self,
        install_root: Optional[Path] = None,
        keep_self: bool = False,
        exe_path: Optional[Path] = None,
    ) -> Path:
        """
        Remove an installation.

        Args:
            install_root: Root to remove; validated like a discovered root
            keep_self: Leave the files in place, only undo recipes and the
                environment
            exe_path: Program path used to discover the root

        Returns:
            The install root that was uninstalled

        Raises:
            UntrustedRootError: If the root fails validation
            InstallLockedError: If an install session holds the root
            RemoveFailedError: If the files cannot be removed
        """
        if install_root is not None:
            root = validate_install_root(Path(install_root).expanduser().absolute())
        else:
            root = locate_install_root(exe_path)

        config = UninstallConfiguration(root, self.executor, self.env_platform)
        layout = config.layout
        logger.info(f"uninstalling '{root}'")

        ensure_dir(layout.temp())
        with install_lock(layout):
            for recipe in recipes.installed_in(layout):
                logger.info(f"uninstalling '{recipe.value}'")
                recipes.uninstall(recipe.value, config)
            self.state = UninstallState.CUSTOM_RECIPES_UNINSTALLED

            platform = config.env_platform
            platform.remove_env(PERSISTED_VARS)
            platform.remove_from_path(layout.pkg_bin())
            tools_dir = layout.tools()
            if tools_dir.is_dir():
                for entry in sorted(tools_dir.iterdir()):
                    platform.remove_from_path(entry)
                    platform.remove_from_path(entry / "bin")
            platform.unregister_installed_program(Path(exe_path or sys.argv[0]))
            self.state = UninstallState.ENV_REMOVED

        # The lock file lives in temp/, so files go only after it is released.
        if keep_self:
            logger.info(f"keeping files in '{root}'")
        else:
            try:
                safe_rmtree(root, require_prefix=root.parent)
            except (OSError, ValueError) as e:
                raise RemoveFailedError(f"unable to remove '{root}': {e}") from e
        self.state = UninstallState.FILES_REMOVED

        self.state = UninstallState.DONE
        logger.info("uninstallation finished")
        return root
