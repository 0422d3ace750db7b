"""
Recipe for Visual Studio Code.

The editor archive is unpacked into ``tools/vscode`` and run in portable
mode (a ``data`` folder next to the binaries keeps settings and extensions
inside the install root). A ``code`` launcher in ``PKG_HOME/bin`` makes it
available on PATH.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from toolsetkit.core.exceptions import ToolsetKitError
from toolsetkit.core.filesystem import make_executable, merge_tree, safe_rmtree

logger = logging.getLogger(__name__)

TOOL_DIRNAME = "vscode"
IS_WINDOWS = os.name == "nt"
LAUNCHER_NAME = "code.cmd" if IS_WINDOWS else "code"


def _find_distribution_root(path: Path) -> Optional[Path]:
    """Find the directory holding ``bin/code`` (or ``bin/code.cmd``)."""
    if not path.is_dir():
        return None
    for launcher in ("code", "code.cmd"):
        if (path / "bin" / launcher).is_file():
            return path
    for child in sorted(path.iterdir()):
        if child.is_dir():
            root = _find_distribution_root(child)
            if root is not None:
                return root
    return None


def _launcher_script(target: Path) -> str:
    if IS_WINDOWS:
        return f'@echo off\r\n"{target}" %*\r\n'
    return f'#!/bin/sh\nexec "{target}" "$@"\n'


def install(path: Path, config) -> None:
    root = _find_distribution_root(path)
    if root is None:
        raise ToolsetKitError(f"no Visual Studio Code distribution found in '{path}'")

    dest = config.layout.tool_dir(TOOL_DIRNAME)
    merge_tree(root, dest)
    (dest / "data").mkdir(exist_ok=True)

    launcher = config.layout.pkg_bin() / LAUNCHER_NAME
    launcher.write_text(_launcher_script(dest / "bin" / LAUNCHER_NAME), encoding="utf-8")
    make_executable(launcher)
    config.env_platform.add_to_path(dest / "bin")
    logger.debug(f"Created launcher {launcher}")


def uninstall(config) -> None:
    dest = config.layout.tool_dir(TOOL_DIRNAME)
    config.env_platform.remove_from_path(dest / "bin")
    launcher = config.layout.pkg_bin() / LAUNCHER_NAME
    if launcher.exists():
        launcher.unlink()
    safe_rmtree(dest, require_prefix=config.install_dir)


def already_installed() -> bool:
    return shutil.which("code") is not None
