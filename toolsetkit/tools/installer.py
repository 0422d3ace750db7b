"""
Install strategy dispatch for unmanaged tools.

Given the acquired files of a tool, pick how to install them:

1. Tools with a custom recipe run that recipe.
2. Archives are extracted into a scratch directory and scanned again.
3. A single file is treated as an executable: copied into ``tools/<name>/``
   and that folder is put on PATH.
4. A directory with a ``bin/`` or ``lib/`` layout is merged into
   ``tools/<name>/`` and its ``bin`` is put on PATH.
5. A directory of executables is merged into ``tools/<name>/`` and that
   folder is put on PATH.

Any failure is raised as ToolInstallFailedError for the tool. Tools
installed earlier are left in place.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from toolsetkit.config.manifest import ToolDescriptor
from toolsetkit.core.download import Fetcher
from toolsetkit.core.exceptions import ToolInstallFailedError, ToolsetKitError
from toolsetkit.core.filesystem import (
    Extractor,
    copy_into,
    is_executable,
    make_executable,
    merge_tree,
)
from toolsetkit.tools import recipes
from toolsetkit.tools.acquirer import acquire_tool

logger = logging.getLogger(__name__)

KNOWN_LAYOUT_DIRS = ("bin", "lib")


class UnsupportedToolLayoutError(ToolsetKitError):
    """Raised when acquired files match no install strategy."""

    def __init__(self, name: str, path: Path):
        super().__init__(f"no install method for tool '{name}' at '{path}'")


class InstallMethod(Enum):
    CUSTOM = "custom"
    EXECUTABLE = "executable"
    DIRECTORY = "directory"


@dataclass
class InstalledTool:
    """Record of one installed unmanaged tool."""

    name: str
    method: InstallMethod
    location: Path


class ToolInstaller:
    """
    Installs unmanaged tools into the install root.

    Args:
        config: InstallConfiguration of the session
        fetcher: Fetcher used for Remote tools
        extractor: Archive extractor
    """

    def __init__(
        self,
        config,
        fetcher: Optional[Fetcher] = None,
        extractor: Optional[Extractor] = None,
    ):
        self.config = config
        self.fetcher = fetcher or Fetcher()
        self.extractor = extractor or Extractor()

    def install(self, name: str, descriptor: ToolDescriptor, proxy=None) -> InstalledTool:
        """
        Acquire and install one LocalPath or Remote tool.

        Raises:
            ToolInstallFailedError: Wrapping whatever went wrong
        """
        try:
            with acquire_tool(
                self.config,
                name,
                descriptor,
                proxy=proxy,
                fetcher=self.fetcher,
                extractor=self.extractor,
            ) as artifact:
                return self._install(name, artifact.local_path)
        except (ToolsetKitError, OSError) as e:
            raise ToolInstallFailedError(name, e) from e

    def install_from_path(self, name: str, path: Path) -> InstalledTool:
        """
        Install a tool from files already on disk.

        Raises:
            ToolInstallFailedError: Wrapping whatever went wrong
        """
        try:
            return self._install(name, Path(path))
        except (ToolsetKitError, OSError) as e:
            raise ToolInstallFailedError(name, e) from e

    def _install(self, name: str, path: Path) -> InstalledTool:
        if recipes.is_supported(name):
            logger.debug(f"Using custom recipe for '{name}'")
            recipes.install(name, path, self.config)
            return InstalledTool(name, InstallMethod.CUSTOM, path)
        return self._install_generic(name, path)

    def _install_generic(self, name: str, path: Path) -> InstalledTool:
        if path.is_file() and self.extractor.try_classify(path) is not None:
            with self.config.create_temp_dir(name) as scratch:
                self.extractor.extract(path, Path(scratch))
                return self._install_generic(name, Path(scratch))

        tool_dir = self.config.layout.tool_dir(name)

        if path.is_file():
            installed = copy_into(path, tool_dir)
            make_executable(installed)
            self.config.env_platform.add_to_path(tool_dir)
            logger.debug(f"Installed executable '{installed}'")
            return InstalledTool(name, InstallMethod.EXECUTABLE, installed)

        if path.is_dir():
            root = _unwrap_single_dir(path)

            if any((root / d).is_dir() for d in KNOWN_LAYOUT_DIRS):
                merge_tree(root, tool_dir)
                if (tool_dir / "bin").is_dir():
                    self.config.env_platform.add_to_path(tool_dir / "bin")
                return InstalledTool(name, InstallMethod.DIRECTORY, tool_dir)

            if any(is_executable(item) for item in root.iterdir()):
                merge_tree(root, tool_dir)
                for item in tool_dir.iterdir():
                    if item.is_file() and is_executable(root / item.name):
                        make_executable(item)
                self.config.env_platform.add_to_path(tool_dir)
                return InstalledTool(name, InstallMethod.DIRECTORY, tool_dir)

        raise UnsupportedToolLayoutError(name, path)


def _unwrap_single_dir(path: Path) -> Path:
    """Descend through directories that contain nothing but one directory."""
    while True:
        children = list(path.iterdir())
        if len(children) != 1 or not children[0].is_dir():
            return path
        if any((path / d).is_dir() for d in KNOWN_LAYOUT_DIRS):
            return path
        path = children[0]
