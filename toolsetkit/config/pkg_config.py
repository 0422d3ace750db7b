"""
Package manager configuration writer.

With a registry override, ``PKG_HOME/config.toml`` gets a source entry that
replaces the default registry:

    [source.default]
    replace-with = "mirror"

    [source.mirror]
    registry = "https://mirror.example/index"

An existing config.toml is merged, not clobbered: only the keys above are
set and everything else in the document is kept.
"""

import logging
from pathlib import Path
from typing import Any, Dict

import tomli
import tomli_w

from toolsetkit.core.exceptions import ToolsetKitError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.toml"
DEFAULT_SOURCE = "default"


class PkgConfigError(ToolsetKitError):
    """Raised when an existing package manager config cannot be read."""

    pass


class PkgConfig:
    """In-memory package manager configuration document."""

    def __init__(self, data: Dict[str, Any] = None):
        self.data: Dict[str, Any] = data if data is not None else {}

    @classmethod
    def load(cls, path: Path) -> "PkgConfig":
        """Read ``path`` if it exists, else start from an empty document."""
        if not path.exists():
            return cls()
        try:
            with open(path, "rb") as f:
                return cls(tomli.load(f))
        except (tomli.TOMLDecodeError, UnicodeDecodeError, OSError) as e:
            raise PkgConfigError(f"unable to merge into {path}: {e}") from e

    def add_source(self, name: str, url: str, as_default: bool = True) -> None:
        """
        Declare a registry source, optionally replacing the default one.

        Raises:
            PkgConfigError: If an existing key that must be a table is not one
        """
        sources = self._table(self.data, "source", "source")
        self._table(sources, name, f"source.{name}")["registry"] = url
        if as_default:
            self._table(sources, DEFAULT_SOURCE, f"source.{DEFAULT_SOURCE}")[
                "replace-with"
            ] = name

    @staticmethod
    def _table(parent: Dict[str, Any], key: str, dotted: str) -> Dict[str, Any]:
        table = parent.setdefault(key, {})
        if not isinstance(table, dict):
            raise PkgConfigError(
                f"unable to merge into {CONFIG_FILENAME}: '{dotted}' is not a table"
            )
        return table

    def to_toml(self) -> str:
        return tomli_w.dumps(self.data)


def write_pkg_config(config) -> bool:
    """
    Write the registry override of ``config`` into ``pkg_home/config.toml``.

    Args:
        config: InstallConfiguration of the session

    Returns:
        True if a file was written
    """
    if config.package_registry is None:
        logger.debug("No package registry override, leaving config.toml alone")
        return False

    if config.dry_run:
        name, url = config.package_registry
        logger.info(f"[dry-run] would set package registry '{name}' = {url}")
        return False

    config_path = config.layout.pkg_home() / CONFIG_FILENAME
    pkg_config = PkgConfig.load(config_path)
    name, url = config.package_registry
    pkg_config.add_source(name, url)

    content = pkg_config.to_toml()
    if not content.strip():
        return False

    try:
        config_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise PkgConfigError(f"unable to write {config_path}: {e}") from e
    logger.debug(f"Wrote package manager config: {config_path}")
    return True
