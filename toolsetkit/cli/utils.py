"""
Shared utilities for CLI commands.

Provides settings file loading, the merge of settings with command-line
flags, and consistent error output.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from toolsetkit.core.directory import get_home_dir
from toolsetkit.core.exceptions import ManifestError, iter_causes

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = ".toolsetkit.yaml"

SETTINGS_KEYS = frozenset(
    {"install_dir", "dist_server", "update_root", "registry", "manifest", "keep_going"}
)


# ============================================================================
# Configuration Management
# ============================================================================


def default_settings_file() -> Path:
    return get_home_dir() / SETTINGS_FILENAME


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        FileNotFoundError: If required=True and file doesn't exist
        ValueError: If YAML parsing fails

    Example:
        >>> settings = load_yaml_config(Path("~/.toolsetkit.yaml").expanduser())
        >>> settings.get("install_dir")
    """
    if not config_file.exists():
        if required:
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise ValueError(f"Invalid YAML in {config_file}: {e}")

    config = config or {}
    if not isinstance(config, dict):
        raise ValueError(f"Invalid settings in {config_file}: expected a mapping")

    unknown = set(config) - SETTINGS_KEYS
    if unknown:
        logger.warning(f"Ignoring unknown settings: {', '.join(sorted(unknown))}")
    return config


def load_settings(args) -> Dict[str, Any]:
    """
    Load the settings file named by ``--config`` (or the default one).

    Raises:
        ManifestError: If the file cannot be used
    """
    explicit = getattr(args, "config", None)
    config_file = Path(explicit) if explicit else default_settings_file()
    try:
        return load_yaml_config(config_file, required=explicit is not None)
    except (FileNotFoundError, ValueError) as e:
        raise ManifestError(str(e)) from e


def setting(args, settings: Dict[str, Any], name: str, default: Any = None) -> Any:
    """Value of ``name``: the command-line flag if given, else the settings file."""
    value = getattr(args, name, None)
    if value is not None:
        return value
    return settings.get(name, default)


def registry_setting(args, settings: Dict[str, Any]):
    """
    Package registry override as ``(name, url)``, or None.

    Raises:
        ManifestError: If the settings file entry is malformed
    """
    if getattr(args, "registry", None):
        return args.registry

    registry = settings.get("registry")
    if registry is None:
        return None
    if not isinstance(registry, dict) or not {"name", "url"} <= set(registry):
        raise ManifestError("'registry' setting needs both 'name' and 'url'")
    return str(registry["name"]), str(registry["url"])


# ============================================================================
# Output
# ============================================================================


def print_error(error, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    An exception is printed with one ``caused by`` line per link of its
    cause chain.

    Args:
        error: Main error message or exception
        details: Optional additional details
    """
    print(f"ERROR: {error}", file=sys.stderr)
    if isinstance(error, BaseException):
        for cause in iter_causes(error):
            print(f"  caused by: {cause}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)
