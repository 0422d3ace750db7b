"""
Install command implementation.

Installs the toolchain and the tools of a toolset manifest.
"""

import logging
from pathlib import Path

from toolsetkit.cli.utils import load_settings, print_error, registry_setting, setting
from toolsetkit.config.manifest import load_manifest
from toolsetkit.core.directory import default_install_dir
from toolsetkit.orchestrator import Installer

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 if a tool failed in keep-going mode,
        2 for misuse)
    """
    logger.debug(f"Arguments: {args}")
    settings = load_settings(args)

    manifest_path = setting(args, settings, "manifest")
    if manifest_path is None:
        print_error("No toolset manifest", "Pass --manifest or set 'manifest' in settings")
        return 2
    manifest = load_manifest(Path(manifest_path).expanduser())

    install_dir = Path(setting(args, settings, "install_dir") or default_install_dir())

    installer = Installer(
        install_dir.expanduser(),
        dry_run=args.dry_run,
        keep_going=bool(setting(args, settings, "keep_going", False)),
        package_registry=registry_setting(args, settings),
        dist_server=setting(args, settings, "dist_server"),
        update_root=setting(args, settings, "update_root"),
        components=args.components,
        on_progress=lambda value: logger.debug(f"progress {value}%"),
    )
    report = installer.run(manifest)

    for name in report.skipped:
        logger.info(f"skipped '{name}'")
    for name, error in report.failures.items():
        print_error(error)

    if report.failures:
        logger.warning(f"{len(report.failures)} tool(s) failed to install")
        return 1

    logger.info(f"installed {len(report.installed)} tool(s)")
    return 0
