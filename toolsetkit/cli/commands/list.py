"""
List command implementation.

Prints the tools a manifest declares for a target, one per line, with how
each one is installed.
"""

import logging
from pathlib import Path

from toolsetkit.cli.utils import load_settings, print_error, setting
from toolsetkit.config.manifest import load_manifest
from toolsetkit.core.platform import host_target
from toolsetkit.tools import recipes

logger = logging.getLogger(__name__)


def describe(name: str, descriptor) -> str:
    if descriptor.is_managed():
        method = "managed"
    elif recipes.is_supported(name):
        method = "custom recipe"
    else:
        method = descriptor.kind.value
    suffix = ", required" if descriptor.required else ""
    return f"{name} ({method}{suffix})"


def run(args) -> int:
    """
    Run the list command.

    Returns:
        Exit code (0 for success, 2 without a manifest)
    """
    settings = load_settings(args)
    manifest_path = setting(args, settings, "manifest")
    if manifest_path is None:
        print_error("No toolset manifest", "Pass --manifest or set 'manifest' in settings")
        return 2

    manifest = load_manifest(Path(manifest_path).expanduser())
    target = args.target or host_target()

    tools = manifest.current_target_tools(target)
    if not tools:
        logger.info(f"no tools declared for '{target}'")
        return 0

    print(f"toolchain: {manifest.toolchain.channel} ({manifest.toolchain.profile})")
    for name, descriptor in tools.items():
        print(f"  {describe(name, descriptor)}")
    return 0
