"""
Uninstall command implementation.
"""

import logging

from toolsetkit.cli.utils import load_settings, setting
from toolsetkit.orchestrator import Uninstaller

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the uninstall command.

    Without ``--install-dir`` (or an ``install_dir`` setting) the root is
    derived from the location of the running program.

    Returns:
        Exit code (0 for success)
    """
    settings = load_settings(args)
    install_dir = setting(args, settings, "install_dir")

    root = Uninstaller().run(install_root=install_dir, keep_self=args.keep_self)
    logger.info(f"removed installation at '{root}'")
    return 0
