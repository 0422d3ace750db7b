"""
ToolsetKit CLI argument parser.

This module implements the command-line interface for ToolsetKit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from toolsetkit.cli.utils import print_error
from toolsetkit.core.exceptions import ToolsetKitError

# Get version from package
try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("toolsetkit")
except PackageNotFoundError:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

COMMANDS = {
    "install": "toolsetkit.cli.commands.install",
    "uninstall": "toolsetkit.cli.commands.uninstall",
    "list": "toolsetkit.cli.commands.list",
}


def _registry_arg(value: str):
    """Parse ``NAME=URL`` into a registry override."""
    name, sep, url = value.partition("=")
    if not sep or not name or not url:
        raise argparse.ArgumentTypeError(f"expected NAME=URL, got '{value}'")
    return name, url


class CLI:
    """ToolsetKit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="toolsetkit",
            description="ToolsetKit - toolchain environment installer",
            epilog='Use "toolsetkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"ToolsetKit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to settings file (default: ~/.toolsetkit.yaml)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_uninstall_command(subparsers)
        self._add_list_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install a toolset",
            description="Install the toolchain and the tools of a toolset manifest",
        )
        parser.add_argument(
            "--manifest",
            type=Path,
            metavar="PATH",
            help="Toolset manifest (TOML or YAML)",
        )
        parser.add_argument(
            "--install-dir",
            type=Path,
            metavar="DIR",
            help="Installation directory (default: ~/toolsetkit)",
        )
        parser.add_argument(
            "--dist-server",
            metavar="URL",
            help="Toolchain distribution server",
        )
        parser.add_argument(
            "--update-root",
            metavar="URL",
            help="Toolchain manager update root",
        )
        parser.add_argument(
            "--registry",
            type=_registry_arg,
            metavar="NAME=URL",
            help="Package registry replacing the default one",
        )
        parser.add_argument(
            "--component",
            action="append",
            dest="components",
            metavar="NAME",
            help="Toolchain component to install (can be used multiple times)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be done without changing anything",
        )
        parser.add_argument(
            "--keep-going",
            action="store_true",
            default=None,
            help="Continue after a tool fails unless it is marked required",
        )

    def _add_uninstall_command(self, subparsers):
        """Add 'uninstall' subcommand."""
        parser = subparsers.add_parser(
            "uninstall",
            help="Remove an installation",
            description="Remove an installation and its environment changes",
        )
        parser.add_argument(
            "--install-dir",
            type=Path,
            metavar="DIR",
            help="Installation to remove (default: the one running this program)",
        )
        parser.add_argument(
            "--keep-self",
            action="store_true",
            help="Undo environment changes but keep the installed files",
        )

    def _add_list_command(self, subparsers):
        """Add 'list' subcommand."""
        parser = subparsers.add_parser(
            "list",
            help="List the tools of a manifest",
            description="List the tools a manifest declares for a target",
        )
        parser.add_argument(
            "--manifest",
            type=Path,
            metavar="PATH",
            help="Toolset manifest (TOML or YAML)",
        )
        parser.add_argument(
            "--target",
            metavar="TRIPLE",
            help="Target triple (default: this host)",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        try:
            parsed_args = self.parse_args(args)
        except SystemExit as e:
            # argparse exits with 2 on misuse and 0 for --help/--version
            return e.code if isinstance(e.code, int) else 2

        # Configure logging
        self._configure_logging(parsed_args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 2

        # Dispatch to command handler
        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except ToolsetKitError as e:
            print_error(e)
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return e.exit_code
        except OSError as e:
            print_error(e)
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        module_name = COMMANDS.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 2

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
