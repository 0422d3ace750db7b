"""
Recipe for the MSVC Build Tools (Windows linker and C runtime).

The tool source is the vendor bootstrapper ``vs_BuildTools.exe`` (or an
archive/directory containing it). Installation runs it unattended with the
C++ build tools workload; removal goes through the Visual Studio installer.
Detection asks ``vswhere`` for an installation carrying the VC tools.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from toolsetkit.core.exceptions import SubprocessFailedError, ToolsetKitError

logger = logging.getLogger(__name__)

BOOTSTRAPPER_NAME = "vs_buildtools.exe"
VC_TOOLS_COMPONENT = "Microsoft.VisualStudio.Component.VC.Tools.x86.x64"
WORKLOAD = "Microsoft.VisualStudio.Workload.VCTools"

# The bootstrapper exits with 3010 when it succeeded but wants a reboot.
REBOOT_REQUIRED = 3010


def _installer_dir() -> Path:
    program_files = os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")
    return Path(program_files) / "Microsoft Visual Studio" / "Installer"


def find_bootstrapper(path: Path) -> Optional[Path]:
    """Locate the build tools bootstrapper in an acquired file or directory."""
    if path.is_file():
        return path if path.name.lower() == BOOTSTRAPPER_NAME else None
    for candidate in path.rglob("*"):
        if candidate.is_file() and candidate.name.lower() == BOOTSTRAPPER_NAME:
            return candidate
    return None


def installation_path() -> Optional[Path]:
    """Ask vswhere where the build tools with the VC component live."""
    vswhere = _installer_dir() / "vswhere.exe"
    if not vswhere.exists():
        return None

    result = subprocess.run(
        [
            str(vswhere),
            "-products",
            "*",
            "-requires",
            VC_TOOLS_COMPONENT,
            "-property",
            "installationPath",
        ],
        capture_output=True,
        text=True,
    )
    location = result.stdout.strip().splitlines()
    if result.returncode != 0 or not location:
        return None
    return Path(location[0])


def install(path: Path, config) -> None:
    bootstrapper = find_bootstrapper(path)
    if bootstrapper is None:
        raise ToolsetKitError(f"'{BOOTSTRAPPER_NAME}' not found in '{path}'")

    logger.info("installing MSVC build tools, this may take a while")
    try:
        config.executor.run(
            bootstrapper,
            [
                "--wait",
                "--quiet",
                "--norestart",
                "--nocache",
                "--add",
                WORKLOAD,
                "--includeRecommended",
            ],
        )
    except SubprocessFailedError as e:
        if e.code != REBOOT_REQUIRED:
            raise
        logger.warning("MSVC build tools installed; a reboot is required")


def uninstall(config) -> None:
    location = installation_path()
    if location is None:
        logger.debug("MSVC build tools are not installed")
        return

    config.executor.run(
        _installer_dir() / "setup.exe",
        ["uninstall", "--installPath", str(location), "--quiet", "--norestart"],
    )


def already_installed() -> bool:
    if os.name != "nt":
        return False
    return installation_path() is not None
