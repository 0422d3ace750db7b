"""
Toolchain bootstrap.

Downloads the toolchain manager's init program for the host target from the
update root and runs it non-interactively. The init program installs the
manager into ``PKG_HOME`` and the default toolchain into ``TOOLCHAIN_HOME``;
both locations, and the servers it downloads from, come from the
environment bindings exported to it.

Usage:
    from toolsetkit.toolchain import install_toolchain

    install_toolchain(config, manifest)
    assert config.toolchain_ready
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from toolsetkit.config.environment import compose_env_vars
from toolsetkit.core.download import Fetcher
from toolsetkit.core.exceptions import FetchFailedError
from toolsetkit.core.filesystem import make_executable
from toolsetkit.core.platform import detect_platform
from toolsetkit.core.progress import ProgressTicket

logger = logging.getLogger(__name__)

MANAGER_INIT_PROGRAM = "toolchain-init"

# The package manager installed by the toolchain; runs managed tool installs.
PKG_PROGRAM = "pkg"


def manager_init_url(update_root: str, platform_info=None) -> str:
    """
    URL of the toolchain manager init program for a platform.

    Example:
        >>> manager_init_url("https://example/manager", PlatformInfo("linux", "x64", "gnu"))
        'https://example/manager/dist/x86_64-unknown-linux-gnu/toolchain-init'
    """
    info = platform_info or detect_platform()
    return (
        f"{update_root.rstrip('/')}/dist/{info.target_triple()}/"
        f"{MANAGER_INIT_PROGRAM}{info.exe_suffix}"
    )


def init_args(channel: str, profile: str, components: Sequence[str]) -> list:
    args = [
        "-y",
        "--no-modify-path",
        "--default-toolchain",
        channel,
        "--profile",
        profile,
    ]
    for component in components:
        args.extend(["--component", component])
    return args


def install_toolchain(
    config,
    manifest,
    components: Optional[Sequence[str]] = None,
    ticket: Optional[ProgressTicket] = None,
    fetcher: Optional[Fetcher] = None,
) -> None:
    """
    Install the toolchain manager and the default toolchain.

    Args:
        config: InstallConfiguration of the session
        manifest: ToolsetManifest naming the default toolchain
        components: Components to install; replaces the manifest's list
        ticket: Progress share of this step
        fetcher: Fetcher for the init program

    Raises:
        FetchFailedError: If the init program cannot be downloaded
        SubprocessFailedError: If the init program fails
    """
    toolchain = manifest.toolchain
    selected = list(toolchain.components if components is None else components)
    args = init_args(toolchain.channel, toolchain.profile, selected)
    env = dict(compose_env_vars(config, manifest.proxy))
    url = manager_init_url(config.update_root)

    if ticket is not None:
        ticket.message(f"installing toolchain '{toolchain.channel}'")

    if config.dry_run:
        logger.info(f"[dry-run] would download {url}")
        config.executor.run(MANAGER_INIT_PROGRAM, args, env=env)
    else:
        with config.create_temp_dir("toolchain") as scratch:
            init_exe = Path(scratch) / url.rsplit("/", 1)[-1]
            try:
                (fetcher or Fetcher()).download(
                    MANAGER_INIT_PROGRAM, url, init_exe, manifest.proxy
                )
                make_executable(init_exe)
            except OSError as e:
                raise FetchFailedError(
                    f"unable to store {MANAGER_INIT_PROGRAM} in '{scratch}': {e}"
                ) from e
            if ticket is not None:
                ticket.advance(ticket.remaining // 2)
            config.executor.run(init_exe, args, env=env)

    config.env_platform.add_to_path(config.layout.pkg_bin())
    config.mark_toolchain_ready()
    logger.info(f"toolchain '{toolchain.channel}' installed")

    if ticket is not None:
        ticket.finish()
