"""
Install orchestration.

The Installer drives one install session through its states::

    INIT -> LAYOUT_READY -> ENV_PERSISTED -> TOOLCHAIN_READY
         -> UNMANAGED_TOOLS_DONE -> MANAGED_TOOLS_DONE -> FINALIZED

A failure while creating the layout, persisting the environment or
bootstrapping the toolchain ends in FAILED_BEFORE_TOOLS; a failure while
installing tools ends in FAILED. Tools installed before a failure stay
installed. Once the layout exists, the package manager configuration is
written on every exit path.

Usage:
    from toolsetkit.config import load_manifest
    from toolsetkit.orchestrator import Installer

    installer = Installer(Path("/opt/tools"), keep_going=True)
    report = installer.run(load_manifest("toolset.toml"))
    for name, error in report.failures.items():
        print(name, error)
"""

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from toolsetkit.config.environment import compose_env_vars
from toolsetkit.config.install_config import InstallConfiguration, PackageRegistry
from toolsetkit.config.manifest import ToolDescriptor, ToolKind, ToolsetManifest
from toolsetkit.config.pkg_config import write_pkg_config
from toolsetkit.core.download import Fetcher
from toolsetkit.core.exceptions import ToolInstallFailedError, ToolsetKitError
from toolsetkit.core.filesystem import Extractor
from toolsetkit.core.locking import install_lock
from toolsetkit.core.process import Executor
from toolsetkit.core.progress import ProgressTicket
from toolsetkit.envsys import EnvPlatform
from toolsetkit.toolchain.bootstrap import PKG_PROGRAM, install_toolchain
from toolsetkit.tools import recipes
from toolsetkit.tools.installer import ToolInstaller

logger = logging.getLogger(__name__)

PROGRESS_BUDGET = 100

# Share of PROGRESS_BUDGET per step.
ENV_SHARE = 5
TOOLCHAIN_SHARE = 35
UNMANAGED_SHARE = 30
MANAGED_SHARE = 25


class InstallState(Enum):
    INIT = "init"
    LAYOUT_READY = "layout_ready"
    ENV_PERSISTED = "env_persisted"
    TOOLCHAIN_READY = "toolchain_ready"
    UNMANAGED_TOOLS_DONE = "unmanaged_tools_done"
    MANAGED_TOOLS_DONE = "managed_tools_done"
    FINALIZED = "finalized"
    FAILED_BEFORE_TOOLS = "failed_before_tools"
    FAILED = "failed"


@dataclass
class InstallReport:
    """
    Outcome of an install session.

    Attributes:
        state: State the session ended in
        installed: Names of tools installed, in install order
        skipped: Names of tools not installed (toolchain missing, already
            present, or dry run)
        failures: Tool name -> error, for tools that failed in keep-going mode
    """

    state: InstallState = InstallState.INIT
    installed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failures: Dict[str, ToolInstallFailedError] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.state is InstallState.FINALIZED and not self.failures


def managed_install_args(name: str, descriptor: ToolDescriptor) -> List[str]:
    """
    Package manager arguments installing a managed tool.

    Example:
        >>> managed_install_args("foo", Version("1.2.3"))
        ['install', 'foo', '--version', '1.2.3']
    """
    if descriptor.kind is ToolKind.VERSION:
        return ["install", name, "--version", descriptor.version]
    if descriptor.kind is ToolKind.VERSION_DETAILED:
        return ["install", name, "--version", descriptor.ver]
    if descriptor.kind is ToolKind.GIT:
        args = ["install", "--git", descriptor.url]
        if descriptor.branch:
            args.extend(["--branch", descriptor.branch])
        if descriptor.tag:
            args.extend(["--tag", descriptor.tag])
        if descriptor.rev:
            args.extend(["--rev", descriptor.rev])
        return args
    raise ValueError(f"'{name}' is not installed by the package manager")


def install_managed_tool(config, name: str, descriptor: ToolDescriptor) -> bool:
    """
    Install a managed tool with the package manager.

    Returns:
        False if skipped because the toolchain is not installed

    Raises:
        ToolInstallFailedError: If the package manager fails
    """
    if not config.toolchain_ready:
        logger.warning(f"skipping '{name}': the toolchain is not installed")
        return False

    try:
        config.executor.run(PKG_PROGRAM, managed_install_args(name, descriptor))
    except ToolsetKitError as e:
        raise ToolInstallFailedError(name, e) from e
    return True


class Installer:
    """
    Runs an install session.

    Args:
        install_dir: Root of the installation
        dry_run: Log every step without touching the filesystem or environment
        keep_going: Continue past failures of tools not marked required
        package_registry: Optional ``(name, url)`` package registry override
        dist_server: Toolchain distribution server override
        update_root: Toolchain manager update root override
        components: Toolchain components; replaces the manifest's list
        target: Target triple selecting the manifest tools (default: host)
        on_progress: Sink for cumulative progress (0 to PROGRESS_BUDGET)
        on_message: Sink for progress messages
    """

    def __init__(
        self,
        install_dir: Path,
        dry_run: bool = False,
        keep_going: bool = False,
        package_registry: Optional[PackageRegistry] = None,
        dist_server: Optional[str] = None,
        update_root: Optional[str] = None,
        components: Optional[Sequence[str]] = None,
        target: Optional[str] = None,
        executor: Optional[Executor] = None,
        env_platform: Optional[EnvPlatform] = None,
        fetcher: Optional[Fetcher] = None,
        extractor: Optional[Extractor] = None,
        on_progress: Optional[Callable[[int], None]] = None,
        on_message: Optional[Callable[[str], None]] = None,
    ):
        self.install_dir = Path(install_dir)
        self.dry_run = dry_run
        self.keep_going = keep_going
        self.package_registry = package_registry
        self.dist_server = dist_server
        self.update_root = update_root
        self.components = components
        self.target = target
        self.executor = executor
        self.env_platform = env_platform
        self.fetcher = fetcher
        self.extractor = extractor
        self.ticket = ProgressTicket(PROGRESS_BUDGET, on_progress, on_message)
        self.report = InstallReport()
        self.config: Optional[InstallConfiguration] = None

    @property
    def state(self) -> InstallState:
        return self.report.state

    def run(self, manifest: ToolsetManifest) -> InstallReport:
        """
        Install everything ``manifest`` declares for the target.

        Returns:
            InstallReport of the session

        Raises:
            ToolsetKitError: On any failure before the tool stage, and on a
                tool failure unless keep-going applies to it
            PkgConfigError: If the registry override cannot be merged into
                config.toml after an otherwise successful install
        """
        try:
            self.config = (
                InstallConfiguration.init(
                    self.install_dir,
                    dry_run=self.dry_run,
                    executor=self.executor,
                    env_platform=self.env_platform,
                )
                .with_package_registry(self.package_registry)
                .with_dist_server(self.dist_server)
                .with_update_root(self.update_root)
            )
        except ToolsetKitError:
            self.report.state = InstallState.FAILED_BEFORE_TOOLS
            raise
        self.report.state = InstallState.LAYOUT_READY

        lock = nullcontext() if self.dry_run else install_lock(self.config.layout)
        with lock:
            try:
                self._install(manifest)
            except BaseException:
                self._write_pkg_config_after_failure()
                raise
            write_pkg_config(self.config)

        self.report.state = InstallState.FINALIZED
        self.ticket.finish()
        logger.info(f"installation finished in '{self.config.install_dir}'")
        return self.report

    def _write_pkg_config_after_failure(self) -> None:
        # The install error is the one to report.
        try:
            write_pkg_config(self.config)
        except ToolsetKitError as e:
            logger.error(f"unable to write package manager config: {e}")

    def _install(self, manifest: ToolsetManifest) -> None:
        config = self.config
        ticket = self.ticket

        try:
            bindings = compose_env_vars(config, manifest.proxy)
            config.env_platform.persist_env(bindings)
            ticket.sub_ticket(ENV_SHARE).finish()
            self.report.state = InstallState.ENV_PERSISTED

            install_toolchain(
                config,
                manifest,
                components=self.components,
                ticket=ticket.sub_ticket(TOOLCHAIN_SHARE),
                fetcher=self.fetcher,
            )
            self.report.state = InstallState.TOOLCHAIN_READY
        except ToolsetKitError:
            self.report.state = InstallState.FAILED_BEFORE_TOOLS
            raise

        tools = manifest.current_target_tools(self.target)
        unmanaged = {n: d for n, d in tools.items() if not d.is_managed()}
        managed = {n: d for n, d in tools.items() if d.is_managed()}

        try:
            self._install_unmanaged(unmanaged, manifest.proxy, UNMANAGED_SHARE)
            self.report.state = InstallState.UNMANAGED_TOOLS_DONE

            self._install_managed(managed, MANAGED_SHARE)
            self.report.state = InstallState.MANAGED_TOOLS_DONE
        except ToolsetKitError:
            self.report.state = InstallState.FAILED
            raise

    def _install_unmanaged(self, tools, proxy, share: int) -> None:
        installer = ToolInstaller(self.config, self.fetcher, self.extractor)
        shares = self.ticket.sub_ticket(share).split(len(tools))

        for (name, descriptor), tool_ticket in zip(tools.items(), shares):
            tool_ticket.message(f"installing '{name}'")
            if recipes.already_installed(name):
                logger.info(f"'{name}' is already installed, skipping")
                self.report.skipped.append(name)
            elif self.dry_run:
                logger.info(f"[dry-run] would install '{name}'")
                self.report.skipped.append(name)
            else:
                self._attempt(name, descriptor, installer.install, name, descriptor, proxy)
            tool_ticket.finish()

    def _install_managed(self, tools, share: int) -> None:
        shares = self.ticket.sub_ticket(share).split(len(tools))

        for (name, descriptor), tool_ticket in zip(tools.items(), shares):
            tool_ticket.message(f"installing '{name}'")
            self._attempt(
                name, descriptor, install_managed_tool, self.config, name, descriptor
            )
            tool_ticket.finish()

    def _attempt(self, name: str, descriptor: ToolDescriptor, func, *args) -> None:
        try:
            result = func(*args)
        except ToolInstallFailedError as e:
            if not self.keep_going or descriptor.required:
                raise
            logger.error(f"{e}: {e.cause}")
            self.report.failures[name] = e
            return

        if result is False:
            self.report.skipped.append(name)
        else:
            self.report.installed.append(name)
