"""
Toolset manifest model and loader.

A toolset manifest declares the default toolchain, an optional proxy and,
per target triple, the tools to install. It is written in TOML (the
canonical format) or YAML:

    [toolchain]
    channel = "stable"
    profile = "minimal"
    components = ["clippy", "fmt"]

    [proxy]
    https = "http://proxy.local:3128"

    [tools.target.x86_64-unknown-linux-gnu]
    nextest = "0.9.70"                                   # Version
    audit = { ver = "0.20.0", required = true }          # VersionDetailed
    bloat = { git = "https://example.com/bloat.git", tag = "v1" }
    helper = { path = "vendor/helper.tar.gz" }           # LocalPath
    vscode = { url = "https://example.com/vscode.zip" }  # Remote

Tool values are parsed into one ToolDescriptor variant each. Relative
``path`` values are resolved against the manifest's directory.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Union

import tomli
import yaml

from toolsetkit.core.exceptions import ManifestError
from toolsetkit.core.platform import host_target

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "stable"
DEFAULT_PROFILE = "minimal"


# ============================================================================
# Tool Descriptors
# ============================================================================


class ToolKind(Enum):
    """Tag of a ToolDescriptor variant."""

    VERSION = "version"
    VERSION_DETAILED = "version_detailed"
    GIT = "git"
    LOCAL_PATH = "path"
    REMOTE = "url"


_MANAGED_KINDS = frozenset({ToolKind.VERSION, ToolKind.VERSION_DETAILED, ToolKind.GIT})


class ToolDescriptor:
    """Base of the tool descriptor variants; match on ``kind``."""

    kind: ClassVar[ToolKind]
    required: bool

    def is_managed(self) -> bool:
        """Whether the package manager installs this tool (needs the toolchain)."""
        return self.kind in _MANAGED_KINDS


@dataclass(frozen=True)
class Version(ToolDescriptor):
    """Install through the package manager at ``version``."""

    kind: ClassVar[ToolKind] = ToolKind.VERSION

    version: str
    required: bool = False


@dataclass(frozen=True)
class VersionDetailed(ToolDescriptor):
    """Like Version, with extra metadata kept from the manifest."""

    kind: ClassVar[ToolKind] = ToolKind.VERSION_DETAILED

    ver: str
    required: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Git(ToolDescriptor):
    """Install through the package manager from a git reference."""

    kind: ClassVar[ToolKind] = ToolKind.GIT

    url: str
    branch: Optional[str] = None
    tag: Optional[str] = None
    rev: Optional[str] = None
    required: bool = False


@dataclass(frozen=True)
class LocalPath(ToolDescriptor):
    """Install from an existing file or directory."""

    kind: ClassVar[ToolKind] = ToolKind.LOCAL_PATH

    path: Path
    required: bool = False


@dataclass(frozen=True)
class Remote(ToolDescriptor):
    """Download first, then install like LocalPath."""

    kind: ClassVar[ToolKind] = ToolKind.REMOTE

    url: str
    required: bool = False


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def parse_tool_descriptor(
    name: str, value: Any, base_dir: Optional[Path] = None
) -> ToolDescriptor:
    """
    Parse one manifest tool value.

    Args:
        name: Tool name (for error messages)
        value: A version string or a table
        base_dir: Directory relative ``path`` values are resolved against

    Raises:
        ManifestError: If the value matches no descriptor variant
    """
    if isinstance(value, str):
        return Version(value)

    if not isinstance(value, dict):
        raise ManifestError(f"invalid value for tool '{name}': {value!r}")

    table = dict(value)
    required = bool(table.pop("required", False))

    if "ver" in table:
        ver = str(table.pop("ver"))
        return VersionDetailed(ver, required=required, metadata=table)
    if "git" in table:
        return Git(
            url=str(table["git"]),
            branch=_optional_str(table.get("branch")),
            tag=_optional_str(table.get("tag")),
            rev=_optional_str(table.get("rev")),
            required=required,
        )
    if "path" in table:
        path = Path(str(table["path"])).expanduser()
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        return LocalPath(path, required=required)
    if "url" in table:
        return Remote(str(table["url"]), required=required)

    raise ManifestError(
        f"tool '{name}' needs one of 'ver', 'git', 'path' or 'url'"
    )


# ============================================================================
# Manifest
# ============================================================================


@dataclass(frozen=True)
class Proxy:
    """Proxy settings applied to downloads and persisted to the environment."""

    http: Optional[str] = None
    https: Optional[str] = None
    no_proxy: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proxy":
        return cls(
            http=_optional_str(data.get("http")),
            https=_optional_str(data.get("https")),
            no_proxy=_optional_str(data.get("no_proxy") or data.get("no-proxy")),
        )


@dataclass
class ToolchainSpec:
    """Default toolchain installed by the toolchain manager."""

    channel: str = DEFAULT_CHANNEL
    profile: str = DEFAULT_PROFILE
    components: List[str] = field(default_factory=list)


@dataclass
class ToolsetManifest:
    """
    Parsed toolset manifest.

    Attributes:
        toolchain: Default toolchain settings
        proxy: Optional proxy block
        targets: Target triple -> (tool name -> descriptor), in manifest order
    """

    toolchain: ToolchainSpec = field(default_factory=ToolchainSpec)
    proxy: Optional[Proxy] = None
    targets: Dict[str, Dict[str, ToolDescriptor]] = field(default_factory=dict)

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], base_dir: Optional[Path] = None
    ) -> "ToolsetManifest":
        """
        Build a manifest from parsed TOML/YAML data.

        Raises:
            ManifestError: If a section has the wrong shape
        """
        if not isinstance(data, dict):
            raise ManifestError("manifest must be a table at the top level")

        toolchain_data = data.get("toolchain") or {}
        if not isinstance(toolchain_data, dict):
            raise ManifestError("'toolchain' must be a table")
        components = toolchain_data.get("components") or []
        if not isinstance(components, list):
            raise ManifestError("'toolchain.components' must be a list")
        toolchain = ToolchainSpec(
            channel=str(toolchain_data.get("channel", DEFAULT_CHANNEL)),
            profile=str(toolchain_data.get("profile", DEFAULT_PROFILE)),
            components=[str(c) for c in components],
        )

        proxy_data = data.get("proxy")
        proxy = Proxy.from_dict(proxy_data) if isinstance(proxy_data, dict) else None

        targets: Dict[str, Dict[str, ToolDescriptor]] = {}
        tools_data = data.get("tools") or {}
        if not isinstance(tools_data, dict):
            raise ManifestError("'tools' must be a table")
        target_tables = tools_data.get("target") or {}
        if not isinstance(target_tables, dict):
            raise ManifestError("'tools.target' must be a table")
        for target, tools in target_tables.items():
            if not isinstance(tools, dict):
                raise ManifestError(f"'tools.target.{target}' must be a table")
            targets[target] = {
                name: parse_tool_descriptor(name, value, base_dir)
                for name, value in tools.items()
            }

        return cls(toolchain=toolchain, proxy=proxy, targets=targets)

    def current_target_tools(
        self, target: Optional[str] = None
    ) -> Dict[str, ToolDescriptor]:
        """Tools declared for ``target`` (default: the running host)."""
        return dict(self.targets.get(target or host_target(), {}))


def load_manifest(path: Union[str, Path]) -> ToolsetManifest:
    """
    Load a toolset manifest from a TOML or YAML file.

    Raises:
        ManifestError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestError(f"manifest not found: {path}")

    logger.debug(f"Loading toolset manifest from {path}")

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        else:
            with open(path, "rb") as f:
                data = tomli.load(f)
    except (yaml.YAMLError, tomli.TOMLDecodeError) as e:
        raise ManifestError(f"invalid manifest {path}: {e}") from e

    return ToolsetManifest.from_dict(data, base_dir=path.parent.resolve())
