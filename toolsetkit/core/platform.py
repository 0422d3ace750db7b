"""
Host platform detection for ToolsetKit.

Toolset manifests list tools per target triple (for example
``x86_64-unknown-linux-gnu``). This module detects the OS and CPU of the
running host and maps them onto the triple used to select tools and the
toolchain manager download.

Usage:
    from toolsetkit.core.platform import detect_platform

    info = detect_platform()
    print(info.target_triple())
"""

import functools
import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos')
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm', ...)
        abi: Linux C library ('gnu' or 'musl'); empty elsewhere
    """

    os: str
    arch: str
    abi: str = ""

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-arm64').
        """
        return f"{self.os}-{self.arch}"

    def target_triple(self) -> str:
        """
        Get the target triple for this platform.

        Example:
            >>> PlatformInfo('linux', 'x64', 'gnu').target_triple()
            'x86_64-unknown-linux-gnu'
        """
        arch_map = {
            "x64": "x86_64",
            "arm64": "aarch64",
            "x86": "i686",
            "arm": "armv7",
        }
        cpu = arch_map.get(self.arch, self.arch)

        if self.os == "windows":
            return f"{cpu}-pc-windows-msvc"
        if self.os == "macos":
            return f"{cpu}-apple-darwin"
        if self.os == "linux":
            return f"{cpu}-unknown-linux-{self.abi or 'gnu'}"
        return f"{cpu}-unknown-{self.os}"

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.os == "windows" else ""


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    os_name = _detect_os()
    abi = _detect_libc() if os_name == "linux" else ""
    return PlatformInfo(os=os_name, arch=_detect_architecture(), abi=abi)


def host_target() -> str:
    """Target triple of the running host."""
    return detect_platform().target_triple()


def _detect_os() -> str:
    """
    Detect operating system.

    Raises:
        RuntimeError: If OS is not supported
    """
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    else:
        raise RuntimeError(f"Unsupported operating system: {system}")


def _detect_architecture() -> str:
    """Detect CPU architecture, normalized to 'x64', 'arm64', 'x86', 'arm'."""
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        return machine


def _detect_libc() -> str:
    """Detect the Linux C library ('gnu' or 'musl')."""
    libc, _ = platform.libc_ver()
    return "gnu" if libc == "glibc" else "musl" if not libc else libc


def clear_platform_cache() -> None:
    """Clear the cached platform detection (used by tests)."""
    detect_platform.cache_clear()
