"""
Centralized exception hierarchy for ToolsetKit.

Every error raised by the installer and uninstaller derives from
ToolsetKitError. Each class carries the process exit code the CLI should use
when the error reaches the top level: 2 for misuse (bad paths, bad URLs),
1 for everything else.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class ToolsetKitError(Exception):
    """Base exception for all ToolsetKit errors."""

    exit_code = 1


# ============================================================================
# Misuse Exceptions
# ============================================================================


class InvalidInstallDirError(ToolsetKitError):
    """Raised when the install directory is a filesystem root or unusable."""

    exit_code = 2


class MissingSourceError(ToolsetKitError):
    """Raised when a local path referenced by a tool does not exist."""

    exit_code = 2

    def __init__(self, name: str, path):
        self.name = name
        self.path = path
        super().__init__(
            f"unable to install '{name}' because the path to its installer "
            f"'{path}' does not exist"
        )


class UnusableUrlError(ToolsetKitError):
    """Raised when a URL has no extractable file name."""

    exit_code = 2

    def __init__(self, url: str, reason: str = "doesn't appear to be a downloadable file"):
        self.url = url
        super().__init__(f"'{url}' {reason}")


class ManifestError(ToolsetKitError):
    """Raised when a toolset manifest cannot be read or has an invalid shape."""

    exit_code = 2


# ============================================================================
# Acquisition Exceptions
# ============================================================================


class FetchFailedError(ToolsetKitError):
    """Raised when a download fails."""

    pass


class ExtractFailedError(ToolsetKitError):
    """Raised when an archive cannot be extracted."""

    pass


class CopyFailedError(ToolsetKitError):
    """Raised when a file or directory cannot be copied."""

    pass


# ============================================================================
# Execution Exceptions
# ============================================================================


class SubprocessFailedError(ToolsetKitError):
    """Raised when an external program exits with a non-zero status."""

    def __init__(self, program: str, code: Optional[int], detail: str = ""):
        self.program = program
        self.code = code
        if code is None:
            msg = f"unable to run '{program}'"
        else:
            msg = f"'{program}' exited with status {code}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


# ============================================================================
# Tool Exceptions
# ============================================================================


class NoCustomRecipeError(ToolsetKitError):
    """Raised when a tool has no custom install/uninstall recipe."""

    def __init__(self, name: str, action: str = "install"):
        self.name = name
        super().__init__(f"no custom {action} instruction for '{name}'")


class ToolInstallFailedError(ToolsetKitError):
    """Wraps any error raised while installing a single tool."""

    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(f"failed to install '{name}'")

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return getattr(self.cause, "exit_code", 1)


# ============================================================================
# Session Exceptions
# ============================================================================


class UntrustedRootError(ToolsetKitError):
    """Raised when the uninstall safety check on the install root fails."""

    pass


class InstallLockedError(ToolsetKitError):
    """Raised when another session holds the install root."""

    pass


class EnvPersistError(ToolsetKitError):
    """Raised when environment changes cannot be written or removed."""

    pass


class RemoveFailedError(ToolsetKitError):
    """Raised when installed files cannot be removed."""

    pass


def iter_causes(error: BaseException):
    """Yield the chain of causes below ``error``, nearest first."""
    seen = {id(error)}
    current = error.__cause__ or getattr(error, "cause", None)
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or getattr(current, "cause", None)


__all__ = [
    "ToolsetKitError",
    "InvalidInstallDirError",
    "MissingSourceError",
    "UnusableUrlError",
    "ManifestError",
    "FetchFailedError",
    "ExtractFailedError",
    "CopyFailedError",
    "SubprocessFailedError",
    "NoCustomRecipeError",
    "ToolInstallFailedError",
    "UntrustedRootError",
    "InstallLockedError",
    "EnvPersistError",
    "RemoveFailedError",
    "iter_causes",
]
