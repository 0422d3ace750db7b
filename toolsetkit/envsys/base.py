"""
Platform capability interface for persisting environment changes.

The installer never edits shell profiles or the registry directly; it goes
through an EnvPlatform so the orchestrator stays OS-agnostic and tests can
swap in an in-memory implementation.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Sequence, Tuple

from toolsetkit.core.exceptions import EnvPersistError

logger = logging.getLogger(__name__)

EnvBinding = Tuple[str, str]


@contextmanager
def env_errors(action: str):
    """Turn OS errors raised while doing ``action`` into EnvPersistError."""
    try:
        yield
    except (OSError, UnicodeError) as e:
        raise EnvPersistError(f"unable to {action}: {e}") from e


class EnvPlatform(ABC):
    """
    Abstract interface for durable, per-user environment changes.

    Every change must survive new shells and reboots.
    """

    @abstractmethod
    def persist_env(self, bindings: Sequence[EnvBinding]) -> None:
        """Make each ``(name, value)`` binding durable."""
        pass

    @abstractmethod
    def remove_env(self, names: Iterable[str]) -> None:
        """Remove previously persisted variables."""
        pass

    @abstractmethod
    def add_to_path(self, path: Path) -> None:
        """Prepend ``path`` to the persisted PATH (idempotent)."""
        pass

    @abstractmethod
    def remove_from_path(self, path: Path) -> None:
        """Remove ``path`` from the persisted PATH."""
        pass

    def register_installed_program(self, exe_path: Path) -> None:
        """Register ``exe_path`` in the OS list of installed programs."""
        logger.debug(f"No installed-program registry on this platform ({exe_path})")

    def unregister_installed_program(self, exe_path: Path) -> None:
        """Reverse register_installed_program."""
        logger.debug(f"No installed-program registry on this platform ({exe_path})")


class DryRunEnvPlatform(EnvPlatform):
    """Logs every change instead of applying it."""

    def persist_env(self, bindings: Sequence[EnvBinding]) -> None:
        for name, value in bindings:
            logger.info(f"[dry-run] would set {name}={value}")

    def remove_env(self, names: Iterable[str]) -> None:
        for name in names:
            logger.info(f"[dry-run] would remove {name}")

    def add_to_path(self, path: Path) -> None:
        logger.info(f"[dry-run] would add '{path}' to PATH")

    def remove_from_path(self, path: Path) -> None:
        logger.info(f"[dry-run] would remove '{path}' from PATH")
