"""
Environment persistence for Unix-like systems.

Variables and PATH entries are written as marked lines into the user's
shell startup files: ``~/.profile`` always, plus ``~/.bashrc`` and
``~/.zshrc`` when they exist. Every line ends with a marker comment so it
can be found and removed again on uninstall. The running process's
``os.environ`` is updated as well, so programs started later in the same
session see the new values.
"""

import logging
import os
import shlex
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from toolsetkit.envsys.base import EnvBinding, EnvPlatform, env_errors

logger = logging.getLogger(__name__)

MARKER = "# added by toolsetkit"


def _export_line(name: str, value: str) -> str:
    return f"export {name}={shlex.quote(value)}  {MARKER}"


def _path_line(path: Path) -> str:
    return f'export PATH="{path}:$PATH"  {MARKER} (PATH)'


class UnixEnvPlatform(EnvPlatform):
    """
    Persists environment changes into shell rc files.

    Args:
        home: Home directory holding the rc files (default: ``Path.home()``)
    """

    def __init__(self, home: Optional[Path] = None):
        self.home = Path(home) if home else Path.home()

    def rc_files(self) -> List[Path]:
        """Shell startup files to maintain."""
        files = [self.home / ".profile"]
        for name in (".bashrc", ".zshrc"):
            candidate = self.home / name
            if candidate.exists():
                files.append(candidate)
        return files

    def persist_env(self, bindings: Sequence[EnvBinding]) -> None:
        names = [name for name, _ in bindings]
        with env_errors("persist environment variables"):
            self._drop_lines(lambda line: self._is_export_of(line, names))
            self._append_lines([_export_line(name, value) for name, value in bindings])
        for name, value in bindings:
            os.environ[name] = value
        logger.debug(f"Persisted environment variables: {', '.join(names)}")

    def remove_env(self, names: Iterable[str]) -> None:
        names = list(names)
        with env_errors("remove environment variables"):
            self._drop_lines(lambda line: self._is_export_of(line, names))
        for name in names:
            os.environ.pop(name, None)

    def add_to_path(self, path: Path) -> None:
        line = _path_line(path)
        with env_errors(f"add '{path}' to PATH"):
            for rc in self.rc_files():
                if rc.exists() and line in rc.read_text(encoding="utf-8").splitlines():
                    continue
                self._append_to(rc, [line])

        entries = os.environ.get("PATH", "").split(os.pathsep)
        if str(path) not in entries:
            os.environ["PATH"] = os.pathsep.join([str(path), *filter(None, entries)])
        logger.debug(f"Added '{path}' to PATH")

    def remove_from_path(self, path: Path) -> None:
        line = _path_line(path)
        with env_errors(f"remove '{path}' from PATH"):
            self._drop_lines(lambda candidate: candidate == line)

        entries = os.environ.get("PATH", "").split(os.pathsep)
        os.environ["PATH"] = os.pathsep.join(e for e in entries if e != str(path))

    @staticmethod
    def _is_export_of(line: str, names: Sequence[str]) -> bool:
        if not line.endswith(MARKER):
            return False
        return any(line.startswith(f"export {name}=") for name in names)

    def _append_lines(self, lines: List[str]) -> None:
        for rc in self.rc_files():
            self._append_to(rc, lines)

    @staticmethod
    def _append_to(rc: Path, lines: List[str]) -> None:
        existing = rc.read_text(encoding="utf-8") if rc.exists() else ""
        with rc.open("a", encoding="utf-8", newline="\n") as f:
            if existing and not existing.endswith("\n"):
                f.write("\n")
            for line in lines:
                f.write(line + "\n")

    def _drop_lines(self, predicate) -> None:
        for rc in self.rc_files():
            if not rc.exists():
                continue
            lines = rc.read_text(encoding="utf-8").splitlines()
            kept = [line for line in lines if not predicate(line)]
            if len(kept) != len(lines):
                rc.write_text("".join(f"{line}\n" for line in kept), encoding="utf-8")
