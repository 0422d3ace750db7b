"""
Pytest configuration and shared fixtures for ToolsetKit tests.
"""

import os
import shutil
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

from toolsetkit.config.install_config import InstallConfiguration
from toolsetkit.core.exceptions import SubprocessFailedError
from toolsetkit.core.platform import clear_platform_cache
from toolsetkit.core.process import RecordingExecutor
from toolsetkit.envsys.base import EnvPlatform


class MemoryEnvPlatform(EnvPlatform):
    """EnvPlatform keeping every change in memory."""

    def __init__(self):
        self.env: Dict[str, str] = {}
        self.path: List[Path] = []
        self.registered: List[Path] = []
        self.calls: List[str] = []

    def persist_env(self, bindings):
        self.calls.append("persist_env")
        self.env.update(dict(bindings))

    def remove_env(self, names):
        self.calls.append("remove_env")
        for name in names:
            self.env.pop(name, None)

    def add_to_path(self, path):
        self.calls.append("add_to_path")
        if Path(path) not in self.path:
            self.path.insert(0, Path(path))

    def remove_from_path(self, path):
        self.calls.append("remove_from_path")
        self.path = [p for p in self.path if p != Path(path)]

    def register_installed_program(self, exe_path):
        self.registered.append(Path(exe_path))

    def unregister_installed_program(self, exe_path):
        self.registered = [p for p in self.registered if p != Path(exe_path)]


class FakeFetcher:
    """
    Fetcher that records downloads and writes canned content.

    Args:
        files: URL -> local file copied to the destination; other URLs get
            a small placeholder file
    """

    def __init__(self, files=None):
        self.files = files or {}
        self.calls: List[Tuple[str, str, Path]] = []

    def download(self, display_name, url, dest, proxy=None):
        dest = Path(dest)
        self.calls.append((display_name, url, dest))
        dest.parent.mkdir(parents=True, exist_ok=True)
        source = self.files.get(url)
        if source is not None:
            shutil.copy2(source, dest)
        else:
            dest.write_bytes(b"#!/bin/sh\necho fake\n")
        return dest


class FailingExecutor(RecordingExecutor):
    """Records calls and raises for programs whose name is in ``fail``."""

    def __init__(self, fail=()):
        super().__init__()
        self.fail = set(fail)

    def run(self, program, args, env=None):
        self.calls.append((str(program), list(args)))
        if self.fail & {str(program), *args}:
            raise SubprocessFailedError(str(program), 101)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from the real home directory and PROFILE."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("USERPROFILE", str(tmp_path / "home"))
    monkeypatch.delenv("PROFILE", raising=False)
    monkeypatch.setenv("PATH", os.environ.get("PATH", ""))
    (tmp_path / "home").mkdir(exist_ok=True)
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def env_platform():
    return MemoryEnvPlatform()


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def install_dir(tmp_path):
    return tmp_path / "install"


@pytest.fixture
def config(install_dir, executor, env_platform):
    """InstallConfiguration over a fresh install root with fake collaborators."""
    return InstallConfiguration.init(
        install_dir, executor=executor, env_platform=env_platform
    )


@pytest.fixture
def make_executable_file():
    """Create an executable file with some content."""

    def _make(path: Path, content: str = "#!/bin/sh\necho hi\n") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def failing_executor():
    return FailingExecutor
