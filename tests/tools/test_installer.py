"""
Unit tests for the unmanaged tool installer.
"""

import io
import os
import tarfile

import pytest

from toolsetkit.config.manifest import LocalPath, Remote
from toolsetkit.core.exceptions import (
    MissingSourceError,
    ToolInstallFailedError,
    UnusableUrlError,
)
from toolsetkit.core.filesystem import is_executable
from toolsetkit.tools.installer import (
    InstallMethod,
    ToolInstaller,
    UnsupportedToolLayoutError,
)

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")


def _tar_gz(path, members):
    with tarfile.open(path, "w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return path


class TestGenericStrategies:
    """Test install strategies picked from the acquired files."""

    @posix_only
    def test_single_executable(self, config, env_platform, tmp_path, make_executable_file):
        source = make_executable_file(tmp_path / "src" / "fmt-helper")

        installed = ToolInstaller(config).install("fmt-helper", LocalPath(source))

        target = config.layout.tools() / "fmt-helper" / "fmt-helper"
        assert installed.method is InstallMethod.EXECUTABLE
        assert installed.location == target
        assert is_executable(target)
        assert env_platform.path == [config.layout.tools() / "fmt-helper"]

    def test_directory_with_bin(self, config, env_platform, tmp_path):
        (tmp_path / "pkg" / "bin").mkdir(parents=True)
        (tmp_path / "pkg" / "bin" / "run").write_text("x")
        (tmp_path / "pkg" / "lib").mkdir()

        installed = ToolInstaller(config).install("pkg", LocalPath(tmp_path / "pkg"))

        tool_dir = config.layout.tools() / "pkg"
        assert installed.method is InstallMethod.DIRECTORY
        assert (tool_dir / "bin" / "run").read_text() == "x"
        assert (tool_dir / "lib").is_dir()
        assert env_platform.path == [tool_dir / "bin"]

    def test_lib_only_directory_not_on_path(self, config, env_platform, tmp_path):
        (tmp_path / "sdk" / "lib").mkdir(parents=True)
        (tmp_path / "sdk" / "lib" / "libx.a").write_text("x")

        ToolInstaller(config).install("sdk", LocalPath(tmp_path / "sdk"))

        assert (config.layout.tools() / "sdk" / "lib" / "libx.a").exists()
        assert env_platform.path == []

    def test_archive_with_wrapper_directory(self, config, env_platform, tmp_path):
        """Test a single top-level folder in an archive is unwrapped."""
        archive = _tar_gz(tmp_path / "tool-1.0.tar.gz", {"tool-1.0/bin/tool": b"x"})

        ToolInstaller(config).install("tool", LocalPath(archive))

        tool_dir = config.layout.tools() / "tool"
        assert (tool_dir / "bin" / "tool").exists()
        assert not (tool_dir / "tool-1.0").exists()
        assert env_platform.path == [tool_dir / "bin"]

    def test_remote_archive(self, config, env_platform, tmp_path, make_fetcher):
        url = "https://example/pkg/tool.tar.gz"
        fetcher = make_fetcher({url: _tar_gz(tmp_path / "s.tar.gz", {"bin/tool": b"x"})})

        ToolInstaller(config, fetcher=fetcher).install("tool", Remote(url))

        assert (config.layout.tools() / "tool" / "bin" / "tool").exists()

    @posix_only
    def test_directory_of_executables(self, config, env_platform, tmp_path, make_executable_file):
        make_executable_file(tmp_path / "cli" / "a")
        make_executable_file(tmp_path / "cli" / "b")
        (tmp_path / "cli" / "README").write_text("docs")

        ToolInstaller(config).install("cli", LocalPath(tmp_path / "cli"))

        tool_dir = config.layout.tools() / "cli"
        assert is_executable(tool_dir / "a")
        assert is_executable(tool_dir / "b")
        assert env_platform.path == [tool_dir]

    @posix_only
    def test_unsupported_layout(self, config, tmp_path):
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "a.txt").write_text("x")
        (tmp_path / "docs" / "b.txt").write_text("x")

        with pytest.raises(ToolInstallFailedError) as exc_info:
            ToolInstaller(config).install("docs", LocalPath(tmp_path / "docs"))

        assert isinstance(exc_info.value.cause, UnsupportedToolLayoutError)
        assert exc_info.value.name == "docs"

    def test_temp_dirs_released(self, config, tmp_path):
        archive = _tar_gz(tmp_path / "t.tar.gz", {"bin/t": b"x"})

        ToolInstaller(config).install("t", LocalPath(archive))

        assert list(config.layout.temp().iterdir()) == []


class TestFailures:
    """Test error wrapping."""

    def test_missing_source_wrapped(self, config, tmp_path):
        with pytest.raises(ToolInstallFailedError) as exc_info:
            ToolInstaller(config).install("gone", LocalPath(tmp_path / "missing"))

        assert isinstance(exc_info.value.cause, MissingSourceError)
        assert exc_info.value.__cause__ is exc_info.value.cause
        assert exc_info.value.exit_code == 2

    def test_unusable_url_wrapped(self, config, fetcher):
        with pytest.raises(ToolInstallFailedError) as exc_info:
            ToolInstaller(config, fetcher=fetcher).install("x", Remote("https://example/"))

        assert isinstance(exc_info.value.cause, UnusableUrlError)

    def test_earlier_tools_kept(self, config, tmp_path):
        (tmp_path / "ok" / "bin").mkdir(parents=True)
        (tmp_path / "ok" / "bin" / "ok").write_text("x")
        installer = ToolInstaller(config)
        installer.install("ok", LocalPath(tmp_path / "ok"))

        with pytest.raises(ToolInstallFailedError):
            installer.install("bad", LocalPath(tmp_path / "missing"))

        assert (config.layout.tools() / "ok" / "bin" / "ok").exists()


class TestInstallFromPath:
    """Test install_from_path with files already on disk."""

    def test_recipe_takes_precedence(self, config, env_platform, tmp_path):
        (tmp_path / "VSCode" / "bin").mkdir(parents=True)
        (tmp_path / "VSCode" / "bin" / "code").write_text("x")

        installed = ToolInstaller(config).install_from_path("vs-code", tmp_path / "VSCode")

        assert installed.method is InstallMethod.CUSTOM
        assert (config.layout.tools() / "vscode" / "data").is_dir()
