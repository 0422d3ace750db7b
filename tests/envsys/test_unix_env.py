"""
Unit tests for shell rc file persistence.
"""

import os
from pathlib import Path

import pytest

from toolsetkit.core.exceptions import EnvPersistError
from toolsetkit.envsys import DryRunEnvPlatform, get_env_platform
from toolsetkit.envsys.unix import MARKER, UnixEnvPlatform

pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX shell rc files")


@pytest.fixture(autouse=True)
def _restore_environ(monkeypatch):
    for name in ("PKG_HOME", "UPDATE_ROOT"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def home(tmp_path):
    home = tmp_path / "rc-home"
    home.mkdir()
    return home


class TestPersistEnv:
    """Test persist_env and remove_env."""

    def test_writes_marked_exports(self, home):
        UnixEnvPlatform(home).persist_env([("PKG_HOME", "/opt/t/.pkg")])

        lines = (home / ".profile").read_text().splitlines()
        assert lines == [f"export PKG_HOME=/opt/t/.pkg  {MARKER}"]
        assert os.environ["PKG_HOME"] == "/opt/t/.pkg"

    def test_values_are_quoted(self, home):
        UnixEnvPlatform(home).persist_env([("PKG_HOME", "/opt/my tools/.pkg")])

        assert "'/opt/my tools/.pkg'" in (home / ".profile").read_text()

    def test_persist_twice_replaces(self, home):
        platform = UnixEnvPlatform(home)
        platform.persist_env([("PKG_HOME", "/a")])
        platform.persist_env([("PKG_HOME", "/b")])

        text = (home / ".profile").read_text()
        assert text.count("export PKG_HOME=") == 1
        assert "/b" in text

    def test_existing_rc_files_updated(self, home):
        (home / ".bashrc").write_text("alias ll='ls -l'")

        UnixEnvPlatform(home).persist_env([("UPDATE_ROOT", "https://u")])

        bashrc = (home / ".bashrc").read_text().splitlines()
        assert bashrc[0] == "alias ll='ls -l'"
        assert bashrc[1].startswith("export UPDATE_ROOT=")
        assert not (home / ".zshrc").exists()

    def test_remove_env_keeps_user_lines(self, home):
        (home / ".profile").write_text("export PKG_HOME=/mine\n")
        platform = UnixEnvPlatform(home)
        platform.persist_env([("PKG_HOME", "/opt/t/.pkg")])

        platform.remove_env(["PKG_HOME"])

        assert (home / ".profile").read_text() == "export PKG_HOME=/mine\n"
        assert "PKG_HOME" not in os.environ


class TestPath:
    """Test PATH entries."""

    def test_add_is_idempotent(self, home):
        platform = UnixEnvPlatform(home)
        platform.add_to_path(Path("/opt/t/.pkg/bin"))
        platform.add_to_path(Path("/opt/t/.pkg/bin"))

        text = (home / ".profile").read_text()
        assert text.count("/opt/t/.pkg/bin") == 1
        assert os.environ["PATH"].split(os.pathsep)[0] == "/opt/t/.pkg/bin"

    def test_remove(self, home):
        platform = UnixEnvPlatform(home)
        platform.add_to_path(Path("/opt/t/tools/foo"))

        platform.remove_from_path(Path("/opt/t/tools/foo"))

        assert "/opt/t/tools/foo" not in (home / ".profile").read_text()
        assert "/opt/t/tools/foo" not in os.environ["PATH"].split(os.pathsep)


class TestUnwritableRcFiles:
    """Test rc files that cannot be read or written."""

    def test_profile_is_directory(self, home):
        (home / ".profile").mkdir()

        with pytest.raises(EnvPersistError, match="unable to persist environment variables"):
            UnixEnvPlatform(home).persist_env([("PKG_HOME", "/opt/t/.pkg")])

        assert "PKG_HOME" not in os.environ

    def test_add_to_path_on_directory(self, home):
        (home / ".profile").mkdir()

        with pytest.raises(EnvPersistError, match="to PATH"):
            UnixEnvPlatform(home).add_to_path(Path("/opt/t/.pkg/bin"))

    def test_rc_file_not_utf8(self, home):
        (home / ".profile").write_bytes(b"export X=\xff\n")

        with pytest.raises(EnvPersistError) as exc_info:
            UnixEnvPlatform(home).remove_env(["PKG_HOME"])

        assert exc_info.value.exit_code == 1


class TestGetEnvPlatform:
    """Test platform selection."""

    def test_dry_run(self):
        assert isinstance(get_env_platform(dry_run=True), DryRunEnvPlatform)

    def test_posix(self):
        assert isinstance(get_env_platform(), UnixEnvPlatform)
