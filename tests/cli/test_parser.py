"""
Tests for CLI argument parser and command dispatch.
"""

import os
from unittest.mock import patch

import pytest

from toolsetkit.cli.parser import CLI
from toolsetkit.core.exceptions import MissingSourceError, ToolInstallFailedError
from toolsetkit.core.platform import host_target
from toolsetkit.orchestrator import InstallReport, InstallState


@pytest.fixture
def manifest_file(tmp_path):
    path = tmp_path / "toolset.toml"
    path.write_text(
        "[toolchain]\n"
        'channel = "1.80.0"\n'
        "\n"
        f'[tools.target."{host_target()}"]\n'
        'foo = "1.2.3"\n'
        'vscode = { url = "https://example/code.tar.gz" }\n'
        'helper = { path = "helper", required = true }\n'
    )
    return path


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_no_command_shows_help(self, capsys):
        """Test that running without command shows help and is a misuse."""
        result = CLI().run([])

        assert result == 2
        assert "usage:" in capsys.readouterr().out.lower()

    def test_version_flag(self, capsys):
        assert CLI().run(["--version"]) == 0
        assert "ToolsetKit" in capsys.readouterr().out

    def test_unknown_command(self):
        assert CLI().run(["frobnicate"]) == 2


class TestInstallCommand:
    """Test install command parsing and dispatch."""

    def test_defaults(self):
        args = CLI().parse_args(["install"])

        assert args.command == "install"
        assert args.dry_run is False
        assert args.keep_going is None
        assert args.components is None
        assert args.registry is None

    def test_repeated_components(self):
        args = CLI().parse_args(["install", "--component", "a", "--component", "b"])

        assert args.components == ["a", "b"]

    def test_registry_parsed(self):
        args = CLI().parse_args(["install", "--registry", "mirror=https://m/index"])

        assert args.registry == ("mirror", "https://m/index")

    def test_bad_registry(self, capsys):
        assert CLI().run(["install", "--registry", "nonsense"]) == 2
        assert "NAME=URL" in capsys.readouterr().err

    def test_missing_manifest_setting(self, capsys):
        assert CLI().run(["install"]) == 2
        assert "ERROR: No toolset manifest" in capsys.readouterr().err

    def test_manifest_not_found(self, tmp_path, capsys):
        result = CLI().run(["install", "--manifest", str(tmp_path / "nope.toml")])

        assert result == 2
        assert "manifest not found" in capsys.readouterr().err

    def test_flags_reach_installer(self, manifest_file, tmp_path):
        with patch("toolsetkit.cli.commands.install.Installer") as installer_cls:
            installer_cls.return_value.run.return_value = InstallReport(
                state=InstallState.FINALIZED
            )

            result = CLI().run(
                [
                    "install",
                    "--manifest",
                    str(manifest_file),
                    "--install-dir",
                    str(tmp_path / "dest"),
                    "--dry-run",
                    "--keep-going",
                    "--component",
                    "fmt",
                    "--registry",
                    "mirror=https://m/index",
                ]
            )

        assert result == 0
        (install_dir,), kwargs = installer_cls.call_args
        assert install_dir == tmp_path / "dest"
        assert kwargs["dry_run"] is True
        assert kwargs["keep_going"] is True
        assert kwargs["components"] == ["fmt"]
        assert kwargs["package_registry"] == ("mirror", "https://m/index")

    def test_tool_failure_exit_code(self, manifest_file, tmp_path, capsys):
        """Test a tool whose source is missing exits with the misuse code."""
        error = ToolInstallFailedError("helper", MissingSourceError("helper", tmp_path / "helper"))

        with patch("toolsetkit.cli.commands.install.Installer") as installer_cls:
            installer_cls.return_value.run.side_effect = error
            result = CLI().run(["install", "--manifest", str(manifest_file)])

        assert result == 2
        err = capsys.readouterr().err
        assert "ERROR: failed to install 'helper'" in err
        assert "caused by:" in err

    def test_keep_going_failures_exit_one(self, manifest_file):
        error = ToolInstallFailedError("x", RuntimeError("boom"))
        report = InstallReport(state=InstallState.FINALIZED, failures={"x": error})

        with patch("toolsetkit.cli.commands.install.Installer") as installer_cls:
            installer_cls.return_value.run.return_value = report
            result = CLI().run(["install", "--manifest", str(manifest_file), "--keep-going"])

        assert result == 1

    def test_keyboard_interrupt(self, manifest_file):
        with patch("toolsetkit.cli.commands.install.Installer") as installer_cls:
            installer_cls.return_value.run.side_effect = KeyboardInterrupt
            result = CLI().run(["install", "--manifest", str(manifest_file)])

        assert result == 130

    @pytest.mark.skipif(os.name == "nt", reason="POSIX shell rc files")
    def test_profile_is_directory(self, manifest_file, tmp_path, capsys):
        """Test an unwritable ~/.profile ends in an error message, not a traceback."""
        (tmp_path / "home" / ".profile").mkdir()

        result = CLI().run(
            ["install", "--manifest", str(manifest_file), "--install-dir", str(tmp_path / "dest")]
        )

        assert result == 1
        err = capsys.readouterr().err
        assert "ERROR: unable to persist environment variables" in err
        assert "Traceback" not in err

    def test_unexpected_os_error(self, manifest_file, capsys):
        with patch("toolsetkit.cli.commands.install.Installer") as installer_cls:
            installer_cls.return_value.run.side_effect = PermissionError(13, "Permission denied")
            result = CLI().run(["install", "--manifest", str(manifest_file)])

        assert result == 1
        assert "ERROR: [Errno 13] Permission denied" in capsys.readouterr().err


class TestSettingsFile:
    """Test merging the settings file with flags."""

    def test_settings_used_when_flag_missing(self, manifest_file, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text(
            f"manifest: {manifest_file}\n"
            f"install_dir: {tmp_path / 'from-settings'}\n"
            "keep_going: true\n"
            "registry:\n"
            "  name: corp\n"
            "  url: https://corp/index\n"
        )

        with patch("toolsetkit.cli.commands.install.Installer") as installer_cls:
            installer_cls.return_value.run.return_value = InstallReport(
                state=InstallState.FINALIZED
            )
            result = CLI().run(["--config", str(settings), "install"])

        assert result == 0
        (install_dir,), kwargs = installer_cls.call_args
        assert install_dir == tmp_path / "from-settings"
        assert kwargs["keep_going"] is True
        assert kwargs["package_registry"] == ("corp", "https://corp/index")

    def test_flag_beats_settings(self, manifest_file, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text(f"manifest: {manifest_file}\ninstall_dir: /somewhere\n")

        with patch("toolsetkit.cli.commands.install.Installer") as installer_cls:
            installer_cls.return_value.run.return_value = InstallReport(
                state=InstallState.FINALIZED
            )
            CLI().run(
                ["--config", str(settings), "install", "--install-dir", str(tmp_path / "flag")]
            )

        (install_dir,), _ = installer_cls.call_args
        assert install_dir == tmp_path / "flag"

    def test_default_settings_file(self, manifest_file, tmp_path):
        (tmp_path / "home" / ".toolsetkit.yaml").write_text(f"manifest: {manifest_file}\n")

        with patch("toolsetkit.cli.commands.install.Installer") as installer_cls:
            installer_cls.return_value.run.return_value = InstallReport(
                state=InstallState.FINALIZED
            )
            assert CLI().run(["install"]) == 0

    def test_missing_explicit_settings_file(self, tmp_path, capsys):
        result = CLI().run(["--config", str(tmp_path / "none.yaml"), "install"])

        assert result == 2
        assert "Configuration file not found" in capsys.readouterr().err


class TestUninstallCommand:
    """Test uninstall command dispatch."""

    def test_passes_install_dir(self, tmp_path):
        with patch("toolsetkit.cli.commands.uninstall.Uninstaller") as uninstaller_cls:
            uninstaller_cls.return_value.run.return_value = tmp_path
            result = CLI().run(["uninstall", "--install-dir", str(tmp_path), "--keep-self"])

        assert result == 0
        uninstaller_cls.return_value.run.assert_called_once_with(
            install_root=tmp_path, keep_self=True
        )

    def test_untrusted_root(self, tmp_path, capsys):
        result = CLI().run(["uninstall", "--install-dir", str(tmp_path)])

        assert result == 1
        assert "appears to be corrupted" in capsys.readouterr().err
        assert tmp_path.exists()


class TestListCommand:
    """Test the list command."""

    def test_lists_host_tools(self, manifest_file, capsys):
        assert CLI().run(["list", "--manifest", str(manifest_file)]) == 0

        out = capsys.readouterr().out
        assert "toolchain: 1.80.0 (minimal)" in out
        assert "foo (managed)" in out
        assert "vscode (custom recipe)" in out
        assert "helper (path, required)" in out

    def test_other_target_empty(self, manifest_file, capsys):
        result = CLI().run(
            ["list", "--manifest", str(manifest_file), "--target", "no-such-target"]
        )

        assert result == 0
        assert "foo" not in capsys.readouterr().out
