"""
Unit tests for subprocess execution.
"""

import sys

import pytest
from unittest.mock import MagicMock, patch

from toolsetkit.core.exceptions import SubprocessFailedError
from toolsetkit.core.process import Executor, RecordingExecutor


class TestExecutor:
    """Test Executor."""

    def test_success(self):
        """Test a zero exit status returns normally."""
        Executor().run(sys.executable, ["-c", "pass"])

    def test_non_zero_exit(self):
        """Test a non-zero exit raises with the status."""
        with pytest.raises(SubprocessFailedError) as exc_info:
            Executor().run(sys.executable, ["-c", "raise SystemExit(3)"])

        assert exc_info.value.code == 3

    def test_missing_program(self, tmp_path):
        """Test a program that cannot be started raises with code None."""
        with pytest.raises(SubprocessFailedError) as exc_info:
            Executor().run(tmp_path / "does-not-exist", [])

        assert exc_info.value.code is None
        assert "unable to run" in str(exc_info.value)

    def test_env_layered_over_current(self):
        """Test extra variables are added to the inherited environment."""
        with patch("toolsetkit.core.process.subprocess.run") as run:
            run.return_value = MagicMock(returncode=0)
            Executor().run("pkg", ["install"], env={"PKG_HOME": "/x"})

        env = run.call_args.kwargs["env"]
        assert env["PKG_HOME"] == "/x"
        assert "PATH" in env


class TestRecordingExecutor:
    """Test RecordingExecutor."""

    def test_records_without_running(self):
        """Test calls are recorded and nothing is started."""
        executor = RecordingExecutor()

        with patch("toolsetkit.core.process.subprocess.run") as run:
            executor.run("pkg", ["install", "foo"])

        run.assert_not_called()
        assert executor.calls == [("pkg", ["install", "foo"])]
