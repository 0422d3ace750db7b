"""
Unit tests for host platform detection.
"""

import pytest
from unittest.mock import patch

from toolsetkit.core.platform import PlatformInfo, detect_platform, host_target


class TestTargetTriple:
    """Test PlatformInfo.target_triple."""

    @pytest.mark.parametrize(
        "info, triple",
        [
            (PlatformInfo("linux", "x64", "gnu"), "x86_64-unknown-linux-gnu"),
            (PlatformInfo("linux", "arm64", "musl"), "aarch64-unknown-linux-musl"),
            (PlatformInfo("windows", "x64"), "x86_64-pc-windows-msvc"),
            (PlatformInfo("macos", "arm64"), "aarch64-apple-darwin"),
        ],
    )
    def test_triples(self, info, triple):
        assert info.target_triple() == triple

    def test_exe_suffix(self):
        assert PlatformInfo("windows", "x64").exe_suffix == ".exe"
        assert PlatformInfo("linux", "x64", "gnu").exe_suffix == ""

    def test_platform_string(self):
        assert PlatformInfo("macos", "arm64").platform_string() == "macos-arm64"


class TestDetection:
    """Test detect_platform."""

    def test_cached(self):
        assert detect_platform() is detect_platform()

    def test_host_target_matches_detection(self):
        assert host_target() == detect_platform().target_triple()

    def test_host_target_uses_detected_platform(self):
        with patch(
            "toolsetkit.core.platform.detect_platform",
            return_value=PlatformInfo("windows", "x64"),
        ):
            assert host_target() == "x86_64-pc-windows-msvc"
