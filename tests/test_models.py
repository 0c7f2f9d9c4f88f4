"""Tests for models module."""

import pytest
from pydantic import ValidationError

from driverbuilder.config import TargetType
from driverbuilder.exceptions import ConfigurationError, InvalidKernelReleaseError
from driverbuilder.models import BuildConfig, KernelRelease, normalize_architecture


class TestKernelRelease:
    """Tests for KernelRelease class."""

    def test_parse_amazonlinux2_release(self):
        """Test parsing a full Amazon Linux 2 release."""
        kr = KernelRelease.parse("4.14.152-127.182.amzn2.x86_64")
        assert kr.fullversion == "4.14.152"
        assert kr.version == "4"
        assert kr.patchlevel == "14"
        assert kr.sublevel == "152"
        assert kr.extraversion == "127"
        assert kr.fullextraversion == "-127.182.amzn2.x86_64"

    def test_parse_without_extraversion(self):
        """Test parsing a bare version."""
        kr = KernelRelease.parse("5.10.0")
        assert kr.fullversion == "5.10.0"
        assert kr.fullextraversion == ""

    def test_parse_two_component_version(self):
        """Test parsing a version without sublevel."""
        kr = KernelRelease.parse("4.9-1.amzn1")
        assert kr.fullversion == "4.9"
        assert kr.sublevel == ""
        assert kr.fullextraversion == "-1.amzn1"

    @pytest.mark.parametrize("release", ["", "kernel", "linux-5.10", "05.10.0"])
    def test_parse_invalid(self, release):
        """Test invalid releases raise."""
        with pytest.raises(InvalidKernelReleaseError):
            KernelRelease.parse(release)

    def test_str_round_trip(self):
        """Test string representation."""
        assert str(KernelRelease.parse("4.14.152-127.182.amzn2.x86_64")) == "4.14.152-127.182.amzn2.x86_64"

    def test_immutable(self):
        """Parsed releases cannot be modified."""
        kr = KernelRelease.parse("5.10.0-1.el2.x86_64")
        with pytest.raises(ValidationError):
            kr.fullversion = "6.1.0"

    @pytest.mark.parametrize("release,arch,expected", [
        ("5.10.0-1.el2.x86_64", "x86_64", "1.el2"),
        ("4.14.152-127.182.amzn2.x86_64", "x86_64", "127.182.amzn2"),
        ("4.14.152-127.182.amzn2", "x86_64", "127.182.amzn2"),
        ("4.14.152-127.182.amzn2.aarch64", "aarch64", "127.182.amzn2"),
        ("4.14.152-127.182.amzn2.aarch64", "x86_64", "127.182.amzn2.aarch64"),
        ("4.9.85-38.58.amzn1.x86_64", "x86_64", "38.58.amzn1"),
        ("5.10.0", "x86_64", ""),
    ])
    def test_package_release(self, release, arch, expected):
        """Arch suffix and one leading hyphen are stripped."""
        assert KernelRelease.parse(release).package_release(arch) == expected

    def test_package_release_from_fields(self):
        """Derivation works on the raw extraversion field."""
        kr = KernelRelease(
            fullversion="4.14.152",
            version="4",
            patchlevel="14",
            fullextraversion="-152.320.amzn2",
        )
        assert kr.package_release("x86_64") == "152.320.amzn2"


class TestBuildConfig:
    """Tests for BuildConfig class."""

    def test_defaults(self):
        """Test default values."""
        build = BuildConfig(target="amazonlinux2", kernel_release="5.10.0-1.el2.x86_64")
        assert build.target == TargetType.AMAZONLINUX2
        assert build.architecture == "x86_64"
        assert build.build_module is False
        assert build.build_probe is False

    def test_flags(self):
        """Build flags follow the output paths."""
        build = BuildConfig(
            target="amazonlinux",
            kernel_release="4.9.85-38.58.amzn1.x86_64",
            module_file_path="/out/probe.ko",
        )
        assert build.build_module is True
        assert build.build_probe is False

    def test_kernel_property(self):
        """Test parsed kernel."""
        build = BuildConfig(target="amazonlinux2", kernel_release="5.10.0-1.el2.x86_64")
        assert build.kernel.fullversion == "5.10.0"

    def test_architecture_alias(self):
        """Debian-style names are normalized."""
        build = BuildConfig(target="amazonlinux2", kernel_release="5.10.0", architecture="arm64")
        assert build.architecture == "aarch64"

    def test_invalid_architecture(self):
        """Test unsupported architecture."""
        with pytest.raises(ValidationError):
            BuildConfig(target="amazonlinux2", kernel_release="5.10.0", architecture="s390x")

    def test_invalid_release(self):
        """Test invalid kernel release."""
        with pytest.raises(ValidationError):
            BuildConfig(target="amazonlinux2", kernel_release="latest")

    def test_invalid_target(self):
        """Test unknown target."""
        with pytest.raises(ValidationError):
            BuildConfig(target="ubuntu", kernel_release="5.10.0")

    def test_from_yaml(self, tmp_path):
        """Test loading a driverkit config file."""
        path = tmp_path / "build.yaml"
        path.write_text(
            "kernelrelease: 4.14.152-127.182.amzn2.x86_64\n"
            "target: amazonlinux2\n"
            "architecture: amd64\n"
            "driverversion: 0.26.4\n"
            "output:\n"
            "  module: /tmp/out/probe.ko\n"
            "  probe: /tmp/out/probe.o\n"
        )
        build = BuildConfig.from_yaml(path)
        assert build.target == TargetType.AMAZONLINUX2
        assert build.kernel_release == "4.14.152-127.182.amzn2.x86_64"
        assert build.architecture == "x86_64"
        assert build.driver_version == "0.26.4"
        assert build.build_module and build.build_probe

    def test_from_yaml_missing_fields(self, tmp_path):
        """Test config without kernel release."""
        path = tmp_path / "build.yaml"
        path.write_text("target: amazonlinux2\n")
        with pytest.raises(ConfigurationError):
            BuildConfig.from_yaml(path)

    def test_from_yaml_not_a_mapping(self, tmp_path):
        """Test config that is a list."""
        path = tmp_path / "build.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            BuildConfig.from_yaml(path)

    def test_from_yaml_missing_file(self, tmp_path):
        """Test unreadable config."""
        with pytest.raises(ConfigurationError):
            BuildConfig.from_yaml(tmp_path / "missing.yaml")


def test_normalize_architecture():
    """Test architecture normalization."""
    assert normalize_architecture("amd64") == "x86_64"
    assert normalize_architecture(" x86_64 ") == "x86_64"
    assert normalize_architecture("ppc64le") == "ppc64le"
