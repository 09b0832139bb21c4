"""Unit tests for package naming, on-disk layout and platform detection."""

import hashlib
from unittest.mock import patch

import pytest

from jdeploy_uninstall.lib import platform_utils
from jdeploy_uninstall.lib.paths import (
    compute_fully_qualified_package_name,
    get_all_possible_package_paths,
    get_app_dir,
    get_manifest_file,
    get_uninstaller_dir,
)

GITHUB_SOURCE = "https://github.com/acme/my-app"


class TestFullyQualifiedName:
    """Test storage key derivation."""

    def test_npm_package_uses_name(self):
        """Test packages without a source keep their name."""
        assert compute_fully_qualified_package_name("my-app") == "my-app"
        assert compute_fully_qualified_package_name("my-app", "") == "my-app"

    def test_github_package_is_prefixed_with_source_hash(self):
        """Test GitHub packages are keyed by the MD5 of their source."""
        digest = hashlib.md5(GITHUB_SOURCE.encode("utf-8")).hexdigest()
        assert compute_fully_qualified_package_name("my-app", GITHUB_SOURCE) == f"{digest}.my-app"

    def test_same_name_different_sources_differ(self):
        """Test two repositories publishing one name do not collide."""
        first = compute_fully_qualified_package_name("my-app", "https://github.com/a/my-app")
        second = compute_fully_qualified_package_name("my-app", "https://github.com/b/my-app")
        assert first != second

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_rejected(self, name):
        """Test a package name is required."""
        with pytest.raises(ValueError):
            compute_fully_qualified_package_name(name)

    def test_scoped_npm_name_allowed(self):
        """Test @scope/name is a valid storage key."""
        assert compute_fully_qualified_package_name("@myorg/my-app") == "@myorg/my-app"

    @pytest.mark.parametrize("name", [
        ".", "..", "../other", "a/b", "@scope/..", "@/x", "@a/b/c", "my-app/", "a\\b", "C:app",
    ])
    def test_path_like_names_rejected(self, name, jdeploy_home):
        """Test names that would resolve outside their package directory."""
        with pytest.raises(ValueError):
            compute_fully_qualified_package_name(name)
        with pytest.raises(ValueError):
            get_all_possible_package_paths(name, None, jdeploy_home, "x64")


class TestLayout:
    """Test locations derived from the configured jDeploy home."""

    def test_manifest_file_location(self, jdeploy_home):
        """Test manifests live under manifests/<arch>/<fqn>/."""
        assert get_manifest_file("my-app") == (
            jdeploy_home / "manifests" / "x64" / "my-app" / "uninstall-manifest.xml"
        )

    def test_manifest_file_explicit_root(self, tmp_path):
        """Test the manifests root and architecture can be overridden."""
        path = get_manifest_file("my-app", None, manifests_dir=tmp_path, architecture="arm64")
        assert path == tmp_path / "arm64" / "my-app" / "uninstall-manifest.xml"

    def test_app_and_uninstaller_dirs(self, jdeploy_home):
        """Test per-package app and uninstaller directories."""
        fqn = compute_fully_qualified_package_name("my-app", GITHUB_SOURCE)
        assert get_app_dir("my-app", GITHUB_SOURCE) == jdeploy_home / "apps" / fqn
        assert get_uninstaller_dir("my-app", GITHUB_SOURCE) == jdeploy_home / "uninstallers" / fqn

    def test_npm_package_paths(self, jdeploy_home):
        """Test npm packages live under packages-<arch> and legacy packages."""
        assert get_all_possible_package_paths("my-app") == [
            jdeploy_home / "packages-x64" / "my-app",
            jdeploy_home / "packages" / "my-app",
        ]

    def test_scoped_npm_package_uses_leaf_name(self, jdeploy_home):
        """Test scoped npm names use the part after the scope."""
        paths = get_all_possible_package_paths("@acme/my-app")
        assert paths[0] == jdeploy_home / "packages-x64" / "my-app"

    def test_github_package_paths(self, jdeploy_home):
        """Test GitHub packages live under gh-packages and use the fqn."""
        fqn = compute_fully_qualified_package_name("my-app", GITHUB_SOURCE)
        assert get_all_possible_package_paths("my-app", GITHUB_SOURCE) == [
            jdeploy_home / "gh-packages-x64" / fqn,
            jdeploy_home / "gh-packages" / fqn,
        ]


class TestPlatformUtils:
    """Test OS and architecture detection."""

    @pytest.mark.parametrize("system,expected", [
        ("Windows", "windows"),
        ("Darwin", "macos"),
        ("Linux", "linux"),
    ])
    def test_get_platform(self, system, expected):
        """Test platform.system() values map to platform names."""
        with patch("platform.system", return_value=system):
            assert platform_utils.get_platform() == expected

    def test_is_windows_with_explicit_name(self):
        """Test an explicit OS name overrides detection."""
        assert platform_utils.is_windows("windows")
        assert not platform_utils.is_windows("linux")

    @pytest.mark.parametrize("machine,expected", [
        ("x86_64", "x64"),
        ("AMD64", "x64"),
        ("aarch64", "arm64"),
        ("arm64", "arm64"),
        ("i686", "x86"),
    ])
    def test_get_architecture(self, machine, expected):
        """Test machine types map to architecture tokens."""
        with patch("platform.machine", return_value=machine):
            assert platform_utils.get_architecture() == expected
