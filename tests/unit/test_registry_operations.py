"""Unit tests for registry operations."""

import sys

import pytest

from jdeploy_uninstall.models.uninstall_manifest import RegistryRoot, RegistryValueType
from jdeploy_uninstall.services.registry_operations import WinRegistryOperations, delete_key_recursive

HKLM = RegistryRoot.HKEY_LOCAL_MACHINE


class TestInMemoryRegistryOperations:
    """Test the dictionary-backed registry."""

    def test_create_and_exists(self, registry):
        """Test keys exist once created."""
        assert not registry.key_exists("Software\\jDeploy")
        registry.create_key("Software\\jDeploy")
        assert registry.key_exists("Software\\jDeploy")

    def test_roots_are_separate(self, registry):
        """Test the same path under two hives is two keys."""
        registry.create_key("Software\\jDeploy", HKLM)
        assert registry.key_exists("Software\\jDeploy", HKLM)
        assert not registry.key_exists("Software\\jDeploy")

    def test_set_and_get_value(self, registry):
        """Test values keep their data and type."""
        registry.set_string_value("Environment", "Path", "C:\\bin", RegistryValueType.REG_EXPAND_SZ)

        assert registry.key_exists("Environment")
        assert registry.value_exists("Environment", "Path")
        assert registry.get_string_value("Environment", "Path") == "C:\\bin"
        assert registry.get_value_type("Environment", "Path") == RegistryValueType.REG_EXPAND_SZ

    def test_missing_values(self, registry):
        """Test lookups on missing keys and values."""
        assert registry.get_string_value("Nope", "x") is None
        assert registry.get_value_type("Nope", "x") is None
        assert not registry.value_exists("Nope", "x")
        assert registry.get_values("Nope") == {}

    def test_default_value(self, registry):
        """Test the empty name addresses the default value."""
        registry.set_string_value("Software\\Classes\\.myapp", "", "MyApp.File")
        assert registry.get_string_value("Software\\Classes\\.myapp", "") == "MyApp.File"

    def test_delete_value_and_key(self, registry):
        """Test deletes, including of missing entries."""
        registry.set_string_value("Software\\x", "a", "1")
        registry.delete_value("Software\\x", "a")
        registry.delete_value("Software\\x", "a")
        assert not registry.value_exists("Software\\x", "a")

        registry.delete_key("Software\\x")
        registry.delete_key("Software\\x")
        assert not registry.key_exists("Software\\x")

    def test_get_keys_returns_immediate_children(self, registry):
        """Test subkey listing uses prefix matching one level deep."""
        registry.create_key("Software\\jDeploy\\a")
        registry.create_key("Software\\jDeploy\\a\\deep")
        registry.create_key("Software\\jDeploy\\b")
        registry.create_key("Software\\jDeployOther")

        assert registry.get_keys("Software\\jDeploy") == ["a", "b"]

    def test_dump(self, registry):
        """Test the diagnostic dump lists keys and values."""
        registry.set_string_value("Environment", "Path", "C:\\bin")
        dump = registry.dump()
        assert "HKEY_CURRENT_USER\\Environment" in dump
        assert "Path: C:\\bin [REG_SZ]" in dump

    def test_clear(self, registry):
        """Test clear empties the registry."""
        registry.create_key("Software\\x")
        registry.clear()
        assert not registry.key_exists("Software\\x")


class TestDeleteKeyRecursive:
    """Test recursive key removal."""

    def test_removes_subtree(self, registry):
        """Test subkeys and values go with the key."""
        registry.set_string_value("Software\\jDeploy\\my-app", "Version", "1.0")
        registry.set_string_value("Software\\jDeploy\\my-app\\Capabilities", "Name", "My App")
        registry.create_key("Software\\jDeploy\\my-app\\Capabilities\\FileAssociations")
        registry.create_key("Software\\jDeploy\\other-app")

        assert delete_key_recursive(registry, "Software\\jDeploy\\my-app") is True

        assert not registry.key_exists("Software\\jDeploy\\my-app")
        assert not registry.key_exists("Software\\jDeploy\\my-app\\Capabilities")
        assert not registry.key_exists("Software\\jDeploy\\my-app\\Capabilities\\FileAssociations")
        assert registry.key_exists("Software\\jDeploy\\other-app")

    def test_removes_keys_below_implicit_ancestors(self, registry):
        """Test keys created through missing intermediate keys are reached."""
        registry.create_key("A")
        registry.create_key("A\\B\\C")

        assert registry.key_exists("A\\B")
        assert delete_key_recursive(registry, "A") is True
        assert not registry.key_exists("A\\B\\C")
        assert not registry.key_exists("A\\B")
        assert not registry.key_exists("A")

    def test_missing_key(self, registry):
        """Test a missing key reports False."""
        assert delete_key_recursive(registry, "Software\\missing") is False

    def test_respects_root(self, registry):
        """Test only the given hive is touched."""
        registry.create_key("Software\\x", HKLM)
        registry.create_key("Software\\x")

        delete_key_recursive(registry, "Software\\x", HKLM)
        assert not registry.key_exists("Software\\x", HKLM)
        assert registry.key_exists("Software\\x")


@pytest.mark.skipif(sys.platform == "win32", reason="winreg is available on Windows")
def test_win_registry_requires_windows():
    """Test the winreg implementation cannot be built elsewhere."""
    with pytest.raises(ImportError):
        WinRegistryOperations()
