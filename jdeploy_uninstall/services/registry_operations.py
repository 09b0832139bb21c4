"""Windows registry access behind a swappable capability.

``WinRegistryOperations`` talks to the real registry through ``winreg`` and
is only constructible on Windows. ``InMemoryRegistryOperations`` keeps keys
in a dictionary and is used by tests and on other platforms.

Keys are backslash-separated paths relative to a root hive, e.g.
``Software\\Clients\\StartMenuInternet\\MyApp``. The empty value name is the
key's default value.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from ..core.lib_logger import get_logger
from ..lib.exceptions import RegistryOperationError
from ..models.uninstall_manifest import RegistryRoot, RegistryValueType

logger = get_logger(__name__)

HKCU = RegistryRoot.HKEY_CURRENT_USER


class RegistryOperations(ABC):
    """Registry operations needed to record and reverse installs."""

    @abstractmethod
    def key_exists(self, key: str, root: RegistryRoot = HKCU) -> bool:
        pass

    @abstractmethod
    def value_exists(self, key: str, name: str, root: RegistryRoot = HKCU) -> bool:
        pass

    @abstractmethod
    def get_string_value(self, key: str, name: str, root: RegistryRoot = HKCU) -> Optional[str]:
        """Get a value rendered as a string, or None if it does not exist."""

    @abstractmethod
    def get_value_type(self, key: str, name: str, root: RegistryRoot = HKCU) -> Optional[RegistryValueType]:
        pass

    @abstractmethod
    def set_string_value(
        self,
        key: str,
        name: str,
        value: str,
        value_type: RegistryValueType = RegistryValueType.REG_SZ,
        root: RegistryRoot = HKCU
    ) -> None:
        """Set a value from its string form, creating the key if needed."""

    @abstractmethod
    def create_key(self, key: str, root: RegistryRoot = HKCU) -> None:
        pass

    @abstractmethod
    def delete_key(self, key: str, root: RegistryRoot = HKCU) -> None:
        """Delete a key without subkeys; missing keys are ignored."""

    @abstractmethod
    def delete_value(self, key: str, name: str, root: RegistryRoot = HKCU) -> None:
        """Delete a value; missing keys or values are ignored."""

    @abstractmethod
    def get_keys(self, key: str, root: RegistryRoot = HKCU) -> List[str]:
        """List the names of a key's immediate subkeys."""

    @abstractmethod
    def get_values(self, key: str, root: RegistryRoot = HKCU) -> Dict[str, str]:
        """Map a key's value names to their string forms."""


def delete_key_recursive(registry: RegistryOperations, key: str, root: RegistryRoot = HKCU) -> bool:
    """Delete a key with all its subkeys and values.

    Returns False when the key did not exist.
    """
    if not registry.key_exists(key, root):
        return False

    for subkey in registry.get_keys(key, root):
        delete_key_recursive(registry, f"{key}\\{subkey}", root)

    for name in registry.get_values(key, root):
        registry.delete_value(key, name, root)

    registry.delete_key(key, root)
    return True


class InMemoryRegistryOperations(RegistryOperations):
    """Dictionary-backed registry."""

    def __init__(self):
        self._keys: Dict[Tuple[RegistryRoot, str], Dict[str, Tuple[str, RegistryValueType]]] = {}

    def clear(self) -> None:
        """Remove every key."""
        self._keys.clear()

    def dump(self) -> str:
        """Render the whole registry for test diagnostics."""
        lines = ["InMemoryRegistry{"]
        for (root, key), values in sorted(self._keys.items()):
            lines.append(f"  {root.value}\\{key} = {{")
            for name, (value, value_type) in sorted(values.items()):
                lines.append(f"    {name or '(default)'}: {value} [{value_type.value}]")
            lines.append("  }")
        lines.append("}")
        return "\n".join(lines)

    def key_exists(self, key: str, root: RegistryRoot = HKCU) -> bool:
        return (root, key) in self._keys

    def value_exists(self, key: str, name: str, root: RegistryRoot = HKCU) -> bool:
        return name in self._keys.get((root, key), {})

    def get_string_value(self, key: str, name: str, root: RegistryRoot = HKCU) -> Optional[str]:
        entry = self._keys.get((root, key), {}).get(name)
        return entry[0] if entry else None

    def get_value_type(self, key: str, name: str, root: RegistryRoot = HKCU) -> Optional[RegistryValueType]:
        entry = self._keys.get((root, key), {}).get(name)
        return entry[1] if entry else None

    def set_string_value(
        self,
        key: str,
        name: str,
        value: str,
        value_type: RegistryValueType = RegistryValueType.REG_SZ,
        root: RegistryRoot = HKCU
    ) -> None:
        self.create_key(key, root)
        self._keys[(root, key)][name] = (value, value_type)

    def create_key(self, key: str, root: RegistryRoot = HKCU) -> None:
        # Like RegCreateKeyEx, missing ancestors are created too
        parts = key.split("\\")
        for depth in range(1, len(parts) + 1):
            self._keys.setdefault((root, "\\".join(parts[:depth])), {})

    def delete_key(self, key: str, root: RegistryRoot = HKCU) -> None:
        self._keys.pop((root, key), None)

    def delete_value(self, key: str, name: str, root: RegistryRoot = HKCU) -> None:
        self._keys.get((root, key), {}).pop(name, None)

    def get_keys(self, key: str, root: RegistryRoot = HKCU) -> List[str]:
        prefix = key + "\\"
        subkeys = set()
        for key_root, path in self._keys:
            if key_root == root and path.startswith(prefix):
                subkeys.add(path[len(prefix):].split("\\", 1)[0])
        return sorted(subkeys)

    def get_values(self, key: str, root: RegistryRoot = HKCU) -> Dict[str, str]:
        return {name: value for name, (value, _) in self._keys.get((root, key), {}).items()}


class WinRegistryOperations(RegistryOperations):
    """Registry access through the standard library ``winreg`` module.

    String forms: DWORD and QWORD values are decimal, REG_MULTI_SZ entries
    are joined with newlines and REG_BINARY data is hex.
    """

    def __init__(self):
        """Bind the winreg module; raises ImportError off Windows."""
        import winreg
        self._winreg = winreg
        self._roots = {
            RegistryRoot.HKEY_CURRENT_USER: winreg.HKEY_CURRENT_USER,
            RegistryRoot.HKEY_LOCAL_MACHINE: winreg.HKEY_LOCAL_MACHINE,
        }
        self._types = {
            RegistryValueType.REG_SZ: winreg.REG_SZ,
            RegistryValueType.REG_EXPAND_SZ: winreg.REG_EXPAND_SZ,
            RegistryValueType.REG_DWORD: winreg.REG_DWORD,
            RegistryValueType.REG_QWORD: winreg.REG_QWORD,
            RegistryValueType.REG_BINARY: winreg.REG_BINARY,
            RegistryValueType.REG_MULTI_SZ: winreg.REG_MULTI_SZ,
        }
        self._types_by_code = {code: value_type for value_type, code in self._types.items()}

    def _open(self, key: str, root: RegistryRoot, access=None):
        if access is None:
            access = self._winreg.KEY_READ
        return self._winreg.OpenKey(self._roots[root], key, 0, access)

    def _query(self, key: str, name: str, root: RegistryRoot):
        try:
            with self._open(key, root) as handle:
                return self._winreg.QueryValueEx(handle, name)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise RegistryOperationError(f"Failed to read registry value: {e}", root.value, key, name) from e

    def key_exists(self, key: str, root: RegistryRoot = HKCU) -> bool:
        try:
            with self._open(key, root):
                return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise RegistryOperationError(f"Failed to open registry key: {e}", root.value, key) from e

    def value_exists(self, key: str, name: str, root: RegistryRoot = HKCU) -> bool:
        return self._query(key, name, root) is not None

    def get_string_value(self, key: str, name: str, root: RegistryRoot = HKCU) -> Optional[str]:
        result = self._query(key, name, root)
        if result is None:
            return None
        value, code = result
        return self._to_string(value, code)

    def get_value_type(self, key: str, name: str, root: RegistryRoot = HKCU) -> Optional[RegistryValueType]:
        result = self._query(key, name, root)
        if result is None:
            return None
        return self._types_by_code.get(result[1], RegistryValueType.REG_SZ)

    def set_string_value(
        self,
        key: str,
        name: str,
        value: str,
        value_type: RegistryValueType = RegistryValueType.REG_SZ,
        root: RegistryRoot = HKCU
    ) -> None:
        try:
            with self._winreg.CreateKeyEx(self._roots[root], key, 0, self._winreg.KEY_SET_VALUE) as handle:
                self._winreg.SetValueEx(handle, name, 0, self._types[value_type], self._from_string(value, value_type))
        except (OSError, ValueError) as e:
            raise RegistryOperationError(f"Failed to set registry value: {e}", root.value, key, name) from e

    def create_key(self, key: str, root: RegistryRoot = HKCU) -> None:
        try:
            self._winreg.CreateKeyEx(self._roots[root], key, 0, self._winreg.KEY_WRITE).Close()
        except OSError as e:
            raise RegistryOperationError(f"Failed to create registry key: {e}", root.value, key) from e

    def delete_key(self, key: str, root: RegistryRoot = HKCU) -> None:
        try:
            self._winreg.DeleteKey(self._roots[root], key)
        except FileNotFoundError:
            logger.debug(f"Registry key already absent: {root.value}\\{key}")
        except OSError as e:
            raise RegistryOperationError(f"Failed to delete registry key: {e}", root.value, key) from e

    def delete_value(self, key: str, name: str, root: RegistryRoot = HKCU) -> None:
        try:
            with self._open(key, root, self._winreg.KEY_SET_VALUE) as handle:
                self._winreg.DeleteValue(handle, name)
        except FileNotFoundError:
            logger.debug(f"Registry value already absent: {root.value}\\{key}\\{name}")
        except OSError as e:
            raise RegistryOperationError(f"Failed to delete registry value: {e}", root.value, key, name) from e

    def get_keys(self, key: str, root: RegistryRoot = HKCU) -> List[str]:
        subkeys = []
        try:
            with self._open(key, root) as handle:
                index = 0
                while True:
                    try:
                        subkeys.append(self._winreg.EnumKey(handle, index))
                    except OSError:
                        break
                    index += 1
        except FileNotFoundError:
            return []
        return subkeys

    def get_values(self, key: str, root: RegistryRoot = HKCU) -> Dict[str, str]:
        values = {}
        try:
            with self._open(key, root) as handle:
                index = 0
                while True:
                    try:
                        name, value, code = self._winreg.EnumValue(handle, index)
                    except OSError:
                        break
                    values[name] = self._to_string(value, code)
                    index += 1
        except FileNotFoundError:
            return {}
        return values

    def _to_string(self, value, code: int) -> str:
        if code == self._winreg.REG_MULTI_SZ:
            return "\n".join(value or [])
        if code == self._winreg.REG_BINARY:
            return (value or b"").hex()
        return "" if value is None else str(value)

    def _from_string(self, value: str, value_type: RegistryValueType):
        if value_type in (RegistryValueType.REG_DWORD, RegistryValueType.REG_QWORD):
            return int(value)
        if value_type == RegistryValueType.REG_MULTI_SZ:
            return value.split("\n") if value else []
        if value_type == RegistryValueType.REG_BINARY:
            return bytes.fromhex(value)
        return value
