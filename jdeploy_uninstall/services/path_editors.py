"""Reversal of PATH changes in the Windows registry and shell profile files."""

import re
from pathlib import Path, PureWindowsPath
from typing import List, Optional

from ..core.lib_logger import get_logger
from ..models.uninstall_manifest import RegistryRoot, RegistryValueType
from .registry_operations import RegistryOperations

logger = get_logger(__name__)

ENVIRONMENT_KEY = "Environment"
PATH_VALUE = "Path"

_HOME_TOKENS = ("${USER_HOME}", "${HOME}", "$HOME", "~")


class WindowsPathEditor:
    """Removes directories from the per-user PATH in ``HKCU\\Environment``."""

    def __init__(self, registry: RegistryOperations):
        self.registry = registry

    def remove_entry(self, entry: str) -> bool:
        """Remove every case-insensitive occurrence of entry from the user PATH.

        Returns False when the PATH value is missing or does not contain it.
        """
        root = RegistryRoot.HKEY_CURRENT_USER
        current = self.registry.get_string_value(ENVIRONMENT_KEY, PATH_VALUE, root)
        if not current:
            return False

        target = _normalize_windows_entry(entry)
        parts = [part for part in current.split(";") if part]
        kept = [part for part in parts if _normalize_windows_entry(part) != target]
        if len(kept) == len(parts):
            return False

        updated = ";".join(kept)
        value_type = self.registry.get_value_type(ENVIRONMENT_KEY, PATH_VALUE, root) or RegistryValueType.REG_EXPAND_SZ
        self.registry.set_string_value(ENVIRONMENT_KEY, PATH_VALUE, updated, value_type, root)
        logger.debug(f"Removed {entry} from user PATH")
        return True


def _normalize_windows_entry(entry: str) -> str:
    entry = entry.strip().strip('"')
    if len(entry) > 3:
        entry = entry.rstrip("\\/")
    return entry.lower()


class ShellProfileEditor:
    """Removes a recorded PATH export line from a POSIX shell startup file.

    A line matches when it equals the recorded line after home references
    (``$HOME``, ``${HOME}``, ``${USER_HOME}``, ``~`` or the literal home
    directory) are expanded on both sides. Every other line is kept
    byte-for-byte, including its line ending.
    """

    def __init__(self, home: Optional[Path] = None):
        self.home = Path(home) if home else Path.home()

    def home_forms(self) -> List[str]:
        """Spellings of the home directory that may appear in export lines."""
        return [str(self.home)]

    def canonical(self, line: str) -> str:
        """Expand home references so equivalent lines compare equal."""
        line = line.strip()
        primary = self.home_forms()[0]
        for form in self.home_forms()[1:]:
            line = line.replace(form, primary)
        for token in _HOME_TOKENS:
            if token == "~":
                line = re.sub(r"(?<![\w~])~(?=/|\"|:|$)", lambda _: primary, line)
            else:
                line = line.replace(token, primary)
        return line

    def remove_line(self, profile_file: Path, export_line: str) -> bool:
        """Remove export_line from profile_file.

        Returns False when the file does not exist or holds no matching line.
        """
        profile_file = Path(profile_file)
        if not profile_file.is_file():
            logger.debug(f"Profile file does not exist: {profile_file}")
            return False

        with open(profile_file, "r", encoding="utf-8", newline="") as f:
            lines = f.read().splitlines(keepends=True)

        target = self.canonical(export_line)
        kept = [line for line in lines if self.canonical(line) != target]
        if len(kept) == len(lines):
            logger.debug(f"Export line not found in {profile_file}")
            return False

        with open(profile_file, "w", encoding="utf-8", newline="") as f:
            f.write("".join(kept))

        logger.debug(f"Removed {len(lines) - len(kept)} line(s) from {profile_file}")
        return True


class GitBashProfileEditor(ShellProfileEditor):
    """Shell profile editor for Git Bash on Windows.

    Git Bash writes the home directory in POSIX form (``/c/Users/me``), so
    that spelling is treated as equivalent to the native one.
    """

    def home_forms(self) -> List[str]:
        return [to_posix_path(str(self.home)), str(self.home)]


def to_posix_path(path: str) -> str:
    """Convert a Windows path such as C:\\Users\\me into /c/Users/me."""
    windows_path = PureWindowsPath(path)
    if not windows_path.drive or not windows_path.drive.endswith(":"):
        return path.replace("\\", "/")
    drive = windows_path.drive[0].lower()
    rest = "/".join(windows_path.parts[1:])
    return f"/{drive}/{rest}" if rest else f"/{drive}"
