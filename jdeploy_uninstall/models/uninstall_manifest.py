"""UninstallManifest model: every recorded side effect of one package install."""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MANIFEST_VERSION = "1.0"

_PLACEHOLDER = re.compile(r"\$\{[A-Za-z_][A-Za-z0-9_]*\}")


class FileType(str, Enum):
    """Kind of installed file."""
    BINARY = "BINARY"
    SCRIPT = "SCRIPT"
    LINK = "LINK"
    CONFIG = "CONFIG"
    ICON = "ICON"
    METADATA = "METADATA"

    def to_token(self) -> str:
        """Get the XML token for this file type."""
        return _FILE_TYPE_TOKENS[self]

    @classmethod
    def from_token(cls, token: str) -> "FileType":
        """Look up a file type by its exact XML token."""
        try:
            return _FILE_TYPES_BY_TOKEN[token]
        except KeyError:
            raise ValueError(f"Unknown FileType: {token}") from None


class CleanupStrategy(str, Enum):
    """How a recorded directory is treated at uninstall."""
    ALWAYS = "ALWAYS"
    IF_EMPTY = "IF_EMPTY"
    CONTENTS_ONLY = "CONTENTS_ONLY"

    def to_token(self) -> str:
        """Get the XML token for this strategy."""
        return _CLEANUP_TOKENS[self]

    @classmethod
    def from_token(cls, token: str) -> "CleanupStrategy":
        """Look up a cleanup strategy by its exact XML token."""
        try:
            return _CLEANUPS_BY_TOKEN[token]
        except KeyError:
            raise ValueError(f"Unknown CleanupStrategy: {token}") from None


class RegistryRoot(str, Enum):
    """Windows registry hive."""
    HKEY_CURRENT_USER = "HKEY_CURRENT_USER"
    HKEY_LOCAL_MACHINE = "HKEY_LOCAL_MACHINE"

    def to_token(self) -> str:
        """Get the XML token for this root."""
        return _REGISTRY_ROOT_TOKENS[self]

    @classmethod
    def from_token(cls, token: str) -> "RegistryRoot":
        """Look up a registry root by its exact XML token."""
        try:
            return _REGISTRY_ROOTS_BY_TOKEN[token]
        except KeyError:
            raise ValueError(f"Unknown RegistryRoot: {token}") from None


class RegistryValueType(str, Enum):
    """Windows registry value type."""
    REG_SZ = "REG_SZ"
    REG_EXPAND_SZ = "REG_EXPAND_SZ"
    REG_DWORD = "REG_DWORD"
    REG_QWORD = "REG_QWORD"
    REG_BINARY = "REG_BINARY"
    REG_MULTI_SZ = "REG_MULTI_SZ"

    def to_token(self) -> str:
        """Get the XML token for this value type."""
        return _VALUE_TYPE_TOKENS[self]

    @classmethod
    def from_token(cls, token: str) -> "RegistryValueType":
        """Look up a registry value type by its exact XML token."""
        try:
            return _VALUE_TYPES_BY_TOKEN[token]
        except KeyError:
            raise ValueError(f"Unknown RegistryValueType: {token}") from None


_FILE_TYPE_TOKENS = {
    FileType.BINARY: "binary",
    FileType.SCRIPT: "script",
    FileType.LINK: "link",
    FileType.CONFIG: "config",
    FileType.ICON: "icon",
    FileType.METADATA: "metadata",
}

_CLEANUP_TOKENS = {
    CleanupStrategy.ALWAYS: "always",
    CleanupStrategy.IF_EMPTY: "ifEmpty",
    CleanupStrategy.CONTENTS_ONLY: "contentsOnly",
}

_REGISTRY_ROOT_TOKENS = {
    RegistryRoot.HKEY_CURRENT_USER: "HKEY_CURRENT_USER",
    RegistryRoot.HKEY_LOCAL_MACHINE: "HKEY_LOCAL_MACHINE",
}

_VALUE_TYPE_TOKENS = {
    RegistryValueType.REG_SZ: "REG_SZ",
    RegistryValueType.REG_EXPAND_SZ: "REG_EXPAND_SZ",
    RegistryValueType.REG_DWORD: "REG_DWORD",
    RegistryValueType.REG_QWORD: "REG_QWORD",
    RegistryValueType.REG_BINARY: "REG_BINARY",
    RegistryValueType.REG_MULTI_SZ: "REG_MULTI_SZ",
}

_FILE_TYPES_BY_TOKEN = {token: member for member, token in _FILE_TYPE_TOKENS.items()}
_CLEANUPS_BY_TOKEN = {token: member for member, token in _CLEANUP_TOKENS.items()}
_REGISTRY_ROOTS_BY_TOKEN = {token: member for member, token in _REGISTRY_ROOT_TOKENS.items()}
_VALUE_TYPES_BY_TOKEN = {token: member for member, token in _VALUE_TYPE_TOKENS.items()}


class _ManifestEntry(BaseModel):
    model_config = ConfigDict(validate_assignment=True)


class InstalledFile(_ManifestEntry):
    """One file created by the installer."""

    path: str = Field(description="Absolute, resolved path")
    type: FileType = Field(description="Kind of file; LINK entries are never followed")
    description: Optional[str] = Field(default=None)


class InstalledDirectory(_ManifestEntry):
    """One directory created by the installer and its removal policy."""

    path: str = Field(description="Absolute, resolved path")
    cleanup: CleanupStrategy = Field(description="Removal policy applied after files are gone")
    description: Optional[str] = Field(default=None)


class RegistryKey(_ManifestEntry):
    """A registry key created by the installer."""

    root: RegistryRoot
    path: str
    description: Optional[str] = Field(default=None)


class ModifiedRegistryValue(_ManifestEntry):
    """A registry value written by the installer.

    ``previous_value`` of ``None`` means the value did not exist before the
    install and is deleted on uninstall rather than restored.
    """

    root: RegistryRoot
    path: str
    name: str
    previous_value: Optional[str] = Field(default=None)
    previous_type: RegistryValueType = Field(default=RegistryValueType.REG_SZ)
    description: Optional[str] = Field(default=None)


class RegistryInfo(_ManifestEntry):
    """Registry side effects (Windows only)."""

    created_keys: List[RegistryKey] = Field(default_factory=list)
    modified_values: List[ModifiedRegistryValue] = Field(default_factory=list)


class WindowsPathEntry(_ManifestEntry):
    """A directory appended to the user's Windows PATH."""

    added_entry: str
    description: Optional[str] = Field(default=None)


class ShellProfileEntry(_ManifestEntry):
    """A PATH export line appended to a POSIX shell startup file."""

    file: str
    export_line: str
    description: Optional[str] = Field(default=None)


class GitBashProfileEntry(_ManifestEntry):
    """A PATH export line appended to a Git Bash profile on Windows."""

    file: str
    export_line: str
    description: Optional[str] = Field(default=None)


class PathModifications(_ManifestEntry):
    """PATH changes made through the registry and shell profiles."""

    windows_paths: List[WindowsPathEntry] = Field(default_factory=list)
    shell_profiles: List[ShellProfileEntry] = Field(default_factory=list)
    git_bash_profiles: List[GitBashProfileEntry] = Field(default_factory=list)


class PackageInfo(_ManifestEntry):
    """Identity and provenance of the installed package."""

    name: str = Field(min_length=1)
    source: Optional[str] = Field(
        default=None,
        description="None for npm packages, repository URL for GitHub packages"
    )
    version: str = Field(min_length=1)
    fully_qualified_name: str = Field(min_length=1)
    architecture: str = Field(min_length=1)
    installed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    installer_version: str = Field(min_length=1)

    @field_validator("installed_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Store install time as an aware UTC instant."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class UninstallManifest(_ManifestEntry):
    """Root aggregate persisted as uninstall-manifest.xml."""

    version: str = Field(default=MANIFEST_VERSION)
    package_info: PackageInfo
    files: List[InstalledFile] = Field(default_factory=list)
    directories: List[InstalledDirectory] = Field(default_factory=list)
    registry: Optional[RegistryInfo] = Field(default=None)
    path_modifications: Optional[PathModifications] = Field(default=None)

    def iter_paths(self) -> Iterator[str]:
        """Yield every filesystem or registry path recorded in the manifest."""
        for file in self.files:
            yield file.path
        for directory in self.directories:
            yield directory.path
        if self.registry is not None:
            for key in self.registry.created_keys:
                yield key.path
            for value in self.registry.modified_values:
                yield value.path
        if self.path_modifications is not None:
            for entry in self.path_modifications.windows_paths:
                yield entry.added_entry
            for profile in self.path_modifications.shell_profiles:
                yield profile.file
            for profile in self.path_modifications.git_bash_profiles:
                yield profile.file

    def unresolved_placeholders(self) -> List[str]:
        """List ${VAR} tokens left in recorded paths."""
        found = []
        for path in self.iter_paths():
            found.extend(_PLACEHOLDER.findall(path))
        return found

    @property
    def is_empty(self) -> bool:
        """Check whether the manifest records no side effects at all."""
        registry_empty = self.registry is None or not (
            self.registry.created_keys or self.registry.modified_values
        )
        paths_empty = self.path_modifications is None or not (
            self.path_modifications.windows_paths
            or self.path_modifications.shell_profiles
            or self.path_modifications.git_bash_profiles
        )
        return not self.files and not self.directories and registry_empty and paths_empty
