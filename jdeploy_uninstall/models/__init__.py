"""Data models for jdeploy-uninstall."""

from .uninstall_manifest import (
    MANIFEST_VERSION,
    CleanupStrategy,
    FileType,
    GitBashProfileEntry,
    InstalledDirectory,
    InstalledFile,
    ModifiedRegistryValue,
    PackageInfo,
    PathModifications,
    RegistryInfo,
    RegistryKey,
    RegistryRoot,
    RegistryValueType,
    ShellProfileEntry,
    UninstallManifest,
    WindowsPathEntry,
)
from .uninstall_result import UninstallResult

__all__ = [
    "MANIFEST_VERSION",
    "CleanupStrategy",
    "FileType",
    "GitBashProfileEntry",
    "InstalledDirectory",
    "InstalledFile",
    "ModifiedRegistryValue",
    "PackageInfo",
    "PathModifications",
    "RegistryInfo",
    "RegistryKey",
    "RegistryRoot",
    "RegistryValueType",
    "ShellProfileEntry",
    "UninstallManifest",
    "UninstallResult",
    "WindowsPathEntry",
]
