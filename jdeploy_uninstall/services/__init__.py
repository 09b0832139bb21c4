"""Manifest handling and uninstall services."""

from .manifest_builder import UninstallManifestBuilder
from .manifest_repository import FileManifestRepository
from .manifest_validator import ManifestValidator
from .manifest_writer import ManifestWriter
from .manifest_xml import NAMESPACE, ManifestXmlGenerator, ManifestXmlParser
from .path_editors import GitBashProfileEditor, ShellProfileEditor, WindowsPathEditor
from .registry_operations import (
    InMemoryRegistryOperations,
    RegistryOperations,
    WinRegistryOperations,
    delete_key_recursive,
)
from .uninstall_service import UninstallService

__all__ = [
    "NAMESPACE",
    "FileManifestRepository",
    "GitBashProfileEditor",
    "InMemoryRegistryOperations",
    "ManifestValidator",
    "ManifestWriter",
    "ManifestXmlGenerator",
    "ManifestXmlParser",
    "RegistryOperations",
    "ShellProfileEditor",
    "UninstallManifestBuilder",
    "UninstallService",
    "WinRegistryOperations",
    "WindowsPathEditor",
    "delete_key_recursive",
]
