"""Fluent builder that produces validated uninstall manifests."""

import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from ..core.config import get_config
from ..lib.exceptions import ManifestBuilderError
from ..lib.paths import compute_fully_qualified_package_name
from ..models.uninstall_manifest import (
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


def _require(value, name: str) -> None:
    if value is None:
        raise ValueError(f"{name} cannot be None")


class UninstallManifestBuilder:
    """Accumulates installer side effects and builds an UninstallManifest.

    Call ``with_package_info()`` first. ``${USER_HOME}``, ``${JDEPLOY_HOME}``
    and (once package info is known) ``${APP_DIR}`` are substituted into every
    path and text field at the moment an entry is added, so the builder never
    holds unresolved placeholders.

    The builder is stateful: entries accumulate across repeated ``build()``
    calls. Use a fresh instance per manifest, or call ``reset()`` between
    builds.
    """

    def __init__(self, user_home: Optional[Path] = None, jdeploy_home: Optional[Path] = None):
        """Initialize the builder with the default variable table."""
        self._package_name: Optional[str] = None
        self._package_source: Optional[str] = None
        self._package_version: Optional[str] = None
        self._architecture: Optional[str] = None
        self._installer_version: Optional[str] = None
        self._fully_qualified_name: Optional[str] = None
        self._installed_at: datetime = datetime.now().astimezone()

        self._files: List[InstalledFile] = []
        self._directories: List[InstalledDirectory] = []
        self._registry_keys: List[RegistryKey] = []
        self._modified_values: List[ModifiedRegistryValue] = []
        self._windows_paths: List[WindowsPathEntry] = []
        self._shell_profiles: List[ShellProfileEntry] = []
        self._git_bash_profiles: List[GitBashProfileEntry] = []

        user_home = Path(user_home) if user_home else Path.home()
        jdeploy_home = Path(jdeploy_home) if jdeploy_home else get_config().home
        self._variables: Dict[str, str] = {
            "USER_HOME": str(user_home),
            "JDEPLOY_HOME": str(jdeploy_home),
        }

    @property
    def variables(self) -> Dict[str, str]:
        """Get a copy of the substitution table."""
        return dict(self._variables)

    def with_package_info(
        self,
        name: str,
        source: Optional[str],
        version: str,
        architecture: str
    ) -> "UninstallManifestBuilder":
        """Set package identity; source is None for npm packages."""
        _require(name, "name")
        _require(version, "version")
        _require(architecture, "architecture")

        if not name:
            raise ManifestBuilderError("Package name cannot be empty")
        if not version:
            raise ManifestBuilderError("Package version cannot be empty")
        if not architecture:
            raise ManifestBuilderError("Package architecture cannot be empty")

        self._package_name = name
        self._package_source = source
        self._package_version = version
        self._architecture = architecture

        try:
            self._fully_qualified_name = compute_fully_qualified_package_name(name, source)
        except ValueError as e:
            raise ManifestBuilderError(f"Failed to compute fully qualified package name: {e}") from e

        self._variables["APP_DIR"] = os.path.join(
            self._variables["JDEPLOY_HOME"], "apps", self._fully_qualified_name
        )
        return self

    def with_win_app_dir(self, win_app_dir: Optional[str]) -> "UninstallManifestBuilder":
        """Point ${APP_DIR} at a custom Windows app directory under the user home."""
        if win_app_dir and self._fully_qualified_name:
            self._variables["APP_DIR"] = os.path.join(
                self._variables["USER_HOME"], win_app_dir, self._fully_qualified_name
            )
        return self

    def with_installer_version(self, version: str) -> "UninstallManifestBuilder":
        _require(version, "installer version")
        self._installer_version = version
        return self

    def with_installed_at(self, installed_at: datetime) -> "UninstallManifestBuilder":
        _require(installed_at, "installed_at")
        self._installed_at = installed_at
        return self

    def with_variable(self, name: str, value: str) -> "UninstallManifestBuilder":
        """Add a custom substitution; name may be given as NAME or ${NAME}."""
        _require(name, "variable")
        _require(value, "value")
        if name.startswith("${") and name.endswith("}"):
            name = name[2:-1]
        self._variables[name] = value
        return self

    def add_file(self, path: str, type: FileType, description: Optional[str] = None) -> "UninstallManifestBuilder":
        _require(path, "path")
        _require(type, "type")
        self._files.append(InstalledFile(
            path=self._substitute(path),
            type=type,
            description=self._substitute(description)
        ))
        return self

    def add_directory(
        self,
        path: str,
        cleanup: CleanupStrategy,
        description: Optional[str] = None
    ) -> "UninstallManifestBuilder":
        _require(path, "path")
        _require(cleanup, "cleanup strategy")
        self._directories.append(InstalledDirectory(
            path=self._substitute(path),
            cleanup=cleanup,
            description=self._substitute(description)
        ))
        return self

    def add_created_registry_key(
        self,
        root: RegistryRoot,
        path: str,
        description: Optional[str] = None
    ) -> "UninstallManifestBuilder":
        """Record a registry key created by the installer, parents before children."""
        _require(root, "root")
        _require(path, "path")
        self._registry_keys.append(RegistryKey(
            root=root,
            path=self._substitute(path),
            description=self._substitute(description)
        ))
        return self

    def add_modified_registry_value(
        self,
        root: RegistryRoot,
        path: str,
        name: str,
        previous_value: Optional[str],
        previous_type: RegistryValueType,
        description: Optional[str] = None
    ) -> "UninstallManifestBuilder":
        """Record a registry value written by the installer.

        ``previous_value`` is stored verbatim; pass ``None`` when the value did
        not exist before the install.
        """
        _require(root, "root")
        _require(path, "path")
        _require(name, "name")
        _require(previous_type, "previous_type")
        self._modified_values.append(ModifiedRegistryValue(
            root=root,
            path=self._substitute(path),
            name=name,
            previous_value=previous_value,
            previous_type=previous_type,
            description=self._substitute(description)
        ))
        return self

    def add_windows_path_entry(self, path: str, description: Optional[str] = None) -> "UninstallManifestBuilder":
        _require(path, "path")
        self._windows_paths.append(WindowsPathEntry(
            added_entry=self._substitute(path),
            description=self._substitute(description)
        ))
        return self

    def add_shell_profile_entry(
        self,
        file: str,
        export_line: str,
        description: Optional[str] = None
    ) -> "UninstallManifestBuilder":
        _require(file, "file")
        _require(export_line, "export_line")
        self._shell_profiles.append(ShellProfileEntry(
            file=self._substitute(file),
            export_line=self._substitute(export_line),
            description=self._substitute(description)
        ))
        return self

    def add_git_bash_profile_entry(
        self,
        file: str,
        export_line: str,
        description: Optional[str] = None
    ) -> "UninstallManifestBuilder":
        _require(file, "file")
        _require(export_line, "export_line")
        self._git_bash_profiles.append(GitBashProfileEntry(
            file=self._substitute(file),
            export_line=self._substitute(export_line),
            description=self._substitute(description)
        ))
        return self

    def reset(self) -> "UninstallManifestBuilder":
        """Drop accumulated entries, keeping package info and variables."""
        self._files.clear()
        self._directories.clear()
        self._registry_keys.clear()
        self._modified_values.clear()
        self._windows_paths.clear()
        self._shell_profiles.clear()
        self._git_bash_profiles.clear()
        return self

    def build(self) -> UninstallManifest:
        """Build the manifest from everything recorded so far."""
        self._validate_required_fields()

        if not self._fully_qualified_name:
            self._fully_qualified_name = compute_fully_qualified_package_name(
                self._package_name, self._package_source
            )

        package_info = PackageInfo(
            name=self._package_name,
            source=self._package_source,
            version=self._package_version,
            fully_qualified_name=self._fully_qualified_name,
            architecture=self._architecture,
            installed_at=self._installed_at,
            installer_version=self._installer_version or self._package_version
        )

        registry = None
        if self._registry_keys or self._modified_values:
            registry = RegistryInfo(
                created_keys=list(self._registry_keys),
                modified_values=list(self._modified_values)
            )

        path_modifications = None
        if self._windows_paths or self._shell_profiles or self._git_bash_profiles:
            path_modifications = PathModifications(
                windows_paths=list(self._windows_paths),
                shell_profiles=list(self._shell_profiles),
                git_bash_profiles=list(self._git_bash_profiles)
            )

        return UninstallManifest(
            version=MANIFEST_VERSION,
            package_info=package_info,
            files=list(self._files),
            directories=list(self._directories),
            registry=registry,
            path_modifications=path_modifications
        )

    def _substitute(self, text: Optional[str]) -> Optional[str]:
        if text is None:
            return None
        for name, value in self._variables.items():
            text = text.replace("${" + name + "}", value)
        return text

    def _validate_required_fields(self) -> None:
        if not self._package_name:
            raise ManifestBuilderError("Package name is required; call with_package_info() first")
        if not self._package_version:
            raise ManifestBuilderError("Package version is required; call with_package_info() first")
        if not self._architecture:
            raise ManifestBuilderError("Architecture is required; call with_package_info() first")
