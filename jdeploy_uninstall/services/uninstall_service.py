"""Uninstall service: reverses every side effect recorded in a package's manifest."""

import os
import shutil
from pathlib import Path
from typing import Callable, List, Optional

from ..core.config import get_config
from ..core.lib_logger import get_logger
from ..lib.exceptions import ManifestRepositoryError, RegistryOperationError
from ..lib.paths import (
    get_all_possible_package_paths,
    get_app_dir,
    get_uninstaller_dir,
    validate_package_name,
)
from ..lib.platform_utils import get_platform, is_windows
from ..models.uninstall_manifest import (
    CleanupStrategy,
    InstalledDirectory,
    InstalledFile,
    PathModifications,
    RegistryInfo,
    UninstallManifest,
)
from ..models.uninstall_result import UninstallResult
from .manifest_repository import FileManifestRepository
from .path_editors import GitBashProfileEditor, ShellProfileEditor, WindowsPathEditor
from .registry_operations import RegistryOperations, WinRegistryOperations, delete_key_recursive

logger = get_logger(__name__)

# Failures of a single reversal step; anything else is unexpected for the phase
_OPERATION_ERRORS = (OSError, RegistryOperationError, ValueError)


class UninstallService:
    """Runs the uninstall pipeline for one package.

    Phases run in a fixed order: files, directories, registry, PATH,
    package directories, then removal of the manifest itself. A failed
    operation is recorded and never stops later operations or phases.
    Targets that are already gone count as successes, which makes repeated
    uninstalls safe.
    """

    def __init__(
        self,
        repository: FileManifestRepository,
        registry_operations: Optional[RegistryOperations] = None,
        os_name: Optional[str] = None,
        jdeploy_home: Optional[Path] = None,
        user_home: Optional[Path] = None
    ):
        """Initialize the service and select platform capabilities."""
        self.repository = repository
        self.os_name = os_name or get_platform()
        self.jdeploy_home = Path(jdeploy_home) if jdeploy_home else get_config().home

        # Registry and Windows PATH phases only exist on Windows
        self.registry: Optional[RegistryOperations] = None
        self.windows_path_editor: Optional[WindowsPathEditor] = None
        if is_windows(self.os_name):
            self.registry = registry_operations or WinRegistryOperations()
            self.windows_path_editor = WindowsPathEditor(self.registry)

        self.shell_profile_editor = ShellProfileEditor(user_home)
        self.git_bash_profile_editor = GitBashProfileEditor(user_home)

    def uninstall(self, package_name: str, source: Optional[str] = None) -> UninstallResult:
        """Uninstall a package and report what was reversed.

        Raises ValueError for a package name that is not a single package
        directory (for example "." or "../x"), before anything is removed.
        """
        validate_package_name(package_name)
        result = UninstallResult()
        log = logger.with_context(package_name=package_name, source=source)

        manifest = self._load_manifest(package_name, source)
        if manifest is None:
            log.info(f"No usable uninstall manifest for {package_name}; cleaning package directories only")
        else:
            self._run_phase("files", result, self._delete_files, manifest.files, result)
            self._run_phase("directories", result, self._cleanup_directories, manifest.directories, result)
            self._run_phase("registry", result, self._cleanup_registry, manifest.registry, result)
            self._run_phase("PATH", result, self._cleanup_path_modifications, manifest.path_modifications, result)

        self._run_phase("package directories", result, self._cleanup_package_directories, package_name, source, result)
        self._run_phase("manifest", result, self._delete_manifest, package_name, source, result)

        if result.is_success:
            log.info(f"Uninstall of {package_name} completed ({result.success_count} operations)")
        else:
            log.warning(f"Uninstall of {package_name} completed with {result.failure_count} error(s)")
        return result

    def _load_manifest(self, package_name: str, source: Optional[str]) -> Optional[UninstallManifest]:
        try:
            return self.repository.load(package_name, source)
        except ManifestRepositoryError as e:
            logger.warning(f"Failed to load uninstall manifest for {package_name}: {e.message}")
            return None

    def _run_phase(self, phase: str, result: UninstallResult, func: Callable, *args) -> None:
        try:
            func(*args)
        except Exception as e:
            message = f"Unexpected error during {phase} cleanup: {e}"
            logger.warning(message)
            result.record_failure(message)

    def _delete_files(self, files: List[InstalledFile], result: UninstallResult) -> None:
        for file in files:
            path = Path(file.path)
            try:
                if not os.path.lexists(path):
                    logger.debug(f"File already absent: {path}")
                else:
                    # unlink never follows links, so dangling links are removable
                    path.unlink()
                    logger.debug(f"Deleted {file.type.to_token()} file: {path}")
                result.record_success()
            except _OPERATION_ERRORS as e:
                self._record_failure(result, f"Failed to delete file {path}: {e}")

        logger.info(f"Processed {len(files)} installed file(s)")

    def _cleanup_directories(self, directories: List[InstalledDirectory], result: UninstallResult) -> None:
        # Deepest first so a parent is checked after its children are gone; ties keep recorded order
        ordered = sorted(directories, key=lambda d: len(Path(d.path).parts), reverse=True)
        for directory in ordered:
            path = Path(directory.path)
            try:
                if not os.path.lexists(path):
                    logger.debug(f"Directory already absent: {path}")
                elif directory.cleanup == CleanupStrategy.ALWAYS:
                    _remove_tree(path)
                    logger.debug(f"Deleted directory: {path}")
                elif directory.cleanup == CleanupStrategy.IF_EMPTY:
                    if any(path.iterdir()):
                        logger.debug(f"Directory not empty, keeping: {path}")
                    else:
                        path.rmdir()
                        logger.debug(f"Deleted empty directory: {path}")
                else:
                    for child in path.iterdir():
                        _remove_tree(child)
                    logger.debug(f"Emptied directory: {path}")
                result.record_success()
            except _OPERATION_ERRORS as e:
                self._record_failure(result, f"Failed to clean up directory {path}: {e}")

        logger.info(f"Processed {len(directories)} installed directory(ies)")

    def _cleanup_registry(self, registry_info: Optional[RegistryInfo], result: UninstallResult) -> None:
        if registry_info is None:
            return
        if self.registry is None:
            logger.debug(f"Skipping registry cleanup on {self.os_name}")
            return

        # Children were recorded after their parents
        for key in reversed(registry_info.created_keys):
            try:
                if delete_key_recursive(self.registry, key.path, key.root):
                    logger.debug(f"Deleted registry key {key.root.value}\\{key.path}")
                else:
                    logger.debug(f"Registry key already absent: {key.root.value}\\{key.path}")
                result.record_success()
            except _OPERATION_ERRORS as e:
                self._record_failure(result, f"Failed to delete registry key {key.root.value}\\{key.path}: {e}")

        for value in registry_info.modified_values:
            location = f"{value.root.value}\\{value.path}\\{value.name}"
            try:
                if value.previous_value is not None:
                    self.registry.set_string_value(
                        value.path, value.name, value.previous_value, value.previous_type, value.root
                    )
                    logger.debug(f"Restored registry value {location}")
                elif self.registry.value_exists(value.path, value.name, value.root):
                    self.registry.delete_value(value.path, value.name, value.root)
                    logger.debug(f"Deleted registry value {location}")
                else:
                    logger.debug(f"Registry value already absent: {location}")
                result.record_success()
            except _OPERATION_ERRORS as e:
                self._record_failure(result, f"Failed to restore registry value {location}: {e}")

        logger.info(
            f"Processed {len(registry_info.created_keys)} registry key(s) and "
            f"{len(registry_info.modified_values)} registry value(s)"
        )

    def _cleanup_path_modifications(self, modifications: Optional[PathModifications], result: UninstallResult) -> None:
        if modifications is None:
            return

        if self.windows_path_editor is not None:
            for entry in modifications.windows_paths:
                try:
                    if not self.windows_path_editor.remove_entry(entry.added_entry):
                        logger.debug(f"Windows PATH entry already absent: {entry.added_entry}")
                    result.record_success()
                except _OPERATION_ERRORS as e:
                    self._record_failure(result, f"Failed to remove {entry.added_entry} from Windows PATH: {e}")
        elif modifications.windows_paths:
            logger.debug(f"Skipping Windows PATH cleanup on {self.os_name}")

        for entry in modifications.shell_profiles:
            try:
                if not self.shell_profile_editor.remove_line(Path(entry.file), entry.export_line):
                    logger.debug(f"Shell profile entry already absent: {entry.file}")
                result.record_success()
            except _OPERATION_ERRORS as e:
                self._record_failure(result, f"Failed to update shell profile {entry.file}: {e}")

        for entry in modifications.git_bash_profiles:
            try:
                if not self.git_bash_profile_editor.remove_line(Path(entry.file), entry.export_line):
                    logger.debug(f"Git Bash profile entry already absent: {entry.file}")
                result.record_success()
            except _OPERATION_ERRORS as e:
                self._record_failure(result, f"Failed to update Git Bash profile {entry.file}: {e}")

        logger.info("Processed PATH modifications")

    def _cleanup_package_directories(self, package_name: str, source: Optional[str], result: UninstallResult) -> None:
        candidates = get_all_possible_package_paths(
            package_name, source, self.jdeploy_home, self.repository.architecture
        )
        candidates.append(get_app_dir(package_name, source, self.jdeploy_home))
        candidates.append(get_uninstaller_dir(package_name, source, self.jdeploy_home))

        for path in candidates:
            if not os.path.lexists(path):
                logger.debug(f"Package directory does not exist: {path}")
                continue
            try:
                _remove_tree(path)
                logger.info(f"Deleted package directory {path}")
                result.record_success()
            except _OPERATION_ERRORS as e:
                self._record_failure(result, f"Failed to delete package directory {path}: {e}")

    def _delete_manifest(self, package_name: str, source: Optional[str], result: UninstallResult) -> None:
        try:
            self.repository.delete(package_name, source)
            result.record_success()
        except OSError as e:
            self._record_failure(result, f"Failed to delete uninstall manifest for {package_name}: {e}")

    def _record_failure(self, result: UninstallResult, message: str) -> None:
        logger.warning(message)
        result.record_failure(message)


def _remove_tree(path: Path) -> None:
    if path.is_symlink() or not path.is_dir():
        path.unlink()
    else:
        shutil.rmtree(path)
