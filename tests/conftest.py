"""Test configuration and fixtures for jdeploy-uninstall tests."""

from datetime import datetime, timezone
from pathlib import Path

import pytest
from click.testing import CliRunner

from jdeploy_uninstall.core.config import UninstallerConfig, reload_config
from jdeploy_uninstall.models.uninstall_manifest import (
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
from jdeploy_uninstall.services.manifest_builder import UninstallManifestBuilder
from jdeploy_uninstall.services.manifest_repository import FileManifestRepository
from jdeploy_uninstall.services.registry_operations import InMemoryRegistryOperations

ARCH = "x64"
INSTALLED_AT = datetime(2024, 5, 1, 12, 30, 15, 250000, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def test_config(tmp_path: Path, monkeypatch) -> UninstallerConfig:
    """Point the global configuration at a temporary jDeploy home."""
    monkeypatch.setenv("JDEPLOY_HOME", str(tmp_path / "jdeploy"))
    monkeypatch.setenv("JDEPLOY_ARCHITECTURE", ARCH)
    monkeypatch.delenv("JDEPLOY_SKIP_SCHEMA_VALIDATION", raising=False)
    return reload_config()


@pytest.fixture
def jdeploy_home(test_config: UninstallerConfig) -> Path:
    """Temporary jDeploy home directory."""
    return test_config.home


@pytest.fixture
def user_home(tmp_path: Path) -> Path:
    """Temporary user home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def repository(jdeploy_home: Path) -> FileManifestRepository:
    """Manifest repository rooted in the temporary jDeploy home."""
    return FileManifestRepository(manifests_dir=jdeploy_home / "manifests", architecture=ARCH)


@pytest.fixture
def registry() -> InMemoryRegistryOperations:
    """Empty in-memory registry."""
    return InMemoryRegistryOperations()


@pytest.fixture
def builder(user_home: Path, jdeploy_home: Path) -> UninstallManifestBuilder:
    """Builder with the temporary homes as substitution variables."""
    return UninstallManifestBuilder(user_home=user_home, jdeploy_home=jdeploy_home)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create CLI runner for testing Click commands."""
    return CliRunner()


@pytest.fixture
def package_info() -> PackageInfo:
    """Package identity of an npm package."""
    return PackageInfo(
        name="my-app",
        source=None,
        version="1.2.3",
        fully_qualified_name="my-app",
        architecture=ARCH,
        installed_at=INSTALLED_AT,
        installer_version="4.0.0"
    )


@pytest.fixture
def full_manifest(package_info: PackageInfo) -> UninstallManifest:
    """Manifest exercising every section and nullable field."""
    return UninstallManifest(
        package_info=package_info,
        files=[
            InstalledFile(path="/opt/my-app/bin/my-app", type=FileType.BINARY, description="Launcher"),
            InstalledFile(path="/opt/my-app/bin/my-app-link", type=FileType.LINK),
            InstalledFile(path="/opt/my-app/icon.png", type=FileType.ICON, description=""),
        ],
        directories=[
            InstalledDirectory(path="/opt/my-app/bin", cleanup=CleanupStrategy.IF_EMPTY),
            InstalledDirectory(path="/opt/my-app", cleanup=CleanupStrategy.ALWAYS, description="App root"),
            InstalledDirectory(path="/opt/my-app/cache", cleanup=CleanupStrategy.CONTENTS_ONLY),
        ],
        registry=RegistryInfo(
            created_keys=[
                RegistryKey(root=RegistryRoot.HKEY_CURRENT_USER, path="Software\\jDeploy\\my-app"),
                RegistryKey(
                    root=RegistryRoot.HKEY_LOCAL_MACHINE,
                    path="Software\\Classes\\my-app",
                    description="File association"
                ),
            ],
            modified_values=[
                ModifiedRegistryValue(
                    root=RegistryRoot.HKEY_CURRENT_USER,
                    path="Software\\Settings",
                    name="Theme",
                    previous_value="OriginalValue",
                    previous_type=RegistryValueType.REG_EXPAND_SZ
                ),
                ModifiedRegistryValue(
                    root=RegistryRoot.HKEY_CURRENT_USER,
                    path="Software\\Settings",
                    name="NewValue",
                    previous_value=None,
                    previous_type=RegistryValueType.REG_DWORD,
                    description="Created by install"
                ),
            ]
        ),
        path_modifications=PathModifications(
            windows_paths=[WindowsPathEntry(added_entry="C:\\Users\\me\\.jdeploy\\bin")],
            shell_profiles=[
                ShellProfileEntry(file="/home/me/.bashrc", export_line='export PATH="$HOME/.jdeploy/bin:$PATH"')
            ],
            git_bash_profiles=[
                GitBashProfileEntry(
                    file="C:\\Users\\me\\.bash_profile",
                    export_line='export PATH="/c/Users/me/.jdeploy/bin:$PATH"',
                    description="Git Bash"
                )
            ]
        )
    )
