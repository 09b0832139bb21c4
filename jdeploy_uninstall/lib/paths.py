"""
On-disk layout of jDeploy packages, apps and uninstall manifests.
"""

import hashlib
from pathlib import Path
from typing import List, Optional

from ..core.config import get_config
from .platform_utils import get_architecture

MANIFEST_FILENAME = "uninstall-manifest.xml"


def validate_package_name(package_name: str) -> str:
    """Reject names that would not stay inside their own package directory.

    Only scoped npm names (``@scope/name``) may contain a separator.
    """
    if package_name is None or not package_name.strip():
        raise ValueError("package_name cannot be null or empty")

    segments = package_name.split("/")
    if len(segments) > 2 or (len(segments) == 2 and not segments[0].startswith("@")):
        raise ValueError(f"Invalid package name: {package_name!r}")
    for segment in segments:
        if segment in ("", ".", "..", "@") or "\\" in segment or ":" in segment:
            raise ValueError(f"Invalid package name: {package_name!r}")
    return package_name


def compute_fully_qualified_package_name(package_name: str, source: Optional[str] = None) -> str:
    """Compute the storage key of a package.

    npm packages (no source) use the package name as-is; GitHub packages are
    prefixed with the MD5 hex digest of the source URL so that two
    repositories publishing the same name never collide.
    """
    validate_package_name(package_name)

    if not source:
        return package_name

    digest = hashlib.md5(source.encode("utf-8")).hexdigest()
    return f"{digest}.{package_name}"


def get_jdeploy_home() -> Path:
    """Get the per-user jDeploy data directory."""
    return get_config().home


def get_effective_architecture() -> str:
    """Get the configured architecture override or the detected one."""
    return get_config().architecture or get_architecture()


def get_manifest_dir(
    package_name: str,
    source: Optional[str] = None,
    manifests_dir: Optional[Path] = None,
    architecture: Optional[str] = None
) -> Path:
    """Get the directory holding one package's uninstall manifest."""
    manifests_dir = manifests_dir or get_config().manifests_dir
    architecture = architecture or get_effective_architecture()
    fqpn = compute_fully_qualified_package_name(package_name, source)
    return manifests_dir / architecture / fqpn


def get_manifest_file(
    package_name: str,
    source: Optional[str] = None,
    manifests_dir: Optional[Path] = None,
    architecture: Optional[str] = None
) -> Path:
    """Get the canonical uninstall manifest path for a package."""
    return get_manifest_dir(package_name, source, manifests_dir, architecture) / MANIFEST_FILENAME


def get_app_dir(package_name: str, source: Optional[str] = None, jdeploy_home: Optional[Path] = None) -> Path:
    """Get ~/.jdeploy/apps/{fully qualified name}."""
    jdeploy_home = jdeploy_home or get_jdeploy_home()
    return jdeploy_home / "apps" / compute_fully_qualified_package_name(package_name, source)


def get_uninstaller_dir(package_name: str, source: Optional[str] = None, jdeploy_home: Optional[Path] = None) -> Path:
    """Get ~/.jdeploy/uninstallers/{fully qualified name}."""
    jdeploy_home = jdeploy_home or get_jdeploy_home()
    return jdeploy_home / "uninstallers" / compute_fully_qualified_package_name(package_name, source)


def get_all_possible_package_paths(
    package_name: str,
    source: Optional[str] = None,
    jdeploy_home: Optional[Path] = None,
    architecture: Optional[str] = None
) -> List[Path]:
    """Get the architecture-specific and legacy install locations of a package."""
    validate_package_name(package_name)
    jdeploy_home = jdeploy_home or get_jdeploy_home()
    architecture = architecture or get_effective_architecture()

    if not source:
        leaf = Path(package_name).name
        base = "packages"
    else:
        leaf = compute_fully_qualified_package_name(package_name, source)
        base = "gh-packages"

    return [
        jdeploy_home / f"{base}-{architecture}" / leaf,
        jdeploy_home / base / leaf,
    ]
