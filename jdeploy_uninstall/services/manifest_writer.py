"""Serializes validated uninstall manifests to disk."""

import os
import stat
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from ..core.config import get_config
from ..core.lib_logger import get_logger
from ..lib.exceptions import ManifestValidationError
from ..lib.paths import get_manifest_file
from ..models.uninstall_manifest import UninstallManifest
from .manifest_validator import ManifestValidator
from .manifest_xml import ManifestXmlGenerator

logger = get_logger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def _target_mode(destination: Path) -> int:
    """Get the mode a replaced manifest should have.

    An existing file keeps its permissions; a new one gets the usual
    0666 minus the process umask instead of mkstemp's 0600.
    """
    try:
        return stat.S_IMODE(destination.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


class ManifestWriter:
    """Generates, validates and atomically writes manifest files."""

    def __init__(
        self,
        validator: Optional[ManifestValidator] = None,
        manifests_dir: Optional[Path] = None,
        architecture: Optional[str] = None,
        relaxed: Optional[bool] = None
    ):
        """Initialize the writer.

        ``relaxed`` defaults to the ``skip_schema_validation`` setting and is
        ignored when an explicit validator is given.
        """
        if validator is None:
            if relaxed is None:
                relaxed = get_config().skip_schema_validation
            validator = ManifestValidator(relaxed=relaxed)
        self.validator = validator
        self.generator = ManifestXmlGenerator()
        self.manifests_dir = manifests_dir
        self.architecture = architecture

    def get_destination(self, manifest: UninstallManifest) -> Path:
        """Compute the canonical manifest file for the manifest's package."""
        return get_manifest_file(
            manifest.package_info.name,
            manifest.package_info.source,
            manifests_dir=self.manifests_dir,
            architecture=self.architecture
        )

    def write(self, manifest: UninstallManifest, destination: Optional[Path] = None) -> Path:
        """Write the manifest to destination, or to its canonical location."""
        if destination is None:
            destination = self.get_destination(manifest)
        return self.write_to(manifest, destination)

    def write_to(self, manifest: UninstallManifest, destination: Path) -> Path:
        """Write the manifest to an explicit destination file."""
        if manifest is None:
            raise ValueError("manifest cannot be None")
        if destination is None:
            raise ValueError("destination cannot be None")

        destination = Path(destination)
        content = self.to_string(manifest)

        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=".uninstall-manifest-", suffix=".tmp", dir=destination.parent
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content.encode("utf-8"))
            os.chmod(temp_name, _target_mode(destination))
            os.replace(temp_name, destination)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

        logger.info(f"Wrote uninstall manifest for {manifest.package_info.name} to {destination}")
        return destination

    def to_string(self, manifest: UninstallManifest) -> str:
        """Generate, validate and serialize a manifest."""
        placeholders = manifest.unresolved_placeholders()
        if placeholders:
            unique = sorted(set(placeholders))
            raise ManifestValidationError(
                "Manifest contains unresolved path variables",
                detailed_message=f"Unresolved variables in recorded paths: {', '.join(unique)}",
                errors=unique
            )

        tree = self.generator.generate(manifest)
        self.validator.validate(tree)

        ET.indent(tree, space="  ")
        body = ET.tostring(tree.getroot(), encoding="unicode")
        return f"{XML_DECLARATION}\n{body}\n"
