"""File-backed storage of one uninstall manifest per installed package."""

import shutil
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from ..core.config import get_config
from ..core.lib_logger import get_logger
from ..lib.exceptions import ManifestParseError, ManifestRepositoryError, ManifestValidationError
from ..lib.paths import get_effective_architecture, get_manifest_dir, get_manifest_file
from ..models.uninstall_manifest import UninstallManifest
from .manifest_validator import ManifestValidator
from .manifest_writer import ManifestWriter
from .manifest_xml import ManifestXmlParser

logger = get_logger(__name__)


class FileManifestRepository:
    """Stores manifests at ``<manifests>/<arch>/<fully qualified name>/uninstall-manifest.xml``.

    ``save`` always overwrites. ``load`` returns None when no manifest is
    stored and raises ManifestRepositoryError when one is stored but
    unreadable. ``delete`` is a no-op for packages without a manifest.

    There is no locking: concurrent install and uninstall of the same package
    must be serialized by the caller.
    """

    def __init__(
        self,
        manifests_dir: Optional[Path] = None,
        architecture: Optional[str] = None,
        relaxed: Optional[bool] = None
    ):
        """Initialize the repository."""
        config = get_config()
        if relaxed is None:
            relaxed = config.skip_schema_validation

        self.manifests_dir = Path(manifests_dir) if manifests_dir else config.manifests_dir
        self.architecture = architecture or get_effective_architecture()
        self.validator = ManifestValidator(relaxed=relaxed)
        self.writer = ManifestWriter(
            validator=self.validator,
            manifests_dir=self.manifests_dir,
            architecture=self.architecture
        )
        self.parser = ManifestXmlParser()

    def get_manifest_file(self, package_name: str, source: Optional[str] = None) -> Path:
        """Get the manifest file location for a package."""
        return get_manifest_file(package_name, source, self.manifests_dir, self.architecture)

    def exists(self, package_name: str, source: Optional[str] = None) -> bool:
        """Check whether a manifest is stored for a package."""
        return self.get_manifest_file(package_name, source).is_file()

    def save(self, manifest: UninstallManifest) -> Path:
        """Persist a manifest, replacing any previous one for the same package."""
        return self.writer.write(manifest)

    def load(self, package_name: str, source: Optional[str] = None) -> Optional[UninstallManifest]:
        """Load a package's manifest, or None if none is stored."""
        manifest_file = self.get_manifest_file(package_name, source)
        if not manifest_file.is_file():
            logger.debug(f"No uninstall manifest at {manifest_file}")
            return None

        try:
            document = ET.parse(manifest_file)
            self.validator.validate(document)
            manifest = self.parser.parse(document)
        except (OSError, ET.ParseError, ManifestValidationError, ManifestParseError) as e:
            raise ManifestRepositoryError(
                f"Failed to load uninstall manifest: {e}",
                manifest_path=str(manifest_file),
                package_name=package_name,
                source=source
            ) from e

        logger.debug(f"Loaded uninstall manifest for {package_name} from {manifest_file}")
        return manifest

    def delete(self, package_name: str, source: Optional[str] = None) -> bool:
        """Delete a package's manifest directory.

        Returns True if something was removed. Architecture and manifests
        directories left empty are pruned as well.
        """
        manifest_dir = get_manifest_dir(package_name, source, self.manifests_dir, self.architecture)
        if not manifest_dir.exists():
            logger.debug(f"No manifest directory to delete at {manifest_dir}")
            return False

        shutil.rmtree(manifest_dir)
        logger.info(f"Deleted uninstall manifest directory {manifest_dir}")

        for parent in (manifest_dir.parent, self.manifests_dir):
            try:
                parent.rmdir()
            except OSError:
                # Not empty or already gone
                break
        return True
