"""Structural and XSD validation of uninstall manifest documents."""

import xml.etree.ElementTree as ET
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import xmlschema

from ..core.lib_logger import get_logger
from ..lib.exceptions import ManifestValidationError
from .manifest_xml import ROOT_ELEMENT, ManifestDocument, local_name

logger = get_logger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "uninstall-manifest.xsd"


@lru_cache(maxsize=4)
def _load_schema(schema_path: str) -> Optional[xmlschema.XMLSchema]:
    try:
        return xmlschema.XMLSchema(schema_path)
    except Exception as e:
        logger.warning(f"Uninstall manifest schema unavailable at {schema_path}: {e}")
        return None


class ManifestValidator:
    """Validates manifest documents in two tiers.

    The basic tier checks the root element and its version attribute. The
    schema tier checks the whole document against the bundled XSD and runs
    only when not relaxed and the schema could be loaded.
    """

    def __init__(self, relaxed: bool = False, schema_path: Optional[Path] = None):
        """Initialize the validator, loading the schema unless relaxed."""
        self.relaxed = relaxed
        self.schema_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH
        self._schema = None if relaxed else _load_schema(str(self.schema_path))

    @property
    def schema_available(self) -> bool:
        """Whether schema validation will run."""
        return self._schema is not None

    def validate(self, document: Optional[ManifestDocument]) -> None:
        """Validate a document or root element, raising ManifestValidationError."""
        root = self._basic_validation(document)

        if self._schema is None:
            logger.debug("Schema validation skipped; basic validation passed")
            return

        errors = [
            f"{error.path or '/'}: {error.reason}"
            for error in self._schema.iter_errors(root)
        ]
        if errors:
            raise ManifestValidationError(
                "Manifest XML does not conform to schema",
                detailed_message=_format_errors(errors),
                errors=errors
            )

    def is_valid(self, document: Optional[ManifestDocument]) -> bool:
        """Check a document without raising."""
        try:
            self.validate(document)
            return True
        except ManifestValidationError as e:
            logger.debug(f"Manifest validation failed: {e.detailed_message}")
            return False

    def _basic_validation(self, document: Optional[ManifestDocument]) -> ET.Element:
        if document is None:
            raise ManifestValidationError("Document cannot be null")

        root = document.getroot() if isinstance(document, ET.ElementTree) else document
        if root is None:
            raise ManifestValidationError("Document has no root element")

        name = local_name(root.tag)
        if name != ROOT_ELEMENT:
            raise ManifestValidationError(
                "Invalid root element",
                detailed_message=f"Expected root element '{ROOT_ELEMENT}' but found '{name}'"
            )

        if root.get("version") is None:
            raise ManifestValidationError(
                "Missing manifest version",
                detailed_message=f"Root element '{ROOT_ELEMENT}' must carry a 'version' attribute"
            )

        return root


def _format_errors(errors: List[str]) -> str:
    lines = [f"Schema validation found {len(errors)} error(s):"]
    lines.extend(f"  {i}. {error}" for i, error in enumerate(errors, 1))
    return "\n".join(lines)
