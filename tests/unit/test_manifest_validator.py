"""Unit tests for ManifestValidator."""

import xml.etree.ElementTree as ET

import pytest

from jdeploy_uninstall.lib.exceptions import ManifestValidationError
from jdeploy_uninstall.models.uninstall_manifest import UninstallManifest
from jdeploy_uninstall.services.manifest_validator import ManifestValidator
from jdeploy_uninstall.services.manifest_xml import NAMESPACE, ManifestXmlGenerator, qualify


@pytest.fixture
def validator():
    return ManifestValidator()


@pytest.fixture
def document(full_manifest):
    return ManifestXmlGenerator().generate(full_manifest)


class TestBasicValidation:
    """Test root element checks shared by both tiers."""

    def test_none_document(self, validator):
        """Test None fails immediately."""
        with pytest.raises(ManifestValidationError, match="null"):
            validator.validate(None)

    def test_wrong_root(self, validator):
        """Test a foreign root element is rejected."""
        root = ET.Element(f"{{{NAMESPACE}}}manifest", {"version": "1.0"})
        with pytest.raises(ManifestValidationError) as exc_info:
            validator.validate(root)
        assert "manifest" in exc_info.value.detailed_message

    def test_missing_version(self, validator):
        """Test the version attribute is required."""
        root = ET.Element(qualify("uninstallManifest"))
        with pytest.raises(ManifestValidationError, match="version"):
            validator.validate(root)

    def test_relaxed_only_checks_root(self):
        """Test relaxed mode accepts schema-invalid content."""
        validator = ManifestValidator(relaxed=True)
        assert not validator.schema_available
        validator.validate(ET.Element(qualify("uninstallManifest"), {"version": "1.0"}))


class TestSchemaValidation:
    """Test XSD validation of generated documents."""

    def test_schema_loaded(self, validator):
        """Test the bundled schema is available."""
        assert validator.schema_available

    def test_generated_document_is_valid(self, validator, document):
        """Test generator output conforms to the schema."""
        validator.validate(document)
        assert validator.is_valid(document)

    def test_minimal_document_is_valid(self, validator, package_info):
        """Test a manifest without optional sections conforms."""
        validator.validate(ManifestXmlGenerator().generate(UninstallManifest(package_info=package_info)))

    def test_missing_package_info(self, validator, document):
        """Test packageInfo is required by the schema."""
        root = document.getroot()
        root.remove(root.find(qualify("packageInfo")))

        with pytest.raises(ManifestValidationError) as exc_info:
            validator.validate(document)
        assert exc_info.value.errors

    def test_unknown_file_type(self, validator, document):
        """Test enum attributes are constrained to their tokens."""
        document.getroot().find(qualify("files")).find(qualify("file")).set("type", "executable")

        with pytest.raises(ManifestValidationError) as exc_info:
            validator.validate(document)
        assert "does not conform" in str(exc_info.value)
        assert "1." in exc_info.value.detailed_message

    def test_unknown_cleanup_strategy(self, validator, document):
        """Test cleanup tokens are case sensitive."""
        directory = document.getroot().find(qualify("directories")).find(qualify("directory"))
        directory.set("cleanup", "IF_EMPTY")
        assert not validator.is_valid(document)

    def test_invalid_installed_at(self, validator, document):
        """Test installedAt must be a dateTime."""
        info = document.getroot().find(qualify("packageInfo"))
        info.find(qualify("installedAt")).text = "last tuesday"
        assert not validator.is_valid(document)

    def test_unavailable_schema_falls_back_to_basic(self, tmp_path, document):
        """Test a missing schema file disables the schema tier."""
        validator = ManifestValidator(schema_path=tmp_path / "missing.xsd")
        assert not validator.schema_available

        document.getroot().find(qualify("files")).find(qualify("file")).set("type", "executable")
        validator.validate(document)
