"""Unit tests for FileManifestRepository."""

import pytest

from jdeploy_uninstall.lib.exceptions import ManifestRepositoryError
from jdeploy_uninstall.lib.paths import compute_fully_qualified_package_name
from jdeploy_uninstall.services.manifest_repository import FileManifestRepository

GITHUB_SOURCE = "https://github.com/acme/my-app"


class TestFileManifestRepository:
    """Test save, load and delete of stored manifests."""

    def test_load_missing_returns_none(self, repository):
        """Test absence is not an error."""
        assert repository.load("unknown-app") is None
        assert not repository.exists("unknown-app")

    def test_save_and_load(self, repository, full_manifest, jdeploy_home):
        """Test a saved manifest loads back unchanged."""
        path = repository.save(full_manifest)

        assert path == jdeploy_home / "manifests" / "x64" / "my-app" / "uninstall-manifest.xml"
        assert repository.exists("my-app")
        assert repository.load("my-app") == full_manifest

    def test_github_manifest_location(self, repository, full_manifest, jdeploy_home):
        """Test GitHub packages are stored under their hashed name."""
        info = full_manifest.package_info.model_copy(update={
            "source": GITHUB_SOURCE,
            "fully_qualified_name": compute_fully_qualified_package_name("my-app", GITHUB_SOURCE),
        })
        manifest = full_manifest.model_copy(update={"package_info": info})

        path = repository.save(manifest)
        assert path.parent.name == info.fully_qualified_name
        assert repository.load("my-app") is None
        assert repository.load("my-app", GITHUB_SOURCE) == manifest

    def test_save_overwrites(self, repository, full_manifest, package_info):
        """Test saving again replaces the previous manifest."""
        repository.save(full_manifest)
        replacement = full_manifest.model_copy(update={"files": [], "directories": []})
        repository.save(replacement)

        loaded = repository.load("my-app")
        assert loaded.files == []
        assert loaded.directories == []

    def test_corrupt_manifest_raises(self, repository):
        """Test an unreadable manifest is distinguishable from a missing one."""
        manifest_file = repository.get_manifest_file("my-app")
        manifest_file.parent.mkdir(parents=True)
        manifest_file.write_text("<uninstallManifest", encoding="utf-8")

        with pytest.raises(ManifestRepositoryError) as exc_info:
            repository.load("my-app")
        assert exc_info.value.details["manifest_path"] == str(manifest_file)

    def test_schema_invalid_manifest_raises(self, repository, full_manifest):
        """Test a manifest that fails validation cannot be loaded."""
        manifest_file = repository.save(full_manifest)
        content = manifest_file.read_text(encoding="utf-8").replace('type="binary"', 'type="program"')
        manifest_file.write_text(content, encoding="utf-8")

        with pytest.raises(ManifestRepositoryError):
            repository.load("my-app")

    def test_delete(self, repository, full_manifest):
        """Test delete removes the manifest."""
        repository.save(full_manifest)
        assert repository.delete("my-app") is True
        assert not repository.exists("my-app")
        assert repository.load("my-app") is None

    def test_delete_is_idempotent(self, repository):
        """Test deleting a missing manifest is a no-op."""
        assert repository.delete("my-app") is False
        assert repository.delete("my-app") is False

    def test_delete_prunes_empty_parents(self, repository, full_manifest, jdeploy_home):
        """Test empty architecture and manifests directories are removed."""
        repository.save(full_manifest)
        repository.delete("my-app")

        assert not (jdeploy_home / "manifests" / "x64").exists()
        assert not (jdeploy_home / "manifests").exists()

    def test_delete_keeps_other_packages(self, repository, full_manifest, package_info):
        """Test sibling manifests and their parents survive."""
        repository.save(full_manifest)
        other_info = package_info.model_copy(update={"name": "other-app", "fully_qualified_name": "other-app"})
        repository.save(full_manifest.model_copy(update={"package_info": other_info}))

        repository.delete("my-app")
        assert repository.exists("other-app")

    def test_relaxed_repository_loads_schema_invalid_manifest(self, jdeploy_home, full_manifest):
        """Test relaxed mode tolerates content the schema would reject."""
        strict = FileManifestRepository(manifests_dir=jdeploy_home / "manifests", architecture="x64")
        manifest_file = strict.save(full_manifest)
        content = manifest_file.read_text(encoding="utf-8").replace(
            "<installerVersion>4.0.0</installerVersion>", "<installerVersion>4.0.0</installerVersion><extra/>"
        )
        manifest_file.write_text(content, encoding="utf-8")

        relaxed = FileManifestRepository(manifests_dir=jdeploy_home / "manifests", architecture="x64", relaxed=True)
        assert relaxed.load("my-app") == full_manifest
        with pytest.raises(ManifestRepositoryError):
            strict.load("my-app")
