"""XML codec for uninstall manifests (namespace http://jdeploy.ca/uninstall-manifest/1.0)."""

import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import List, Optional, Union

from ..lib.exceptions import ManifestParseError
from ..models.uninstall_manifest import (
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

NAMESPACE = "http://jdeploy.ca/uninstall-manifest/1.0"
ROOT_ELEMENT = "uninstallManifest"

# Serialize manifest elements without a prefix (xmlns="...")
ET.register_namespace("", NAMESPACE)

ManifestDocument = Union[ET.ElementTree, ET.Element]

_INSTANT = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2})?)(?:\.(?P<fraction>\d+))?(?P<zone>Z|[+-]\d{2}:?\d{2})?$"
)


def qualify(tag: str) -> str:
    """Get the namespaced (Clark notation) name of a manifest element."""
    return f"{{{NAMESPACE}}}{tag}"


def local_name(tag: str) -> str:
    """Strip the namespace from an element tag."""
    return tag.rsplit("}", 1)[-1]


def format_instant(value: datetime) -> str:
    """Format an aware datetime as an ISO-8601 UTC instant ending in Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_instant(text: str) -> datetime:
    """Parse an ISO-8601 instant, tolerating nanosecond fractions and a Z suffix."""
    match = _INSTANT.match(text.strip())
    if not match:
        raise ValueError(f"Invalid instant: {text!r}")

    normalized = match.group("base")
    fraction = match.group("fraction")
    if fraction:
        normalized += "." + fraction[:6].ljust(6, "0")
    zone = match.group("zone")
    if zone is None or zone == "Z":
        normalized += "+00:00"
    else:
        normalized += zone if ":" in zone else f"{zone[:3]}:{zone[3:]}"

    return datetime.fromisoformat(normalized).astimezone(timezone.utc)


class ManifestXmlGenerator:
    """Converts an UninstallManifest into an XML document."""

    def generate(self, manifest: UninstallManifest) -> ET.ElementTree:
        """Generate the manifest document.

        Children follow a fixed order: packageInfo, files, directories, then
        registry and pathModifications only when present on the model.
        """
        root = ET.Element(qualify(ROOT_ELEMENT), {"version": manifest.version})

        root.append(self._package_info(manifest.package_info))
        root.append(self._files(manifest.files))
        root.append(self._directories(manifest.directories))

        if manifest.registry is not None:
            root.append(self._registry(manifest.registry))

        if manifest.path_modifications is not None:
            root.append(self._path_modifications(manifest.path_modifications))

        return ET.ElementTree(root)

    def _package_info(self, package_info: PackageInfo) -> ET.Element:
        element = ET.Element(qualify("packageInfo"))
        _append_text(element, "name", package_info.name)
        if package_info.source is not None:
            _append_text(element, "source", package_info.source)
        _append_text(element, "version", package_info.version)
        _append_text(element, "fullyQualifiedName", package_info.fully_qualified_name)
        _append_text(element, "architecture", package_info.architecture)
        _append_text(element, "installedAt", format_instant(package_info.installed_at))
        _append_text(element, "installerVersion", package_info.installer_version)
        return element

    def _files(self, files: List[InstalledFile]) -> ET.Element:
        element = ET.Element(qualify("files"))
        for file in files:
            child = ET.SubElement(element, qualify("file"), {"type": file.type.to_token()})
            _append_text(child, "path", file.path)
            _append_optional(child, "description", file.description)
        return element

    def _directories(self, directories: List[InstalledDirectory]) -> ET.Element:
        element = ET.Element(qualify("directories"))
        for directory in directories:
            child = ET.SubElement(element, qualify("directory"), {"cleanup": directory.cleanup.to_token()})
            _append_text(child, "path", directory.path)
            _append_optional(child, "description", directory.description)
        return element

    def _registry(self, registry: RegistryInfo) -> ET.Element:
        element = ET.Element(qualify("registry"))

        created_keys = ET.SubElement(element, qualify("createdKeys"))
        for key in registry.created_keys:
            child = ET.SubElement(created_keys, qualify("createdKey"), {"root": key.root.to_token()})
            _append_text(child, "path", key.path)
            _append_optional(child, "description", key.description)

        modified_values = ET.SubElement(element, qualify("modifiedValues"))
        for value in registry.modified_values:
            child = ET.SubElement(modified_values, qualify("modifiedValue"), {
                "root": value.root.to_token(),
                "previousType": value.previous_type.to_token(),
            })
            _append_text(child, "path", value.path)
            _append_text(child, "name", value.name)
            _append_optional(child, "previousValue", value.previous_value)
            _append_optional(child, "description", value.description)

        return element

    def _path_modifications(self, path_modifications: PathModifications) -> ET.Element:
        element = ET.Element(qualify("pathModifications"))

        windows_paths = ET.SubElement(element, qualify("windowsPaths"))
        for entry in path_modifications.windows_paths:
            child = ET.SubElement(windows_paths, qualify("windowsPath"))
            _append_text(child, "addedEntry", entry.added_entry)
            _append_optional(child, "description", entry.description)

        shell_profiles = ET.SubElement(element, qualify("shellProfiles"))
        for entry in path_modifications.shell_profiles:
            child = ET.SubElement(shell_profiles, qualify("shellProfile"))
            _append_text(child, "file", entry.file)
            _append_text(child, "exportLine", entry.export_line)
            _append_optional(child, "description", entry.description)

        git_bash_profiles = ET.SubElement(element, qualify("gitBashProfiles"))
        for entry in path_modifications.git_bash_profiles:
            child = ET.SubElement(git_bash_profiles, qualify("gitBashProfile"))
            _append_text(child, "file", entry.file)
            _append_text(child, "exportLine", entry.export_line)
            _append_optional(child, "description", entry.description)

        return element


class ManifestXmlParser:
    """Converts a manifest XML document back into an UninstallManifest."""

    def parse(self, document: Union[ManifestDocument, str, bytes]) -> UninstallManifest:
        """Parse a document, root element, or raw XML text."""
        root = self._root_of(document)

        if local_name(root.tag) != ROOT_ELEMENT:
            raise ManifestParseError(
                f"Expected root element '{ROOT_ELEMENT}', got '{local_name(root.tag)}'",
                element=local_name(root.tag)
            )

        version = root.get("version")
        if version is None:
            raise ManifestParseError("Root element missing required 'version' attribute", element=ROOT_ELEMENT)

        package_info_element = _find(root, "packageInfo")
        if package_info_element is None:
            raise ManifestParseError("Manifest is missing packageInfo", element="packageInfo")

        try:
            return UninstallManifest(
                version=version,
                package_info=self._package_info(package_info_element),
                files=self._files(_find(root, "files")),
                directories=self._directories(_find(root, "directories")),
                registry=self._registry(_find(root, "registry")),
                path_modifications=self._path_modifications(_find(root, "pathModifications"))
            )
        except ValueError as e:
            # Unknown enum tokens and pydantic validation failures
            raise ManifestParseError(f"Invalid manifest content: {e}") from e

    def _root_of(self, document) -> ET.Element:
        if document is None:
            raise ManifestParseError("Document cannot be None")
        if isinstance(document, (str, bytes)):
            try:
                return ET.fromstring(document)
            except ET.ParseError as e:
                raise ManifestParseError(f"Malformed manifest XML: {e}") from e
        if isinstance(document, ET.ElementTree):
            root = document.getroot()
            if root is None:
                raise ManifestParseError("Document has no root element")
            return root
        return document

    def _package_info(self, element: ET.Element) -> PackageInfo:
        installed_at = _required_text(element, "installedAt")
        return PackageInfo(
            name=_required_text(element, "name"),
            source=_optional_text(element, "source"),
            version=_required_text(element, "version"),
            fully_qualified_name=_required_text(element, "fullyQualifiedName"),
            architecture=_required_text(element, "architecture"),
            installed_at=parse_instant(installed_at),
            installer_version=_required_text(element, "installerVersion")
        )

    def _files(self, element: Optional[ET.Element]) -> List[InstalledFile]:
        if element is None:
            return []
        return [
            InstalledFile(
                path=_required_text(child, "path"),
                type=FileType.from_token(_required_attribute(child, "type")),
                description=_optional_text(child, "description")
            )
            for child in _find_all(element, "file")
        ]

    def _directories(self, element: Optional[ET.Element]) -> List[InstalledDirectory]:
        if element is None:
            return []
        return [
            InstalledDirectory(
                path=_required_text(child, "path"),
                cleanup=CleanupStrategy.from_token(_required_attribute(child, "cleanup")),
                description=_optional_text(child, "description")
            )
            for child in _find_all(element, "directory")
        ]

    def _registry(self, element: Optional[ET.Element]) -> Optional[RegistryInfo]:
        if element is None:
            return None

        created_keys = []
        container = _find(element, "createdKeys")
        if container is not None:
            for child in _find_all(container, "createdKey"):
                created_keys.append(RegistryKey(
                    root=RegistryRoot.from_token(_required_attribute(child, "root")),
                    path=_required_text(child, "path"),
                    description=_optional_text(child, "description")
                ))

        modified_values = []
        container = _find(element, "modifiedValues")
        if container is not None:
            for child in _find_all(container, "modifiedValue"):
                modified_values.append(ModifiedRegistryValue(
                    root=RegistryRoot.from_token(_required_attribute(child, "root")),
                    path=_required_text(child, "path"),
                    name=_required_text(child, "name"),
                    previous_value=_optional_text(child, "previousValue"),
                    previous_type=RegistryValueType.from_token(_required_attribute(child, "previousType")),
                    description=_optional_text(child, "description")
                ))

        return RegistryInfo(created_keys=created_keys, modified_values=modified_values)

    def _path_modifications(self, element: Optional[ET.Element]) -> Optional[PathModifications]:
        if element is None:
            return None

        windows_paths = []
        container = _find(element, "windowsPaths")
        if container is not None:
            for child in _find_all(container, "windowsPath"):
                windows_paths.append(WindowsPathEntry(
                    added_entry=_required_text(child, "addedEntry"),
                    description=_optional_text(child, "description")
                ))

        shell_profiles = []
        container = _find(element, "shellProfiles")
        if container is not None:
            for child in _find_all(container, "shellProfile"):
                shell_profiles.append(ShellProfileEntry(
                    file=_required_text(child, "file"),
                    export_line=_required_text(child, "exportLine"),
                    description=_optional_text(child, "description")
                ))

        git_bash_profiles = []
        container = _find(element, "gitBashProfiles")
        if container is not None:
            for child in _find_all(container, "gitBashProfile"):
                git_bash_profiles.append(GitBashProfileEntry(
                    file=_required_text(child, "file"),
                    export_line=_required_text(child, "exportLine"),
                    description=_optional_text(child, "description")
                ))

        return PathModifications(
            windows_paths=windows_paths,
            shell_profiles=shell_profiles,
            git_bash_profiles=git_bash_profiles
        )


def _append_text(parent: ET.Element, tag: str, text: str) -> ET.Element:
    child = ET.SubElement(parent, qualify(tag))
    child.text = text
    return child


def _append_optional(parent: ET.Element, tag: str, text: Optional[str]) -> None:
    if text is not None:
        _append_text(parent, tag, text)


def _find(parent: ET.Element, tag: str) -> Optional[ET.Element]:
    found = parent.find(qualify(tag))
    if found is None:
        found = parent.find(tag)
    return found


def _find_all(parent: ET.Element, tag: str) -> List[ET.Element]:
    return parent.findall(qualify(tag)) or parent.findall(tag)


def _optional_text(parent: ET.Element, tag: str) -> Optional[str]:
    child = _find(parent, tag)
    if child is None:
        return None
    # Present but empty element means an empty string, not a missing value
    return child.text or ""


def _required_text(parent: ET.Element, tag: str) -> str:
    text = _optional_text(parent, tag)
    if text is None:
        raise ManifestParseError(
            f"Element '{local_name(parent.tag)}' is missing required child '{tag}'",
            element=tag
        )
    return text


def _required_attribute(element: ET.Element, name: str) -> str:
    value = element.get(name)
    if value is None:
        raise ManifestParseError(
            f"Element '{local_name(element.tag)}' is missing required attribute '{name}'",
            element=local_name(element.tag)
        )
    return value
