"""Exception hierarchy for manifest handling and uninstall operations."""

from typing import Any, Dict, List, Optional


class JDeployUninstallError(Exception):
    """Base exception for all jdeploy-uninstall errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize uninstall error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ManifestValidationError(JDeployUninstallError):
    """Raised when a manifest document fails structural or schema validation.

    Carries a short ``message`` suitable for a single log line and a longer
    ``detailed_message`` listing every individual problem.
    """

    def __init__(
        self,
        message: str,
        detailed_message: Optional[str] = None,
        errors: Optional[List[str]] = None
    ):
        """Initialize manifest validation error."""
        details = {}
        if errors:
            details["errors"] = errors
        super().__init__(message, details)
        self.detailed_message = detailed_message or message
        self.errors = errors or []


class ManifestParseError(JDeployUninstallError):
    """Raised when a manifest document cannot be mapped back onto the model."""

    def __init__(self, message: str, element: Optional[str] = None):
        """Initialize manifest parse error."""
        details = {}
        if element:
            details["element"] = element
        super().__init__(message, details)


class ManifestBuilderError(JDeployUninstallError, RuntimeError):
    """Raised when a manifest is built from incomplete package information."""


class ManifestRepositoryError(JDeployUninstallError):
    """Raised when a stored manifest exists but cannot be read."""

    def __init__(
        self,
        message: str,
        manifest_path: Optional[str] = None,
        package_name: Optional[str] = None,
        source: Optional[str] = None
    ):
        """Initialize manifest repository error."""
        details = {}
        if manifest_path:
            details["manifest_path"] = manifest_path
        if package_name:
            details["package_name"] = package_name
        if source:
            details["source"] = source
        super().__init__(message, details)


class RegistryOperationError(JDeployUninstallError):
    """Raised when a Windows registry call fails."""

    def __init__(
        self,
        message: str,
        root: Optional[str] = None,
        key: Optional[str] = None,
        value_name: Optional[str] = None
    ):
        """Initialize registry operation error."""
        details = {}
        if root:
            details["root"] = root
        if key:
            details["key"] = key
        if value_name is not None:
            details["value_name"] = value_name
        super().__init__(message, details)
