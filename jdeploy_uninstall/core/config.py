"""Unified configuration management for jdeploy-uninstall."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class UninstallerConfig(BaseSettings):
    """Uninstaller configuration with environment variable support."""

    # Application settings
    debug: bool = Field(default=False)
    home: Path = Field(default_factory=lambda: Path.home() / ".jdeploy")

    # Overrides the detected CPU architecture token (x64, arm64, ...)
    architecture: str | None = Field(default=None)

    # Manifest handling
    skip_schema_validation: bool = Field(default=False)

    # Logging configuration
    log_level: str = Field(default="WARNING")
    log_file: Path | None = Field(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="JDEPLOY_",
        extra="ignore",
        validate_assignment=True
    )

    @field_validator("home")
    @classmethod
    def expand_home(cls, v: Path) -> Path:
        """Expand ~ in the jDeploy home directory."""
        return Path(v).expanduser()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {sorted(allowed)}")
        return v.upper()

    @property
    def manifests_dir(self) -> Path:
        """Get the root directory of persisted uninstall manifests."""
        return self.home / "manifests"

    @property
    def apps_dir(self) -> Path:
        """Get the per-package application directory root."""
        return self.home / "apps"

    @property
    def uninstallers_dir(self) -> Path:
        """Get the per-package uninstaller directory root."""
        return self.home / "uninstallers"

    @property
    def logs_dir(self) -> Path:
        """Get logs directory."""
        return self.home / "logs"

    @property
    def resolved_log_file(self) -> Path | None:
        """Get the log file path; relative names live in logs_dir."""
        if self.log_file is None:
            return None
        log_file = self.log_file.expanduser()
        if not log_file.is_absolute():
            log_file = self.logs_dir / log_file
        return log_file


# Global configuration instance
config = UninstallerConfig()


def get_config() -> UninstallerConfig:
    """Get the global configuration instance."""
    return config


def reload_config() -> UninstallerConfig:
    """Reload configuration from environment and files."""
    global config
    config = UninstallerConfig()
    return config
