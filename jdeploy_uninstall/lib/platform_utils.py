"""Platform detection for selecting OS-specific uninstall capabilities."""

import platform

WINDOWS = "windows"
MACOS = "macos"
LINUX = "linux"

_MACHINE_ARCHITECTURES = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "armv7l": "arm",
    "armv6l": "arm",
}


def get_platform() -> str:
    """Detect the current operating system: 'windows', 'macos' or 'linux'."""
    system = platform.system()
    if system == "Windows":
        return WINDOWS
    elif system == "Darwin":
        return MACOS
    else:
        return LINUX


def is_windows(os_name: str | None = None) -> bool:
    """Check whether the given (or current) platform is Windows."""
    return (os_name or get_platform()) == WINDOWS


def get_architecture() -> str:
    """Map the machine type onto the architecture tokens used in package paths."""
    machine = platform.machine().lower()
    return _MACHINE_ARCHITECTURES.get(machine, machine or "unknown")
