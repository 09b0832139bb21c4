# jDeploy uninstall manifest and uninstall service

from . import core, lib, models, services

__version__ = "1.0.0"

__all__ = ["core", "lib", "models", "services", "__version__"]
