"""Core configuration and logging for jdeploy-uninstall."""
