"""Command line interface for jdeploy-uninstall."""
