"""Shared helpers: exceptions, paths and platform detection."""
