"""Readers for the native client's cached state."""

from .client_state import read_installed_metadata, read_installed_packages

__all__ = [
    "read_installed_metadata",
    "read_installed_packages",
]
