"""Bundled content backends."""

from .catalog import CatalogBackend
from .filesystem import FilesystemBackend

__all__ = [
    "CatalogBackend",
    "FilesystemBackend",
]
