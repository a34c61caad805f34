# modelshelf/library/__init__.py
"""Filesystem side of the catalog: pack discovery and metadata."""

from .discovery import PackDiscovery, find_pack_roots
from .metadata import MetadataLoader, relative_key, slugify

__all__ = [
    "PackDiscovery",
    "find_pack_roots",
    "MetadataLoader",
    "relative_key",
    "slugify",
]
