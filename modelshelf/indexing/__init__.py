# modelshelf/indexing/__init__.py
"""Reconciliation pipeline: hashing, rendering, indexing and cache sweeping."""

from .file_indexer import FileIndexer
from .hasher import ContentHasher
from .janitor import CacheJanitor
from .reconciler import CatalogReconciler
from .refresh import LibraryRefresher
from .renderer import CallableRenderer, CommandRenderer, PreviewRenderer, Renderer

__all__ = [
    "ContentHasher",
    "PreviewRenderer",
    "Renderer",
    "CommandRenderer",
    "CallableRenderer",
    "CatalogReconciler",
    "FileIndexer",
    "CacheJanitor",
    "LibraryRefresher",
]
