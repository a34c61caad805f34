# modelshelf/catalog/__init__.py
"""Persistent catalog store."""

from .store import CatalogStore, Page

__all__ = ["CatalogStore", "Page"]
