# modelshelf/models/__init__.py
"""Catalog rows and pipeline data models."""

from modelshelf.models.catalog import Collection, FileEntry, ModelCollection, ModelEntry
from modelshelf.models.pack import PackDescriptor, PackMetadata
from modelshelf.models.refresh import (
    FileState,
    IndexedModel,
    ModelIndexResult,
    ReconcileResult,
    RefreshReport,
    RenderOutcome,
    RenderStatus,
)

__all__ = [
    "ModelEntry",
    "FileEntry",
    "Collection",
    "ModelCollection",
    "PackDescriptor",
    "PackMetadata",
    "FileState",
    "IndexedModel",
    "ModelIndexResult",
    "ReconcileResult",
    "RefreshReport",
    "RenderOutcome",
    "RenderStatus",
]
