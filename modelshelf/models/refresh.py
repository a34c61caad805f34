# modelshelf/models/refresh.py

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class FileState(str, Enum):
    """Transition of an existing FileEntry during the staleness phase."""

    UNCHANGED = "unchanged"
    STALE = "stale"            # Content hash differs, or file unreadable
    MISSING = "missing"        # File no longer on disk


class RenderStatus(str, Enum):
    RENDERED = "rendered"
    REUSED = "reused"          # Cache entry for the hash already existed
    FAILED = "failed"


class RenderOutcome(BaseModel):
    status: RenderStatus
    preview_image: Optional[str] = None   # Cache filename, None when FAILED
    error: Optional[str] = None


class IndexedModel(BaseModel):
    """A live model row paired with the pack root it was read from."""

    model_id: int
    folder_path: str
    root: Path


class ModelIndexResult(BaseModel):
    files_added: int = 0
    files_removed: int = 0
    renders: int = 0
    render_failures: int = 0
    previews_reused: int = 0
    errors: list[str] = Field(default_factory=list)


class ReconcileResult(BaseModel):
    live_models: list[IndexedModel] = Field(default_factory=list)
    models_created: int = 0
    models_updated: int = 0
    models_deleted: int = 0
    packs_skipped: int = 0
    errors: list[str] = Field(default_factory=list)


class RefreshReport(BaseModel):
    """Summary of one refresh pass."""

    packs_discovered: int = 0
    models_created: int = 0
    models_updated: int = 0
    models_deleted: int = 0
    packs_skipped: int = 0
    files_added: int = 0
    files_removed: int = 0
    renders: int = 0
    render_failures: int = 0
    previews_reused: int = 0
    cache_entries_removed: int = 0
    errors: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    duration_ms: float = 0.0

    def add_reconcile(self, result: ReconcileResult) -> None:
        self.models_created += result.models_created
        self.models_updated += result.models_updated
        self.models_deleted += result.models_deleted
        self.packs_skipped += result.packs_skipped
        self.errors.extend(result.errors)

    def add_model_index(self, result: ModelIndexResult) -> None:
        self.files_added += result.files_added
        self.files_removed += result.files_removed
        self.renders += result.renders
        self.render_failures += result.render_failures
        self.previews_reused += result.previews_reused
        self.errors.extend(result.errors)

    def finish(self) -> "RefreshReport":
        self.finished_at = datetime.now()
        self.duration_ms = (self.finished_at - self.started_at).total_seconds() * 1000
        return self
