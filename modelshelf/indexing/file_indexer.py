# modelshelf/indexing/file_indexer.py
"""
Per-model file indexing.

Two idempotent phases per model:

1. Staleness: every existing file row is classified as unchanged, stale
   (hash mismatch or unreadable) or missing. Stale and missing rows are
   deleted; their previews become orphans for the cache janitor.
2. Discovery: every file under ``files/`` without a live row is hashed,
   rendered if it is a mesh, and inserted as a new row.

Rows are matched purely by relative path, so a renamed file is a deletion
plus a new file.
"""

import logging
import os
from pathlib import Path
from typing import List, Set
import anyio

from ..catalog.store import CatalogStore
from ..library.discovery import FILES_DIR
from ..library.filetypes import is_renderable
from ..models.catalog import FileEntry
from ..models.refresh import FileState, IndexedModel, ModelIndexResult, RenderStatus
from .hasher import ContentHasher
from .renderer import PreviewRenderer

logger = logging.getLogger(__name__)


def list_pack_files(files_root: Path) -> List[str]:
    """All regular files below ``files_root`` as sorted POSIX relative paths."""

    def _log_walk_error(error: OSError) -> None:
        logger.warning("Cannot read directory %s: %s", error.filename, error)

    paths = []
    for dirpath, _dirnames, filenames in os.walk(files_root, onerror=_log_walk_error):
        for name in filenames:
            full = Path(dirpath) / name
            if full.is_file():
                paths.append(full.relative_to(files_root).as_posix())
    return sorted(paths)


class FileIndexer:
    """Keep file rows of a model in sync with its ``files/`` tree."""

    def __init__(
        self,
        store: CatalogStore,
        preview_renderer: PreviewRenderer,
        hasher: ContentHasher | None = None,
    ):
        self.store = store
        self.preview_renderer = preview_renderer
        self.hasher = hasher or ContentHasher()

    async def index_model(self, model: IndexedModel) -> ModelIndexResult:
        """
        Run the staleness phase, then the discovery phase, for one model.

        Raises:
            CatalogError: If the catalog cannot be read or written
        """
        result = ModelIndexResult()
        files_root = Path(model.root) / FILES_DIR

        live_paths = await self.check_staleness(model, files_root, result)
        await self.discover_files(model, files_root, live_paths, result)

        if result.files_added or result.files_removed:
            logger.info(
                "Indexed %s: +%d/-%d files",
                model.folder_path,
                result.files_added,
                result.files_removed,
            )
        return result

    async def classify(self, entry: FileEntry, files_root: Path) -> FileState:
        """Compare a stored file row with the file currently on disk."""
        path = anyio.Path(files_root / entry.file_path)
        if not await path.is_file():
            return FileState.MISSING

        try:
            current_hash = await self.hasher.digest(Path(path))
        except OSError as e:
            # Unreadable counts as changed; discovery reconsiders it
            logger.warning("Cannot hash %s: %s", path, e)
            return FileState.STALE

        if current_hash != entry.content_hash:
            return FileState.STALE
        return FileState.UNCHANGED

    async def check_staleness(
        self, model: IndexedModel, files_root: Path, result: ModelIndexResult
    ) -> Set[str]:
        """
        Delete rows whose file is missing or changed.

        Returns:
            Relative paths of the rows that are still live
        """
        entries = await self.store.run(self.store.list_files, model.model_id)
        live: Set[str] = set()

        for entry in entries:
            state = await self.classify(entry, files_root)
            if state is FileState.UNCHANGED:
                live.add(entry.file_path)
                continue

            await self.store.run(self.store.delete_file, entry.id)
            result.files_removed += 1
            logger.debug("Dropped %s/%s (%s)", model.folder_path, entry.file_path, state.value)

        return live

    async def discover_files(
        self,
        model: IndexedModel,
        files_root: Path,
        live_paths: Set[str],
        result: ModelIndexResult,
    ) -> None:
        """Insert rows for files that have none yet."""
        if not await anyio.Path(files_root).is_dir():
            logger.warning("Pack %s has no %s directory", model.folder_path, FILES_DIR)
            return

        on_disk = await anyio.to_thread.run_sync(list_pack_files, files_root)

        for rel_path in on_disk:
            if rel_path in live_paths:
                continue
            await self._add_file(model, files_root, rel_path, result)

    async def _add_file(
        self, model: IndexedModel, files_root: Path, rel_path: str, result: ModelIndexResult
    ) -> None:
        path = files_root / rel_path

        try:
            content_hash, size = await self.hasher.hash_file(path)
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", path, e)
            result.errors.append(f"{model.folder_path}/{rel_path}: {e}")
            return

        preview_image = None
        if is_renderable(rel_path):
            outcome = await self.preview_renderer.render(path, content_hash)
            preview_image = outcome.preview_image
            if outcome.status is RenderStatus.RENDERED:
                result.renders += 1
            elif outcome.status is RenderStatus.REUSED:
                result.previews_reused += 1
            else:
                result.render_failures += 1

        await self.store.run(
            self.store.insert_file,
            model.model_id,
            rel_path,
            content_hash,
            size,
            preview_image,
        )
        result.files_added += 1
