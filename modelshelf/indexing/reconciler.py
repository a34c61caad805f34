# modelshelf/indexing/reconciler.py
"""
Model-level reconciliation.

Brings the set of ModelEntry rows in line with the pack roots found on disk:
rows for vanished or invalid packs are deleted, valid packs are upserted.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from ..catalog.store import CatalogStore
from ..errors import CatalogError, PackError
from ..library.metadata import MetadataLoader, relative_key
from ..models.refresh import IndexedModel, ReconcileResult

logger = logging.getLogger(__name__)


class CatalogReconciler:
    """Create, update and delete model rows to match discovered packs."""

    def __init__(self, store: CatalogStore, loader: Optional[MetadataLoader] = None):
        self.store = store
        self.loader = loader or MetadataLoader()

    async def reconcile(
        self,
        discovered_roots: Iterable[Path],
        library_root: Path,
        prune: bool = True,
    ) -> ReconcileResult:
        """
        Reconcile model rows against ``discovered_roots``.

        Args:
            discovered_roots: Pack roots found by discovery
            library_root: Root the identity keys are relative to
            prune: Delete rows whose folder is not among ``discovered_roots``.
                Disabled when reconciling a single pack.

        Returns:
            ReconcileResult with the live models to index next

        Raises:
            CatalogError: If the catalog cannot be read or written
        """
        library_root = Path(library_root)
        result = ReconcileResult()

        roots: List[tuple[str, Path]] = []
        for root in discovered_roots:
            try:
                roots.append((relative_key(root, library_root), Path(root)))
            except ValueError:
                logger.warning("Pack %s is outside library root %s, skipping", root, library_root)
                result.packs_skipped += 1

        # Cascade-delete vanished packs before any per-file work happens
        if prune:
            removed = await self.store.run(
                self.store.delete_models_not_in, [key for key, _ in roots]
            )
            for folder_path in removed:
                logger.info("Removed model %s (directory gone)", folder_path)
            result.models_deleted += len(removed)

        for key, root in roots:
            try:
                indexed = await self._reconcile_pack(key, root, library_root, result)
            except CatalogError:
                raise
            except Exception as e:
                logger.exception("Failed to reconcile pack %s", key)
                result.packs_skipped += 1
                result.errors.append(f"{key}: {e}")
                continue

            if indexed is not None:
                result.live_models.append(indexed)

        return result

    async def _reconcile_pack(
        self, key: str, root: Path, library_root: Path, result: ReconcileResult
    ) -> Optional[IndexedModel]:
        try:
            metadata = await self.loader.load(root, library_root)
        except PackError as e:
            # An invalid pack is treated as absent
            if await self.store.run(self.store.delete_model_by_folder, key):
                logger.warning("Removed model %s: %s", key, e.reason)
                result.models_deleted += 1
            else:
                logger.warning("Skipping pack %s: %s", key, e.reason)
                result.packs_skipped += 1
            result.errors.append(str(e))
            return None

        row, created = await self.store.run(self.store.upsert_model, metadata)
        if created:
            logger.info("Added model %s (%s)", key, row.slug)
            result.models_created += 1
        else:
            logger.debug("Updated model %s", key)
            result.models_updated += 1

        return IndexedModel(model_id=row.id, folder_path=key, root=root)
