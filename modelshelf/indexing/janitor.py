# modelshelf/indexing/janitor.py
"""Garbage collection of unreferenced preview cache entries."""

import logging
from pathlib import Path
import anyio

from ..catalog.store import CatalogStore

logger = logging.getLogger(__name__)


class CacheJanitor:
    """Delete cache files that no live file row references."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def sweep(self, cache_dir: Path | str) -> int:
        """
        Remove orphaned files from ``cache_dir``.

        Must run after all indexing of a pass has finished, otherwise
        previews created earlier in the same pass could be reported as
        orphans.

        Returns:
            Number of files removed

        Raises:
            CatalogError: If the referenced previews cannot be queried
        """
        path = anyio.Path(cache_dir)
        if not await path.is_dir():
            return 0

        referenced = await self.store.run(self.store.referenced_previews)

        removed = 0
        try:
            entries = [entry async for entry in path.iterdir()]
        except OSError as e:
            logger.warning("Cannot list preview cache %s: %s", cache_dir, e)
            return 0

        for entry in entries:
            if entry.name in referenced or not await entry.is_file():
                continue
            try:
                await entry.unlink()
            except FileNotFoundError:
                logger.debug("Cache entry %s already removed", entry.name)
                continue
            except OSError as e:
                logger.warning("Could not remove orphaned preview %s: %s", entry.name, e)
                continue
            removed += 1

        if removed:
            logger.info("Removed %d orphaned preview(s)", removed)
        return removed
