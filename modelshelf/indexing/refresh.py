# modelshelf/indexing/refresh.py
"""
Library refresh orchestration.

A refresh pass runs discovery, model reconciliation, per-model file indexing
and the cache sweep, in that order. Passes are serialized: overlapping
``refresh()`` calls share the one pass that is already in flight.
"""

import logging
from pathlib import Path
from typing import List, Optional
import anyio

from ..catalog.store import CatalogStore
from ..config import Config
from ..errors import CatalogError
from ..library.discovery import DESCRIPTOR_FILE, PackDiscovery
from ..library.metadata import MetadataLoader, relative_key
from ..logging_config import log_performance
from ..models.refresh import IndexedModel, RefreshReport
from .file_indexer import FileIndexer
from .janitor import CacheJanitor
from .reconciler import CatalogReconciler
from .renderer import CommandRenderer, PreviewRenderer, Renderer

logger = logging.getLogger(__name__)


class _InflightPass:
    """Result slot shared by callers that joined a running pass."""

    def __init__(self) -> None:
        self.done = anyio.Event()
        self.report: Optional[RefreshReport] = None
        self.error: Optional[Exception] = None


class LibraryRefresher:
    """Run refresh passes over a library and keep the preview cache in step."""

    def __init__(
        self,
        store: CatalogStore,
        library_path: Path | str,
        cache_dir: Path | str,
        renderer: Renderer,
        max_concurrent_models: int = 4,
        max_concurrent_renders: int = 2,
        descriptor_file: str = DESCRIPTOR_FILE,
    ):
        self.store = store
        self.library_path = Path(library_path).resolve()
        self.cache_dir = Path(cache_dir)
        self.max_concurrent_models = max(1, max_concurrent_models)

        self.discovery = PackDiscovery(descriptor_file)
        self.reconciler = CatalogReconciler(store, MetadataLoader(descriptor_file))
        self.preview_renderer = PreviewRenderer(renderer, self.cache_dir, max_concurrent_renders)
        self.file_indexer = FileIndexer(store, self.preview_renderer)
        self.janitor = CacheJanitor(store)

        self._lock: Optional[anyio.Lock] = None
        self._inflight: Optional[_InflightPass] = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        store: CatalogStore,
        renderer: Optional[Renderer] = None,
    ) -> "LibraryRefresher":
        if renderer is None:
            renderer = CommandRenderer(
                config.renderer.command,
                size=config.renderer.size,
                timeout_seconds=config.renderer.timeout_seconds,
            )
        return cls(
            store=store,
            library_path=config.library.path,
            cache_dir=config.data.preview_cache_dir,
            renderer=renderer,
            max_concurrent_models=config.refresh.max_concurrent_models,
            max_concurrent_renders=config.refresh.max_concurrent_renders,
            descriptor_file=config.library.descriptor_file,
        )

    @property
    def lock(self) -> anyio.Lock:
        """Single-writer lock, created lazily inside the running event loop."""
        if self._lock is None:
            self._lock = anyio.Lock()
        return self._lock

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None

    async def refresh(self) -> RefreshReport:
        """
        Reconcile the whole library with the catalog.

        If a pass is already running, wait for it and return its report
        instead of starting another one.

        Raises:
            CatalogError: If the catalog cannot be read or written
        """
        inflight = self._inflight
        if inflight is not None:
            await inflight.done.wait()
            if inflight.error is not None:
                raise inflight.error
            if inflight.report is not None:
                return inflight.report
            # The pass we joined was cancelled; run our own
            return await self.refresh()

        inflight = _InflightPass()
        self._inflight = inflight
        try:
            async with self.lock:
                inflight.report = await self._run_pass()
            return inflight.report
        except Exception as e:
            inflight.error = e
            raise
        finally:
            self._inflight = None
            inflight.done.set()

    async def reindex_pack(self, pack_path: Path | str) -> RefreshReport:
        """
        Reconcile and index a single pack, e.g. right after it was placed
        in the library. A path that is no longer a valid pack, or that sits
        inside another pack, removes its model row.

        Raises:
            ValueError: If ``pack_path`` is outside the library
            CatalogError: If the catalog cannot be read or written
        """
        root = Path(pack_path).resolve()
        key = relative_key(root, self.library_path)

        async with self.lock:
            report = RefreshReport()

            if await self._inside_pack(root) or not await self.discovery.is_pack_root(root):
                if await self.store.run(self.store.delete_model_by_folder, key):
                    logger.info("Removed model %s (not a pack root)", key)
                    report.models_deleted += 1
            else:
                report.packs_discovered = 1
                reconciled = await self.reconciler.reconcile([root], self.library_path, prune=False)
                report.add_reconcile(reconciled)
                await self._index_models(reconciled.live_models, report)

            report.cache_entries_removed = await self.janitor.sweep(self.cache_dir)
            return report.finish()

    async def _inside_pack(self, root: Path) -> bool:
        """Whether a directory between ``root`` and the library root is a pack root."""
        if root == self.library_path:
            return False
        for parent in root.parents:
            if await self.discovery.is_pack_root(parent):
                return True
            if parent == self.library_path:
                break
        return False

    @log_performance("library refresh")
    async def _run_pass(self) -> RefreshReport:
        report = RefreshReport()

        roots = await self.discovery.find_pack_roots(self.library_path)
        report.packs_discovered = len(roots)
        logger.info("Discovered %d pack(s) under %s", len(roots), self.library_path)

        reconciled = await self.reconciler.reconcile(roots, self.library_path)
        report.add_reconcile(reconciled)

        await self._index_models(reconciled.live_models, report)

        # Only after every model is indexed, so fresh previews are referenced
        report.cache_entries_removed = await self.janitor.sweep(self.cache_dir)

        report.finish()
        logger.info(
            "Refresh finished: %d created, %d updated, %d deleted, "
            "+%d/-%d files, %d render(s), %d failure(s)",
            report.models_created,
            report.models_updated,
            report.models_deleted,
            report.files_added,
            report.files_removed,
            report.renders,
            report.render_failures,
        )
        return report

    async def _index_models(self, models: List[IndexedModel], report: RefreshReport) -> None:
        """Index models concurrently, bounded by ``max_concurrent_models``."""
        limiter = anyio.CapacityLimiter(self.max_concurrent_models)
        fatal: List[CatalogError] = []

        async with anyio.create_task_group() as tg:

            async def _index_one(model: IndexedModel) -> None:
                async with limiter:
                    try:
                        result = await self.file_indexer.index_model(model)
                    except CatalogError as e:
                        fatal.append(e)
                        tg.cancel_scope.cancel()
                        return
                    except Exception as e:
                        logger.exception("Indexing files of %s failed", model.folder_path)
                        report.errors.append(f"{model.folder_path}: {e}")
                        return
                report.add_model_index(result)

            for model in models:
                tg.start_soon(_index_one, model)

        if fatal:
            raise fatal[0]
