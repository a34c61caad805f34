# modelshelf/api/dependencies.py
"""FastAPI dependency injection."""

from functools import lru_cache
from typing import Annotated, Optional
import anyio

from fastapi import Depends

from ..catalog.store import CatalogStore
from ..config import Config, load_config
from ..indexing.refresh import LibraryRefresher


# =============================================================================
# Configuration
# =============================================================================


@lru_cache()
def get_config_sync() -> Config:
    """Get configuration synchronously (cached).

    Note: uses async AnyIO filesystem operations under the hood.
    """
    return anyio.run(load_config)


_config: Optional[Config] = None
_config_lock: Optional[anyio.Lock] = None


def _get_config_lock() -> anyio.Lock:
    """Get or create the config lock (lazy initialization)."""
    global _config_lock
    if _config_lock is None:
        _config_lock = anyio.Lock()
    return _config_lock


async def get_config() -> Config:
    """Get configuration (async, cached)."""
    global _config

    if _config is None:
        async with _get_config_lock():
            if _config is None:
                _config = await load_config()

    return _config


ConfigDep = Annotated[Config, Depends(get_config)]


# =============================================================================
# Catalog Store
# =============================================================================


_store: Optional[CatalogStore] = None
_store_lock: Optional[anyio.Lock] = None


def _get_store_lock() -> anyio.Lock:
    """Get or create the store lock (lazy initialization)."""
    global _store_lock
    if _store_lock is None:
        _store_lock = anyio.Lock()
    return _store_lock


async def get_store(config: ConfigDep) -> CatalogStore:
    """Get or create the catalog store singleton."""
    global _store

    if _store is None:
        async with _get_store_lock():
            if _store is None:
                store = CatalogStore.from_url(config.data.database_url)
                await anyio.to_thread.run_sync(store.create_all)
                _store = store

    return _store


StoreDep = Annotated[CatalogStore, Depends(get_store)]


# =============================================================================
# Library Refresher
# =============================================================================


_refresher: Optional[LibraryRefresher] = None
_refresher_lock: Optional[anyio.Lock] = None


def _get_refresher_lock() -> anyio.Lock:
    """Get or create the refresher lock (lazy initialization)."""
    global _refresher_lock
    if _refresher_lock is None:
        _refresher_lock = anyio.Lock()
    return _refresher_lock


async def get_refresher(config: ConfigDep, store: StoreDep) -> LibraryRefresher:
    """Get or create the library refresher singleton.

    One instance per process so that refresh requests share its
    single-flight lock.
    """
    global _refresher

    if _refresher is None:
        async with _get_refresher_lock():
            if _refresher is None:
                _refresher = LibraryRefresher.from_config(config, store)

    return _refresher


RefresherDep = Annotated[LibraryRefresher, Depends(get_refresher)]


# =============================================================================
# Cleanup
# =============================================================================


async def cleanup_dependencies() -> None:
    """Release singletons on shutdown."""
    global _config, _store, _refresher

    if _store is not None:
        _store.dispose()

    _config = None
    _store = None
    _refresher = None
