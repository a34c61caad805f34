# modelshelf/__main__.py
"""Command line entry point: run a refresh pass without the API server."""

import argparse
import sys
from typing import Optional

import anyio

from .catalog.store import CatalogStore
from .config import load_config
from .errors import CatalogError
from .indexing.refresh import LibraryRefresher
from .logging_config import setup_logging


async def _run(command: str, config_path: Optional[str], pack_path: Optional[str]) -> int:
    config = await load_config(config_path)
    setup_logging(
        log_level=config.logging.level,
        log_dir=config.logging.dir,
        enable_file_logging=config.logging.file_logging,
    )

    store = CatalogStore.from_url(config.data.database_url)
    try:
        await anyio.to_thread.run_sync(store.create_all)
        refresher = LibraryRefresher.from_config(config, store)

        if command == "reindex":
            report = await refresher.reindex_pack(pack_path)
        else:
            report = await refresher.refresh()
    finally:
        store.dispose()

    print(report.model_dump_json(indent=2))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="modelshelf", description="Maintain the model pack catalog")
    parser.add_argument("--config", default=None, help="Path to settings YAML")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("refresh", help="Reconcile the whole library")
    reindex = sub.add_parser("reindex", help="Reconcile a single pack directory")
    reindex.add_argument("pack_path")

    args = parser.parse_args(argv)

    try:
        return anyio.run(_run, args.command, args.config, getattr(args, "pack_path", None))
    except CatalogError as e:
        print(f"Refresh failed: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
