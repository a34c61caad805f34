# modelshelf/library/discovery.py
"""
Pack root discovery.

Walks the library tree looking for directories that hold a pack descriptor
next to a ``files/`` subdirectory.
"""

import logging
from pathlib import Path
from typing import List, Tuple
import anyio

logger = logging.getLogger(__name__)

DESCRIPTOR_FILE = "modelpack.json"
FILES_DIR = "files"


class PackDiscovery:
    """Find pack root directories under a library root."""

    def __init__(self, descriptor_file: str = DESCRIPTOR_FILE):
        self.descriptor_file = descriptor_file

    async def find_pack_roots(self, root: Path | str) -> List[Path]:
        """
        Find every pack root below ``root``.

        A recognized pack's subtree is not searched further, so descriptors
        nested inside a pack never produce a second pack. Directories that
        cannot be read are skipped.

        Returns:
            Pack root paths, sorted
        """
        start = anyio.Path(root)
        if not await start.is_dir():
            logger.warning("Library root %s does not exist or is not a directory", root)
            return []

        pack_roots: List[Path] = []
        seen: set[str] = set()
        dirs_to_check = [start]

        while dirs_to_check:
            current = dirs_to_check.pop()

            try:
                resolved = str(await current.resolve())
            except OSError:
                resolved = str(current)
            if resolved in seen:
                continue  # Symlink loop
            seen.add(resolved)

            try:
                is_pack, subdirs = await self._inspect(current)
            except OSError as e:
                logger.warning("Skipping unreadable directory %s: %s", current, e)
                continue

            if is_pack:
                pack_roots.append(Path(current))
            else:
                dirs_to_check.extend(subdirs)

        return sorted(pack_roots)

    async def is_pack_root(self, directory: Path | str) -> bool:
        """Whether ``directory`` currently holds a descriptor and a ``files/`` dir."""
        try:
            is_pack, _ = await self._inspect(anyio.Path(directory))
        except OSError:
            return False
        return is_pack

    async def _inspect(self, directory: anyio.Path) -> Tuple[bool, List[anyio.Path]]:
        """Return whether ``directory`` is a pack root, and its subdirectories."""
        has_descriptor = False
        has_files_dir = False
        subdirs = []

        async for entry in directory.iterdir():
            if entry.name == self.descriptor_file:
                has_descriptor = await entry.is_file()
            elif await entry.is_dir():
                if entry.name == FILES_DIR:
                    has_files_dir = True
                subdirs.append(entry)

        return has_descriptor and has_files_dir, subdirs


async def find_pack_roots(root: Path | str, descriptor_file: str = DESCRIPTOR_FILE) -> List[Path]:
    """Convenience wrapper around :class:`PackDiscovery`."""
    return await PackDiscovery(descriptor_file).find_pack_roots(root)
