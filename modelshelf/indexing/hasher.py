# modelshelf/indexing/hasher.py
"""
Streaming SHA-256 content digests.

The full hex digest doubles as the preview cache filename.
"""

import hashlib
from pathlib import Path
from typing import Tuple
import anyio

CHUNK_SIZE = 1024 * 1024


def hash_file_sync(file_path: Path, chunk_size: int = CHUNK_SIZE) -> Tuple[str, int]:
    """
    Hash a file without loading it whole.

    Returns:
        Tuple of (hex digest, size in bytes)

    Raises:
        OSError: If the file cannot be opened or read
    """
    digest = hashlib.sha256()
    size = 0
    with open(file_path, "rb") as fh:
        while chunk := fh.read(chunk_size):
            digest.update(chunk)
            size += len(chunk)
    return digest.hexdigest(), size


class ContentHasher:
    """Compute file digests off the event loop."""

    def __init__(self, chunk_size: int = CHUNK_SIZE):
        self.chunk_size = chunk_size

    async def hash_file(self, file_path: Path) -> Tuple[str, int]:
        """
        Hash a file in a worker thread.

        Raises:
            OSError: If the file cannot be read
        """
        return await anyio.to_thread.run_sync(hash_file_sync, Path(file_path), self.chunk_size)

    async def digest(self, file_path: Path) -> str:
        content_hash, _ = await self.hash_file(file_path)
        return content_hash
