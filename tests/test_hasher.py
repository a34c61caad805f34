# tests/test_hasher.py
"""Tests for content hashing."""

import hashlib

import pytest

from modelshelf.indexing.hasher import ContentHasher, hash_file_sync


def test_hash_matches_sha256_across_chunks(tmp_path):
    data = b"0123456789" * 1000
    path = tmp_path / "part.stl"
    path.write_bytes(data)

    digest, size = hash_file_sync(path, chunk_size=7)

    assert digest == hashlib.sha256(data).hexdigest()
    assert len(digest) == 64
    assert size == len(data)


def test_empty_file(tmp_path):
    path = tmp_path / "empty.obj"
    path.write_bytes(b"")

    assert hash_file_sync(path) == (hashlib.sha256(b"").hexdigest(), 0)


@pytest.mark.asyncio
async def test_async_digest(tmp_path):
    path = tmp_path / "part.stl"
    path.write_bytes(b"solid widget")

    hasher = ContentHasher()

    assert await hasher.digest(path) == hashlib.sha256(b"solid widget").hexdigest()


@pytest.mark.asyncio
async def test_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        await ContentHasher().hash_file(tmp_path / "gone.stl")
