# tests/conftest.py
"""Shared pytest fixtures and test helpers."""

import json
from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest

from modelshelf.catalog.store import CatalogStore
from modelshelf.indexing.refresh import LibraryRefresher


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-preview"


def default_descriptor(title: str = "Widget") -> dict:
    return {
        "version": "1",
        "title": title,
        "author": "A",
        "origin": "B",
        "license": "MIT",
    }


def write_pack(
    library: Path,
    rel_path: str,
    title: str = "Widget",
    files: Optional[Dict[str, bytes]] = None,
    images: Iterable[str] = (),
    readme: Optional[str] = None,
    descriptor: Optional[dict] = None,
) -> Path:
    """Create a pack directory under ``library`` and return its root."""
    root = library / rel_path
    (root / "files").mkdir(parents=True, exist_ok=True)

    data = descriptor if descriptor is not None else default_descriptor(title)
    (root / "modelpack.json").write_text(json.dumps(data))

    for name, content in (files or {}).items():
        path = root / "files" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    for name in images:
        (root / "images").mkdir(exist_ok=True)
        (root / "images" / name).write_bytes(PNG_BYTES)

    if readme is not None:
        (root / "README.md").write_text(readme)

    return root


class FakeRenderer:
    """Renderer double that writes a small PNG and records every call."""

    def __init__(self, fail_names: Iterable[str] = ()):
        self.calls = []
        self.fail_names = set(fail_names)

    async def render(self, mesh_path: Path, output_path: Path) -> bool:
        self.calls.append(Path(mesh_path))
        if Path(mesh_path).name in self.fail_names:
            raise RuntimeError(f"cannot rasterize {mesh_path.name}")
        Path(output_path).write_bytes(PNG_BYTES)
        return True


@pytest.fixture
def library(tmp_path):
    """Empty library root."""
    path = tmp_path / "assets"
    path.mkdir()
    return path


@pytest.fixture
def make_pack(library):
    """Fixture providing ``write_pack`` bound to the test library.

    Usage:
        def test_example(make_pack):
            root = make_pack("widget", files={"part.stl": b"solid"})
    """
    def _make_pack(rel_path: str, **kwargs) -> Path:
        return write_pack(library, rel_path, **kwargs)
    return _make_pack


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "data" / "preview_cache"


@pytest.fixture
def store(tmp_path):
    """Catalog store on a fresh SQLite file."""
    catalog = CatalogStore.from_url(f"sqlite:///{tmp_path / 'data' / 'db.sqlite3'}")
    catalog.create_all()
    yield catalog
    catalog.dispose()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def refresher(store, library, cache_dir, renderer):
    return LibraryRefresher(
        store=store,
        library_path=library,
        cache_dir=cache_dir,
        renderer=renderer,
        max_concurrent_models=4,
        max_concurrent_renders=2,
    )
