# tests/test_discovery.py
"""Tests for pack root discovery."""

import os

import pytest

from modelshelf.library.discovery import PackDiscovery, find_pack_roots


class TestPackDiscovery:
    @pytest.mark.asyncio
    async def test_finds_packs_at_any_depth(self, library, make_pack):
        widget = make_pack("widget")
        gear = make_pack("mechanical/gears/gear")

        roots = await find_pack_roots(library)

        assert roots == sorted([widget, gear])

    @pytest.mark.asyncio
    async def test_nested_descriptor_inside_pack_is_ignored(self, library, make_pack):
        outer = make_pack("outer")
        make_pack("outer/files/inner")
        make_pack("outer/extras/other")

        roots = await find_pack_roots(library)

        assert roots == [outer]

    @pytest.mark.asyncio
    async def test_descriptor_without_files_dir_is_not_a_pack(self, library, make_pack):
        lonely = library / "lonely"
        lonely.mkdir()
        (lonely / "modelpack.json").write_text("{}")
        below = make_pack("lonely/below")

        roots = await find_pack_roots(library)

        assert roots == [below]

    @pytest.mark.asyncio
    async def test_files_dir_without_descriptor_is_not_a_pack(self, library):
        (library / "bare" / "files").mkdir(parents=True)

        assert await find_pack_roots(library) == []

    @pytest.mark.asyncio
    async def test_hidden_directories_are_searched(self, library, make_pack):
        archived = make_pack(".archive/widget")
        visible = make_pack("visible")

        assert await find_pack_roots(library) == sorted([archived, visible])

    @pytest.mark.asyncio
    async def test_missing_root_yields_nothing(self, tmp_path):
        assert await find_pack_roots(tmp_path / "nope") == []

    @pytest.mark.asyncio
    async def test_custom_descriptor_name(self, library):
        root = library / "thing"
        (root / "files").mkdir(parents=True)
        (root / "pack.json").write_text("{}")

        assert await PackDiscovery("pack.json").find_pack_roots(library) == [root]
        assert await PackDiscovery().find_pack_roots(library) == []

    @pytest.mark.asyncio
    async def test_symlink_loop_terminates(self, library, make_pack):
        widget = make_pack("widget")
        (library / "loop").mkdir()
        os.symlink(library, library / "loop" / "back")

        roots = await find_pack_roots(library)

        assert roots == [widget]

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs POSIX permissions")
    async def test_unreadable_directory_is_skipped(self, library, make_pack):
        widget = make_pack("widget")
        locked = library / "locked"
        locked.mkdir()
        os.chmod(locked, 0)
        try:
            roots = await find_pack_roots(library)
        finally:
            os.chmod(locked, 0o755)

        assert roots == [widget]

    @pytest.mark.asyncio
    async def test_is_pack_root(self, library, make_pack):
        widget = make_pack("widget")

        discovery = PackDiscovery()
        assert await discovery.is_pack_root(widget)
        assert not await discovery.is_pack_root(library)
        assert not await discovery.is_pack_root(library / "missing")
