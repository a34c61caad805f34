# tests/test_renderer.py
"""Tests for preview rendering and its failure boundary."""

import sys
from pathlib import Path

import anyio
import pytest

from conftest import PNG_BYTES, FakeRenderer
from modelshelf.errors import RenderError
from modelshelf.indexing.renderer import (
    CallableRenderer,
    CommandRenderer,
    PreviewRenderer,
    cache_filename,
)
from modelshelf.models.refresh import RenderStatus

HASH = "ab" * 32


class SlowRenderer:
    """Renderer that blocks until released, to overlap concurrent requests."""

    def __init__(self):
        self.calls = 0
        self.release = anyio.Event()

    async def render(self, mesh_path: Path, output_path: Path) -> bool:
        self.calls += 1
        await self.release.wait()
        Path(output_path).write_bytes(PNG_BYTES)
        return True


@pytest.fixture
def mesh(tmp_path):
    path = tmp_path / "part.stl"
    path.write_bytes(b"solid widget")
    return path


class TestPreviewRenderer:
    @pytest.mark.asyncio
    async def test_renders_into_cache(self, mesh, cache_dir):
        fake = FakeRenderer()
        previews = PreviewRenderer(fake, cache_dir)

        outcome = await previews.render(mesh, HASH)

        assert outcome.status is RenderStatus.RENDERED
        assert outcome.preview_image == f"{HASH}.png"
        assert (cache_dir / f"{HASH}.png").read_bytes() == PNG_BYTES
        assert sorted(p.name for p in cache_dir.iterdir()) == [f"{HASH}.png"]

    @pytest.mark.asyncio
    async def test_existing_entry_is_reused(self, mesh, cache_dir):
        fake = FakeRenderer()
        previews = PreviewRenderer(fake, cache_dir)
        await previews.render(mesh, HASH)

        outcome = await previews.render(mesh, HASH)

        assert outcome.status is RenderStatus.REUSED
        assert outcome.preview_image == cache_filename(HASH)
        assert len(fake.calls) == 1

    @pytest.mark.asyncio
    async def test_renderer_exception_becomes_failed_outcome(self, mesh, cache_dir):
        previews = PreviewRenderer(FakeRenderer(fail_names={"part.stl"}), cache_dir)

        outcome = await previews.render(mesh, HASH)

        assert outcome.status is RenderStatus.FAILED
        assert outcome.preview_image is None
        assert "cannot rasterize" in outcome.error
        assert list(cache_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_false_result_and_empty_output_fail(self, mesh, cache_dir):
        def empty_output(mesh_path, output_path):
            Path(output_path).write_bytes(b"")

        failing = PreviewRenderer(CallableRenderer(lambda m, o: False), cache_dir)
        empty = PreviewRenderer(CallableRenderer(empty_output), cache_dir)

        assert (await failing.render(mesh, HASH)).status is RenderStatus.FAILED
        assert (await empty.render(mesh, HASH)).status is RenderStatus.FAILED
        assert list(cache_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_output_fails(self, mesh, cache_dir):
        previews = PreviewRenderer(CallableRenderer(lambda m, o: True), cache_dir)

        outcome = await previews.render(mesh, HASH)

        assert outcome.status is RenderStatus.FAILED

    @pytest.mark.asyncio
    async def test_concurrent_requests_for_one_hash_render_once(self, mesh, cache_dir):
        slow = SlowRenderer()
        previews = PreviewRenderer(slow, cache_dir, max_concurrent_renders=4)
        outcomes = []

        async def request():
            outcomes.append(await previews.render(mesh, HASH))

        async with anyio.create_task_group() as tg:
            for _ in range(5):
                tg.start_soon(request)
            await anyio.wait_all_tasks_blocked()
            slow.release.set()

        assert slow.calls == 1
        statuses = sorted(o.status.value for o in outcomes)
        assert statuses == ["rendered", "reused", "reused", "reused", "reused"]
        assert {o.preview_image for o in outcomes} == {f"{HASH}.png"}
        assert previews._hash_locks == {}

    @pytest.mark.asyncio
    async def test_render_concurrency_is_bounded(self, tmp_path, cache_dir):
        active = 0
        peak = 0

        class CountingRenderer:
            async def render(self, mesh_path, output_path):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await anyio.sleep(0.05)
                Path(output_path).write_bytes(PNG_BYTES)
                active -= 1
                return True

        previews = PreviewRenderer(CountingRenderer(), cache_dir, max_concurrent_renders=2)

        async with anyio.create_task_group() as tg:
            for i in range(6):
                tg.start_soon(previews.render, tmp_path / f"{i}.stl", f"{i:064x}")

        assert peak == 2
        assert len(list(cache_dir.iterdir())) == 6


class TestCommandRenderer:
    def test_build_args_fills_placeholders(self):
        renderer = CommandRenderer(["stl-thumb", "-s", "{size}", "{input}", "{output}"], size=256)

        args = renderer.build_args(Path("/in/part.stl"), Path("/out/x.png"))

        assert args == ["stl-thumb", "-s", "256", "/in/part.stl", "/out/x.png"]

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            CommandRenderer([])

    @pytest.mark.asyncio
    async def test_successful_command(self, mesh, tmp_path):
        script = "import shutil, sys; shutil.copyfile(sys.argv[1], sys.argv[2])"
        renderer = CommandRenderer([sys.executable, "-c", script, "{input}", "{output}"])
        output = tmp_path / "out.png"

        assert await renderer.render(mesh, output)
        assert output.read_bytes() == b"solid widget"

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises(self, mesh, tmp_path):
        script = "import sys; sys.stderr.write('bad mesh'); sys.exit(3)"
        renderer = CommandRenderer([sys.executable, "-c", script])

        with pytest.raises(RenderError, match="exited with 3: bad mesh"):
            await renderer.render(mesh, tmp_path / "out.png")

    @pytest.mark.asyncio
    async def test_timeout_raises(self, mesh, tmp_path):
        renderer = CommandRenderer(
            [sys.executable, "-c", "import time; time.sleep(10)"], timeout_seconds=0.2
        )

        with pytest.raises(RenderError, match="timed out"):
            await renderer.render(mesh, tmp_path / "out.png")

    @pytest.mark.asyncio
    async def test_crashing_command_is_contained(self, mesh, cache_dir):
        renderer = CommandRenderer([sys.executable, "-c", "import os; os.abort()"])
        previews = PreviewRenderer(renderer, cache_dir)

        outcome = await previews.render(mesh, HASH)

        assert outcome.status is RenderStatus.FAILED
        assert list(cache_dir.iterdir()) == []
