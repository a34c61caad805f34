# modelshelf/indexing/renderer.py
"""
Preview rendering behind a failure-isolating boundary.

The actual rasterizer is an external collaborator. It may crash on malformed
user geometry, so it is invoked through the ``Renderer`` protocol and every
failure is turned into "no preview" for that file.
"""

import logging
import uuid
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol
import anyio

from ..errors import RenderError
from ..models.refresh import RenderOutcome, RenderStatus

logger = logging.getLogger(__name__)

PREVIEW_SUFFIX = ".png"


class Renderer(Protocol):
    """Render a mesh file to an image at ``output_path``."""

    async def render(self, mesh_path: Path, output_path: Path) -> bool:
        ...


class CommandRenderer:
    """
    Run an external rendering command, one subprocess per call.

    A native crash only kills the child process. Command parts may use the
    ``{input}``, ``{output}`` and ``{size}`` placeholders.
    """

    def __init__(self, command: List[str], size: int = 512, timeout_seconds: float = 120.0):
        if not command:
            raise ValueError("Renderer command must not be empty")
        self.command = list(command)
        self.size = size
        self.timeout_seconds = timeout_seconds

    def build_args(self, mesh_path: Path, output_path: Path) -> List[str]:
        return [
            part.format(input=str(mesh_path), output=str(output_path), size=self.size)
            for part in self.command
        ]

    async def render(self, mesh_path: Path, output_path: Path) -> bool:
        args = self.build_args(mesh_path, output_path)
        try:
            with anyio.fail_after(self.timeout_seconds):
                result = await anyio.run_process(args, check=False)
        except TimeoutError as e:
            raise RenderError(f"{args[0]} timed out after {self.timeout_seconds}s") from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise RenderError(f"{args[0]} exited with {result.returncode}: {stderr[:500]}")
        return True


class CallableRenderer:
    """Adapt a blocking ``(mesh_path, output_path) -> bool`` function."""

    def __init__(self, func: Callable[[Path, Path], Optional[bool]]):
        self.func = func

    async def render(self, mesh_path: Path, output_path: Path) -> bool:
        result = await anyio.to_thread.run_sync(self.func, mesh_path, output_path)
        return result is None or bool(result)


def cache_filename(content_hash: str) -> str:
    """Cache entry name for a content hash."""
    return f"{content_hash}{PREVIEW_SUFFIX}"


class PreviewRenderer:
    """
    Produce content-addressed preview images in the cache directory.

    Renders are deduplicated by content hash, written to a unique temporary
    file and renamed into place, and bounded by a capacity limiter.
    """

    def __init__(
        self,
        renderer: Renderer,
        cache_dir: Path | str,
        max_concurrent_renders: int = 2,
    ):
        self.renderer = renderer
        self.cache_dir = Path(cache_dir)
        self.max_concurrent_renders = max_concurrent_renders
        self._limiter: Optional[anyio.CapacityLimiter] = None
        self._hash_locks: Dict[str, anyio.Lock] = {}

    @property
    def limiter(self) -> anyio.CapacityLimiter:
        """Render limiter, created lazily inside the running event loop."""
        if self._limiter is None:
            self._limiter = anyio.CapacityLimiter(self.max_concurrent_renders)
        return self._limiter

    def cache_path(self, content_hash: str) -> Path:
        return self.cache_dir / cache_filename(content_hash)

    async def render(self, source_path: Path, content_hash: str) -> RenderOutcome:
        """
        Return a preview for ``source_path``, rendering only if the cache
        has no entry for ``content_hash`` yet. Never raises for renderer
        failures.
        """
        name = cache_filename(content_hash)
        final_path = anyio.Path(self.cache_path(content_hash))

        if await final_path.exists():
            return RenderOutcome(status=RenderStatus.REUSED, preview_image=name)

        lock = self._hash_locks.setdefault(content_hash, anyio.Lock())
        try:
            async with lock:
                # Another task may have rendered this hash while we waited
                if await final_path.exists():
                    return RenderOutcome(status=RenderStatus.REUSED, preview_image=name)

                async with self.limiter:
                    return await self._render_into(Path(source_path), final_path, content_hash)
        finally:
            if not lock.locked() and lock.statistics().tasks_waiting == 0:
                self._hash_locks.pop(content_hash, None)

    async def _render_into(
        self, source_path: Path, final_path: anyio.Path, content_hash: str
    ) -> RenderOutcome:
        cache_dir = anyio.Path(self.cache_dir)
        temp_path = cache_dir / f".{content_hash}.{uuid.uuid4().hex}.tmp{PREVIEW_SUFFIX}"

        try:
            await cache_dir.mkdir(parents=True, exist_ok=True)

            if not await self.renderer.render(source_path, Path(temp_path)):
                raise RenderError("renderer reported failure")

            stat = await temp_path.stat()
            if stat.st_size == 0:
                raise RenderError("renderer produced an empty image")

            await temp_path.replace(final_path)
        except Exception as e:
            # Boundary for arbitrary renderer failures
            logger.warning("Preview render failed for %s: %s", source_path, e)
            try:
                await temp_path.unlink(missing_ok=True)
            except OSError:
                logger.debug("Could not remove temp preview %s", temp_path)
            return RenderOutcome(status=RenderStatus.FAILED, error=str(e))

        logger.debug("Rendered preview %s for %s", final_path.name, source_path)
        return RenderOutcome(status=RenderStatus.RENDERED, preview_image=final_path.name)
