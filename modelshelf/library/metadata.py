# modelshelf/library/metadata.py
"""
Pack metadata loading.

Reads the pack descriptor, cover images and readme of a pack root.
"""

import json
import logging
import re
from pathlib import Path
from typing import List
import anyio
from pydantic import ValidationError

from ..errors import PackError
from ..models.pack import PackDescriptor, PackMetadata
from .discovery import DESCRIPTOR_FILE
from .filetypes import is_image

logger = logging.getLogger(__name__)

IMAGES_DIR = "images"
README_FILES = ("README.md", "readme.md")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """
    Derive a URL-safe slug from a title.

    Lower-cases, collapses runs of non-alphanumerics into ``-`` and trims
    dashes at both ends. Titles without any alphanumerics slug to ``model``.
    """
    slug = _NON_ALNUM.sub("-", title.lower()).strip("-")
    return slug or "model"


def relative_key(path: Path, library_root: Path) -> str:
    """Identity key of a pack: its POSIX path relative to the library root."""
    return Path(path).relative_to(library_root).as_posix()


class MetadataLoader:
    """Load descriptor, images and description for a pack root."""

    def __init__(self, descriptor_file: str = DESCRIPTOR_FILE):
        self.descriptor_file = descriptor_file

    async def load_descriptor(self, pack_root: Path) -> PackDescriptor:
        """
        Parse the pack descriptor.

        Raises:
            PackError: If the descriptor is missing, unreadable, not JSON,
                or lacks required fields
        """
        descriptor_path = anyio.Path(pack_root) / self.descriptor_file

        try:
            text = await descriptor_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PackError(str(pack_root), f"cannot read {self.descriptor_file}: {e}") from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PackError(str(pack_root), f"malformed JSON: {e}") from e

        if not isinstance(data, dict):
            raise PackError(str(pack_root), "descriptor must be a JSON object")

        try:
            return PackDescriptor.model_validate(data)
        except ValidationError as e:
            raise PackError(str(pack_root), f"invalid descriptor: {e.error_count()} error(s)") from e

    async def collect_images(self, pack_root: Path) -> List[str]:
        """Recognized image files directly under ``images/``, sorted by name."""
        images_dir = anyio.Path(pack_root) / IMAGES_DIR
        if not await images_dir.is_dir():
            return []

        images = []
        try:
            async for entry in images_dir.iterdir():
                if is_image(entry.name) and await entry.is_file():
                    images.append(entry.name)
        except OSError as e:
            logger.warning("Could not list images in %s: %s", images_dir, e)
            return []

        return sorted(images)

    async def read_description(self, pack_root: Path) -> str:
        """Contents of the pack readme, or '' when there is none."""
        for name in README_FILES:
            readme = anyio.Path(pack_root) / name
            if not await readme.is_file():
                continue
            try:
                return await readme.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning("Could not read %s: %s", readme, e)
                return ""
        return ""

    async def load(self, pack_root: Path, library_root: Path) -> PackMetadata:
        """
        Read everything the catalog stores about a pack.

        Raises:
            PackError: If the descriptor cannot be loaded
        """
        descriptor = await self.load_descriptor(pack_root)

        return PackMetadata(
            folder_path=relative_key(pack_root, library_root),
            root=Path(pack_root),
            descriptor=descriptor,
            slug=slugify(descriptor.title),
            images=await self.collect_images(pack_root),
            description=await self.read_description(pack_root),
        )
