# modelshelf/library/filetypes.py
"""Recognized file extensions inside a model pack."""

from enum import Enum
from pathlib import PurePath

# Extensions the preview renderer accepts
MESH_FILE_FORMATS = frozenset({"obj", "stl", "3mf"})
CAD_FILE_FORMATS = frozenset({"step", "stp", "f3d", "scad", "igs", "iges"})
IMAGE_FILE_FORMATS = frozenset({"jpg", "jpeg", "png", "gif", "bmp", "tiff", "webp"})


class FileKind(str, Enum):
    MESH = "mesh"
    CAD = "cad"
    IMAGE = "image"
    UNKNOWN = "unknown"


def extension_of(path: PurePath | str) -> str:
    """Lower-cased extension without the dot, '' when there is none."""
    return PurePath(path).suffix.lower().lstrip(".")


def categorize_file(path: PurePath | str) -> FileKind:
    ext = extension_of(path)
    if ext in MESH_FILE_FORMATS:
        return FileKind.MESH
    if ext in CAD_FILE_FORMATS:
        return FileKind.CAD
    if ext in IMAGE_FILE_FORMATS:
        return FileKind.IMAGE
    return FileKind.UNKNOWN


def is_renderable(path: PurePath | str) -> bool:
    return extension_of(path) in MESH_FILE_FORMATS


def is_image(path: PurePath | str) -> bool:
    return extension_of(path) in IMAGE_FILE_FORMATS
