# modelshelf/errors.py
"""Exception hierarchy for catalog maintenance."""


class ModelshelfError(Exception):
    """Base exception for modelshelf errors."""


class PackError(ModelshelfError):
    """A pack descriptor is missing, unreadable, or invalid."""

    def __init__(self, pack_path: str, reason: str):
        self.pack_path = pack_path
        self.reason = reason
        super().__init__(f"Invalid model pack at {pack_path}: {reason}")


class CatalogError(ModelshelfError):
    """The catalog store could not be read or written.

    This is the only error class that fails a whole refresh pass.
    """


class RenderError(ModelshelfError):
    """A preview render did not produce an image."""
