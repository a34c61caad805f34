# modelshelf/api/routes/__init__.py
"""API route modules."""

from . import library, models

__all__ = ["library", "models"]
