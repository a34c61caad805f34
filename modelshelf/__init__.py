# modelshelf/__init__.py
"""modelshelf: catalog of file-based 3D model packs."""

__version__ = "0.1.0"
