# modelshelf/api/__init__.py
"""REST API for the model catalog."""
