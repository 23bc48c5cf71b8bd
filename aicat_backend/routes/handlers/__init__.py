"""
Route handlers package.
"""
from .metadata import register_metadata_routes

__all__ = [
    "register_metadata_routes",
]
