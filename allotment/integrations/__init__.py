# allotment/integrations/__init__.py
"""
Integration helpers that report *real* measurable units (bytes, items) to a
``Progress`` node. They never create their own UI: the node converts their
internal units into its slice of the shared total, and whatever watches that
total decides how to show it.

Included:
- hashing / file copy (bytes)
- iterables (items)
"""
from __future__ import annotations

from .fileio_progress import copy_file, hash_file
from .iter_progress import track

__all__ = [
    "copy_file",
    "hash_file",
    "track",
]
