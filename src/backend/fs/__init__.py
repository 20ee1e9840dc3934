"""
File system utilities for exported files.

Provides:
- Public storage strategies (storage.py)
- Collision-free file naming (naming.py)
- Content hashing for verbatim-copy checks (hashing.py)
"""

from .storage import (
    BrokerStorage,
    MediaIndex,
    PathStorage,
    PublicStorage,
    Reservation,
    StorageMode,
    select_storage_strategy,
)
from .naming import resolve_collision_name, candidate_names, sanitize_display_name
from .hashing import StreamHasher

__all__ = [
    "BrokerStorage",
    "MediaIndex",
    "PathStorage",
    "PublicStorage",
    "Reservation",
    "StorageMode",
    "select_storage_strategy",
    "resolve_collision_name",
    "candidate_names",
    "sanitize_display_name",
    "StreamHasher",
]
