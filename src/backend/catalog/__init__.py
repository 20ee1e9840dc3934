"""
Local metadata store: resolves file identifiers to descriptors.
"""

from .models import FileDescriptor
from .store import FileCatalog, JsonFileCatalog

__all__ = [
    "FileDescriptor",
    "FileCatalog",
    "JsonFileCatalog",
]
