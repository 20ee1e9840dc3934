"""
Content digest of exported bytes.

The exporter feeds every chunk it writes through a StreamHasher, so the result
of an export carries the SHA-256 of exactly what landed in the public folder.
"""

from __future__ import annotations

import hashlib


HASH_ALGORITHM = "sha256"


class StreamHasher:
    """
    Digest and byte count of a stream, fed chunk by chunk.

    Usage:
        hasher = StreamHasher()
        for chunk in iter(lambda: source.read(65536), b""):
            dest.write(chunk)
            hasher.update(chunk)
        result_hash, written = hasher.hexdigest(), hasher.size
    """

    def __init__(self) -> None:
        self._digest = hashlib.new(HASH_ALGORITHM)
        self._size = 0

    def update(self, chunk: bytes) -> None:
        self._digest.update(chunk)
        self._size += len(chunk)

    def hexdigest(self) -> str:
        return self._digest.hexdigest()

    @property
    def size(self) -> int:
        """Bytes seen so far."""
        return self._size
