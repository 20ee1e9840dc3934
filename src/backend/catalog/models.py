"""
Descriptors for remote files known to the local metadata store.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class FileDescriptor:
    """
    Metadata record describing a remote file.

    local_path is only meaningful when is_locally_cached is True.
    """
    file_id: str
    name: str
    mime_type: str
    declared_size: int
    is_locally_cached: bool = False
    local_path: Optional[Path] = None

    def to_persist_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "file_id": self.file_id,
            "name": self.name,
            "mime_type": self.mime_type,
            "declared_size": self.declared_size,
            "is_locally_cached": self.is_locally_cached,
        }
        if self.local_path is not None:
            data["local_path"] = str(self.local_path)
        return data

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "FileDescriptor":
        raw_path = data.get("local_path")
        try:
            declared_size = int(data.get("declared_size", 0) or 0)
        except (TypeError, ValueError):
            declared_size = 0

        return cls(
            file_id=str(data.get("file_id", "") or ""),
            name=str(data.get("name", "") or ""),
            mime_type=str(data.get("mime_type", "") or "application/octet-stream"),
            declared_size=max(0, declared_size),
            is_locally_cached=bool(data.get("is_locally_cached", False)),
            local_path=Path(raw_path) if raw_path else None,
        )
