from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..exporter.engine import DEFAULT_BUFFER_SIZE
from ..fs.naming import DEFAULT_MAX_RENAME_ATTEMPTS
from ..fs.storage import DEFAULT_PUBLIC_FOLDER, StorageMode


DEFAULT_MAX_CONCURRENT = 3
DEFAULT_EXPORT_ROOT = "~"
DEFAULT_MIN_FREE_BYTES = 0


def _int_or(value: Any, default: int, *, minimum: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= minimum else default


@dataclass
class ExportSettings:
    export_root: str = DEFAULT_EXPORT_ROOT
    public_folder: str = DEFAULT_PUBLIC_FOLDER
    storage_mode: StorageMode = StorageMode.AUTO
    buffer_size: int = DEFAULT_BUFFER_SIZE
    max_rename_attempts: int = DEFAULT_MAX_RENAME_ATTEMPTS
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    min_free_bytes: int = DEFAULT_MIN_FREE_BYTES

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "version": 1,
            "export_root": self.export_root,
            "public_folder": self.public_folder,
            "storage_mode": self.storage_mode.value,
            "buffer_size": self.buffer_size,
            "max_rename_attempts": self.max_rename_attempts,
            "max_concurrent": self.max_concurrent,
            "min_free_bytes": self.min_free_bytes,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "ExportSettings":
        export_root = str(data.get("export_root", DEFAULT_EXPORT_ROOT) or DEFAULT_EXPORT_ROOT)
        public_folder = str(data.get("public_folder", DEFAULT_PUBLIC_FOLDER) or DEFAULT_PUBLIC_FOLDER)

        try:
            storage_mode = StorageMode(data.get("storage_mode", StorageMode.AUTO.value))
        except ValueError:
            storage_mode = StorageMode.AUTO

        return cls(
            export_root=export_root,
            public_folder=public_folder,
            storage_mode=storage_mode,
            buffer_size=_int_or(data.get("buffer_size"), DEFAULT_BUFFER_SIZE, minimum=1),
            max_rename_attempts=_int_or(
                data.get("max_rename_attempts"), DEFAULT_MAX_RENAME_ATTEMPTS, minimum=1
            ),
            max_concurrent=_int_or(data.get("max_concurrent"), DEFAULT_MAX_CONCURRENT, minimum=1),
            min_free_bytes=_int_or(data.get("min_free_bytes"), DEFAULT_MIN_FREE_BYTES, minimum=0),
        )
