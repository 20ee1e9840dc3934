from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Optional, Protocol

from .models import FileDescriptor


class FileCatalog(Protocol):
    def resolve(self, file_id: str) -> Optional[FileDescriptor]:
        ...


class JsonFileCatalog:
    """
    File descriptors persisted as a JSON document:

        {"version": 1, "files": [{"file_id": ..., "name": ..., ...}, ...]}

    The sync subsystem owns the content; the exporter only reads it.
    """

    def __init__(self, *, path: Path) -> None:
        self._path = path
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, FileDescriptor]:
        with self._lock:
            if not self._path.exists():
                return {}

            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                return {}

            if not isinstance(raw, dict) or not isinstance(raw.get("files"), list):
                return {}

            files: dict[str, FileDescriptor] = {}
            for item in raw["files"]:
                if not isinstance(item, dict):
                    continue
                descriptor = FileDescriptor.from_persist_dict(item)
                if descriptor.file_id:
                    files[descriptor.file_id] = descriptor
            return files

    def save(self, files: dict[str, FileDescriptor]) -> None:
        payload = {
            "version": 1,
            "files": [d.to_persist_dict() for d in files.values()],
        }

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
            tmp_path.replace(self._path)

    def resolve(self, file_id: str) -> Optional[FileDescriptor]:
        return self.load().get(str(file_id))

    def upsert(self, descriptor: FileDescriptor) -> None:
        with self._lock:
            files = self.load()
            files[descriptor.file_id] = descriptor
            self.save(files)
