"""
Hand-off to the external download service.

Files that are not cached locally are not exported by the worker; instead a
download request tagged "export" is queued, and the download service exports
the file once its bytes arrive.
"""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol


EXPORT_INTENT = "export"


class DownloadDispatcher(Protocol):
    def dispatch(self, file_id: str, intent_tag: str = EXPORT_INTENT, *, account: Optional[str] = None) -> None:
        """Fire-and-forget; must not wait for the download."""
        ...


class QueueFileDispatcher:
    """
    Appends download requests to a JSON-lines queue file:

        {"file_id": "42", "intent": "export", "account": "alice", "queued_at": "...Z"}
    """

    def __init__(self, *, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def dispatch(self, file_id: str, intent_tag: str = EXPORT_INTENT, *, account: Optional[str] = None) -> None:
        record = {
            "file_id": str(file_id),
            "intent": intent_tag,
            "account": account,
            "queued_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        line = json.dumps(record, ensure_ascii=False) + "\n"

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(line)

    def pending(self) -> list[dict]:
        """Read back queued requests (oldest first)."""
        with self._lock:
            if not self._path.exists():
                return []
            lines = self._path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]
