from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from src.shared.stats.metrics import compute_files_per_s, compute_runtime_s
from src.shared.task_status import TaskStatus


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_utc_z(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class BatchRun:
    run_id: str
    account: str
    file_ids: list[str]
    status: TaskStatus
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    # Filled from BatchOutcome when the worker returns
    attempted: int = 0
    succeeded: int = 0
    aborted: bool = False
    notification_id: Optional[int] = None

    error: Optional[str] = None

    def to_public_dict(self) -> dict[str, Any]:
        runtime_s = compute_runtime_s(self.started_at, self.finished_at)
        return {
            "run_id": self.run_id,
            "account": self.account,
            "file_ids": list(self.file_ids),
            "batch_size": len(self.file_ids),
            "status": self.status.value,
            "created_at": format_utc_z(self.created_at),
            "updated_at": format_utc_z(self.updated_at),
            "started_at": format_utc_z(self.started_at) if self.started_at is not None else None,
            "finished_at": format_utc_z(self.finished_at) if self.finished_at is not None else None,
            "runtime_s": runtime_s,
            "files_per_s": compute_files_per_s(self.attempted, runtime_s),
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "aborted": self.aborted,
            "notification_id": self.notification_id,
            "error": self.error,
        }
