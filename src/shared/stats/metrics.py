from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def compute_runtime_s(
    started_at: Optional[datetime],
    finished_at: Optional[datetime],
    *,
    now: Optional[datetime] = None,
) -> float:
    """
    Compute runtime in seconds.

    Runtime starts when the batch enters Running (started_at); time spent
    Queued is not included.
    """
    if started_at is None:
        return 0.0

    if now is None:
        now = datetime.now(timezone.utc)

    start = _ensure_utc(started_at)
    end = _ensure_utc(finished_at) if finished_at is not None else _ensure_utc(now)

    return max(0.0, float((end - start).total_seconds()))


def compute_files_per_s(attempted: int, runtime_s: float) -> float:
    """files_per_s = attempted / runtime (0 when runtime <= 0)."""
    if runtime_s <= 0:
        return 0.0
    return float(int(attempted)) / float(runtime_s)
