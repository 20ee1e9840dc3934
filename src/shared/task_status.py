"""
Batch run status shared across backend modules and tests.

    Queued -> Running -> Done | Failed

A batch that aborts early for lack of space still ends as Done: the abort is
reported through its notification, not as a run failure.
"""

from __future__ import annotations

from enum import Enum


class TaskStatus(str, Enum):
    QUEUED = "Queued"
    RUNNING = "Running"
    DONE = "Done"
    FAILED = "Failed"

    def is_active(self) -> bool:
        return self in (TaskStatus.QUEUED, TaskStatus.RUNNING)
