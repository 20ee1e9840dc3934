from __future__ import annotations

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from src.backend.exporter.worker import BatchJob, BatchOutcome
from src.shared.task_status import TaskStatus

from .config import SchedulerConfig
from .models import BatchRun, utc_now


# Runs one batch to completion; called on a worker thread.
BatchRunnerFn = Callable[[BatchJob], BatchOutcome]


class BatchScheduler:
    """
    In-memory FIFO scheduler for batch exports.

    - Global FIFO queue
    - MaxConcurrent gate (from SchedulerConfig)
    - Each running batch gets its own thread (asyncio.to_thread); batches do
      not share counters, only the public folder they write into.
    - Batches cannot be cancelled once submitted.
    """

    def __init__(
        self,
        *,
        config: SchedulerConfig,
        runs_dir: Path,
        runner: BatchRunnerFn,
    ) -> None:
        self._config = config
        self._runs_dir = Path(runs_dir)
        self._runner = runner

        self._lock = asyncio.Lock()
        self._queue: list[str] = []
        self._running_tasks: dict[str, asyncio.Task[None]] = {}
        self._runs: dict[str, BatchRun] = {}
        self._done_events: dict[str, asyncio.Event] = {}

        self._log = logging.getLogger(__name__)

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    async def enqueue(self, *, account: str, file_ids: Sequence[str]) -> BatchRun:
        if not account or not account.strip():
            raise ValueError("account must not be empty")

        async with self._lock:
            run_id = str(uuid.uuid4())
            now = utc_now()

            # FIFO: a non-empty queue means the new batch waits its turn.
            should_queue = bool(self._queue) or len(self._running_tasks) >= self._config.max_concurrent
            run = BatchRun(
                run_id=run_id,
                account=account.strip(),
                file_ids=[str(f) for f in file_ids],
                status=TaskStatus.QUEUED,
                created_at=now,
                updated_at=now,
            )

            self._runs[run_id] = run
            self._done_events[run_id] = asyncio.Event()
            self._persist_run(run)

            if should_queue:
                self._queue.append(run_id)
            else:
                self._start_run_locked(run_id)

            self._try_start_queued_locked()
            return run

    async def get_run(self, run_id: str) -> Optional[BatchRun]:
        async with self._lock:
            return self._runs.get(run_id)

    async def wait(self, run_id: str) -> BatchRun:
        """
        Wait until a batch reaches Done or Failed.

        Raises:
            KeyError: Unknown run id.
        """
        event = self._done_events.get(run_id)
        if event is None:
            raise KeyError(run_id)
        await event.wait()
        return self._runs[run_id]

    async def snapshot(self) -> dict[str, Any]:
        async with self._lock:
            return {
                "max_concurrent": self._config.max_concurrent,
                "running_count": len(self._running_tasks),
                "queued_count": len(self._queue),
                "running": list(self._running_tasks.keys()),
                "queued": list(self._queue),
                "runs": [run.to_public_dict() for run in self._runs.values()],
            }

    async def reschedule(self) -> None:
        """
        Called when max_concurrent changes to fill available slots.
        """
        async with self._lock:
            self._try_start_queued_locked()

    # ---------------------------------------------------------------------
    # Internals (lock must be held where indicated)
    # ---------------------------------------------------------------------

    def _persist_run(self, run: BatchRun) -> None:
        try:
            self._runs_dir.mkdir(parents=True, exist_ok=True)
            path = self._runs_dir / f"{run.run_id}.json"
            path.write_text(json.dumps(run.to_public_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            # In-memory state stays authoritative.
            self._log.warning("Could not persist batch run %s: %s", run.run_id, exc)

    def _start_run_locked(self, run_id: str) -> None:
        run = self._runs.get(run_id)
        if not run:
            return

        now = utc_now()
        run.status = TaskStatus.RUNNING
        run.started_at = now
        run.updated_at = now
        self._persist_run(run)

        task = asyncio.create_task(self._run_wrapper(run_id), name=f"export-batch-{run_id}")
        self._running_tasks[run_id] = task

    def _try_start_queued_locked(self) -> None:
        while len(self._running_tasks) < self._config.max_concurrent and self._queue:
            run_id = self._queue.pop(0)
            run = self._runs.get(run_id)
            if not run or run.status != TaskStatus.QUEUED:
                continue
            self._start_run_locked(run_id)

    async def _run_wrapper(self, run_id: str) -> None:
        run = self._runs.get(run_id)
        if not run:
            return

        job = BatchJob(file_ids=tuple(run.file_ids), account=run.account)
        outcome: Optional[BatchOutcome] = None
        error: Optional[str] = None
        try:
            outcome = await asyncio.to_thread(self._runner, job)
            final_status = TaskStatus.DONE
        except Exception as exc:  # noqa: BLE001 - surfaced on the run record
            self._log.exception("Batch run %s failed", run_id)
            final_status = TaskStatus.FAILED
            error = str(exc)

        await self._finish_run(run_id, final_status=final_status, outcome=outcome, error=error)

    async def _finish_run(
        self,
        run_id: str,
        *,
        final_status: TaskStatus,
        outcome: Optional[BatchOutcome],
        error: Optional[str],
    ) -> None:
        async with self._lock:
            run = self._runs.get(run_id)
            self._running_tasks.pop(run_id, None)
            if run:
                now = utc_now()
                run.status = final_status
                run.error = error
                run.finished_at = now
                run.updated_at = now
                if outcome is not None:
                    run.attempted = outcome.attempted
                    run.succeeded = outcome.succeeded
                    run.aborted = outcome.aborted
                    run.notification_id = outcome.notification_id
                self._persist_run(run)

            event = self._done_events.get(run_id)
            if event is not None:
                event.set()

            self._try_start_queued_locked()
