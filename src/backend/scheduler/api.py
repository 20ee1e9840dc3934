from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from src.shared.task_status import TaskStatus

from .scheduler import BatchScheduler


class BatchExportIn(BaseModel):
    account: str = Field(min_length=1)
    file_ids: list[str] = Field(default_factory=list)


class BatchRunOut(BaseModel):
    run_id: str
    account: str
    file_ids: list[str]
    batch_size: int
    status: TaskStatus
    created_at: str
    updated_at: str
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    runtime_s: float
    files_per_s: float
    attempted: int
    succeeded: int
    aborted: bool
    notification_id: Optional[int] = None
    error: Optional[str] = None


class SchedulerSnapshotOut(BaseModel):
    max_concurrent: int
    running_count: int
    queued_count: int
    running: list[str]
    queued: list[str]
    runs: list[BatchRunOut]


def create_exports_router(*, scheduler: BatchScheduler) -> APIRouter:
    router = APIRouter(prefix="/api/exports", tags=["exports"])

    @router.get("", response_model=SchedulerSnapshotOut)
    async def get_state() -> SchedulerSnapshotOut:
        snap = await scheduler.snapshot()
        return SchedulerSnapshotOut(
            max_concurrent=snap["max_concurrent"],
            running_count=snap["running_count"],
            queued_count=snap["queued_count"],
            running=snap["running"],
            queued=snap["queued"],
            runs=[BatchRunOut(**r) for r in snap["runs"]],
        )

    @router.post("", response_model=BatchRunOut)
    async def submit_batch(body: BatchExportIn) -> BatchRunOut:
        try:
            run = await scheduler.enqueue(account=body.account, file_ids=body.file_ids)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return BatchRunOut(**run.to_public_dict())

    @router.get("/{run_id}", response_model=BatchRunOut)
    async def get_run(run_id: str) -> BatchRunOut:
        run = await scheduler.get_run(run_id)
        if run is None:
            raise HTTPException(status_code=404, detail=f"Batch run not found: {run_id}")
        return BatchRunOut(**run.to_public_dict())

    return router
