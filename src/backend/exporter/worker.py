"""
Batch export worker.

Processes the file ids of one batch strictly in order:

    resolve -> space check -> export cached bytes | dispatch download -> next

- Ids the catalog does not know are skipped and not counted.
- Running out of space stops the whole remaining batch.
- Any other failure only affects the file it happened on.

Exactly one notification is emitted per run, after the loop ends either way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..catalog.models import FileDescriptor
from ..catalog.store import FileCatalog
from ..notify.notifier import ExportNotifier, summarize
from .dispatch import EXPORT_INTENT, DownloadDispatcher
from .engine import FileExporter
from .errors import ExportError, ExportErrorKind
from .models import ExportRequest, ExportResult
from .space import SpaceChecker


class FileOutcome(str, Enum):
    """What happened to a single file id."""
    EXPORTED_LOCALLY = "exported_locally"
    DOWNLOADING = "downloading"
    SKIPPED_INSUFFICIENT_SPACE = "skipped_insufficient_space"
    FAILED = "failed"
    NOT_FOUND = "not_found"

    @property
    def counts_as_attempt(self) -> bool:
        return self in (FileOutcome.EXPORTED_LOCALLY, FileOutcome.DOWNLOADING, FileOutcome.FAILED)


@dataclass
class FileResult:
    file_id: str
    outcome: FileOutcome

    # Set when exported locally
    export: Optional[ExportResult] = None

    # Set on failure / skip
    error_kind: Optional[ExportErrorKind] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome in (FileOutcome.EXPORTED_LOCALLY, FileOutcome.DOWNLOADING)


@dataclass(frozen=True)
class BatchJob:
    """Ordered file ids to export on behalf of one account."""
    file_ids: tuple[str, ...]
    account: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "file_ids", tuple(str(f) for f in self.file_ids))


@dataclass
class BatchOutcome:
    """
    Counters for one batch run. Owned by the run that created it.

    attempted counts every id that was handled (exported, dispatched or
    failed); ids that were not found, or never reached after an abort, are
    not attempts.
    """
    batch_size: int
    attempted: int = 0
    succeeded: int = 0
    aborted: bool = False
    notification_id: Optional[int] = None
    results: list[FileResult] = field(default_factory=list)

    def record(self, result: FileResult) -> None:
        self.results.append(result)
        if result.outcome.counts_as_attempt:
            self.attempted += 1
            if result.succeeded:
                self.succeeded += 1

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    def to_dict(self) -> dict[str, Any]:
        return {
            "batch_size": self.batch_size,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "aborted": self.aborted,
            "notification_id": self.notification_id,
        }


class BatchExportWorker:
    """
    Runs batch jobs against injected collaborators.

    A single worker can serve several batches, also concurrently: all
    per-batch state lives in the BatchOutcome created by run().
    """

    def __init__(
        self,
        *,
        catalog: FileCatalog,
        space_checker: SpaceChecker,
        exporter: FileExporter,
        downloads: DownloadDispatcher,
        notifier: ExportNotifier,
    ) -> None:
        self._catalog = catalog
        self._space_checker = space_checker
        self._exporter = exporter
        self._downloads = downloads
        self._notifier = notifier

        self._log = logging.getLogger(__name__)

    def run(self, job: BatchJob) -> BatchOutcome:
        outcome = BatchOutcome(batch_size=len(job.file_ids))
        self._log.info("Batch export of %d file(s) for %s started", outcome.batch_size, job.account)

        try:
            self._process(job, outcome)
        finally:
            # Also reached when an unexpected error escapes; counts so far are reported.
            self._notify(job, outcome)

        self._log.info(
            "Batch export for %s finished: %d/%d succeeded, %d attempted%s",
            job.account, outcome.succeeded, outcome.batch_size, outcome.attempted,
            " (aborted)" if outcome.aborted else "",
        )
        return outcome

    def _process(self, job: BatchJob, outcome: BatchOutcome) -> None:
        for index, file_id in enumerate(job.file_ids):
            descriptor = self._catalog.resolve(file_id)
            if descriptor is None:
                self._log.info("File %s not found, skipping", file_id)
                outcome.record(FileResult(
                    file_id=file_id,
                    outcome=FileOutcome.NOT_FOUND,
                    error_kind=ExportErrorKind.NOT_FOUND,
                ))
                continue

            if not self._space_checker.has_sufficient_space(descriptor):
                remaining = outcome.batch_size - index
                self._log.warning(
                    "Not enough space for %s (%d bytes), aborting %d remaining file(s)",
                    descriptor.name, descriptor.declared_size, remaining,
                )
                outcome.record(FileResult(
                    file_id=file_id,
                    outcome=FileOutcome.SKIPPED_INSUFFICIENT_SPACE,
                    error_kind=ExportErrorKind.INSUFFICIENT_SPACE,
                ))
                outcome.aborted = True
                return

            if descriptor.is_locally_cached and descriptor.local_path is not None:
                result = self._export_cached(descriptor)
            else:
                result = self._dispatch_download(descriptor, job)
            outcome.record(result)

    def _export_cached(self, descriptor: FileDescriptor) -> FileResult:
        request = ExportRequest.from_local(
            descriptor.local_path,
            display_name=descriptor.name or descriptor.file_id,
            content_type=descriptor.mime_type,
        )
        try:
            exported = self._exporter.export(request)
        except ExportError as exc:
            self._log.warning("Export of %s failed (%s): %s", descriptor.file_id, exc.kind.value, exc)
            return FileResult(
                file_id=descriptor.file_id,
                outcome=FileOutcome.FAILED,
                error_kind=exc.kind,
                error=str(exc),
            )

        return FileResult(file_id=descriptor.file_id, outcome=FileOutcome.EXPORTED_LOCALLY, export=exported)

    def _dispatch_download(self, descriptor: FileDescriptor, job: BatchJob) -> FileResult:
        try:
            self._downloads.dispatch(descriptor.file_id, EXPORT_INTENT, account=job.account)
        except Exception as exc:  # noqa: BLE001 - external service; counted against this file only
            self._log.warning("Dispatching download of %s failed: %s", descriptor.file_id, exc)
            return FileResult(
                file_id=descriptor.file_id,
                outcome=FileOutcome.FAILED,
                error=str(exc),
            )

        return FileResult(file_id=descriptor.file_id, outcome=FileOutcome.DOWNLOADING)

    def _notify(self, job: BatchJob, outcome: BatchOutcome) -> None:
        # An aborted batch reports progress against everything that was asked for.
        total = outcome.batch_size if outcome.aborted else outcome.attempted
        notification = self._notifier.emit(summarize(outcome.succeeded, total), job.account)
        outcome.notification_id = notification.notification_id
