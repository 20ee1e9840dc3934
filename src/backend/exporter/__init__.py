"""
Export of remote files into the public Downloads folder.

Provides:
- Single-file export with collision-free naming (engine.py)
- Ordered batch processing with one summary notification (worker.py)
- Collaborator adapters: source openers, space checks, download hand-off
"""

from .errors import (
    ExportError,
    ExportErrorKind,
    ExportIOError,
    NoAvailableNameError,
    NoSourceError,
)
from .models import ExportRequest, ExportResult, RemoteFileRef
from .engine import FileExporter
from .worker import BatchExportWorker, BatchJob, BatchOutcome, FileOutcome, FileResult

__all__ = [
    "ExportError",
    "ExportErrorKind",
    "ExportIOError",
    "NoAvailableNameError",
    "NoSourceError",
    "ExportRequest",
    "ExportResult",
    "RemoteFileRef",
    "FileExporter",
    "BatchExportWorker",
    "BatchJob",
    "BatchOutcome",
    "FileOutcome",
    "FileResult",
]
