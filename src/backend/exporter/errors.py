"""
Export error taxonomy.

Per-file errors (NO_SOURCE, NO_AVAILABLE_NAME, IO_FAILURE) are raised by the
exporter and folded into the batch failure count by the worker.
INSUFFICIENT_SPACE and NOT_FOUND are worker outcomes, never raised.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ExportErrorKind(str, Enum):
    NO_SOURCE = "no_source"
    NO_AVAILABLE_NAME = "no_available_name"
    IO_FAILURE = "io_failure"
    INSUFFICIENT_SPACE = "insufficient_space"
    NOT_FOUND = "not_found"


class ExportError(RuntimeError):
    """
    Base class for errors raised while exporting a single file.

    Attributes:
        kind: Which failure this is.
        display_name: The requested display name.
    """

    kind: ExportErrorKind

    def __init__(self, message: str, *, display_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.display_name = display_name


class NoSourceError(ExportError):
    """Neither the local path nor the remote reference could be opened."""
    kind = ExportErrorKind.NO_SOURCE


class NoAvailableNameError(ExportError):
    """Every candidate name in the public folder was taken."""
    kind = ExportErrorKind.NO_AVAILABLE_NAME

    def __init__(self, message: str, *, display_name: Optional[str] = None, attempts: int = 0) -> None:
        super().__init__(message, display_name=display_name)
        self.attempts = attempts


class ExportIOError(ExportError):
    """
    Copy interrupted by an I/O error.

    Bytes already written are left at partial_path.
    """
    kind = ExportErrorKind.IO_FAILURE

    def __init__(self, message: str, *, display_name: Optional[str] = None, partial_path=None) -> None:
        super().__init__(message, display_name=display_name)
        self.partial_path = partial_path
