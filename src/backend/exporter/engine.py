"""
Export engine: copies one file into the public folder without overwriting.

Steps for each request:
1. Open the byte source (cached local file or remote reference).
2. Reserve a destination name through the storage strategy, renaming
   "name.ext" -> "name (2).ext" -> "name (3).ext" ... on conflict.
3. Stream the bytes across with a fixed-size buffer, hashing as they go.

A copy interrupted by an I/O error leaves the partial destination file in
place; both handles are always closed.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Optional

from ..fs.hashing import StreamHasher
from ..fs.naming import DEFAULT_MAX_RENAME_ATTEMPTS, candidate_names, sanitize_display_name
from ..fs.storage import PublicStorage, Reservation
from .errors import ExportIOError, NoAvailableNameError, NoSourceError
from .models import ExportRequest, ExportResult
from .sources import SourceOpener, UriSourceOpener


DEFAULT_BUFFER_SIZE = 65536  # 64 KB


class FileExporter:
    """
    Copies files into the public folder of a storage strategy.

    Usage:
        exporter = FileExporter(PathStorage(Path.home()))
        result = exporter.export(
            ExportRequest.from_local(cached, display_name="report.pdf", content_type="application/pdf")
        )
        print(result.final_name)  # "report (2).pdf" if report.pdf existed
    """

    def __init__(
        self,
        storage: PublicStorage,
        *,
        source_opener: Optional[SourceOpener] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        max_rename_attempts: int = DEFAULT_MAX_RENAME_ATTEMPTS,
    ):
        """
        Args:
            storage: Strategy that owns the public folder.
            source_opener: Resolves RemoteFileRef sources; defaults to UriSourceOpener.
            buffer_size: Copy buffer size in bytes.
            max_rename_attempts: Candidate names tried before giving up,
                the unmodified name included.
        """
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be >= 1, got {buffer_size}")
        if max_rename_attempts < 1:
            raise ValueError(f"max_rename_attempts must be >= 1, got {max_rename_attempts}")

        self._storage = storage
        self._source_opener = source_opener or UriSourceOpener()
        self._buffer_size = buffer_size
        self._max_rename_attempts = max_rename_attempts

        self._log = logging.getLogger(__name__)

    @property
    def storage(self) -> PublicStorage:
        return self._storage

    def export(self, request: ExportRequest) -> ExportResult:
        """
        Export one file.

        Raises:
            NoSourceError: The source could not be opened.
            NoAvailableNameError: All candidate names were taken.
            ExportIOError: Reserving or copying failed, including names
                that cannot be encoded for the target.
        """
        source = self._open_source(request)
        with source:
            attempt, reservation = self._reserve(request)
            return self._copy(source, reservation, request, attempt)

    def _open_source(self, request: ExportRequest) -> BinaryIO:
        try:
            if request.local_path is not None:
                stream = open(request.local_path, "rb")
            else:
                stream = self._source_opener.open(request.remote_ref)
        except (OSError, ValueError) as exc:
            raise NoSourceError(
                f"cannot open source for {request.display_name!r}: {exc}",
                display_name=request.display_name,
            ) from exc

        if stream is None:
            raise NoSourceError(
                f"no source stream for {request.display_name!r}",
                display_name=request.display_name,
            )
        return stream

    def _reserve(self, request: ExportRequest) -> tuple[int, Reservation]:
        base_name = sanitize_display_name(request.display_name)

        try:
            self._storage.ensure_folder()
            for attempt, candidate in candidate_names(base_name, self._max_rename_attempts):
                reservation = self._storage.try_reserve(candidate, request.content_type)
                if reservation is None:
                    continue
                if attempt > 1:
                    self._log.debug("%r taken, exporting as %r", base_name, candidate)
                return attempt, reservation
        except (OSError, ValueError) as exc:
            # ValueError: names the filesystem or index cannot encode (lone surrogates).
            raise ExportIOError(
                f"cannot reserve destination for {request.display_name!r}: {exc}",
                display_name=request.display_name,
            ) from exc

        raise NoAvailableNameError(
            f"no free name for {request.display_name!r} after {self._max_rename_attempts} attempts",
            display_name=request.display_name,
            attempts=self._max_rename_attempts,
        )

    def _copy(
        self,
        source: BinaryIO,
        reservation: Reservation,
        request: ExportRequest,
        attempt: int,
    ) -> ExportResult:
        hasher = StreamHasher()
        try:
            with self._storage.open_for_write(reservation) as dest:
                while True:
                    chunk = source.read(self._buffer_size)
                    if not chunk:
                        break
                    dest.write(chunk)
                    hasher.update(chunk)
        except (OSError, ValueError) as exc:
            self._log.warning(
                "Export of %r interrupted after %d bytes, partial file left at %s: %s",
                request.display_name, hasher.size, reservation.path, exc,
            )
            raise ExportIOError(
                f"copy to {reservation.path} failed: {exc}",
                display_name=request.display_name,
                partial_path=reservation.path,
            ) from exc

        return ExportResult(
            requested_name=request.display_name,
            final_name=reservation.display_name,
            path=reservation.path,
            bytes_written=hasher.size,
            content_hash=hasher.hexdigest(),
            attempt=attempt,
            entry_id=reservation.entry_id,
        )
