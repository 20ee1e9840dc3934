from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class RemoteFileRef:
    """
    Handle the source opener resolves to a byte stream.

    Only valid for the duration of the export call it is passed to.
    """
    uri: str


@dataclass(frozen=True)
class ExportRequest:
    """
    Request to copy one file into the public folder.

    Exactly one of local_path / remote_ref must be set.
    """
    display_name: str
    content_type: str
    local_path: Optional[Path] = None
    remote_ref: Optional[RemoteFileRef] = None

    def __post_init__(self) -> None:
        if (self.local_path is None) == (self.remote_ref is None):
            raise ValueError("ExportRequest needs exactly one of local_path or remote_ref")
        if not self.display_name:
            raise ValueError("display_name must not be empty")

    @classmethod
    def from_local(cls, path: Path | str, *, display_name: str, content_type: str) -> "ExportRequest":
        return cls(display_name=display_name, content_type=content_type, local_path=Path(path))

    @classmethod
    def from_remote(cls, ref: RemoteFileRef, *, display_name: str, content_type: str) -> "ExportRequest":
        return cls(display_name=display_name, content_type=content_type, remote_ref=ref)


@dataclass(frozen=True)
class ExportResult:
    """Result of a successful export."""
    requested_name: str
    final_name: str
    path: Path
    bytes_written: int
    content_hash: str
    attempt: int                    # 1 = requested name was free
    entry_id: Optional[int] = None  # Media index entry (broker storage only)

    @property
    def renamed(self) -> bool:
        return self.attempt > 1
