"""
Public storage strategies for exported files.

Directory structure (both strategies):
    <export_root>/<public_folder>/<display_name>

Two ways of claiming a name in the public folder:
- BrokerStorage: a media index (SQLite) owns the folder; a name is reserved by
  inserting an entry, and an insert that hits UNIQUE(relative_path, display_name)
  is a conflict. A file already on disk under that name is a conflict too.
- PathStorage: the folder is written directly; a name is taken when the path
  exists, and creation uses exclusive mode so a concurrent writer cannot win
  the same name.

The strategy is chosen once at startup by select_storage_strategy().
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional


DEFAULT_PUBLIC_FOLDER = "Downloads"

# INSERT ... ON CONFLICT DO NOTHING needs SQLite 3.24
MIN_BROKER_SQLITE_VERSION = (3, 24, 0)

logger = logging.getLogger(__name__)


class StorageMode(str, Enum):
    """How exported files are placed in the public folder."""
    AUTO = "auto"
    BROKER = "broker"
    PATH = "path"


@dataclass(frozen=True)
class Reservation:
    """A destination slot claimed in the public folder."""
    display_name: str
    path: Path
    content_type: str
    entry_id: Optional[int] = None  # Set by BrokerStorage


class PublicStorage(ABC):
    """
    Base class for public storage strategies.

    Subclasses implement try_reserve(); the exporter drives the renaming loop.
    """

    mode: StorageMode

    def __init__(self, export_root: Path, public_folder: str = DEFAULT_PUBLIC_FOLDER):
        """
        Args:
            export_root: Root directory holding the public folder.
            public_folder: Name of the user-visible folder (e.g. "Downloads").
        """
        self._export_root = Path(export_root).expanduser().resolve()
        self._public_folder = public_folder

    @property
    def folder(self) -> Path:
        """The public folder exported files land in."""
        return self._export_root / self._public_folder

    @property
    def public_folder(self) -> str:
        return self._public_folder

    def ensure_folder(self) -> Path:
        """
        Create the public folder if needed.

        Raises:
            OSError: If the folder cannot be created.
        """
        self.folder.mkdir(parents=True, exist_ok=True)
        return self.folder

    @abstractmethod
    def try_reserve(self, display_name: str, content_type: str) -> Optional[Reservation]:
        """
        Claim display_name in the public folder.

        Returns:
            The Reservation, or None if the name is already taken.
        """

    def open_for_write(self, reservation: Reservation) -> BinaryIO:
        """Open a reserved destination for writing (truncates)."""
        return open(reservation.path, "wb")


class PathStorage(PublicStorage):
    """Direct path-based storage: existence check plus exclusive create."""

    mode = StorageMode.PATH

    def try_reserve(self, display_name: str, content_type: str) -> Optional[Reservation]:
        path = self.folder / display_name
        if path.exists():
            return None

        try:
            with open(path, "xb"):
                pass
        except FileExistsError:
            # Lost a race with another exporter between the check and create.
            return None

        return Reservation(display_name=display_name, path=path, content_type=content_type)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS media_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    relative_path TEXT NOT NULL,
    display_name TEXT NOT NULL,
    mime_type TEXT NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE (relative_path, display_name)
)
"""


class MediaIndexError(OSError):
    """The media index could not be read or written."""


class MediaIndex:
    """
    SQLite index of entries in the public storage area.

    Connections are opened per call so the index can be shared by worker
    threads; SQLite serialises writers across processes.
    """

    def __init__(self, *, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), timeout=30.0)
        conn.execute(_SCHEMA)
        return conn

    def insert(self, *, relative_path: str, display_name: str, mime_type: str) -> Optional[int]:
        """
        Insert a new entry.

        Returns:
            The new entry id, or None if (relative_path, display_name) exists.
        """
        created_at = datetime.now(timezone.utc).isoformat()
        with self._lock:
            try:
                conn = self._connect()
                try:
                    with conn:
                        cur = conn.execute(
                            "INSERT INTO media_entries (relative_path, display_name, mime_type, created_at) "
                            "VALUES (?, ?, ?, ?) "
                            "ON CONFLICT (relative_path, display_name) DO NOTHING",
                            (relative_path, display_name, mime_type, created_at),
                        )
                        if cur.rowcount == 0:
                            return None
                        return int(cur.lastrowid)
                finally:
                    conn.close()
            except sqlite3.Error as exc:
                raise MediaIndexError(f"media index insert failed: {exc}") from exc

    def delete(self, entry_id: int) -> None:
        """Remove an entry; unknown ids are ignored."""
        with self._lock:
            try:
                conn = self._connect()
                try:
                    with conn:
                        conn.execute("DELETE FROM media_entries WHERE id = ?", (entry_id,))
                finally:
                    conn.close()
            except sqlite3.Error as exc:
                raise MediaIndexError(f"media index delete failed: {exc}") from exc

    def names(self, *, relative_path: str) -> list[str]:
        """List display names under relative_path, oldest first."""
        with self._lock:
            try:
                conn = self._connect()
                try:
                    rows = conn.execute(
                        "SELECT display_name FROM media_entries WHERE relative_path = ? ORDER BY id",
                        (relative_path,),
                    ).fetchall()
                finally:
                    conn.close()
            except sqlite3.Error as exc:
                raise MediaIndexError(f"media index query failed: {exc}") from exc
        return [row[0] for row in rows]


class BrokerStorage(PublicStorage):
    """Index-based storage: names are reserved through the media index."""

    mode = StorageMode.BROKER

    def __init__(
        self,
        export_root: Path,
        public_folder: str = DEFAULT_PUBLIC_FOLDER,
        *,
        index: MediaIndex,
    ) -> None:
        super().__init__(export_root, public_folder)
        self._index = index

    @property
    def index(self) -> MediaIndex:
        return self._index

    def try_reserve(self, display_name: str, content_type: str) -> Optional[Reservation]:
        # Files placed in the folder outside the index still hold their name.
        if (self.folder / display_name).exists():
            return None

        entry_id = self._index.insert(
            relative_path=self._public_folder,
            display_name=display_name,
            mime_type=content_type,
        )
        if entry_id is None:
            return None

        return Reservation(
            display_name=display_name,
            path=self.folder / display_name,
            content_type=content_type,
            entry_id=entry_id,
        )

    def open_for_write(self, reservation: Reservation) -> BinaryIO:
        """
        Open the reserved file; if that fails the index entry is released.

        Once open, the entry stays even when the copy is interrupted, like
        the partial file it points at.
        """
        try:
            return super().open_for_write(reservation)
        except OSError:
            if reservation.entry_id is not None:
                try:
                    self._index.delete(reservation.entry_id)
                except MediaIndexError as exc:
                    logger.warning("Could not release index entry %d: %s", reservation.entry_id, exc)
            raise


def probe_storage_mode(sqlite_version_info: tuple[int, ...] = sqlite3.sqlite_version_info) -> StorageMode:
    """
    Detect which strategy this platform supports.

    Returns:
        BROKER when the SQLite library supports conflict-free inserts, else PATH.
    """
    if tuple(sqlite_version_info) >= MIN_BROKER_SQLITE_VERSION:
        return StorageMode.BROKER
    return StorageMode.PATH


def select_storage_strategy(
    *,
    mode: StorageMode | str,
    export_root: Path,
    public_folder: str = DEFAULT_PUBLIC_FOLDER,
    index_path: Path,
) -> PublicStorage:
    """
    Build the storage strategy once at startup.

    Args:
        mode: Configured mode; AUTO runs probe_storage_mode().
        export_root: Root directory holding the public folder.
        public_folder: Name of the public folder.
        index_path: SQLite file used by BrokerStorage.

    Raises:
        ValueError: If mode is not a known StorageMode.
    """
    resolved = StorageMode(mode)
    if resolved == StorageMode.AUTO:
        resolved = probe_storage_mode()

    logger.info("Using %s storage for %s", resolved.value, Path(export_root) / public_folder)

    if resolved == StorageMode.BROKER:
        return BrokerStorage(export_root, public_folder, index=MediaIndex(path=index_path))
    return PathStorage(export_root, public_folder)
