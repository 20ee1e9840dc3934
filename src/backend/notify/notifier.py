"""
Batch export notifications.

One notification per batch run, carrying a single "Locate folder" action.
Activating the action opens the public folder and cancels that notification.
"""

from __future__ import annotations

import logging
import secrets
import threading
from pathlib import Path
from typing import Callable, Optional, Protocol

from ..os.open_folder import open_folder
from .models import (
    Notification,
    NotificationSummary,
    NotificationVariant,
    RecoveryAction,
)


# Notification ids are positive 31-bit integers; 0 means "no id".
MAX_NOTIFICATION_ID = 2**31 - 1

logger = logging.getLogger(__name__)


IdAllocator = Callable[[], int]
FolderOpener = Callable[[Path], None]


def summarize(succeeded: int, attempted: int) -> NotificationSummary:
    """Build the summary for `succeeded` out of `attempted` files."""
    return NotificationSummary(total_attempted=attempted, total_succeeded=succeeded)


def _files(count: int) -> str:
    return f"{count} file" if count == 1 else f"{count} files"


def format_message(summary: NotificationSummary) -> tuple[str, str]:
    """Return (title, body) for a summary."""
    variant = summary.variant
    if variant == NotificationVariant.ALL_FAILED:
        if summary.total_attempted == 0:
            return "Export failed", "No files were exported"
        return "Export failed", f"Could not export {_files(summary.total_attempted)}"
    if variant == NotificationVariant.PARTIALLY_SUCCEEDED:
        return (
            "Export partially failed",
            f"Exported {summary.total_succeeded} of {_files(summary.total_attempted)}, "
            f"{summary.total_failed} failed",
        )
    return "Export complete", f"Exported {_files(summary.total_succeeded)}"


class RandomIdAllocator:
    """
    Draws random notification ids from the OS CSPRNG.

    Ids are never reissued within the process.
    """

    def __init__(self) -> None:
        self._rng = secrets.SystemRandom()
        self._issued: set[int] = set()
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            while True:
                candidate = self._rng.randint(1, MAX_NOTIFICATION_ID)
                if candidate not in self._issued:
                    self._issued.add(candidate)
                    return candidate


class NotificationSink(Protocol):
    def post(self, notification: Notification) -> None:
        ...

    def cancel(self, notification_id: int) -> None:
        ...

    def get(self, notification_id: int) -> Optional[Notification]:
        ...


class NotificationCenter:
    """Thread-safe in-memory store of active notifications."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: dict[int, Notification] = {}

    def post(self, notification: Notification) -> None:
        with self._lock:
            self._active[notification.notification_id] = notification
        logger.info(
            "Notification %d posted: %s - %s",
            notification.notification_id, notification.title, notification.body,
        )

    def cancel(self, notification_id: int) -> None:
        with self._lock:
            removed = self._active.pop(notification_id, None)
        if removed is not None:
            logger.info("Notification %d cancelled", notification_id)

    def get(self, notification_id: int) -> Optional[Notification]:
        with self._lock:
            return self._active.get(notification_id)

    def active(self) -> list[Notification]:
        with self._lock:
            return sorted(self._active.values(), key=lambda n: n.created_at)


class ExportNotifier:
    """
    Renders batch summaries and runs their recovery action.

    Usage:
        notifier = ExportNotifier(sink=NotificationCenter(), folder=storage.folder)
        notification = notifier.emit(summarize(2, 3), "alice")
        notifier.activate(notification.notification_id)  # opens folder, dismisses
    """

    def __init__(
        self,
        *,
        sink: NotificationSink,
        folder: Path,
        id_allocator: Optional[IdAllocator] = None,
        folder_opener: FolderOpener = open_folder,
    ) -> None:
        self._sink = sink
        self._folder = Path(folder)
        self._id_allocator: IdAllocator = id_allocator or RandomIdAllocator()
        self._folder_opener = folder_opener

    @property
    def folder(self) -> Path:
        return self._folder

    def emit(self, summary: NotificationSummary, account: str) -> Notification:
        notification_id = self._id_allocator()
        if notification_id == 0:
            raise ValueError("notification id 0 is reserved")

        title, body = format_message(summary)
        notification = Notification(
            notification_id=notification_id,
            title=title,
            body=body,
            sub_text=account,
            variant=summary.variant,
            action=RecoveryAction(notification_id=notification_id, folder=self._folder),
        )
        self._sink.post(notification)
        return notification

    def activate(self, notification_id: int) -> Notification:
        """
        Run the recovery action of an active notification.

        Raises:
            KeyError: No active notification has this id.
            OpenFolderError: The folder could not be opened; the notification stays.
        """
        notification = self._sink.get(notification_id)
        if notification is None:
            raise KeyError(notification_id)

        self._folder_opener(notification.action.folder)
        if notification.auto_cancel:
            self._sink.cancel(notification_id)
        return notification
