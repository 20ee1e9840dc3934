from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


LOCATE_FOLDER_LABEL = "Locate folder"


class NotificationVariant(str, Enum):
    ALL_FAILED = "all_failed"
    PARTIALLY_SUCCEEDED = "partially_succeeded"
    ALL_SUCCEEDED = "all_succeeded"


@dataclass(frozen=True)
class NotificationSummary:
    """Aggregate result of one batch, as shown to the user."""
    total_attempted: int
    total_succeeded: int

    def __post_init__(self) -> None:
        if self.total_attempted < 0 or self.total_succeeded < 0:
            raise ValueError("counts must be >= 0")
        if self.total_succeeded > self.total_attempted:
            raise ValueError(
                f"succeeded ({self.total_succeeded}) exceeds attempted ({self.total_attempted})"
            )

    @property
    def variant(self) -> NotificationVariant:
        if self.total_succeeded == 0:
            return NotificationVariant.ALL_FAILED
        if self.total_succeeded < self.total_attempted:
            return NotificationVariant.PARTIALLY_SUCCEEDED
        return NotificationVariant.ALL_SUCCEEDED

    @property
    def total_failed(self) -> int:
        return self.total_attempted - self.total_succeeded


@dataclass(frozen=True)
class RecoveryAction:
    """Opens the export folder and dismisses the notification it belongs to."""
    notification_id: int
    folder: Path
    label: str = LOCATE_FOLDER_LABEL


@dataclass(frozen=True)
class Notification:
    notification_id: int
    title: str
    body: str
    sub_text: str           # Account the batch ran for
    variant: NotificationVariant
    action: RecoveryAction
    auto_cancel: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "notification_id": self.notification_id,
            "title": self.title,
            "body": self.body,
            "sub_text": self.sub_text,
            "variant": self.variant.value,
            "action": {
                "label": self.action.label,
                "folder": str(self.action.folder),
            },
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
        }
