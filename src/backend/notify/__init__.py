"""
User notifications for batch exports.
"""

from .models import Notification, NotificationSummary, NotificationVariant, RecoveryAction
from .notifier import (
    ExportNotifier,
    NotificationCenter,
    NotificationSink,
    RandomIdAllocator,
    format_message,
    summarize,
)

__all__ = [
    "Notification",
    "NotificationSummary",
    "NotificationVariant",
    "RecoveryAction",
    "ExportNotifier",
    "NotificationCenter",
    "NotificationSink",
    "RandomIdAllocator",
    "format_message",
    "summarize",
]
