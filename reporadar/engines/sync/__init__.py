"""Sync engine — polling cycles, snapshot diffing and notifications."""

from reporadar.engines.sync.models import Notification, NotificationKind, SyncResult
from reporadar.engines.sync.notifier import LogNotificationSink, NotificationSink

__all__ = [
    "LogNotificationSink",
    "Notification",
    "NotificationKind",
    "NotificationSink",
    "SyncResult",
]
