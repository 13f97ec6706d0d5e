"""Sync progress tracking and user notifications."""

from .sync_progress_tracker import SyncProgress
from .notifications import (
    Notification,
    NotificationCenter,
    IMPORT_ERROR_ID,
    USER_NOT_FOUND_ID,
)

__all__ = [
    'SyncProgress',
    'Notification',
    'NotificationCenter',
    'IMPORT_ERROR_ID',
    'USER_NOT_FOUND_ID',
]
