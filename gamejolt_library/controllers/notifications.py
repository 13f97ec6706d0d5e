"""User-visible notifications keyed by a stable id.

Adding a notification with an id already shown replaces it, so a failure
repeated on every sync shows up once; resolving it removes it again.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

IMPORT_ERROR_ID = "GameJolt_libImportError"
USER_NOT_FOUND_ID = "GameJolt_UserNotFoundError"

# Action the host runs when the user clicks an error notification
OPEN_SETTINGS_ACTION = "open_settings"


@dataclass
class Notification:
    id: str
    message: str
    type: str = "error"  # 'info', 'warning' or 'error'
    action: Optional[str] = None
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NotificationCenter:
    """In-memory notification sink; hosts subscribe to show or hide them."""

    def __init__(self):
        self._notifications: Dict[str, Notification] = {}
        self._listeners: List[Callable[[str, Optional[Notification]], None]] = []

    def subscribe(self, listener: Callable[[str, Optional[Notification]], None]) -> None:
        """Register listener(id, notification); notification is None on removal."""
        self._listeners.append(listener)

    def add(self, notification: Notification) -> None:
        if notification.timestamp is None:
            notification.timestamp = datetime.now().isoformat()
        self._notifications[notification.id] = notification
        logger.info(f"[Notifications] {notification.type}: {notification.message}")
        for listener in list(self._listeners):
            listener(notification.id, notification)

    def remove(self, notification_id: str) -> bool:
        if self._notifications.pop(notification_id, None) is None:
            return False
        for listener in list(self._listeners):
            listener(notification_id, None)
        return True

    def get(self, notification_id: str) -> Optional[Notification]:
        return self._notifications.get(notification_id)

    def all(self) -> List[Notification]:
        return list(self._notifications.values())


def notify_import_error(center: NotificationCenter, error: BaseException) -> None:
    center.add(Notification(
        id=IMPORT_ERROR_ID,
        message=f"Failed to import Game Jolt games.\n{error}",
        action=OPEN_SETTINGS_ACTION,
    ))


def remove_import_error(center: NotificationCenter) -> None:
    center.remove(IMPORT_ERROR_ID)


def notify_user_not_found(center: NotificationCenter, user_name: str) -> None:
    center.add(Notification(
        id=USER_NOT_FOUND_ID,
        message=f"Failed to import Game Jolt games.\nUser '{user_name}' was not found on Game Jolt.",
        action=OPEN_SETTINGS_ACTION,
    ))


def remove_user_not_found(center: NotificationCenter) -> None:
    center.remove(USER_NOT_FOUND_ID)
