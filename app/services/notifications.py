import logging
from typing import List

from app.schemas.notification import Notification, NotificationLevel

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.ERROR: logging.WARNING,
}


class NotificationSink:
    """
    Fire-and-forget channel for user-facing messages.

    Collects messages for the current editing request so they can be returned
    alongside the updated invoice. Never raises.
    """

    def __init__(self):
        self.messages: List[Notification] = []

    def notify(self, level: NotificationLevel, message: str) -> None:
        logger.log(_LOG_LEVELS[level], "notification [%s]: %s", level.value, message)
        self.messages.append(Notification(level=level, message=message))

    def info(self, message: str) -> None:
        self.notify(NotificationLevel.INFO, message)

    def success(self, message: str) -> None:
        self.notify(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> None:
        self.notify(NotificationLevel.ERROR, message)

    def drain(self) -> List[Notification]:
        messages, self.messages = self.messages, []
        return messages
