from enum import Enum
from pydantic import BaseModel


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    """User-facing message produced while editing a payment schedule."""
    level: NotificationLevel
    message: str
