"""Notification domain model."""
from dataclasses import dataclass
from datetime import datetime

from src.mk_common.enums import NotificationType


@dataclass(frozen=True)
class NotificationDraft:
    """A notification to be written; the gateway assigns id and createdAt."""
    user_id: str
    type: NotificationType
    title: str
    message: str
    order_id: str | None = None
    amount: int = 0  # cents


@dataclass
class Notification:
    id: str
    user_id: str
    title: str
    message: str
    read: bool = False
    type: NotificationType | None = None
    order_id: str | None = None
    amount: int = 0
    created_at: datetime | None = None
