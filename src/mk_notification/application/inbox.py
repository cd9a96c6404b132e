# src/mk_notification/application/inbox.py
"""Live notification list for the user viewing the dashboard."""
import logging
from collections.abc import Awaitable, Callable

from src.mk_common.errors import NotificationNotFoundError
from src.mk_gateway.domain.models import Subscription
from src.mk_notification.domain.models import Notification
from src.mk_notification.infrastructure.persistence import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationInbox:
    """Holds the newest-first notification list and its unread count.

    The unread count is recounted from the list on every change, never
    adjusted by delta.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        user_id: str,
        on_change: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._repository = repository
        self._user_id = user_id
        self._on_change = on_change
        self._subscription: Subscription | None = None
        self.notifications: list[Notification] = []
        self.unread_count = 0

    async def start(self) -> None:
        if self._subscription is None:
            self._subscription = await self._repository.subscribe_for_user(
                self._user_id, self._on_snapshot
            )

    async def stop(self) -> None:
        if self._subscription is not None:
            await self._subscription.unsubscribe()
            self._subscription = None

    def _recount(self) -> None:
        self.unread_count = sum(1 for n in self.notifications if not n.read)

    async def _on_snapshot(self, notifications: list[Notification]) -> None:
        self.notifications = notifications
        self._recount()
        if self._on_change is not None:
            await self._on_change()

    def get(self, notification_id: str) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    async def mark_read(self, notification_id: str) -> Notification:
        notification = self.get(notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        if notification.read:
            return notification

        await self._repository.mark_read(notification_id)
        # The write may already have echoed back a fresh list
        current = self.get(notification_id) or notification
        current.read = True
        self._recount()
        logger.debug("Notification %s read by %s", notification_id, self._user_id)
        return current
