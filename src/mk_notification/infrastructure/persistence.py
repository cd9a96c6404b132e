# src/mk_notification/infrastructure/persistence.py
"""NotificationRepository: ``Notifications`` documents through the document gateway."""
import logging
from collections.abc import Awaitable, Callable

from src.mk_common.datetime_utils import coerce_datetime
from src.mk_common.enums import NotificationType
from src.mk_common.money import cents_to_display, to_cents
from src.mk_gateway.domain.models import SERVER_TIMESTAMP, Document, Predicate, Subscription
from src.mk_gateway.domain.protocol import DocumentGatewayProtocol
from src.mk_notification.domain.models import Notification, NotificationDraft

logger = logging.getLogger(__name__)

NOTIFICATIONS_COLLECTION = "Notifications"

NotificationsCallback = Callable[[list[Notification]], Awaitable[None]]


def _record_to_notification(record: Document) -> Notification:
    try:
        kind = NotificationType(record.get("type"))
    except ValueError:
        # Other features (chat, payments) share the collection with their own types
        kind = None
    return Notification(
        id=str(record["id"]),
        user_id=str(record.get("userId") or ""),
        title=str(record.get("title") or ""),
        message=str(record.get("message") or ""),
        read=bool(record.get("read")),
        type=kind,
        order_id=record.get("orderId") or None,
        amount=to_cents(record.get("amount")),
        created_at=coerce_datetime(record.get("createdAt")),
    )


class NotificationRepository:
    def __init__(self, gateway: DocumentGatewayProtocol) -> None:
        self._gateway = gateway

    async def create(self, draft: NotificationDraft) -> str:
        # Stored amounts are KES, like every other document amount
        fields = {
            "userId": draft.user_id,
            "orderId": draft.order_id,
            "type": draft.type.value,
            "title": draft.title,
            "message": draft.message,
            "amount": draft.amount / 100,
            "read": False,
            "createdAt": SERVER_TIMESTAMP,
        }
        notification_id = await self._gateway.write_document(
            NOTIFICATIONS_COLLECTION, None, fields
        )
        logger.info(
            "Notification %s (%s, %s) sent to %s",
            notification_id,
            draft.type.value,
            cents_to_display(draft.amount),
            draft.user_id,
        )
        return notification_id

    async def subscribe_for_user(
        self, user_id: str, on_notifications: NotificationsCallback
    ) -> Subscription:
        async def on_snapshot(records: list[Document]) -> None:
            await on_notifications([_record_to_notification(r) for r in records])

        return await self._gateway.subscribe(
            NOTIFICATIONS_COLLECTION,
            [Predicate("userId", "==", user_id)],
            on_snapshot,
            order_by="createdAt",
            descending=True,
        )

    async def mark_read(self, notification_id: str) -> None:
        await self._gateway.write_document(
            NOTIFICATIONS_COLLECTION, notification_id, {"read": True}
        )
