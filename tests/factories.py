"""Document factories shared by unit and integration tests."""
from datetime import UTC, datetime
from typing import Any

from src.mk_gateway.infrastructure.memory import InMemoryDocumentGateway

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)

SELLER_ID = "seller-1"
OTHER_SELLER_ID = "seller-2"
BUYER_ID = "buyer-1"


def item_record(
    name: str = "Blue Shirt",
    price: float = 100,
    quantity: int = 1,
    seller_id: str = SELLER_ID,
    **extra: Any,
) -> dict[str, Any]:
    record = {
        "listingId": f"listing-{name.lower().replace(' ', '-')}",
        "productName": name,
        "pricePerUnit": price,
        "quantity": quantity,
        "totalPrice": price * quantity,
        "sellerId": seller_id,
    }
    record.update(extra)
    return record


def order_record(
    status: str = "pending",
    items: list[dict[str, Any]] | None = None,
    buyer_id: str | None = BUYER_ID,
    created_at: datetime | None = None,
    **extra: Any,
) -> dict[str, Any]:
    items = items if items is not None else [item_record()]
    record: dict[str, Any] = {
        "orderId": "ORD-1001",
        "status": status,
        "items": items,
        "buyerDetails": {
            "name": "Amina Buyer",
            "phone": "0712345678",
            "deliveryAddress": "Westlands, Nairobi",
        },
        "totalAmount": sum(i["pricePerUnit"] * i["quantity"] for i in items),
        "orderDate": created_at or datetime(2026, 10, 10, 9, 30, tzinfo=UTC),
    }
    if buyer_id is not None:
        record["userId"] = buyer_id
    record.update(extra)
    return record


def listing_record(
    name: str,
    stock: int,
    price: float = 500,
    seller_id: str = SELLER_ID,
    rating: float | None = None,
) -> dict[str, Any]:
    record: dict[str, Any] = {
        "name": name,
        "price": price,
        "totalStock": stock,
        "uploaderId": seller_id,
        "imageUrls": [f"https://cdn.test/{name.lower().replace(' ', '-')}.jpg"],
    }
    if rating is not None:
        record["avgRating"] = rating
    return record


def seed_order(gateway: InMemoryDocumentGateway, order_id: str, **kwargs: Any) -> dict[str, Any]:
    record = order_record(**kwargs)
    gateway.seed("Orders", order_id, record)
    return record


def notifications_for(gateway: InMemoryDocumentGateway, user_id: str = BUYER_ID) -> list[dict[str, Any]]:
    """Notification writes addressed to ``user_id``, in write order."""
    return [
        fields
        for collection, _doc_id, fields in gateway.writes
        if collection == "Notifications" and fields.get("userId") == user_id
    ]
