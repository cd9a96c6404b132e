# src/mk_order/infrastructure/persistence.py
"""OrderRepository: ``Orders`` documents through the document gateway.

``_record_to_order`` is the single place where the field names written by
older checkout versions are understood. Everything above this module works
with canonical ``Order`` objects, and every write uses canonical names.
"""
import logging
from typing import Any

from src.mk_common.datetime_utils import coerce_datetime
from src.mk_common.enums import OrderStatus
from src.mk_common.money import to_cents
from src.mk_common.sanitize import validate_quantity
from src.mk_gateway.domain.models import Document, Subscription
from src.mk_gateway.domain.protocol import DocumentGatewayProtocol
from src.mk_order.domain.models import BuyerRef, LineItem, Order, OrderChange, Variation
from src.mk_order.domain.repository import OrdersCallback
from src.mk_order.domain.state_machine import TIMESTAMP_FIELDS

logger = logging.getLogger(__name__)

ORDERS_COLLECTION = "Orders"


def _first_present(record: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _record_to_variation(raw: Any) -> Variation | None:
    if isinstance(raw, dict):
        value = _first_present(raw, "attr_name", "value")
        if value is None:
            return None
        return Variation(title=str(raw.get("title") or ""), value=str(value))
    if isinstance(raw, str) and raw.strip():
        return Variation(title="", value=raw.strip())
    return None


def _record_to_item(raw: dict[str, Any]) -> LineItem:
    return LineItem(
        listing_id=str(_first_present(raw, "listingId", "productId") or ""),
        seller_id=str(raw.get("sellerId") or ""),
        product_name=str(_first_present(raw, "productName", "name") or ""),
        unit_price=to_cents(_first_present(raw, "pricePerUnit", "price")),
        quantity=validate_quantity(raw.get("quantity"), min_value=1) or 1,
        variation=_record_to_variation(_first_present(raw, "selectedVariation", "variant")),
        image_url=raw.get("imageUrl"),
    )


def _record_to_buyer(record: Document) -> BuyerRef:
    details = record.get("buyerDetails") or record.get("buyerInfo") or {}
    buyer_info = record.get("buyerInfo") or {}
    user_id = record.get("userId") or buyer_info.get("userId") or details.get("userId")
    return BuyerRef(
        user_id=str(user_id) if user_id else None,
        name=str(details.get("name") or "Customer"),
        phone=str(details.get("phone") or ""),
        delivery_address=str(
            _first_present(details, "deliveryAddress", "location", "address") or ""
        ),
    )


def _record_to_order(record: Document) -> Order | None:
    """Normalise a stored order; None when the record cannot be understood."""
    raw_status = _first_present(record, "status", "orderStatus") or OrderStatus.PENDING.value
    try:
        status = OrderStatus(raw_status)
    except ValueError:
        logger.warning("Skipping order %s with unknown status %r", record.get("id"), raw_status)
        return None

    items = tuple(
        _record_to_item(raw) for raw in record.get("items") or [] if isinstance(raw, dict)
    )
    timestamps = {}
    for field_name in TIMESTAMP_FIELDS.values():
        stamped = coerce_datetime(record.get(field_name))
        if stamped is not None:
            timestamps[field_name] = stamped

    total = to_cents(_first_present(record, "totalAmount", "amount"))
    if not total:
        total = sum(item.line_total for item in items)

    return Order(
        id=str(record["id"]),
        buyer=_record_to_buyer(record),
        items=items,
        status=status,
        created_at=coerce_datetime(_first_present(record, "orderDate", "createdAt")),
        order_number=str(record.get("orderId") or ""),
        total_amount=total,
        dispatch_photo=record.get("dispatchPhoto"),
        dispatch_note=record.get("dispatchNote"),
        dispatched_by=record.get("dispatchedBy"),
        timestamps=timestamps,
    )


def _change_to_fields(change: OrderChange) -> Document:
    fields: Document = {
        "status": change.target_status.value,
        change.timestamp_field: change.committed_at,
    }
    if change.dispatch_photo is not None:
        fields["dispatchPhoto"] = change.dispatch_photo
        fields["dispatchNote"] = change.dispatch_note or ""
        fields["dispatchedBy"] = change.dispatched_by
    return fields


def _records_to_orders(records: list[Document]) -> list[Order]:
    orders = []
    for record in records:
        order = _record_to_order(record)
        if order is not None:
            orders.append(order)
    return orders


class OrderRepository:
    def __init__(self, gateway: DocumentGatewayProtocol) -> None:
        self._gateway = gateway

    async def get_by_id(self, order_id: str) -> Order | None:
        record = await self._gateway.get_document(ORDERS_COLLECTION, order_id)
        return _record_to_order(record) if record else None

    async def list_all(self) -> list[Order]:
        # Line items are an array of maps; seller filtering happens client-side
        records = await self._gateway.query_documents(ORDERS_COLLECTION, [])
        return _records_to_orders(records)

    async def subscribe(self, on_orders: OrdersCallback) -> Subscription:
        async def on_snapshot(records: list[Document]) -> None:
            await on_orders(_records_to_orders(records))

        return await self._gateway.subscribe(ORDERS_COLLECTION, [], on_snapshot)

    async def apply_change(self, order_id: str, change: OrderChange) -> None:
        await self._gateway.write_document(ORDERS_COLLECTION, order_id, _change_to_fields(change))
