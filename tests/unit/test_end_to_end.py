"""A full seller journey over the in-memory gateway and storage."""
import pytest

from src.mk_common.enums import OrderStatus, SyncState
from src.mk_dashboard.application.controller import DashboardController
from src.mk_order.application.dispatch import DispatchPhoto
from tests.factories import BUYER_ID, NOW, item_record, notifications_for, seed_order


@pytest.mark.asyncio
async def test_pending_to_delivered(seller, gateway, storage) -> None:
    seed_order(
        gateway,
        "o1",
        items=[item_record("Blue Shirt", price=100, quantity=2), item_record("Cap", price=50)],
    )
    controller = DashboardController(seller, gateway, storage, clock=lambda: NOW)
    await controller.start()
    available = [controller.aggregates.earnings.available]

    await controller.advance("o1", OrderStatus.CONFIRMED)
    available.append(controller.aggregates.earnings.available)
    assert controller.aggregates.earnings.pending == 25_000

    controller.open_dispatch_workflow("o1")
    photo = DispatchPhoto(filename="parcel.jpg", content_type="image/jpeg", data=b"\xff" * 1024)
    await controller.submit_dispatch(photo, "Handed to rider")
    available.append(controller.aggregates.earnings.available)

    await controller.advance("o1", OrderStatus.DELIVERED)
    available.append(controller.aggregates.earnings.available)

    assert available == [0, 0, 0, 25_000]
    assert controller.aggregates.earnings.pending == 0
    assert controller.aggregates.sales.total_sales == 1
    assert controller.state.sync_state("o1") == SyncState.SYNCED

    stored = await gateway.get_document("Orders", "o1")
    assert stored["status"] == "delivered"
    assert {"confirmedAt", "dispatchedAt", "deliveredAt"} <= set(stored)
    assert stored["dispatchNote"] == "Handed to rider"

    sent = notifications_for(gateway, BUYER_ID)
    assert [n["type"] for n in sent] == ["order_confirmed", "order_shipped", "order_delivered"]
    assert all(n["orderId"] == "o1" and n["read"] is False for n in sent)

    await controller.stop()
    assert gateway.subscriber_count == 0


@pytest.mark.asyncio
async def test_cancel_from_confirmed_notifies_once(seller, gateway, storage) -> None:
    seed_order(gateway, "o1", status="confirmed")
    controller = DashboardController(seller, gateway, storage, clock=lambda: NOW)
    await controller.start()

    await controller.advance("o1", "cancelled")
    again = await controller.advance("o1", "cancelled")

    assert again.changed is False
    sent = notifications_for(gateway)
    assert [n["title"] for n in sent] == ["Order Cancelled ❌"]
    assert controller.aggregates.earnings.lifetime == 0
    await controller.stop()
