# tests/integration/test_dashboard_flow.py
"""Integration tests for the dashboard API: session → accept → dispatch → deliver.

Runs the real app over the in-memory gateway and storage; no database needed.
"""

import pytest
from httpx import AsyncClient

from src.main import APP_VERSION
from tests.factories import BUYER_ID, item_record, notifications_for, seed_order

API = "/api/v1/dashboard"

pytestmark = pytest.mark.asyncio

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _photo(size: int = 2048) -> dict:
    return {"photo": ("parcel.jpg", b"\xff" * size, "image/jpeg")}


async def _open_session(client: AsyncClient) -> dict:
    resp = await client.post(f"{API}/session")
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


# ---------------------------------------------------------------------------
# Auth and session
# ---------------------------------------------------------------------------


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": APP_VERSION}


async def test_request_id_header(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.headers["X-Request-ID"].startswith("req_")

    resp = await client.get("/health", headers={"X-Request-ID": "req_0123456789ab"})
    assert resp.headers["X-Request-ID"] == "req_0123456789ab"

    resp = await client.get("/health", headers={"X-Request-ID": "<script>"})
    assert resp.headers["X-Request-ID"] != "<script>"


async def test_requires_token(client: AsyncClient) -> None:
    resp = await client.post(f"{API}/session")
    assert resp.status_code == 401


async def test_rejects_bad_token(client: AsyncClient) -> None:
    resp = await client.get(f"{API}/overview", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


async def test_views_need_open_session(seller_client: AsyncClient) -> None:
    resp = await seller_client.get(f"{API}/overview")
    assert resp.status_code == 409
    assert resp.json()["code"] == 1010


async def test_open_and_close_session(seller_client: AsyncClient, backends) -> None:
    gateway, _ = backends
    seed_order(gateway, "o1")

    data = await _open_session(seller_client)
    assert data["pending_count"] == 1
    assert data["seller_name"] == "Jane Seller"

    resp = await seller_client.delete(f"{API}/session")
    assert resp.json()["data"] == {"closed": True}
    assert gateway.subscriber_count == 0


# ---------------------------------------------------------------------------
# Order lifecycle
# ---------------------------------------------------------------------------


async def test_full_order_flow(seller_client: AsyncClient, backends) -> None:
    gateway, storage = backends
    seed_order(gateway, "o1", items=[item_record(price=100, quantity=2), item_record("Cap", price=50)])
    await _open_session(seller_client)

    resp = await seller_client.post(f"{API}/orders/o1/advance", json={"target_status": "confirmed"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "Order updated"
    assert body["data"]["order"]["status"] == "confirmed"
    assert body["data"]["order"]["quick_actions"] == ["dispatch", "cancel"]

    resp = await seller_client.post(
        f"{API}/orders/o1/dispatch", files=_photo(), data={"note": "Rider: Kevin"}
    )
    assert resp.status_code == 200, resp.text
    order = resp.json()["data"]["order"]
    assert order["status"] == "out_for_delivery"
    assert order["dispatch_photo"].startswith("https://cdn.test/media/dispatch/seller-1/o1_")
    assert order["dispatch_note"] == "Rider: Kevin"
    assert storage.upload_calls == 1

    resp = await seller_client.post(f"{API}/commands/deliver", json={"params": {"order_id": "o1"}})
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["status"] == "delivered"

    resp = await seller_client.get(f"{API}/earnings")
    assert resp.json()["data"]["available"] == "KES 250.00"

    resp = await seller_client.get(f"{API}/orders/o1")
    assert resp.json()["data"]["status_label"] == "Delivered"

    sent = notifications_for(gateway, BUYER_ID)
    assert [n["type"] for n in sent] == ["order_confirmed", "order_shipped", "order_delivered"]


async def test_same_status_is_idempotent(seller_client: AsyncClient, backends) -> None:
    gateway, _ = backends
    seed_order(gateway, "o1", status="confirmed")
    await _open_session(seller_client)

    resp = await seller_client.post(f"{API}/orders/o1/advance", json={"target_status": "confirmed"})
    assert resp.json()["data"]["changed"] is False
    assert resp.json()["message"] == "Order already in requested status"
    assert notifications_for(gateway) == []


async def test_illegal_transition(seller_client: AsyncClient, backends) -> None:
    gateway, _ = backends
    seed_order(gateway, "o1", status="delivered")
    await _open_session(seller_client)

    resp = await seller_client.post(f"{API}/orders/o1/advance", json={"target_status": "cancelled"})
    assert resp.status_code == 422
    assert resp.json()["code"] == 4010


async def test_unknown_target_status(seller_client: AsyncClient, backends) -> None:
    gateway, _ = backends
    seed_order(gateway, "o1")
    await _open_session(seller_client)

    resp = await seller_client.post(f"{API}/orders/o1/advance", json={"target_status": "shipped"})
    assert resp.status_code == 422


async def test_write_failure_is_retryable(seller_client: AsyncClient, backends) -> None:
    gateway, _ = backends
    seed_order(gateway, "o1")
    await _open_session(seller_client)
    gateway.fail_next_write("Orders")

    resp = await seller_client.post(f"{API}/orders/o1/advance", json={"target_status": "confirmed"})
    assert resp.status_code == 503
    assert resp.json()["retryable"] is True

    resp = await seller_client.get(f"{API}/orders/o1")
    assert resp.json()["data"]["sync_state"] == "failed"

    resp = await seller_client.post(f"{API}/orders/o1/advance", json={"target_status": "confirmed"})
    assert resp.status_code == 200
    assert resp.json()["data"]["retried"] is True
    assert len(notifications_for(gateway)) == 1


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


async def test_oversized_photo_rejected(seller_client: AsyncClient, backends) -> None:
    gateway, storage = backends
    seed_order(gateway, "o1", status="confirmed")
    await _open_session(seller_client)

    resp = await seller_client.post(f"{API}/orders/o1/dispatch", files=_photo(6 * 1024 * 1024))
    assert resp.status_code == 422
    assert resp.json()["code"] == 6001
    assert storage.upload_calls == 0


async def test_dispatch_of_pending_order_rejected(seller_client: AsyncClient, backends) -> None:
    gateway, storage = backends
    seed_order(gateway, "o1")
    await _open_session(seller_client)

    resp = await seller_client.post(f"{API}/orders/o1/dispatch", files=_photo())
    assert resp.status_code == 422
    assert resp.json()["code"] == 6003
    assert (await gateway.get_document("Orders", "o1"))["status"] == "pending"


# ---------------------------------------------------------------------------
# Lists, notifications and settings
# ---------------------------------------------------------------------------


async def test_order_and_product_lists(seller_client: AsyncClient, backends) -> None:
    gateway, _ = backends
    seed_order(gateway, "o1")
    seed_order(gateway, "o2", status="cancelled")
    await _open_session(seller_client)

    resp = await seller_client.get(f"{API}/orders", params={"status": "cancelled"})
    assert [o["id"] for o in resp.json()["data"]["orders"]] == ["o2"]

    resp = await seller_client.get(f"{API}/orders", params={"q": "amina"})
    assert len(resp.json()["data"]["orders"]) == 2

    resp = await seller_client.get(f"{API}/products", params={"stock": "low_stock"})
    assert resp.json()["data"] == {"stock_filter": "low_stock", "products": []}


async def test_notifications(seller_client: AsyncClient, backends) -> None:
    gateway, _ = backends
    gateway.seed(
        "Notifications",
        "n1",
        {"userId": "seller-1", "title": "New order", "message": "Blue Shirt x1", "read": False},
    )
    await _open_session(seller_client)

    resp = await seller_client.get(f"{API}/notifications")
    assert resp.json()["data"]["badge"] == "1"

    resp = await seller_client.post(f"{API}/notifications/n1/read")
    assert resp.json()["data"] == {"notification_id": "n1", "unread_count": 0}

    resp = await seller_client.post(f"{API}/notifications/missing/read")
    assert resp.status_code == 404


async def test_store_settings(seller_client: AsyncClient, backends) -> None:
    gateway, _ = backends
    gateway.seed("Users", "seller-1", {"name": "Jane Seller"})
    await _open_session(seller_client)

    resp = await seller_client.put(
        f"{API}/settings",
        json={"store_name": "Threads", "phone": "+254 712 345 678", "processing_time": "same_day"},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["phone"] == "254712345678"
    assert resp.json()["data"]["processing_time"] == "same_day"

    resp = await seller_client.put(f"{API}/settings", json={"phone": "12"})
    assert resp.status_code == 422
    assert resp.json()["code"] == 8001


async def test_unknown_command(seller_client: AsyncClient, backends) -> None:
    await _open_session(seller_client)
    resp = await seller_client.post(f"{API}/commands/refund", json={"params": {}})
    assert resp.status_code == 422
    assert resp.json()["code"] == 8001
