"""Tests for the view renderer."""
from src.mk_auth.identity import Identity
from src.mk_auth.profile import SellerProfile
from src.mk_common.enums import DashboardSection, OrderStatus, StockFilter, SyncState
from src.mk_dashboard.application.state import SellerViewState
from src.mk_dashboard.application.views import (
    AVATAR_FALLBACK,
    PRODUCT_IMAGE_FALLBACK,
    render_notifications,
    render_order_card,
    render_order_detail,
    render_overview,
    render_products,
    render_section,
    render_settings,
)
from src.mk_listing.domain.models import Product
from src.mk_notification.domain.models import Notification
from src.mk_order.domain.aggregates import compute_aggregates
from src.mk_order.infrastructure.persistence import _record_to_order
from tests.factories import NOW, OTHER_SELLER_ID, SELLER_ID, item_record, order_record


def _make_state(*records, products=(), profile=None) -> SellerViewState:
    state = SellerViewState(identity=Identity(SELLER_ID, "Jane Seller"), profile=profile)
    for index, record in enumerate(records):
        record.setdefault("id", f"o{index + 1}")
        order = _record_to_order(record)
        state.orders[order.id] = order
    state.products = list(products)
    state.aggregates = compute_aggregates(state.orders.values(), state.products, SELLER_ID, NOW)
    return state


class TestOrderViews:
    def test_card_escapes_and_formats(self) -> None:
        record = order_record(
            items=[
                item_record("<script>alert(1)</script>", price=1250, quantity=2, imageUrl="javascript:alert(1)"),
                item_record("Mine Too", price=10),
                item_record("Third", price=10),
                item_record("Theirs", price=999, seller_id=OTHER_SELLER_ID),
            ]
        )
        record["buyerDetails"]["name"] = 'Eve "the buyer"'
        state = _make_state(record)

        card = render_order_card(state, state.orders["o1"], NOW)

        assert card.items[0].product_name == "&lt;script&gt;alert(1)&lt;&#x2F;script&gt;"
        assert card.items[0].image_url == PRODUCT_IMAGE_FALLBACK
        assert card.items[0].line_total == "KES 2,500.00"
        assert len(card.items) == 2
        assert card.item_count == 4
        assert card.total == "KES 2,520.00"
        assert card.total_cents == 252_000
        assert card.buyer_name == "Eve &quot;the buyer&quot;"
        assert card.time_ago == "1w ago"
        assert card.quick_actions == ["accept", "cancel"]
        assert card.sync_state == SyncState.SYNCED

    def test_detail_shows_all_items_and_dispatch(self) -> None:
        record = order_record(
            status="out_for_delivery",
            items=[item_record("A"), item_record("B"), item_record("C")],
            dispatchPhoto="https://cdn.test/media/p.jpg",
            dispatchNote="<b>fragile</b>",
            dispatchedAt=NOW,
        )
        state = _make_state(record)

        detail = render_order_detail(state, state.orders["o1"], NOW)

        assert len(detail.items) == 3
        assert detail.status_label == "Dispatched"
        assert detail.dispatch_photo == "https://cdn.test/media/p.jpg"
        assert detail.dispatch_note == "&lt;b&gt;fragile&lt;&#x2F;b&gt;"
        assert detail.delivery_address == "Westlands, Nairobi"
        assert detail.timestamps == {"dispatchedAt": NOW}
        assert detail.quick_actions == ["deliver"]


class TestOverview:
    def test_overview_without_profile(self) -> None:
        state = _make_state(order_record(), order_record(status="delivered"))

        view = render_overview(state, unread_notifications=3, now=NOW)

        assert view.seller_name == "Jane Seller"
        assert view.profile_photo == AVATAR_FALLBACK
        assert view.pending_count == 1
        assert view.average_rating == "N/A"
        assert view.unread_notifications == 3
        assert view.earnings.available == "KES 100.00"
        assert len(view.recent_orders) == 2

    def test_overview_with_profile(self) -> None:
        profile = SellerProfile(user_id=SELLER_ID, name="Jane <Seller>", verified=True, store_name="Threads")
        products = [Product("p1", "Mug", 50_000, 2, SELLER_ID, avg_rating=4.5)]
        state = _make_state(products=products, profile=profile)

        view = render_overview(state, now=NOW)

        assert view.seller_name == "Jane &lt;Seller&gt;"
        assert view.verified is True
        assert view.average_rating == "4.5"
        assert [p.stock_label for p in view.low_stock] == ["2 left"]


class TestOtherSections:
    def test_products_filter_and_fallback_image(self) -> None:
        products = [
            Product("p1", "Mug", 50_000, 0, SELLER_ID),
            Product("p2", "Cap", 30_000, 50, SELLER_ID, image_urls=["https://cdn.test/cap.jpg"]),
        ]
        state = _make_state(products=products)
        state.stock_filter = StockFilter.IN_STOCK

        view = render_products(state)

        assert [p.name for p in view.products] == ["Cap"]
        assert view.products[0].image_url == "https://cdn.test/cap.jpg"
        assert view.products[0].price == "KES 300.00"

    def test_notifications_badge(self) -> None:
        notifications = [
            Notification(id="n1", user_id=SELLER_ID, title="<i>Hi</i>", message="m", created_at=None),
        ]
        view = render_notifications(notifications, unread_count=120, now=NOW)
        assert view.badge == "99+"
        assert view.notifications[0].title == "&lt;i&gt;Hi&lt;&#x2F;i&gt;"
        assert view.notifications[0].time_ago == "Recently"
        assert render_notifications([], 0, NOW).badge == ""

    def test_settings_default_to_blank(self) -> None:
        view = render_settings(_make_state())
        assert view.store_name == ""

    def test_section_switch(self) -> None:
        state = _make_state(order_record(), order_record(status="cancelled"))
        state.section = DashboardSection.ORDERS
        state.order_status_filter = OrderStatus.CANCELLED

        view = render_section(state, now=NOW)

        assert view.section == DashboardSection.ORDERS
        assert [o["id"] for o in view.data["orders"]] == ["o2"]
