"""Session-scoped seller view-state.

One instance per dashboard session, owned by its controller. It is rebuilt
from gateway snapshots and never persisted.
"""
from dataclasses import dataclass, field

from src.mk_auth.identity import Identity
from src.mk_auth.profile import SellerProfile
from src.mk_common.enums import DashboardSection, OrderStatus, StockFilter, SyncState
from src.mk_listing.domain.models import Product
from src.mk_order.domain.aggregates import DashboardAggregates
from src.mk_order.domain.models import Order, PendingMutation


@dataclass
class SellerViewState:
    identity: Identity
    profile: SellerProfile | None = None
    # Visible orders: server snapshot with unacknowledged local changes overlaid
    orders: dict[str, Order] = field(default_factory=dict)
    mutations: dict[str, PendingMutation] = field(default_factory=dict)
    products: list[Product] = field(default_factory=list)
    aggregates: DashboardAggregates = field(default_factory=DashboardAggregates)
    section: DashboardSection = DashboardSection.OVERVIEW
    order_status_filter: OrderStatus | None = None
    order_query: str = ""
    stock_filter: StockFilter = StockFilter.ALL
    primed: bool = False

    @property
    def seller_id(self) -> str:
        return self.identity.user_id

    def sync_state(self, order_id: str) -> SyncState:
        mutation = self.mutations.get(order_id)
        return mutation.sync_state if mutation else SyncState.SYNCED
