# src/mk_order/domain/repository.py
"""OrderRepository Protocol: interface contract for the order store."""
from collections.abc import Awaitable, Callable
from typing import Protocol

from src.mk_gateway.domain.models import Subscription
from src.mk_order.domain.models import Order, OrderChange

OrdersCallback = Callable[[list[Order]], Awaitable[None]]


class OrderRepositoryProtocol(Protocol):
    async def get_by_id(self, order_id: str) -> Order | None: ...

    async def list_all(self) -> list[Order]: ...

    async def subscribe(self, on_orders: OrdersCallback) -> Subscription: ...

    async def apply_change(self, order_id: str, change: OrderChange) -> None: ...
