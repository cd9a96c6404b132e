"""New-order notices raised by reconciliation.

Every sink is best-effort: a failing sink is logged and the others still run.
"""
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewOrderNotice:
    seller_id: str
    order_ids: tuple[str, ...]
    play_sound: bool = True

    @property
    def message(self) -> str:
        count = len(self.order_ids)
        return f"{count} new order{'s' if count > 1 else ''}!"


AlertSink = Callable[[NewOrderNotice], Awaitable[None]]


async def log_notice(notice: NewOrderNotice) -> None:
    logger.info("Seller %s: %s %s", notice.seller_id, notice.message, ", ".join(notice.order_ids))


class AlertDispatcher:
    def __init__(self, sinks: list[AlertSink] | None = None) -> None:
        self._sinks: list[AlertSink] = list(sinks) if sinks is not None else [log_notice]

    def add_sink(self, sink: AlertSink) -> None:
        self._sinks.append(sink)

    async def emit(self, notice: NewOrderNotice) -> None:
        for sink in list(self._sinks):
            try:
                await sink(notice)
            except Exception:
                logger.exception("Alert sink failed for seller %s", notice.seller_id)
