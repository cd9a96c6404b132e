"""Gateway value types: predicates, snapshot callbacks and subscription handles."""
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

Document = dict[str, Any]
SnapshotCallback = Callable[[list[Document]], Awaitable[None]]

_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "array-contains")


class _ServerTimestamp:
    """Sentinel: replaced with the commit time when the write is applied."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP: Any = _ServerTimestamp()

_MISSING = object()


def field_value(record: Document, path: str) -> Any:
    """Resolve a dotted field path ('buyerDetails.name') against a record."""
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


@dataclass(frozen=True)
class Predicate:
    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported predicate operator: {self.op}")

    def matches(self, record: Document) -> bool:
        actual = field_value(record, self.field)
        if actual is _MISSING:
            return self.op == "!="
        try:
            if self.op == "==":
                return bool(actual == self.value)
            if self.op == "!=":
                return bool(actual != self.value)
            if self.op == "<":
                return bool(actual < self.value)
            if self.op == "<=":
                return bool(actual <= self.value)
            if self.op == ">":
                return bool(actual > self.value)
            if self.op == ">=":
                return bool(actual >= self.value)
            if self.op == "in":
                return actual in self.value
            return isinstance(actual, list) and self.value in actual
        except TypeError:
            # Range comparison across incompatible types never matches
            return False


def matches_all(record: Document, predicates: list[Predicate]) -> bool:
    return all(p.matches(record) for p in predicates)


def sort_documents(
    records: list[Document], order_by: str | None, descending: bool
) -> list[Document]:
    """Order records by a field; records missing the field sort last."""
    if order_by is None:
        return records
    present = [r for r in records if field_value(r, order_by) not in (_MISSING, None)]
    missing = [r for r in records if field_value(r, order_by) in (_MISSING, None)]
    present.sort(key=lambda r: field_value(r, order_by), reverse=descending)
    return present + missing


class Subscription:
    """Handle returned by ``subscribe``; ``unsubscribe`` is idempotent."""

    def __init__(self, cancel: Callable[[], Awaitable[None]]) -> None:
        self._cancel = cancel
        self.active = True

    async def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        await self._cancel()
