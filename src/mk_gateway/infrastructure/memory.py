"""In-memory document gateway for local development and tests.

Writes fan out synchronously: every subscriber of the written collection
receives its full matching result set before ``write_document`` returns.
"""
import copy
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from src.mk_common.datetime_utils import utc_now
from src.mk_common.errors import RemoteOperationError
from src.mk_common.ids import new_document_id
from src.mk_gateway.domain.models import (
    SERVER_TIMESTAMP,
    Document,
    Predicate,
    SnapshotCallback,
    Subscription,
    matches_all,
    sort_documents,
)

logger = logging.getLogger(__name__)


@dataclass
class _Subscriber:
    collection: str
    predicates: list[Predicate]
    on_snapshot: SnapshotCallback
    order_by: str | None
    descending: bool


class InMemoryDocumentGateway:
    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._collections: dict[str, dict[str, Document]] = defaultdict(dict)
        self._subscribers: dict[int, _Subscriber] = {}
        self._next_subscriber_id = 0
        self._pending_failures: dict[str, list[Exception]] = defaultdict(list)
        self.writes: list[tuple[str, str, Document]] = []

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def seed(self, collection: str, doc_id: str, record: Document) -> None:
        """Insert a document without notifying subscribers."""
        self._collections[collection][doc_id] = copy.deepcopy(record)

    def fail_next_write(self, collection: str, exc: Exception | None = None) -> None:
        """Make the next write to ``collection`` raise."""
        self._pending_failures[collection].append(
            exc or RemoteOperationError(f"write {collection}", "injected failure")
        )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ------------------------------------------------------------------
    # Gateway contract
    # ------------------------------------------------------------------

    def _materialize(self, collection: str, doc_id: str) -> Document:
        record = copy.deepcopy(self._collections[collection][doc_id])
        record["id"] = doc_id
        return record

    def _matching(
        self,
        collection: str,
        predicates: list[Predicate],
        order_by: str | None,
        descending: bool,
    ) -> list[Document]:
        records = [
            self._materialize(collection, doc_id)
            for doc_id, record in self._collections[collection].items()
            if matches_all(record, predicates)
        ]
        return sort_documents(records, order_by, descending)

    async def get_document(self, collection: str, doc_id: str) -> Document | None:
        if doc_id not in self._collections[collection]:
            return None
        return self._materialize(collection, doc_id)

    async def query_documents(
        self,
        collection: str,
        predicates: list[Predicate],
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Document]:
        return self._matching(collection, predicates, order_by, descending)

    async def subscribe(
        self,
        collection: str,
        predicates: list[Predicate],
        on_snapshot: SnapshotCallback,
        order_by: str | None = None,
        descending: bool = False,
    ) -> Subscription:
        subscriber_id = self._next_subscriber_id
        self._next_subscriber_id += 1
        subscriber = _Subscriber(collection, list(predicates), on_snapshot, order_by, descending)
        self._subscribers[subscriber_id] = subscriber

        async def cancel() -> None:
            self._subscribers.pop(subscriber_id, None)

        await on_snapshot(self._matching(collection, subscriber.predicates, order_by, descending))
        return Subscription(cancel)

    async def write_document(
        self, collection: str, doc_id: str | None, fields: Document
    ) -> str:
        failures = self._pending_failures[collection]
        if failures:
            raise failures.pop(0)

        now = self._clock()
        resolved = {
            key: (now if value is SERVER_TIMESTAMP else copy.deepcopy(value))
            for key, value in fields.items()
            if key != "id"
        }
        store = self._collections[collection]
        if doc_id is None or doc_id not in store:
            doc_id = doc_id or new_document_id()
            resolved.setdefault("createdAt", now)
            store[doc_id] = resolved
        else:
            store[doc_id].update(resolved)
        self.writes.append((collection, doc_id, copy.deepcopy(resolved)))

        await self._notify(collection)
        return doc_id

    async def _notify(self, collection: str) -> None:
        for subscriber in list(self._subscribers.values()):
            if subscriber.collection != collection:
                continue
            snapshot = self._matching(
                collection, subscriber.predicates, subscriber.order_by, subscriber.descending
            )
            try:
                await subscriber.on_snapshot(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed for collection %s", collection)
