# src/mk_gateway/infrastructure/persistence.py
"""SqlDocumentGateway: documents in Postgres JSONB, change fan-out over Redis pub/sub."""
import asyncio
import contextlib
import json
import logging
from datetime import datetime
from typing import Any

from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.mk_common.database import get_session_factory
from src.mk_common.datetime_utils import utc_now
from src.mk_common.errors import RemoteOperationError
from src.mk_common.ids import new_document_id
from src.mk_common.redis_client import close_change_feed, open_change_feed, publish_change
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

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_GET_DOCUMENT_SQL = text("""
    SELECT id, data FROM documents
    WHERE collection = :collection AND id = :id
""")

_QUERY_DOCUMENTS_SQL = text("""
    SELECT id, data FROM documents
    WHERE collection = :collection
      AND data @> CAST(:containment AS JSONB)
""")

_INSERT_DOCUMENT_SQL = text("""
    INSERT INTO documents (collection, id, data)
    VALUES (:collection, :id, CAST(:data AS JSONB))
""")

_MERGE_DOCUMENT_SQL = text("""
    UPDATE documents
    SET data = data || CAST(:data AS JSONB), updated_at = NOW()
    WHERE collection = :collection AND id = :id
""")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Unserializable value: {value!r}")


def _dumps(data: Document) -> str:
    return json.dumps(data, default=_json_default)


def _row_to_document(row: Any) -> Document:
    data = row.data if isinstance(row.data, dict) else json.loads(row.data)
    record = dict(data)
    record["id"] = row.id
    return record


def _split_predicates(predicates: list[Predicate]) -> tuple[Document, list[Predicate]]:
    """Top-level equality predicates go to SQL as a JSONB containment filter."""
    containment: Document = {}
    remaining: list[Predicate] = []
    for predicate in predicates:
        if predicate.op == "==" and "." not in predicate.field:
            containment[predicate.field] = predicate.value
        else:
            remaining.append(predicate)
    return containment, remaining


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class SqlDocumentGateway:
    async def get_document(self, collection: str, doc_id: str) -> Document | None:
        try:
            async with get_session_factory()() as db:
                result = await db.execute(
                    _GET_DOCUMENT_SQL, {"collection": collection, "id": doc_id}
                )
                row = result.fetchone()
        except SQLAlchemyError as exc:
            raise RemoteOperationError(f"get {collection}/{doc_id}", str(exc)) from exc
        return _row_to_document(row) if row else None

    async def query_documents(
        self,
        collection: str,
        predicates: list[Predicate],
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Document]:
        containment, remaining = _split_predicates(predicates)
        try:
            async with get_session_factory()() as db:
                result = await db.execute(
                    _QUERY_DOCUMENTS_SQL,
                    {"collection": collection, "containment": _dumps(containment)},
                )
                rows = result.fetchall()
        except SQLAlchemyError as exc:
            raise RemoteOperationError(f"query {collection}", str(exc)) from exc
        records = [_row_to_document(row) for row in rows]
        records = [r for r in records if matches_all(r, remaining)]
        return sort_documents(records, order_by, descending)

    async def write_document(
        self, collection: str, doc_id: str | None, fields: Document
    ) -> str:
        now = utc_now()
        resolved = {
            key: (now if value is SERVER_TIMESTAMP else value)
            for key, value in fields.items()
            if key != "id"
        }
        try:
            async with get_session_factory()() as db:
                async with db.begin():
                    updated = 0
                    if doc_id is not None:
                        result = await db.execute(
                            _MERGE_DOCUMENT_SQL,
                            {"collection": collection, "id": doc_id, "data": _dumps(resolved)},
                        )
                        updated = result.rowcount
                    if not updated:
                        doc_id = doc_id or new_document_id()
                        resolved.setdefault("createdAt", now)
                        await db.execute(
                            _INSERT_DOCUMENT_SQL,
                            {"collection": collection, "id": doc_id, "data": _dumps(resolved)},
                        )
        except SQLAlchemyError as exc:
            raise RemoteOperationError(f"write {collection}", str(exc)) from exc

        try:
            await publish_change(collection, doc_id)
        except RedisError:
            # The write is committed; subscribers catch up on the next change
            logger.warning("Change notification failed for %s/%s", collection, doc_id, exc_info=True)
        return doc_id

    async def subscribe(
        self,
        collection: str,
        predicates: list[Predicate],
        on_snapshot: SnapshotCallback,
        order_by: str | None = None,
        descending: bool = False,
    ) -> Subscription:
        try:
            pubsub = await open_change_feed(collection)
        except RedisError as exc:
            raise RemoteOperationError(f"subscribe {collection}", str(exc)) from exc

        try:
            await on_snapshot(await self.query_documents(collection, predicates, order_by, descending))
        except Exception:
            await self._close_feed(pubsub, collection)
            raise
        task = asyncio.create_task(
            self._listen(pubsub, collection, predicates, on_snapshot, order_by, descending)
        )

        async def cancel() -> None:
            try:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            finally:
                await self._close_feed(pubsub, collection)

        return Subscription(cancel)

    async def _listen(
        self,
        pubsub: Any,
        collection: str,
        predicates: list[Predicate],
        on_snapshot: SnapshotCallback,
        order_by: str | None,
        descending: bool,
    ) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    records = await self.query_documents(collection, predicates, order_by, descending)
                    await on_snapshot(records)
                except Exception:
                    logger.exception("Snapshot delivery failed for collection %s", collection)
        except Exception:
            # No further snapshots arrive for this subscription until it is reopened
            logger.exception("Change feed for collection %s stopped", collection)

    @staticmethod
    async def _close_feed(pubsub: Any, collection: str) -> None:
        try:
            await close_change_feed(pubsub, collection)
        except (RedisError, OSError):
            logger.warning("Closing change feed for %s failed", collection, exc_info=True)
