"""DocumentGateway Protocol: the contract every backend provides.

Unit tests inject the in-memory implementation or an AsyncMock conforming to
this Protocol; production wires the Postgres/Redis implementation.
"""
from typing import Protocol

from src.mk_gateway.domain.models import Document, Predicate, SnapshotCallback, Subscription


class DocumentGatewayProtocol(Protocol):
    async def get_document(self, collection: str, doc_id: str) -> Document | None: ...

    async def query_documents(
        self,
        collection: str,
        predicates: list[Predicate],
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Document]: ...

    async def subscribe(
        self,
        collection: str,
        predicates: list[Predicate],
        on_snapshot: SnapshotCallback,
        order_by: str | None = None,
        descending: bool = False,
    ) -> Subscription: ...

    async def write_document(
        self, collection: str, doc_id: str | None, fields: Document
    ) -> str: ...
