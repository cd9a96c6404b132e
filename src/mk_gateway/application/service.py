# src/mk_gateway/application/service.py
from config.settings import settings
from src.mk_gateway.domain.protocol import DocumentGatewayProtocol
from src.mk_gateway.infrastructure.memory import InMemoryDocumentGateway
from src.mk_gateway.infrastructure.persistence import SqlDocumentGateway

_gateway: DocumentGatewayProtocol | None = None


def get_document_gateway() -> DocumentGatewayProtocol:
    global _gateway  # noqa: PLW0603
    if _gateway is None:
        if settings.GATEWAY_BACKEND == "postgres":
            _gateway = SqlDocumentGateway()
        else:
            _gateway = InMemoryDocumentGateway()
    return _gateway


def set_document_gateway(gateway: DocumentGatewayProtocol | None) -> None:
    """Swap the process gateway (tests, alternative backends)."""
    global _gateway  # noqa: PLW0603
    _gateway = gateway
