"""Object storage contract: binary upload and retrievable URL lookup."""
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StoredObject:
    """Opaque handle for an uploaded object."""
    path: str
    content_type: str
    size: int


class ObjectStorageProtocol(Protocol):
    async def upload(self, path: str, data: bytes, content_type: str) -> StoredObject: ...

    async def get_retrievable_url(self, handle: StoredObject) -> str: ...
