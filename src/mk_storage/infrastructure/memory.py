"""In-memory object storage for local development and tests."""
from collections import deque

from config.settings import settings
from src.mk_common.errors import RemoteOperationError
from src.mk_storage.domain.models import StoredObject


class InMemoryObjectStorage:
    def __init__(self, base_url: str | None = None) -> None:
        self._base_url = (base_url or settings.STORAGE_PUBLIC_BASE_URL).rstrip("/")
        self.objects: dict[str, bytes] = {}
        self.upload_calls = 0
        self._upload_failures: deque[Exception] = deque()
        self._url_failures: deque[Exception] = deque()

    def fail_next_upload(self, exc: Exception | None = None) -> None:
        self._upload_failures.append(exc or RemoteOperationError("upload", "injected failure"))

    def fail_next_url(self, exc: Exception | None = None) -> None:
        self._url_failures.append(exc or RemoteOperationError("get url", "injected failure"))

    async def upload(self, path: str, data: bytes, content_type: str) -> StoredObject:
        self.upload_calls += 1
        if self._upload_failures:
            raise self._upload_failures.popleft()
        self.objects[path] = bytes(data)
        return StoredObject(path=path, content_type=content_type, size=len(data))

    async def get_retrievable_url(self, handle: StoredObject) -> str:
        if self._url_failures:
            raise self._url_failures.popleft()
        if handle.path not in self.objects:
            raise RemoteOperationError("get url", f"object {handle.path} does not exist")
        return f"{self._base_url}/{handle.path}"
