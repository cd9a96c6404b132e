# src/mk_storage/application/service.py
from config.settings import settings
from src.mk_storage.domain.models import ObjectStorageProtocol
from src.mk_storage.infrastructure.azure_blob import AzureBlobObjectStorage
from src.mk_storage.infrastructure.memory import InMemoryObjectStorage

_storage: ObjectStorageProtocol | None = None


def get_object_storage() -> ObjectStorageProtocol:
    global _storage  # noqa: PLW0603
    if _storage is None:
        if settings.STORAGE_BACKEND == "azure":
            _storage = AzureBlobObjectStorage()
        else:
            _storage = InMemoryObjectStorage()
    return _storage


def set_object_storage(storage: ObjectStorageProtocol | None) -> None:
    global _storage  # noqa: PLW0603
    _storage = storage
