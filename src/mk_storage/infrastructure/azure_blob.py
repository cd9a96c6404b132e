"""Azure Blob Storage backend.

The azure SDK client is synchronous; each call runs in a worker thread so the
event loop is never blocked by an upload.
"""
import asyncio
import logging
from functools import lru_cache

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings

from config.settings import settings
from src.mk_common.errors import RemoteOperationError
from src.mk_storage.domain.models import StoredObject

logger = logging.getLogger(__name__)


@lru_cache
def _get_container_client() -> ContainerClient:
    if not settings.AZURE_STORAGE_CONNECTION_STRING:
        raise RuntimeError("Azure storage connection string is not configured")
    service_client = BlobServiceClient.from_connection_string(
        settings.AZURE_STORAGE_CONNECTION_STRING
    )
    try:
        service_client.create_container(settings.AZURE_STORAGE_CONTAINER)
    except ResourceExistsError:
        pass
    return service_client.get_container_client(settings.AZURE_STORAGE_CONTAINER)


def _upload_blob(path: str, data: bytes, content_type: str) -> None:
    blob_client = _get_container_client().get_blob_client(path)
    blob_client.upload_blob(
        data,
        overwrite=True,
        content_settings=ContentSettings(content_type=content_type),
    )


def _blob_url(path: str) -> str:
    return str(_get_container_client().get_blob_client(path).url)


class AzureBlobObjectStorage:
    async def upload(self, path: str, data: bytes, content_type: str) -> StoredObject:
        try:
            await asyncio.to_thread(_upload_blob, path, data, content_type)
        except AzureError as exc:
            raise RemoteOperationError(f"upload {path}", str(exc)) from exc
        logger.info("Uploaded %s (%d bytes)", path, len(data))
        return StoredObject(path=path, content_type=content_type, size=len(data))

    async def get_retrievable_url(self, handle: StoredObject) -> str:
        try:
            return await asyncio.to_thread(_blob_url, handle.path)
        except AzureError as exc:
            raise RemoteOperationError(f"get url {handle.path}", str(exc)) from exc
