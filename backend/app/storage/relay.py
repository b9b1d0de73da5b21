"""
Blob relay: provisions the container, names the object and writes it.

Flow for one upload:
1. Ensure the container exists (idempotent)
2. Pick the object name (generated, or derived from caller identity)
3. Write the whole buffer in one call, tagged with its content type
4. Return a StoredObjectDescriptor

The name is never published before the write succeeds, so a failed write
leaves nothing to clean up. There are no retries: a failure surfaces
immediately as StorageUnavailable.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from app.config import settings
from app.exceptions import EmptyPayload, StorageUnconfigured
from app.storage import naming
from app.storage.base import ObjectStorage
from app.storage.s3_client import get_storage_client
from app.utils.logging import log_upload_completed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObjectDescriptor:
    """Identity of an object after a successful write."""
    name: str
    url: str
    content_type: str
    size: int


class BlobRelay:
    """
    Relays in-memory buffers to object storage.

    The storage backend is injected; blocking backend calls run in a worker
    thread so the event loop keeps serving other requests meanwhile.
    """

    def __init__(self, storage: ObjectStorage, container: str):
        self.storage = storage
        self.container = container

    async def upload(
        self,
        buffer: bytes,
        content_type: str,
        extension_hint: Optional[str] = None,
        source: Optional[str] = None,
    ) -> StoredObjectDescriptor:
        """
        Store a buffer under a freshly generated name.

        Args:
            buffer: Object contents (non-empty)
            content_type: Recorded as the object's Content-Type
            extension_hint: Optional extension appended to the name
            source: Ingestion source, for logs only

        Raises:
            EmptyPayload: buffer is empty
            StorageUnconfigured: no backend credential
            StorageUnavailable: provisioning or write failed
        """
        self._check(buffer)
        await asyncio.to_thread(self.storage.ensure_container, self.container)
        name = naming.generate(extension_hint)
        return await self._write(name, buffer, content_type, source)

    async def upload_as(
        self,
        buffer: bytes,
        content_type: str,
        extra_id: str,
        ts: str,
        source: Optional[str] = None,
    ) -> StoredObjectDescriptor:
        """
        Store a buffer under ``<extra_id>_<ts>.<png|jpg>``.

        Repeating the same extra_id/ts replaces the earlier object
        (last write wins).
        """
        self._check(buffer)
        await asyncio.to_thread(self.storage.ensure_container, self.container)
        name = naming.direct_name(extra_id, ts, content_type)
        return await self._write(name, buffer, content_type, source)

    def _check(self, buffer: bytes):
        if not buffer:
            raise EmptyPayload("refusing to store an empty buffer")
        if not self.storage.is_configured:
            raise StorageUnconfigured("object storage has no credential or connection")

    async def _write(
        self,
        name: str,
        buffer: bytes,
        content_type: str,
        source: Optional[str],
    ) -> StoredObjectDescriptor:
        started = time.time()
        await asyncio.to_thread(
            self.storage.put_object, self.container, name, buffer, content_type
        )

        descriptor = StoredObjectDescriptor(
            name=name,
            url=self.storage.object_url(self.container, name),
            content_type=content_type,
            size=len(buffer),
        )
        log_upload_completed(
            logger,
            blob_name=name,
            size=descriptor.size,
            content_type=content_type,
            source=source,
            duration_ms=(time.time() - started) * 1000
        )
        return descriptor


# Singleton instance
_blob_relay: Optional[BlobRelay] = None


def get_blob_relay() -> BlobRelay:
    """
    Get the process-wide blob relay.

    Used as a FastAPI dependency; tests replace it through
    app.dependency_overrides.
    """
    global _blob_relay
    if _blob_relay is None:
        _blob_relay = BlobRelay(get_storage_client(), settings.storage_container)
    return _blob_relay
