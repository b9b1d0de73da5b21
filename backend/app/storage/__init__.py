"""
Storage module for S3-compatible object storage.

Upload bytes are received by the API and relayed here in a single write.
"""
from app.storage.base import Container, ObjectStorage
from app.storage.s3_client import get_storage_client, S3ObjectStorage
from app.storage.relay import get_blob_relay, BlobRelay, StoredObjectDescriptor

__all__ = [
    "Container",
    "ObjectStorage",
    "get_storage_client",
    "S3ObjectStorage",
    "get_blob_relay",
    "BlobRelay",
    "StoredObjectDescriptor",
]
