"""
S3-compatible object storage client.

Uses boto3 with the S3 API, so it works against AWS S3, Cloudflare R2,
MinIO, or any other S3-compatible store.

Containers map to buckets. Buckets created here get no public ACL or
policy, so they stay private: objects are only readable with credentials.
"""
import logging
import time
from typing import Optional, Set, Tuple
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.exceptions import StorageUnavailable
from app.storage.base import Container, ObjectStorage
from app.utils.logging import log_container_provisioned, log_storage_failure
from app.utils.metrics import storage_operations_total, storage_operation_duration_seconds

logger = logging.getLogger(__name__)

# Error codes S3-compatible stores return when the bucket is already there
BUCKET_EXISTS_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}

# Regions that must not be sent as a LocationConstraint
DEFAULT_REGIONS = {None, "", "us-east-1", "auto"}


class S3ObjectStorage(ObjectStorage):
    """
    boto3-backed object storage.

    Holds one boto3 client for the life of the process. boto3 clients are
    thread-safe, so calls may be dispatched with asyncio.to_thread.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        """
        Initialize the boto3 client.

        Explicit keys win; otherwise the boto3 default credential chain is
        consulted. With no credential from either source the client stays
        unconfigured (is_configured is False) instead of raising.
        """
        self._client = None
        self._configured = False
        self._region = region
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._provisioned: Set[str] = set()

        session = boto3.session.Session(
            aws_access_key_id=access_key if access_key and secret_key else None,
            aws_secret_access_key=secret_key if access_key and secret_key else None,
            region_name=region,
        )

        try:
            credentials = session.get_credentials()
        except BotoCoreError as e:
            logger.error(f"Failed to resolve storage credentials: {e}")
            return

        if credentials is None:
            logger.warning(
                "Object storage not configured. "
                "Set STORAGE_ACCESS_KEY and STORAGE_SECRET_KEY or provide AWS default credentials."
            )
            return

        try:
            self._client = session.client(
                's3',
                endpoint_url=endpoint,
                config=Config(
                    signature_version='s3v4',
                    s3={'addressing_style': 'path'}
                )
            )
            self._configured = True
            logger.info(f"Object storage client initialized (endpoint={endpoint or 'aws default'})")
        except (BotoCoreError, ValueError) as e:
            logger.error(f"Failed to initialize object storage client: {e}")

    @property
    def is_configured(self) -> bool:
        """Check if the client is properly configured."""
        return self._configured and self._client is not None

    def _require_client(self):
        if not self.is_configured:
            raise StorageUnavailable("object storage client is not configured")
        return self._client

    def _record(self, operation: str, status: str, started: float):
        storage_operations_total.labels(operation=operation, status=status).inc()
        storage_operation_duration_seconds.labels(operation=operation).observe(time.time() - started)

    def ensure_container(self, container: str) -> Container:
        """
        Create the bucket if absent.

        "Already exists" responses are success. Once a bucket has been seen
        this process skips the network call; concurrent first calls simply
        both issue the create.
        """
        if container in self._provisioned:
            return Container(name=container, created=False)

        client = self._require_client()
        started = time.time()

        params = {'Bucket': container}
        if self._region not in DEFAULT_REGIONS:
            params['CreateBucketConfiguration'] = {'LocationConstraint': self._region}

        try:
            client.create_bucket(**params)
            created = True
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code')
            if code not in BUCKET_EXISTS_CODES:
                self._record('ensure_container', 'error', started)
                log_storage_failure(logger, operation='ensure_container', error=str(e), container=container)
                raise StorageUnavailable(f"create_bucket failed for {container}: {code}") from e
            created = False
        except BotoCoreError as e:
            self._record('ensure_container', 'error', started)
            log_storage_failure(logger, operation='ensure_container', error=str(e), container=container)
            raise StorageUnavailable(f"create_bucket failed for {container}: {e}") from e

        self._record('ensure_container', 'success', started)
        self._provisioned.add(container)
        log_container_provisioned(
            logger,
            container=container,
            created=created,
            duration_ms=(time.time() - started) * 1000
        )
        return Container(name=container, created=created)

    def put_object(self, container: str, name: str, data: bytes, content_type: str) -> None:
        """Upload the whole buffer with a single PutObject call."""
        client = self._require_client()
        started = time.time()

        try:
            client.put_object(
                Bucket=container,
                Key=name,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            self._record('put_object', 'error', started)
            log_storage_failure(logger, operation='put_object', error=str(e), blob_name=name)
            raise StorageUnavailable(f"put_object failed for {name}: {e}") from e

        self._record('put_object', 'success', started)
        logger.debug(f"Stored {name} ({len(data)} bytes) in {container}")

    def get_object(self, container: str, name: str) -> Tuple[bytes, str]:
        """Download an object and its stored content type."""
        client = self._require_client()
        started = time.time()

        try:
            response = client.get_object(Bucket=container, Key=name)
            data = response['Body'].read()
        except (ClientError, BotoCoreError) as e:
            self._record('get_object', 'error', started)
            log_storage_failure(logger, operation='get_object', error=str(e), blob_name=name)
            raise StorageUnavailable(f"get_object failed for {name}: {e}") from e

        self._record('get_object', 'success', started)
        return data, response.get('ContentType', 'application/octet-stream')

    def object_url(self, container: str, name: str) -> str:
        """
        Build the object's URL.

        Uses the configured public base URL when set, otherwise the
        path-style endpoint URL of the bucket.
        """
        key = quote(name)
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        if self._client is not None:
            endpoint = self._client.meta.endpoint_url.rstrip("/")
            return f"{endpoint}/{container}/{key}"
        return f"/{container}/{key}"


# Singleton instance
_storage_client: Optional[S3ObjectStorage] = None


def get_storage_client() -> S3ObjectStorage:
    """
    Get the singleton storage client instance.

    Returns:
        S3ObjectStorage instance (may or may not be configured)
    """
    global _storage_client
    if _storage_client is None:
        _storage_client = S3ObjectStorage(
            endpoint=settings.storage_endpoint,
            access_key=settings.storage_access_key,
            secret_key=settings.storage_secret_key,
            region=settings.storage_region,
            public_base_url=settings.storage_public_base_url,
        )
    return _storage_client
