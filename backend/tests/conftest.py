"""
Test configuration and fixtures.
Uses an in-memory object storage backend injected into the blob relay.
"""
import os
import threading

# Set test environment before any imports
os.environ["ENVIRONMENT"] = "test"
os.environ["STORAGE_ENDPOINT"] = "http://storage.test"
os.environ["STORAGE_ACCESS_KEY"] = "test-access-key"
os.environ["STORAGE_SECRET_KEY"] = "test-secret-key"
os.environ["STORAGE_REGION"] = "us-east-1"
os.environ["STORAGE_CONTAINER"] = "test-photos"
os.environ["MAX_UPLOAD_BYTES"] = str(64 * 1024)
os.environ["TRUST_FORWARDED_FOR"] = "true"
os.environ["STATIC_DIR"] = ""
os.environ["CV_STUB_LATENCY_MS"] = "10"
os.environ["DI_STUB_LATENCY_MS"] = "12"

import pytest
from typing import AsyncGenerator, Tuple

from httpx import AsyncClient, ASGITransport

from app.exceptions import StorageUnavailable
from app.storage.base import Container, ObjectStorage
from app.storage.relay import BlobRelay


TEST_CONTAINER = "test-photos"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x01" * 32
PDF_BYTES = b"%PDF-1.7\n" + b"1 0 obj\n<<>>\nendobj\n"


class InMemoryObjectStorage(ObjectStorage):
    """
    Object storage fake.

    Records every backend call so tests can assert that nothing was
    provisioned or written.
    """

    def __init__(self, configured: bool = True, fail_on: Tuple[str, ...] = ()):
        self.configured = configured
        self.fail_on = set(fail_on)
        self.containers = set()
        self.objects = {}
        self.ensure_calls = 0
        self.created_count = 0
        self.put_calls = 0
        self._lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return self.configured

    def ensure_container(self, container: str) -> Container:
        with self._lock:
            self.ensure_calls += 1
            if "ensure_container" in self.fail_on:
                raise StorageUnavailable("backend unreachable: connection refused")
            if container in self.containers:
                return Container(name=container, created=False)
            self.containers.add(container)
            self.created_count += 1
            return Container(name=container, created=True)

    def put_object(self, container: str, name: str, data: bytes, content_type: str) -> None:
        with self._lock:
            self.put_calls += 1
            if "put_object" in self.fail_on:
                raise StorageUnavailable("backend unreachable: write timed out")
            self.objects[(container, name)] = (bytes(data), content_type)

    def get_object(self, container: str, name: str) -> Tuple[bytes, str]:
        try:
            return self.objects[(container, name)]
        except KeyError:
            raise StorageUnavailable(f"no such object {name}")

    def object_url(self, container: str, name: str) -> str:
        return f"http://storage.test/{container}/{name}"


@pytest.fixture
def storage() -> InMemoryObjectStorage:
    """Empty in-memory storage backend."""
    return InMemoryObjectStorage()


@pytest.fixture
def relay(storage: InMemoryObjectStorage) -> BlobRelay:
    """Blob relay writing to the in-memory backend."""
    return BlobRelay(storage, TEST_CONTAINER)


@pytest.fixture
async def client(relay: BlobRelay) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing (loopback origin)."""
    from app.main import app
    from app.storage.relay import get_blob_relay

    app.dependency_overrides[get_blob_relay] = lambda: relay

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def unconfigured_client() -> AsyncGenerator[AsyncClient, None]:
    """Client whose relay has no storage credential."""
    from app.main import app
    from app.storage.relay import get_blob_relay

    relay = BlobRelay(InMemoryObjectStorage(configured=False), TEST_CONTAINER)
    app.dependency_overrides[get_blob_relay] = lambda: relay

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
