"""
Base class for object storage backends.
The blob relay only talks to this interface, so tests can swap in an
in-memory backend.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Container:
    """A provisioned storage container (bucket)."""
    name: str
    created: bool  # True only for the call that actually created it


class ObjectStorage(ABC):
    """
    Abstract base class for object storage backends.

    Implementations raise app.exceptions.StorageUnavailable for any
    transport, credential or backend failure.
    """

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check if the backend has a usable credential/connection.

        Returns:
            True if the backend can be used, False otherwise
        """
        pass

    @abstractmethod
    def ensure_container(self, container: str) -> Container:
        """
        Create the container if it does not exist.

        Idempotent: an existing container is success, not an error.

        Args:
            container: Container name

        Returns:
            Container descriptor

        Raises:
            StorageUnavailable: If the backend is unreachable or rejects the request
        """
        pass

    @abstractmethod
    def put_object(self, container: str, name: str, data: bytes, content_type: str) -> None:
        """
        Write a whole buffer as a single object.

        Args:
            container: Container name
            name: Object name
            data: Full object contents
            content_type: Stored as the object's Content-Type

        Raises:
            StorageUnavailable: If the write fails
        """
        pass

    @abstractmethod
    def get_object(self, container: str, name: str) -> Tuple[bytes, str]:
        """
        Read an object back.

        Returns:
            Tuple of (data, content_type)

        Raises:
            StorageUnavailable: If the read fails or the object is missing
        """
        pass

    @abstractmethod
    def object_url(self, container: str, name: str) -> str:
        """Return the URL under which the object is addressable."""
        pass
