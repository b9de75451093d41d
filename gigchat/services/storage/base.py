"""Abstract object store interface for attachment binaries."""

from abc import ABC, abstractmethod


class StorageError(Exception):
    pass


class BaseObjectStore(ABC):
    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store data under key. Raises StorageError if the key is taken or the write fails."""
        ...

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Return the stable public URL for a stored key."""
        ...
