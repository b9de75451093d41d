"""Object store factory."""

from gigchat.core.config import settings
from gigchat.services.storage.base import BaseObjectStore


def get_object_store() -> BaseObjectStore:
    """Returns the configured object store."""
    if settings.storage_provider == "local":
        from gigchat.services.storage.local import LocalObjectStore
        return LocalObjectStore()
    else:
        raise ValueError(f"Unknown storage provider: {settings.storage_provider}")
