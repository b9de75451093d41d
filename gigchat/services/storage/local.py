"""Local filesystem object store, served back through the /media route."""

import logging
from pathlib import Path
from urllib.parse import quote

from gigchat.core.config import settings
from gigchat.core.sandbox import SandboxError, resolve_sandboxed_path
from gigchat.services.storage.base import BaseObjectStore, StorageError

logger = logging.getLogger(__name__)


class LocalObjectStore(BaseObjectStore):
    """Stores objects as files under the attachments directory."""

    def __init__(self, root: Path | None = None, base_url: str | None = None):
        self._root = root or settings.attachments_dir
        self._base_url = (base_url or settings.public_base_url + settings.media_prefix).rstrip("/")

    def resolve(self, key: str) -> Path:
        try:
            return resolve_sandboxed_path(self._root, key)
        except SandboxError as e:
            raise StorageError(str(e)) from e

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self.resolve(key)
        if path.exists():
            raise StorageError(f"Object '{key}' already exists")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Could not write '{key}': {e}") from e
        logger.debug(f"Stored {len(data)} bytes at {key} ({content_type})")

    def public_url(self, key: str) -> str:
        return f"{self._base_url}/{quote(key)}"
