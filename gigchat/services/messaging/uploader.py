"""Attachment uploads: file bytes in, public attachment descriptor out."""

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from gigchat.core.config import settings
from gigchat.core.errors import AttachmentTooLarge, UploadError, ValidationError
from gigchat.services.messaging.records import AttachmentDescriptor
from gigchat.services.storage.base import BaseObjectStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class UploadedFile:
    filename: str
    data: bytes
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


def object_key(conversation_id: int, filename: str, uploaded_ms: int, unique: Optional[str] = None) -> str:
    # Browsers may send a full client path; keep only the last component.
    name = PurePath(filename.replace("\\", "/")).name
    unique = unique or uuid.uuid4().hex[:12]
    return f"{conversation_id}/{uploaded_ms}-{unique}-{name}"


class AttachmentUploader:
    def __init__(self, store: BaseObjectStore, max_bytes: int | None = None):
        self._store = store
        self._max_bytes = max_bytes if max_bytes is not None else settings.max_attachment_bytes

    async def upload(self, conversation_id: int, file: UploadedFile) -> AttachmentDescriptor:
        name = PurePath(file.filename.replace("\\", "/")).name if file.filename else ""
        if not name:
            raise ValidationError("Attachment needs a filename")
        if file.size > self._max_bytes:
            raise AttachmentTooLarge(
                f"'{name}' is {file.size} bytes, the limit is {self._max_bytes}"
            )

        key = object_key(conversation_id, name, int(time.time() * 1000))
        content_type = file.content_type or DEFAULT_CONTENT_TYPE
        try:
            await self._store.put(key, file.data, content_type)
        except StorageError as e:
            logger.error(f"Upload of {name} to conversation {conversation_id} failed: {e}")
            raise UploadError(str(e)) from e

        return AttachmentDescriptor(
            url=self._store.public_url(key),
            filename=name,
            content_type=content_type,
            size=file.size,
        )
