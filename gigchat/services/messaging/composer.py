import logging
from typing import Iterable, Optional

from gigchat.core.errors import ValidationError
from gigchat.repositories.messages import MessageRepository
from gigchat.services.messaging.records import MessageView, message_from_row
from gigchat.services.messaging.uploader import AttachmentUploader, UploadedFile

logger = logging.getLogger(__name__)


def file_caption(filename: str) -> str:
    return f"Sent file: {filename}"


class Composer:
    """Outgoing messages for one viewer.

    Sent messages are not added to any local list; they come back through
    the change feed like everyone else's.
    """

    def __init__(self, viewer_id: int, messages: MessageRepository, uploader: AttachmentUploader) -> None:
        self._viewer_id = viewer_id
        self._messages = messages
        self._uploader = uploader
        self.draft = ""

    def send(self, conversation_id: Optional[int], text: Optional[str] = None) -> MessageView:
        body = (self.draft if text is None else text).strip()
        if conversation_id is None:
            raise ValidationError("No conversation selected")
        if not body:
            raise ValidationError("Message text cannot be empty")

        row = self._messages.insert(conversation_id, self._viewer_id, body)
        self.draft = ""
        return message_from_row(row)

    async def attach(self, conversation_id: Optional[int], files: Iterable[UploadedFile]) -> list[MessageView]:
        """Upload each file and send it as its own message."""
        if conversation_id is None:
            raise ValidationError("No conversation selected")
        files = list(files)
        if not files:
            raise ValidationError("No files to send")

        sent: list[MessageView] = []
        for file in files:
            descriptor = await self._uploader.upload(conversation_id, file)
            row = self._messages.insert(
                conversation_id,
                self._viewer_id,
                file_caption(descriptor.filename),
                [descriptor],
            )
            sent.append(message_from_row(row))
        logger.info(f"Sent {len(sent)} attachment(s) to conversation {conversation_id}")
        return sent
