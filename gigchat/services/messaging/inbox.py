"""Per-viewer messaging state: which conversation is open and what the feed changes.

State machine::

    closed --open(id)--> open --open(other id)--> open
      ^                    |
      +------close()-------+

Opening loads the history and clears the unread counter. While a
conversation is open, inserts for it are merged into the stream and keep the
counter at zero; inserts for the viewer's other conversations refresh the
directory so their counters show up.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Optional

from gigchat.core.errors import FetchError, MalformedRecordError, ValidationError
from gigchat.repositories.conversations import ConversationRepository
from gigchat.repositories.messages import MESSAGES_TABLE, MessageRepository
from gigchat.services.messaging.composer import Composer
from gigchat.services.messaging.directory import ConversationDirectory
from gigchat.services.messaging.feed import InsertEvent, Subscription
from gigchat.services.messaging.read_state import ReadStateTracker
from gigchat.services.messaging.records import ConversationSummary, MessageView, message_from_row
from gigchat.services.messaging.stream import MessageStream
from gigchat.services.messaging.uploader import AttachmentUploader

logger = logging.getLogger(__name__)


class InboxState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


@dataclass
class InboxUpdate:
    kind: str  # "message" | "directory"
    message: Optional[MessageView] = None
    conversations: list[ConversationSummary] = field(default_factory=list)


class Inbox:
    def __init__(
        self,
        viewer_id: int,
        conversations: ConversationRepository,
        messages: MessageRepository,
        uploader: AttachmentUploader,
    ) -> None:
        self.viewer_id = viewer_id
        self._conversations = conversations
        self.directory = ConversationDirectory(viewer_id, conversations)
        self.stream = MessageStream(viewer_id, messages)
        self.read_state = ReadStateTracker(viewer_id, conversations, self.directory)
        self.composer = Composer(viewer_id, messages, uploader)

    @property
    def state(self) -> InboxState:
        return InboxState.OPEN if self.stream.conversation_id is not None else InboxState.CLOSED

    @property
    def current_conversation(self) -> Optional[int]:
        return self.stream.conversation_id

    def start(self) -> list[ConversationSummary]:
        return self.directory.load()

    def open(self, conversation_id: int) -> list[MessageView]:
        history = self.stream.load(conversation_id)
        self.read_state.mark_read(conversation_id)
        logger.debug(f"Viewer {self.viewer_id} opened conversation {conversation_id} ({len(history)} messages)")
        return history

    def close(self) -> None:
        self.stream.clear()

    def send(self, text: Optional[str] = None) -> MessageView:
        if self.current_conversation is None:
            raise ValidationError("No conversation selected")
        return self.composer.send(self.current_conversation, text)

    def apply(self, event: InsertEvent) -> Optional[InboxUpdate]:
        """React to one insert event. Returns what changed, if anything."""
        if event.table != MESSAGES_TABLE:
            return None
        try:
            message = message_from_row(event.record)
        except MalformedRecordError as e:
            logger.warning(f"Dropping malformed feed event: {e}")
            return None

        if message.conversation_id == self.current_conversation:
            if not self.stream.append(message):
                return None
            self.read_state.mark_read(message.conversation_id)
            return InboxUpdate(kind="message", message=message)

        if message.conversation_id in self.directory or self._conversations.is_participant(
            message.conversation_id, self.viewer_id
        ):
            return InboxUpdate(kind="directory", conversations=self.directory.refresh())

        return None

    async def listen(self, subscription: Subscription) -> AsyncIterator[InboxUpdate]:
        """Turn a feed subscription into inbox updates until it closes."""
        async for event in subscription:
            try:
                update = self.apply(event)
            except FetchError as e:
                logger.error(f"Could not apply {event.table} event for viewer {self.viewer_id}: {e}")
                continue
            if update is not None:
                yield update
