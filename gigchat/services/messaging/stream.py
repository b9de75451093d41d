import bisect
import logging
from typing import Optional

from gigchat.repositories.messages import MessageRepository
from gigchat.services.messaging.records import MessageView, message_from_row

logger = logging.getLogger(__name__)


class MessageStream:
    """Ordered history of the open conversation plus messages pushed since.

    Pushed messages are merged by id: repeats are dropped and a message that
    arrives late is slotted back into creation order.
    """

    def __init__(self, viewer_id: int, messages: MessageRepository) -> None:
        self._viewer_id = viewer_id
        self._messages = messages
        self.conversation_id: Optional[int] = None
        self._items: list[MessageView] = []
        self._ids: set[int] = set()

    @property
    def messages(self) -> list[MessageView]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def load(self, conversation_id: int) -> list[MessageView]:
        rows = self._messages.list_for_conversation(conversation_id, self._viewer_id)
        items = sorted((message_from_row(row) for row in rows), key=lambda m: m.sort_key)
        self.conversation_id = conversation_id
        self._items = items
        self._ids = {m.id for m in items}
        return self.messages

    def append(self, message: MessageView) -> bool:
        """Merge a pushed message. Returns False if it was ignored."""
        if message.conversation_id != self.conversation_id:
            return False
        if message.id in self._ids:
            logger.debug(f"Ignoring duplicate message {message.id}")
            return False
        keys = [m.sort_key for m in self._items]
        position = bisect.bisect_right(keys, message.sort_key)
        if position < len(self._items):
            logger.debug(f"Message {message.id} arrived out of order, placing at {position}")
        self._items.insert(position, message)
        self._ids.add(message.id)
        return True

    def clear(self) -> None:
        self.conversation_id = None
        self._items = []
        self._ids = set()
