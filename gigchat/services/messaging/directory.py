import logging
from typing import Optional

from gigchat.core.errors import AuthenticationRequired
from gigchat.repositories.conversations import ConversationRepository
from gigchat.services.messaging.records import ConversationSummary, conversation_from_row

logger = logging.getLogger(__name__)


class ConversationDirectory:
    """The viewer's conversation list, newest activity first."""

    def __init__(self, viewer_id: Optional[int], conversations: ConversationRepository) -> None:
        self._viewer_id = viewer_id
        self._conversations = conversations
        self._entries: list[ConversationSummary] = []

    @property
    def entries(self) -> list[ConversationSummary]:
        return list(self._entries)

    def __contains__(self, conversation_id: object) -> bool:
        return any(entry.id == conversation_id for entry in self._entries)

    def load(self) -> list[ConversationSummary]:
        if self._viewer_id is None:
            raise AuthenticationRequired()
        rows = self._conversations.list_for_viewer(self._viewer_id)
        self._entries = [conversation_from_row(row) for row in rows]
        logger.debug(f"Loaded {len(self._entries)} conversations for viewer {self._viewer_id}")
        return self.entries

    refresh = load

    def get(self, conversation_id: int) -> Optional[ConversationSummary]:
        for entry in self._entries:
            if entry.id == conversation_id:
                return entry
        return None

    def mark_read_locally(self, conversation_id: int) -> None:
        self._entries = [
            entry.model_copy(update={"unread_count": 0}) if entry.id == conversation_id else entry
            for entry in self._entries
        ]
