import logging

from gigchat.core.errors import FetchError
from gigchat.repositories.conversations import ConversationRepository
from gigchat.services.messaging.directory import ConversationDirectory

logger = logging.getLogger(__name__)


class ReadStateTracker:
    def __init__(
        self,
        viewer_id: int,
        conversations: ConversationRepository,
        directory: ConversationDirectory,
    ) -> None:
        self._viewer_id = viewer_id
        self._conversations = conversations
        self._directory = directory

    def mark_read(self, conversation_id: int) -> None:
        """Zero the viewer's unread counter, locally first and then in the store.

        A store failure is logged and the local value is left at zero.
        """
        self._directory.mark_read_locally(conversation_id)
        try:
            self._conversations.reset_unread(conversation_id, self._viewer_id)
        except FetchError as e:
            logger.error(f"Error marking conversation {conversation_id} as read: {e}")
