import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from gigchat.core.config import settings
from gigchat.core.database import get_engine, store_session
from gigchat.models.conversation import Attachment, Message
from gigchat.models.marketplace import Profile
from gigchat.repositories.conversations import load_for_participant, profile_row
from gigchat.services.messaging.feed import ChangeFeed, get_feed
from gigchat.services.messaging.records import AttachmentDescriptor

logger = logging.getLogger(__name__)

MESSAGES_TABLE = "messages"


def message_row(session: Session, msg: Message) -> Dict[str, Any]:
    return {
        "id": msg.id,
        "conversation_id": msg.conversation_id,
        "sender_id": msg.sender_id,
        "sender": profile_row(session.get(Profile, msg.sender_id)),
        "content": msg.content,
        "attachments": [
            {
                "url": a.url,
                "filename": a.filename,
                "content_type": a.content_type,
                "size": a.size,
            }
            for a in msg.attachments
        ],
        "created_at": msg.created_at,
    }


class MessageRepository:

    def __init__(self, db: Engine | None = None, feed: ChangeFeed | None = None) -> None:
        self._db = db if db is not None else get_engine()
        self._feed = feed

    @property
    def feed(self) -> ChangeFeed:
        return self._feed if self._feed is not None else get_feed()

    def list_for_conversation(self, conversation_id: int, viewer_id: int) -> List[Dict[str, Any]]:
        with store_session(self._db, "load messages") as session:
            load_for_participant(session, conversation_id, viewer_id)
            messages = session.exec(
                select(Message)
                .where(Message.conversation_id == conversation_id)
                .order_by(Message.created_at, Message.id)  # type: ignore
            ).all()
            return [message_row(session, m) for m in messages]

    def insert(
        self,
        conversation_id: int,
        sender_id: int,
        content: str,
        attachments: Sequence[AttachmentDescriptor] = (),
    ) -> Dict[str, Any]:
        """Insert a message, update the conversation snapshot and counters, then publish it."""
        with store_session(self._db, "send message") as session:
            conv = load_for_participant(session, conversation_id, sender_id)
            now = datetime.now(timezone.utc)
            msg = Message(
                conversation_id=conversation_id,
                sender_id=sender_id,
                content=content,
                created_at=now,
                attachments=[
                    Attachment(position=i, **descriptor.model_dump())
                    for i, descriptor in enumerate(attachments)
                ],
            )
            session.add(msg)

            conv.last_message_content = content[: settings.preview_length]
            conv.last_message_at = now
            conv.updated_at = now
            counterpart = conv.other_party(sender_id)
            conv.set_unread(counterpart, conv.unread_for(counterpart) + 1)
            session.add(conv)

            session.commit()
            session.refresh(msg)
            row = message_row(session, msg)

        delivered = self.feed.publish(MESSAGES_TABLE, row)
        logger.debug(f"Message {row['id']} in conversation {conversation_id} published to {delivered} subscribers")
        return row
