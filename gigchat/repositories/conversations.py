from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, or_, select

from gigchat.core.database import get_engine, store_session
from gigchat.core.errors import ConversationNotFound
from gigchat.models.conversation import Conversation
from gigchat.models.marketplace import Job, Profile


def load_for_participant(session: Session, conversation_id: int, profile_id: int) -> Conversation:
    """Fetch a conversation, hiding it from anyone who is not one of its two participants."""
    conv = session.get(Conversation, conversation_id)
    if conv is None or not conv.has_participant(profile_id):
        raise ConversationNotFound(f"Conversation {conversation_id} not found")
    return conv


def profile_row(profile: Optional[Profile]) -> Optional[Dict[str, Any]]:
    if profile is None:
        return None
    return {"id": profile.id, "name": profile.name, "avatar_url": profile.avatar_url}


class ConversationRepository:

    def __init__(self, db: Engine | None = None) -> None:
        self._db = db if db is not None else get_engine()

    def list_for_viewer(self, viewer_id: int) -> List[Dict[str, Any]]:
        with store_session(self._db, "load conversations") as session:
            conversations = session.exec(
                select(Conversation)
                .where(or_(Conversation.client_id == viewer_id, Conversation.freelancer_id == viewer_id))
                .order_by(Conversation.updated_at.desc(), Conversation.id.desc())  # type: ignore
            ).all()
            return [self._summary_row(session, conv, viewer_id) for conv in conversations]

    def get_for_viewer(self, conversation_id: int, viewer_id: int) -> Dict[str, Any]:
        with store_session(self._db, "load conversation") as session:
            conv = load_for_participant(session, conversation_id, viewer_id)
            return self._summary_row(session, conv, viewer_id)

    def is_participant(self, conversation_id: int, profile_id: int) -> bool:
        with store_session(self._db, "load conversation") as session:
            conv = session.get(Conversation, conversation_id)
            return conv is not None and conv.has_participant(profile_id)

    def reset_unread(self, conversation_id: int, viewer_id: int) -> None:
        with store_session(self._db, "mark conversation read") as session:
            conv = load_for_participant(session, conversation_id, viewer_id)
            if conv.unread_for(viewer_id) == 0:
                return
            conv.set_unread(viewer_id, 0)
            session.add(conv)
            session.commit()

    def get_or_create(
        self,
        job_id: int,
        client_id: int,
        freelancer_id: int,
        application_id: Optional[int] = None,
    ) -> int:
        with store_session(self._db, "open conversation") as session:
            existing = session.exec(
                select(Conversation).where(
                    Conversation.job_id == job_id,
                    Conversation.client_id == client_id,
                    Conversation.freelancer_id == freelancer_id,
                )
            ).first()
            if existing:
                return existing.id  # type: ignore
            conv = Conversation(
                job_id=job_id,
                client_id=client_id,
                freelancer_id=freelancer_id,
                application_id=application_id,
            )
            session.add(conv)
            session.commit()
            session.refresh(conv)
            return conv.id  # type: ignore

    def find_by_application(self, application_id: int) -> Optional[int]:
        with store_session(self._db, "load conversation") as session:
            conv = session.exec(
                select(Conversation).where(Conversation.application_id == application_id)
            ).first()
            return conv.id if conv else None

    def _summary_row(self, session: Session, conv: Conversation, viewer_id: int) -> Dict[str, Any]:
        job = session.get(Job, conv.job_id)
        other = session.get(Profile, conv.other_party(viewer_id))
        last_message = None
        if conv.last_message_at is not None:
            last_message = {"content": conv.last_message_content or "", "created_at": conv.last_message_at}
        return {
            "id": conv.id,
            "job": {"id": job.id, "title": job.title} if job else None,
            "other_user": profile_row(other),
            "last_message": last_message,
            "unread_count": conv.unread_for(viewer_id),
            "updated_at": conv.updated_at or datetime.now(timezone.utc),
        }
