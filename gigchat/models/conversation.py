"""Conversation, message and attachment models for the messaging channel."""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel


class Conversation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    job_id: int = Field(foreign_key="job.id", index=True)
    client_id: int = Field(foreign_key="profile.id", index=True)
    freelancer_id: int = Field(foreign_key="profile.id", index=True)
    application_id: Optional[int] = Field(default=None, foreign_key="jobapplication.id")

    # Unread counters, one per participant
    client_unread: int = Field(default=0)
    freelancer_unread: int = Field(default=0)

    last_message_content: Optional[str] = None
    last_message_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    messages: list["Message"] = Relationship(
        back_populates="conversation",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    def has_participant(self, profile_id: int) -> bool:
        return profile_id in (self.client_id, self.freelancer_id)

    def other_party(self, profile_id: int) -> int:
        return self.freelancer_id if profile_id == self.client_id else self.client_id

    def unread_for(self, profile_id: int) -> int:
        return self.client_unread if profile_id == self.client_id else self.freelancer_unread

    def set_unread(self, profile_id: int, value: int) -> None:
        value = max(value, 0)
        if profile_id == self.client_id:
            self.client_unread = value
        else:
            self.freelancer_unread = value


class Message(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="conversation.id", index=True)
    sender_id: int = Field(foreign_key="profile.id")
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    conversation: Optional[Conversation] = Relationship(back_populates="messages")
    attachments: list["Attachment"] = Relationship(
        back_populates="message",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Attachment.position"},
    )


class Attachment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    message_id: int = Field(foreign_key="message.id", index=True)
    position: int = Field(default=0)
    url: str
    filename: str
    content_type: str
    size: int

    message: Optional[Message] = Relationship(back_populates="attachments")
