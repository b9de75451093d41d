"""Typed views of the loosely-typed rows coming from the store and the change feed."""

from datetime import datetime, timezone
from typing import Annotated, Any, Mapping, Optional

from pydantic import AfterValidator, BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from gigchat.core.errors import MalformedRecordError


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class AttachmentDescriptor(BaseModel):
    url: str = Field(min_length=1)
    filename: str = Field(min_length=1)
    content_type: str = Field(min_length=1)
    size: int = Field(ge=0)


class Participant(BaseModel):
    id: int
    name: str
    avatar_url: Optional[str] = None


class JobRef(BaseModel):
    id: int
    title: str


class LastMessage(BaseModel):
    content: str
    created_at: UtcDatetime


class MessageView(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    sender: Optional[Participant] = None
    content: str
    attachments: list[AttachmentDescriptor] = Field(default_factory=list)
    created_at: UtcDatetime

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.id)


class ConversationSummary(BaseModel):
    id: int
    job: JobRef
    other_user: Participant
    last_message: Optional[LastMessage] = None
    unread_count: int = Field(ge=0)
    updated_at: UtcDatetime


def message_from_row(row: Mapping[str, Any]) -> MessageView:
    try:
        return MessageView.model_validate(dict(row))
    except (PydanticValidationError, TypeError, ValueError) as e:
        raise MalformedRecordError("message", e) from e


def conversation_from_row(row: Mapping[str, Any]) -> ConversationSummary:
    try:
        return ConversationSummary.model_validate(dict(row))
    except (PydanticValidationError, TypeError, ValueError) as e:
        raise MalformedRecordError("conversation", e) from e
