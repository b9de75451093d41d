"""REST API for the viewer's conversations: directory, history, read state, composing."""

import logging

from fastapi import APIRouter, Depends, HTTPException, UploadFile
from pydantic import BaseModel

from gigchat.api.deps import http_error
from gigchat.core.auth import get_current_profile
from gigchat.core.errors import MessagingError
from gigchat.models.marketplace import Profile
from gigchat.repositories.conversations import ConversationRepository
from gigchat.repositories.messages import MessageRepository
from gigchat.services.messaging.composer import Composer
from gigchat.services.messaging.directory import ConversationDirectory
from gigchat.services.messaging.read_state import ReadStateTracker
from gigchat.services.messaging.stream import MessageStream
from gigchat.services.messaging.uploader import AttachmentUploader, UploadedFile
from gigchat.services.storage import get_object_store

router = APIRouter()
logger = logging.getLogger(__name__)


class MessageCreate(BaseModel):
    content: str


def _composer(profile: Profile) -> Composer:
    return Composer(profile.id, MessageRepository(), AttachmentUploader(get_object_store()))  # type: ignore


def _require_participant(conversations: ConversationRepository, conversation_id: int, profile: Profile) -> None:
    try:
        allowed = conversations.is_participant(conversation_id, profile.id)  # type: ignore
    except MessagingError as e:
        raise http_error(e)
    if not allowed:
        raise HTTPException(status_code=404, detail="Conversation not found")


@router.get("/")
async def list_conversations(profile: Profile = Depends(get_current_profile)):
    directory = ConversationDirectory(profile.id, ConversationRepository())
    try:
        entries = directory.load()
    except MessagingError as e:
        raise http_error(e)
    return [entry.model_dump(mode="json") for entry in entries]


@router.get("/{conversation_id}/messages")
async def get_messages(conversation_id: int, profile: Profile = Depends(get_current_profile)):
    stream = MessageStream(profile.id, MessageRepository())  # type: ignore
    try:
        messages = stream.load(conversation_id)
    except MessagingError as e:
        logger.debug(f"History for conversation {conversation_id} failed: {e}")
        raise http_error(e)
    return [m.model_dump(mode="json") for m in messages]


@router.post("/{conversation_id}/read")
async def mark_read(conversation_id: int, profile: Profile = Depends(get_current_profile)):
    conversations = ConversationRepository()
    _require_participant(conversations, conversation_id, profile)
    directory = ConversationDirectory(profile.id, conversations)
    tracker = ReadStateTracker(profile.id, conversations, directory)  # type: ignore
    tracker.mark_read(conversation_id)
    return {"id": conversation_id, "unread_count": 0}


@router.post("/{conversation_id}/messages", status_code=201)
async def send_message(
    conversation_id: int,
    body: MessageCreate,
    profile: Profile = Depends(get_current_profile),
):
    try:
        message = _composer(profile).send(conversation_id, body.content)
    except MessagingError as e:
        raise http_error(e)
    return message.model_dump(mode="json")


@router.post("/{conversation_id}/attachments", status_code=201)
async def upload_attachments(
    conversation_id: int,
    files: list[UploadFile],
    profile: Profile = Depends(get_current_profile),
):
    # Check membership before anything is written to the object store.
    _require_participant(ConversationRepository(), conversation_id, profile)

    uploads = [
        UploadedFile(filename=f.filename or "", data=await f.read(), content_type=f.content_type or "")
        for f in files
    ]
    try:
        messages = await _composer(profile).attach(conversation_id, uploads)
    except MessagingError as e:
        raise http_error(e)
    return [m.model_dump(mode="json") for m in messages]
