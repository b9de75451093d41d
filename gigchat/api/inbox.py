"""Realtime inbox over WebSocket.

Client frames (JSON):
    {"type": "open", "conversation_id": 3}
    {"type": "close"}
    {"type": "send", "content": "hello"}
    {"type": "refresh"}

Server frames:
    {"type": "directory", "conversations": [...]}
    {"type": "history", "conversation_id": 3, "messages": [...]}
    {"type": "message", "message": {...}}
    {"type": "closed"}
    {"type": "error", "error": "validation", "detail": "..."}

Sent messages are not echoed directly; they arrive as "message" frames from
the change feed like everyone else's.
"""

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from gigchat.core.auth import resolve_token
from gigchat.core.errors import FetchError, MessagingError, NotFound, SubscriptionError, ValidationError
from gigchat.repositories.messages import MESSAGES_TABLE
from gigchat.services.messaging import build_inbox
from gigchat.services.messaging.feed import Subscription, get_feed
from gigchat.services.messaging.inbox import Inbox, InboxUpdate
from gigchat.services.messaging.records import ConversationSummary

router = APIRouter()
logger = logging.getLogger(__name__)

WS_UNAUTHORIZED = 4401


@router.websocket("/ws")
async def inbox_websocket(websocket: WebSocket, token: str = ""):
    try:
        profile = resolve_token(token)
    except FetchError as e:
        logger.error(f"Inbox token check failed: {e}")
        await websocket.close(code=1011)
        return
    if profile is None:
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    await websocket.accept()
    inbox = build_inbox(profile.id)  # type: ignore

    try:
        async with get_feed().subscribe(MESSAGES_TABLE) as subscription:
            await _send_directory(websocket, inbox.start())
            pump = asyncio.create_task(_forward_updates(websocket, inbox, subscription))
            try:
                while True:
                    raw = await websocket.receive_text()
                    await _handle_frame(websocket, inbox, raw)
            finally:
                pump.cancel()
                try:
                    await pump
                except asyncio.CancelledError:
                    pass
                except Exception as e:
                    logger.debug(f"Inbox update pump ended with {e!r}")
    except WebSocketDisconnect:
        logger.info(f"Inbox WebSocket for viewer {profile.id} disconnected")
    except SubscriptionError as e:
        logger.error(f"Inbox subscription failed: {e}")
        await websocket.close(code=1011)
    except FetchError as e:
        logger.error(f"Inbox for viewer {profile.id} could not load: {e}")
        await websocket.close(code=1011)
    finally:
        inbox.close()


async def _forward_updates(websocket: WebSocket, inbox: Inbox, subscription: Subscription) -> None:
    try:
        async for update in inbox.listen(subscription):
            await _send_update(websocket, update)
    except Exception as e:
        logger.error(f"Realtime delivery to viewer {inbox.viewer_id} stopped: {e!r}")
        raise


async def _send_update(websocket: WebSocket, update: InboxUpdate) -> None:
    if update.kind == "message" and update.message is not None:
        await websocket.send_json({"type": "message", "message": update.message.model_dump(mode="json")})
    elif update.kind == "directory":
        await _send_directory(websocket, update.conversations)


async def _send_directory(websocket: WebSocket, conversations: list[ConversationSummary]) -> None:
    await websocket.send_json({
        "type": "directory",
        "conversations": [c.model_dump(mode="json") for c in conversations],
    })


async def _send_error(websocket: WebSocket, error: str, detail: str) -> None:
    await websocket.send_json({"type": "error", "error": error, "detail": detail})


async def _handle_frame(websocket: WebSocket, inbox: Inbox, raw: str) -> None:
    try:
        data = json.loads(raw)
        kind = data.get("type")
    except (json.JSONDecodeError, AttributeError):
        await _send_error(websocket, "bad_request", "Frames must be JSON objects")
        return

    try:
        if kind == "open":
            conversation_id = int(data["conversation_id"])
            history = inbox.open(conversation_id)
            await websocket.send_json({
                "type": "history",
                "conversation_id": conversation_id,
                "messages": [m.model_dump(mode="json") for m in history],
            })
        elif kind == "close":
            inbox.close()
            await websocket.send_json({"type": "closed"})
        elif kind == "send":
            inbox.send(data.get("content", ""))
        elif kind == "refresh":
            await _send_directory(websocket, inbox.directory.refresh())
        else:
            await _send_error(websocket, "bad_request", f"Unknown frame type: {kind}")
    except ValidationError as e:
        await _send_error(websocket, "validation", e.message)
    except NotFound as e:
        await _send_error(websocket, "not_found", e.message)
    except MessagingError as e:
        logger.error(f"Inbox frame {kind} failed: {e}")
        await _send_error(websocket, "fetch", e.message)
    except (KeyError, TypeError, ValueError):
        await _send_error(websocket, "bad_request", f"Malformed {kind} frame")
