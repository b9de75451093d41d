"""Tests for the conversation REST endpoints."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from gigchat.core.config import settings
from gigchat.repositories.messages import MessageRepository
from tests.conftest import make_party, test_engine


def _seed_messages(conversation_id, sender, texts):
    repo = MessageRepository(test_engine)
    return [repo.insert(conversation_id, sender.id, text) for text in texts]


def test_list_requires_authentication(client):
    response = client.get("/api/conversations/")
    assert response.status_code == 401
    assert response.json()["login_url"] == settings.login_url


def test_list_conversations_empty(client, freelancer):
    response = client.get("/api/conversations/", headers=freelancer.headers)
    assert response.status_code == 200
    assert response.json() == []


def test_list_conversations(client, conversation_id, business, freelancer):
    _seed_messages(conversation_id, business, ["Welcome", "Brief attached"])

    response = client.get("/api/conversations/", headers=freelancer.headers)
    assert response.status_code == 200
    [entry] = response.json()
    assert entry["id"] == conversation_id
    assert entry["job"]["title"] == "Logo design"
    assert entry["other_user"]["name"] == "Acme Studio"
    assert entry["last_message"]["content"] == "Brief attached"
    assert entry["unread_count"] == 2


def test_get_messages(client, conversation_id, business, freelancer):
    _seed_messages(conversation_id, business, ["one", "two", "three"])

    response = client.get(f"/api/conversations/{conversation_id}/messages", headers=freelancer.headers)
    assert response.status_code == 200
    data = response.json()
    assert [m["content"] for m in data] == ["one", "two", "three"]
    assert data[0]["sender"]["name"] == "Acme Studio"
    assert data[0]["attachments"] == []


def test_get_messages_not_found(client, freelancer):
    response = client.get("/api/conversations/9999/messages", headers=freelancer.headers)
    assert response.status_code == 404


def test_get_messages_hidden_from_outsiders(client, conversation_id):
    outsider = make_party("Nosy Neighbour")
    response = client.get(f"/api/conversations/{conversation_id}/messages", headers=outsider.headers)
    assert response.status_code == 404


def test_mark_read(client, conversation_id, business, freelancer):
    _seed_messages(conversation_id, business, ["one", "two"])

    response = client.post(f"/api/conversations/{conversation_id}/read", headers=freelancer.headers)
    assert response.status_code == 200
    assert response.json() == {"id": conversation_id, "unread_count": 0}

    # Twice in a row is fine
    response = client.post(f"/api/conversations/{conversation_id}/read", headers=freelancer.headers)
    assert response.status_code == 200

    [entry] = client.get("/api/conversations/", headers=freelancer.headers).json()
    assert entry["unread_count"] == 0


def test_mark_read_not_found(client, freelancer):
    response = client.post("/api/conversations/9999/read", headers=freelancer.headers)
    assert response.status_code == 404


def test_send_message(client, conversation_id, business, freelancer):
    response = client.post(
        f"/api/conversations/{conversation_id}/messages",
        json={"content": "  Deadline is Friday  "},
        headers=business.headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["content"] == "Deadline is Friday"
    assert data["sender_id"] == business.id

    [entry] = client.get("/api/conversations/", headers=freelancer.headers).json()
    assert entry["unread_count"] == 1


def test_send_blank_message_is_rejected(client, conversation_id, business):
    response = client.post(
        f"/api/conversations/{conversation_id}/messages",
        json={"content": "   "},
        headers=business.headers,
    )
    assert response.status_code == 422

    response = client.get(f"/api/conversations/{conversation_id}/messages", headers=business.headers)
    assert response.json() == []


def test_send_to_foreign_conversation(client, conversation_id):
    outsider = make_party("Nosy Neighbour")
    response = client.post(
        f"/api/conversations/{conversation_id}/messages",
        json={"content": "hello"},
        headers=outsider.headers,
    )
    assert response.status_code == 404


def test_upload_attachments(client, conversation_id, business, freelancer):
    response = client.post(
        f"/api/conversations/{conversation_id}/attachments",
        files=[
            ("files", ("brief.pdf", b"%PDF-1.4 brief", "application/pdf")),
            ("files", ("moodboard.png", b"\x89PNG moodboard", "image/png")),
        ],
        headers=business.headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert [m["content"] for m in data] == ["Sent file: brief.pdf", "Sent file: moodboard.png"]

    attachment = data[0]["attachments"][0]
    assert attachment["filename"] == "brief.pdf"
    assert attachment["content_type"] == "application/pdf"
    assert attachment["size"] == len(b"%PDF-1.4 brief")
    assert attachment["url"].startswith(f"{settings.public_base_url}{settings.media_prefix}/{conversation_id}/")

    # The public URL serves the stored bytes
    media = client.get(attachment["url"].removeprefix(settings.public_base_url))
    assert media.status_code == 200
    assert media.content == b"%PDF-1.4 brief"

    [entry] = client.get("/api/conversations/", headers=freelancer.headers).json()
    assert entry["unread_count"] == 2


def test_upload_too_large(client, conversation_id, business, monkeypatch):
    monkeypatch.setattr(settings, "max_attachment_bytes", 4)
    response = client.post(
        f"/api/conversations/{conversation_id}/attachments",
        files=[("files", ("big.txt", b"more than four bytes", "text/plain"))],
        headers=business.headers,
    )
    assert response.status_code == 413


def test_upload_to_foreign_conversation(client, conversation_id):
    outsider = make_party("Nosy Neighbour")
    response = client.post(
        f"/api/conversations/{conversation_id}/attachments",
        files=[("files", ("x.txt", b"x", "text/plain"))],
        headers=outsider.headers,
    )
    assert response.status_code == 404


def test_media_rejects_escaping_paths(client):
    response = client.get("/media/..%2F..%2Fgigchat.db")
    assert response.status_code in (403, 404)


def test_media_not_found(client):
    response = client.get("/media/1/missing.png")
    assert response.status_code == 404


@pytest.fixture
def locked_store(monkeypatch):
    # Token lookups go through Session.get, queries through Session.exec
    def locked(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(Session, "exec", locked)


def test_list_conversations_store_failure(client, conversation_id, freelancer, locked_store):
    response = client.get("/api/conversations/", headers=freelancer.headers)
    assert response.status_code == 502
    assert response.json()["detail"] == "Could not load conversations"


def test_get_messages_store_failure(client, conversation_id, freelancer, locked_store):
    response = client.get(f"/api/conversations/{conversation_id}/messages", headers=freelancer.headers)
    assert response.status_code == 502
