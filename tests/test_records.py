"""Tests for row -> typed view mapping at the store boundary."""

from datetime import datetime, timezone

import pytest

from gigchat.core.errors import FetchError, MalformedRecordError
from gigchat.services.messaging.records import conversation_from_row, message_from_row


def _message_row(**overrides):
    row = {
        "id": 7,
        "conversation_id": 3,
        "sender_id": 1,
        "sender": {"id": 1, "name": "Acme Studio", "avatar_url": None},
        "content": "Draft attached",
        "attachments": [
            {"url": "http://cdn/x.pdf", "filename": "x.pdf", "content_type": "application/pdf", "size": 12}
        ],
        "created_at": datetime(2024, 5, 1, 12, 0, 0),
    }
    row.update(overrides)
    return row


def test_message_row_maps_to_view():
    message = message_from_row(_message_row())
    assert message.id == 7
    assert message.sender.name == "Acme Studio"
    assert message.attachments[0].filename == "x.pdf"


def test_naive_timestamps_are_treated_as_utc():
    message = message_from_row(_message_row())
    assert message.created_at.tzinfo is not None
    assert message.created_at == datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_missing_field_is_rejected():
    row = _message_row()
    del row["conversation_id"]
    with pytest.raises(MalformedRecordError) as exc:
        message_from_row(row)
    assert exc.value.kind == "message"


def test_attachment_without_url_is_rejected():
    row = _message_row(attachments=[{"url": "", "filename": "x.pdf", "content_type": "application/pdf", "size": 1}])
    with pytest.raises(MalformedRecordError):
        message_from_row(row)


def test_non_mapping_row_is_rejected():
    with pytest.raises(MalformedRecordError):
        message_from_row(None)  # type: ignore[arg-type]


def test_negative_unread_count_is_rejected():
    row = {
        "id": 1,
        "job": {"id": 2, "title": "Logo design"},
        "other_user": {"id": 5, "name": "Fran Lopez"},
        "last_message": None,
        "unread_count": -1,
        "updated_at": datetime.now(timezone.utc),
    }
    with pytest.raises(MalformedRecordError):
        conversation_from_row(row)


def test_malformed_record_is_a_fetch_error():
    assert issubclass(MalformedRecordError, FetchError)
