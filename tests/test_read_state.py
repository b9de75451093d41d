"""Tests for unread counters and mark-read."""

import logging

from gigchat.core.errors import FetchError
from gigchat.services.messaging.directory import ConversationDirectory
from gigchat.services.messaging.read_state import ReadStateTracker


def _unread(conversations, conversation_id, viewer_id):
    return conversations.get_for_viewer(conversation_id, viewer_id)["unread_count"]


def test_insert_counts_unread_for_the_other_participant(conversations, messages, conversation_id, business, freelancer):
    messages.insert(conversation_id, business.id, "one")
    messages.insert(conversation_id, business.id, "two")
    messages.insert(conversation_id, freelancer.id, "reply")

    assert _unread(conversations, conversation_id, freelancer.id) == 2
    assert _unread(conversations, conversation_id, business.id) == 1


def test_mark_read_zeroes_counter(conversations, messages, conversation_id, business, freelancer):
    for text in ("a", "b", "c"):
        messages.insert(conversation_id, business.id, text)
    directory = ConversationDirectory(freelancer.id, conversations)
    directory.load()
    tracker = ReadStateTracker(freelancer.id, conversations, directory)

    tracker.mark_read(conversation_id)

    assert _unread(conversations, conversation_id, freelancer.id) == 0
    assert directory.get(conversation_id).unread_count == 0


def test_mark_read_leaves_other_participant_alone(conversations, messages, conversation_id, business, freelancer):
    messages.insert(conversation_id, business.id, "ping")
    messages.insert(conversation_id, freelancer.id, "pong")
    directory = ConversationDirectory(freelancer.id, conversations)

    ReadStateTracker(freelancer.id, conversations, directory).mark_read(conversation_id)

    assert _unread(conversations, conversation_id, business.id) == 1


def test_mark_read_twice_is_harmless(conversations, messages, conversation_id, business, freelancer):
    messages.insert(conversation_id, business.id, "ping")
    directory = ConversationDirectory(freelancer.id, conversations)
    directory.load()
    tracker = ReadStateTracker(freelancer.id, conversations, directory)

    tracker.mark_read(conversation_id)
    tracker.mark_read(conversation_id)

    assert _unread(conversations, conversation_id, freelancer.id) == 0
    assert directory.get(conversation_id).unread_count == 0


class _BrokenConversations:
    def __init__(self, real):
        self._real = real

    def list_for_viewer(self, viewer_id):
        return self._real.list_for_viewer(viewer_id)

    def reset_unread(self, conversation_id, viewer_id):
        raise FetchError("store unavailable")


def test_store_failure_is_logged_not_rolled_back(conversations, messages, conversation_id, business, freelancer, caplog):
    messages.insert(conversation_id, business.id, "ping")
    broken = _BrokenConversations(conversations)
    directory = ConversationDirectory(freelancer.id, broken)  # type: ignore[arg-type]
    directory.load()
    tracker = ReadStateTracker(freelancer.id, broken, directory)  # type: ignore[arg-type]

    with caplog.at_level(logging.ERROR):
        tracker.mark_read(conversation_id)

    assert directory.get(conversation_id).unread_count == 0
    assert "store unavailable" in caplog.text
    assert _unread(conversations, conversation_id, freelancer.id) == 1
