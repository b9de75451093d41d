"""Messaging subsystem factory."""


def build_inbox(viewer_id: int):
    """Wire an Inbox for one viewer against the configured store and object store."""
    from gigchat.repositories.conversations import ConversationRepository
    from gigchat.repositories.messages import MessageRepository
    from gigchat.services.messaging.inbox import Inbox
    from gigchat.services.messaging.uploader import AttachmentUploader
    from gigchat.services.storage import get_object_store

    return Inbox(
        viewer_id=viewer_id,
        conversations=ConversationRepository(),
        messages=MessageRepository(),
        uploader=AttachmentUploader(get_object_store()),
    )
