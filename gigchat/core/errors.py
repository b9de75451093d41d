"""Error taxonomy for the messaging subsystem.

None of these are retried automatically: each one ends the user action that
triggered it.
"""


class MessagingError(Exception):
    default_message = "Messaging error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequired(MessagingError):
    default_message = "Authentication required"


class ValidationError(MessagingError):
    """Input rejected before any backend call was made."""

    default_message = "Invalid input"


class AttachmentTooLarge(ValidationError):
    default_message = "Attachment is too large"


class FetchError(MessagingError):
    default_message = "Backend request failed"


class MalformedRecordError(FetchError):
    def __init__(self, kind: str, detail: object):
        self.kind = kind
        super().__init__(f"Malformed {kind} record: {detail}")


class UploadError(MessagingError):
    default_message = "Attachment upload failed"


class SubscriptionError(MessagingError):
    default_message = "Realtime subscription failed"


class NotFound(MessagingError):
    default_message = "Not found"


class ConversationNotFound(NotFound):
    default_message = "Conversation not found"


class PermissionDenied(MessagingError):
    default_message = "Not allowed"
