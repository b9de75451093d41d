from fastapi import HTTPException

from gigchat.core.errors import (
    AttachmentTooLarge,
    AuthenticationRequired,
    FetchError,
    MessagingError,
    NotFound,
    PermissionDenied,
    SubscriptionError,
    UploadError,
    ValidationError,
)

_STATUS_CODES: list[tuple[type[MessagingError], int]] = [
    (AuthenticationRequired, 401),
    (AttachmentTooLarge, 413),
    (ValidationError, 422),
    (NotFound, 404),
    (PermissionDenied, 403),
    (UploadError, 502),
    (FetchError, 502),
    (SubscriptionError, 503),
]


def http_error(error: MessagingError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(status_code=500, detail=error.message)
