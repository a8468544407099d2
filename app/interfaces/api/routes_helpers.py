"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from app.application.use_cases.notifications import (
    NoChannelsAllowedError,
    NotificationNotFoundError,
    NotificationValidationError,
    TemplateNotFoundError,
)


def to_http_exception(exc: Exception) -> HTTPException:
    """Translate a notification engine error into the matching HTTP error."""

    if isinstance(exc, NotificationValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"field": exc.field, "message": exc.message},
        )
    if isinstance(exc, NoChannelsAllowedError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, (NotificationNotFoundError, TemplateNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    raise TypeError(f"Unsupported error type: {type(exc).__name__}")
