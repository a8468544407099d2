"""FastAPI dependency utilities."""

from fastapi import Header, HTTPException, Request, status

from app.application.use_cases.notifications.service import NotificationService


def get_notification_service(request: Request) -> NotificationService:
    """Return the engine instance created by the application lifespan."""

    service = getattr(request.app.state, "notification_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification service is not ready",
        )
    return service


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the caller id forwarded by the authenticating gateway."""

    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()
