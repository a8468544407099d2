"""Application factory for the notification delivery service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.application.use_cases.notifications.service import NotificationService
from app.config import get_settings
from app.infrastructure.database import SessionLocal, engine, initialize_database
from app.infrastructure.notifications import notification_manager, notification_publisher
from app.infrastructure.notifications.factory import (
    build_http_client,
    build_notification_service,
)
from app.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine on startup, resume persisted jobs and stop timers on exit."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    http_client = None
    service: NotificationService | None = getattr(app.state, "notification_service", None)
    owns_service = service is None
    if service is None:
        initialize_database()
        http_client = build_http_client(settings)
        service = build_notification_service(settings, SessionLocal, http_client=http_client)
        app.state.notification_service = service

    detach = notification_publisher.attach(service.bus)
    resumed = await service.resume_pending_jobs()
    logger.info("Notification service started (%s jobs resumed)", resumed)
    try:
        yield
    finally:
        detach()
        await notification_manager.close_all()
        await service.shutdown()
        if http_client is not None:
            await http_client.aclose()
        if owns_service:
            engine.dispose()


def create_app(notification_service: NotificationService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing ``notification_service`` skips database and sender wiring, which is
    how tests run the API against in-memory stores.
    """

    app = FastAPI(title="Notification Service", lifespan=lifespan)
    if notification_service is not None:
        app.state.notification_service = notification_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
