"""
FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import Settings, get_settings
from ..core.logging import configure_logging, get_logger
from ..storage import DocumentStore
from ..utils.date import Clock
from .container import ServiceContainer
from .errors import register_exception_handlers
from .handlers import BookingHandler, HealthHandler
from .middleware import LoggingMiddleware, SecurityHeaders
from .webhooks import MetaWebhook, TwilioWebhook

logger = get_logger("harmony")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    container = ServiceContainer.build(settings, store=store, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s %s starting", settings.app_name, settings.app_version)
        yield
        await container.store.close()

    app = FastAPI(
        title=settings.app_name,
        description=f"Appointment booking for {settings.clinic_name}",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeaders)
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)

    health_handler = HealthHandler(container)
    booking_handler = BookingHandler(container)
    meta_webhook = MetaWebhook(container)
    twilio_webhook = TwilioWebhook(container)

    app.include_router(health_handler.router, prefix="/health", tags=["health"])
    app.include_router(booking_handler.router, prefix="/api/v1", tags=["booking"])
    app.include_router(meta_webhook.router, prefix="/webhook", tags=["webhooks"])
    app.include_router(twilio_webhook.router, prefix="/webhook", tags=["webhooks"])

    return app
