"""Custody API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CustodyError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and container built once on startup via lifespan; pending
      notification tasks drained on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from custody.api.error_handlers import register_error_handlers
from custody.api.routes import health, subscriptions
from custody.bootstrap import build_container
from custody.config import get_settings
from custody.infrastructure.database import init_db
from custody.infrastructure.directory import SqlDirectory
from custody.infrastructure.notification_sender import LoggingNotificationSender
from custody.infrastructure.observability import setup_logging
from custody.infrastructure.subscription_repository import SqlSubscriptionRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    directory = SqlDirectory(db)
    app.state.container = build_container(
        repository=SqlSubscriptionRepository(db),
        departments=directory,
        users=directory,
        sender=LoggingNotificationSender(),
    )
    logger.info("Custody API started")
    yield
    logger.info("Custody API shutting down")
    await app.state.container.bus.drain()
    await db.dispose()


app = FastAPI(
    title="Custody API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(subscriptions.router)

register_error_handlers(app)
