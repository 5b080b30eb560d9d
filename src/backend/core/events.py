"""
Application lifecycle event handlers.

Manages startup and shutdown of the database engine and the real-time
notification hub.
"""

from typing import Callable

import structlog
from fastapi import FastAPI

from core.config import settings
from db.session import close_db, init_db
from services.realtime import WebSocketHub

logger = structlog.get_logger(__name__)


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        logger.info("app_starting", app_name=settings.APP_NAME, voting_mode=settings.VOTING_MODE)

        # Create missing tables
        await init_db()

        # Tests may install their own channel before startup
        if getattr(app.state, "notification_channel", None) is None:
            app.state.notification_channel = WebSocketHub()

        logger.info("app_started")

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("app_stopping")

        # Close database connections
        await close_db()

        logger.info("app_stopped")

    return stop_app
