"""
Error taxonomy for the voting backend.

Every failure that can reach an external caller is one of the classes below.
Each carries an HTTP-style status code and a stable, machine-checkable
reason string; the exception handlers in main.py render them as
{"success": false, "message": ..., "reason": ...}.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from sqlalchemy.exc import (
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = structlog.get_logger(__name__)


class VotingAppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    reason: str = "internal_error"
    default_message: str = "An internal server error occurred. Please try again later."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message, "reason": self.reason}


class ValidationError(VotingAppError):
    """Missing or malformed request fields."""

    status_code = 400
    reason = "validation_error"
    default_message = "Invalid request"


class NotFoundError(VotingAppError):
    """Unknown or inactive resource."""

    status_code = 404
    reason = "not_found"
    default_message = "Resource not found"


class QuotaExceededError(VotingAppError):
    """The caller used up the daily vote allowance."""

    status_code = 400
    reason = "daily_limit_reached"
    default_message = "Daily vote limit reached"


class DuplicateVoteError(VotingAppError):
    """A vote for this contestant was already recorded for the caller today."""

    status_code = 400
    reason = "already_voted"
    default_message = "You have already voted for this contestant today"


class StoreUnavailableError(VotingAppError):
    """The durable store is unreachable or timed out."""

    status_code = 503
    reason = "store_unavailable"
    default_message = "Database temporarily unavailable"


class UnknownError(VotingAppError):
    """Anything else. The message is always the sanitized default."""

    status_code = 500
    reason = "internal_error"


_UNAVAILABLE_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
)


@asynccontextmanager
async def store_errors(operation: str) -> AsyncGenerator[None, None]:
    """
    Translate store failures raised inside the block into the error taxonomy.

    Usage:
        async with store_errors("submit_vote"):
            await repo.do_something()

    Errors that are already part of the taxonomy pass through untouched.
    """
    try:
        yield
    except VotingAppError:
        raise
    except (*_UNAVAILABLE_ERRORS, asyncio.TimeoutError, ConnectionError) as e:
        logger.error(
            "store_unavailable",
            operation=operation,
            error_type=type(e).__name__,
        )
        raise StoreUnavailableError() from e
    except SQLAlchemyError as e:
        logger.error(
            "store_error",
            operation=operation,
            error_type=type(e).__name__,
        )
        raise UnknownError() from e
