"""
Shared dependencies for API endpoints.

Includes:
- Service wiring (database session, notification channel, broadcaster)
- Voter identity derived from the caller's address
- Admin API key guard
- Rate limiting (per address, fixed window)
"""

from typing import Annotated, Optional

import structlog
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.security import generate_voter_fingerprint, get_client_address, verify_admin_key
from db.session import get_db
from services.blog_service import BlogService
from services.rate_limiter import FixedWindowRateLimiter, rate_limiter
from services.realtime import Broadcaster, NotificationChannel
from services.voting_service import VotingService

logger = structlog.get_logger(__name__)


# =============================================================================
# Service Wiring
# =============================================================================


def get_notification_channel(request: Request) -> Optional[NotificationChannel]:
    """The process's notification channel, installed on app.state at startup."""
    return getattr(request.app.state, "notification_channel", None)


def get_broadcaster(
    channel: Annotated[Optional[NotificationChannel], Depends(get_notification_channel)],
) -> Broadcaster:
    """Fire-and-forget publisher on the notification channel."""
    return Broadcaster(channel)


def get_voting_service(
    db: AsyncSession = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> VotingService:
    """Voting service bound to the request's session."""
    return VotingService(db, broadcaster)


def get_blog_service(
    db: AsyncSession = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> BlogService:
    """Blog service bound to the request's session."""
    return BlogService(db, broadcaster)


# =============================================================================
# Voter Identity
# =============================================================================


def get_voter_fingerprint(request: Request) -> str:
    """
    Derive the caller's voter fingerprint from their network address.

    Advisory only: callers behind one address share a fingerprint.
    """
    return generate_voter_fingerprint(get_client_address(request))


# =============================================================================
# Admin Access
# =============================================================================


async def require_admin(
    x_admin_key: Annotated[Optional[str], Header(alias="X-Admin-Key")] = None,
) -> None:
    """
    Ensure the request carries the admin API key.

    Raises:
        HTTPException: 503 when no admin key is configured, 403 on a missing
        or wrong key.
    """
    if not settings.ADMIN_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API is not configured",
        )

    if not verify_admin_key(x_admin_key):
        logger.warning("admin_access_denied")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )


# =============================================================================
# Rate Limiting
# =============================================================================


class RateLimiter:
    """
    Rate limiter dependency for API endpoints.

    Fixed window per caller address, counted in this process.
    """

    def __init__(
        self,
        requests: int = 60,
        window_seconds: int = 60,
        key_prefix: str = "api",
        message: str = "Rate limit exceeded. Please try again later.",
        limiter: FixedWindowRateLimiter = rate_limiter,
    ):
        self.requests = requests
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix
        self.message = message
        self.limiter = limiter

    async def __call__(self, request: Request) -> None:
        """
        Check rate limit for the current request.

        Raises HTTPException 429 if rate limit exceeded.
        """
        identifier = self._get_identifier(request)
        key = f"{self.key_prefix}:{identifier}"

        result = await self.limiter.check_rate_limit(key, self.requests, self.window_seconds)

        if not result.allowed:
            logger.warning(
                "rate_limit_exceeded",
                identifier=identifier[:20],
                key_prefix=self.key_prefix,
                limit=self.requests,
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=self.message,
                headers={
                    "Retry-After": str(result.retry_after),
                    "X-RateLimit-Limit": str(self.requests),
                    "X-RateLimit-Remaining": "0",
                },
            )

        request.state.rate_limit_remaining = result.remaining
        request.state.rate_limit_limit = self.requests

    def _get_identifier(self, request: Request) -> str:
        """Get unique identifier for rate limiting."""
        return f"ip:{get_client_address(request) or 'unknown'}"


# Pre-configured rate limiters
rate_limit_default = RateLimiter(requests=settings.RATE_LIMIT_PER_MINUTE)
rate_limit_vote = RateLimiter(
    requests=settings.VOTE_RATE_LIMIT_PER_MINUTE,
    key_prefix="vote",
    message="Too many votes, please slow down.",
)
rate_limit_comment = RateLimiter(
    requests=settings.COMMENT_RATE_LIMIT,
    window_seconds=settings.COMMENT_RATE_WINDOW_SECONDS,
    key_prefix="comment",
    message="Too many comments, please try again later.",
)
