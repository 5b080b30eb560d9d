"""
Vote ledger repository.

The existence checks here are fast-path hints for friendly messages. The
authoritative duplicate guard is the UNIQUE (admission_key, contestant_id)
constraint: record_vote() reports a violation as a None result instead of
raising, so callers can treat it as an ordinary rejection.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.contestant import Contestant
from models.vote import VoteRecord, VoteSource

logger = structlog.get_logger(__name__)

# PostgreSQL unique_violation
UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """Whether an IntegrityError came from a UNIQUE constraint (not e.g. a foreign key)."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE

    message = str(orig if orig is not None else exc).lower()
    return "unique" in message or "duplicate key" in message


class VoteRepository:
    """Repository for vote ledger operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _dialect_name(self) -> str:
        bind = self.db.bind
        return bind.dialect.name if bind is not None else ""

    async def lock_day(self, day_key: str) -> None:
        """
        Serialize quota accounting for one day key until the transaction ends.

        PostgreSQL takes a transaction-scoped advisory lock, so concurrent
        votes from one voter run admission one at a time. SQLite already
        serializes writers; the recount after the insert covers it there.
        """
        if self._dialect_name() != "postgresql":
            return
        await self.db.execute(select(func.pg_advisory_xact_lock(func.hashtext(day_key))))

    async def exists_for_day(self, day_key: str, contestant_id: str) -> bool:
        """Check if a vote for this contestant exists under a day key."""
        result = await self.db.execute(
            select(func.count(VoteRecord.id)).where(
                VoteRecord.day_key == day_key,
                VoteRecord.contestant_id == contestant_id,
            )
        )
        count = result.scalar() or 0
        return count > 0

    async def count_for_day(self, day_key: str) -> int:
        """Number of votes recorded under a day key, across all contestants."""
        result = await self.db.execute(
            select(func.count(VoteRecord.id)).where(VoteRecord.day_key == day_key)
        )
        return result.scalar() or 0

    async def list_for_day(self, day_key: str) -> list[tuple[VoteRecord, Optional[str]]]:
        """Votes under a day key with the contestant's name, oldest first."""
        result = await self.db.execute(
            select(VoteRecord, Contestant.name)
            .outerjoin(Contestant, Contestant.id == VoteRecord.contestant_id)
            .where(VoteRecord.day_key == day_key)
            .order_by(VoteRecord.voted_at.asc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def record_vote(
        self,
        contestant_id: str,
        voter_fingerprint: str,
        day_key: str,
        admission_key: str,
        user_agent: str = "",
        source: VoteSource = VoteSource.WEBSITE,
    ) -> Optional[VoteRecord]:
        """
        Insert a ledger row.

        Returns the new record, or None when the uniqueness constraint rejected
        it. On None the session's transaction has been rolled back, so this must
        be the first write of the transaction.
        """
        vote = VoteRecord(
            id=str(uuid4()),
            contestant_id=contestant_id,
            voter_fingerprint=voter_fingerprint,
            day_key=day_key,
            admission_key=admission_key,
            user_agent=user_agent[:500],
            source=source.value,
            is_valid=True,
        )

        self.db.add(vote)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            if not is_unique_violation(e):
                raise
            logger.info(
                "duplicate_vote_blocked_by_constraint",
                contestant_id=contestant_id,
                day_key=day_key[:10],
            )
            return None

        return vote

    async def count_valid(self) -> int:
        """Total valid votes in the ledger."""
        result = await self.db.execute(
            select(func.count(VoteRecord.id)).where(VoteRecord.is_valid == True)  # noqa: E712
        )
        return result.scalar() or 0

    async def count_valid_since(self, since: datetime) -> int:
        """Valid votes cast at or after a point in time."""
        result = await self.db.execute(
            select(func.count(VoteRecord.id)).where(
                VoteRecord.is_valid == True,  # noqa: E712
                VoteRecord.voted_at >= since,
            )
        )
        return result.scalar() or 0
