"""
Contestant repository for database operations.

Vote counters are only ever changed with single UPDATE statements
(votes = votes + 1), never read-modify-write from application memory.
"""

from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.contestant import Contestant
from models.vote import VoteRecord


class ContestantRepository:
    """Repository for contestant database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    async def get_by_id(self, contestant_id: str) -> Optional[Contestant]:
        """Get a contestant by ID."""
        result = await self.db.execute(select(Contestant).where(Contestant.id == contestant_id))
        return result.scalar_one_or_none()

    async def get_active_by_id(self, contestant_id: str) -> Optional[Contestant]:
        """Get a contestant by ID only if it is eligible for votes."""
        result = await self.db.execute(
            select(Contestant).where(
                Contestant.id == contestant_id,
                Contestant.is_active == True,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()

    async def list_active(self) -> list[Contestant]:
        """Active contestants, most votes first."""
        result = await self.db.execute(
            select(Contestant)
            .where(Contestant.is_active == True)  # noqa: E712
            .order_by(Contestant.votes.desc(), Contestant.name.asc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[Contestant]:
        """All contestants, newest first (admin view)."""
        result = await self.db.execute(select(Contestant).order_by(Contestant.created_at.desc()))
        return list(result.scalars().all())

    async def get_votes(self, contestant_id: str) -> Optional[int]:
        """Read the live counter straight from the store."""
        result = await self.db.execute(select(Contestant.votes).where(Contestant.id == contestant_id))
        return result.scalar_one_or_none()

    async def total_active_votes(self) -> int:
        """Live sum of the counters of all active contestants."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(Contestant.votes), 0)).where(
                Contestant.is_active == True  # noqa: E712
            )
        )
        return int(result.scalar() or 0)

    async def total_votes(self) -> int:
        """Sum of all counters, active or not."""
        result = await self.db.execute(select(func.coalesce(func.sum(Contestant.votes), 0)))
        return int(result.scalar() or 0)

    async def count_active(self) -> int:
        """Number of active contestants."""
        result = await self.db.execute(
            select(func.count(Contestant.id)).where(Contestant.is_active == True)  # noqa: E712
        )
        return result.scalar() or 0

    async def top_active(self, limit: int = 3) -> list[Contestant]:
        """Leaderboard of active contestants."""
        result = await self.db.execute(
            select(Contestant)
            .where(Contestant.is_active == True)  # noqa: E712
            .order_by(Contestant.votes.desc(), Contestant.name.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def increment_votes(self, contestant_id: str) -> bool:
        """
        Atomically add one vote to an active contestant.

        Returns False if the contestant no longer exists or was deactivated.
        """
        result = await self.db.execute(
            update(Contestant)
            .where(
                Contestant.id == contestant_id,
                Contestant.is_active == True,  # noqa: E712
            )
            .values(votes=Contestant.votes + 1, updated_at=func.now())
        )
        return self._get_rowcount(result) > 0

    async def decrement_votes(self, contestant_id: str) -> bool:
        """
        Administrative decrement, never below zero.

        Returns False if the contestant doesn't exist or is already at zero.
        """
        result = await self.db.execute(
            update(Contestant)
            .where(Contestant.id == contestant_id, Contestant.votes > 0)
            .values(votes=Contestant.votes - 1, updated_at=func.now())
        )
        return self._get_rowcount(result) > 0

    async def create(
        self,
        name: str,
        description: str,
        image: str,
        season: str = "current",
        instagram_url: Optional[str] = None,
        twitter_url: Optional[str] = None,
        facebook_url: Optional[str] = None,
        votes: int = 0,
        is_active: bool = True,
    ) -> Contestant:
        """Create a contestant."""
        contestant = Contestant(
            id=str(uuid4()),
            name=name,
            description=description,
            image=image,
            season=season,
            instagram_url=instagram_url,
            twitter_url=twitter_url,
            facebook_url=facebook_url,
            votes=votes,
            is_active=is_active,
        )

        self.db.add(contestant)
        await self.db.flush()
        await self.db.refresh(contestant)

        return contestant

    async def update(self, contestant_id: str, update_fields: dict) -> Optional[Contestant]:
        """Update a contestant with the given fields. The vote counter is not editable here."""
        contestant = await self.get_by_id(contestant_id)
        if not contestant:
            return None

        for field, value in update_fields.items():
            if field != "votes" and hasattr(contestant, field):
                setattr(contestant, field, value)

        await self.db.flush()
        await self.db.refresh(contestant)

        return contestant

    async def delete(self, contestant_id: str) -> bool:
        """
        Delete a contestant.

        Its ledger rows stay and are marked invalid: they drop out of the
        stats but still count toward each voter's daily quota.
        """
        contestant = await self.get_by_id(contestant_id)
        if not contestant:
            return False

        await self.db.execute(
            update(VoteRecord).where(VoteRecord.contestant_id == contestant_id).values(is_valid=False)
        )
        await self.db.delete(contestant)
        await self.db.flush()
        return True
