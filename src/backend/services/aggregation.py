"""
Vote aggregation and broadcast.

Applies accepted votes to the contestant counters and publishes the
refreshed view to the "voting-updates" room. Percentages are always derived
from the live counters of all active contestants, never from a cached total.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models.contestant import Contestant
from repositories.contestant_repository import ContestantRepository
from schemas.contestant import ContestantRead, ContestantSnapshot
from schemas.vote import BoardUpdateEvent, VoteUpdateEvent
from services.realtime import VOTING_ROOM, Broadcaster

VOTE_UPDATE_EVENT = "voteUpdate"


def compute_vote_percentage(votes: int, total_votes: int) -> int:
    """
    Share of total_votes held by votes, as an integer percentage.

    Rounds to the nearest integer with halves rounded up; 0 when there are no votes.
    """
    if total_votes <= 0:
        return 0
    # floor(votes * 100 / total + 0.5) in integer arithmetic
    return (votes * 200 + total_votes) // (total_votes * 2)


def to_snapshot(contestant: Contestant, total_votes: int) -> ContestantSnapshot:
    """Contestant with its percentage against a live total."""
    snapshot = ContestantSnapshot.model_validate(contestant)
    snapshot.vote_percentage = compute_vote_percentage(contestant.votes, total_votes)
    return snapshot


class VoteAggregator:
    """Applies votes to the aggregate counters and fans out the result."""

    def __init__(self, db: AsyncSession, broadcaster: Optional[Broadcaster] = None):
        self.db = db
        self.contestants = ContestantRepository(db)
        self.broadcaster = broadcaster

    async def apply_vote(self, contestant_id: str) -> bool:
        """
        Add one vote to the contestant's counter inside the current transaction.

        Returns False if the contestant is gone or inactive; the caller must
        roll back in that case.
        """
        return await self.contestants.increment_votes(contestant_id)

    async def current_view(self, contestant_id: str) -> Optional[VoteUpdateEvent]:
        """
        The contestant's count and percentage against the live total.

        Call after the increment has been committed so the percentage
        includes it.
        """
        votes = await self.contestants.get_votes(contestant_id)
        if votes is None:
            return None
        total_votes = await self.contestants.total_active_votes()
        return VoteUpdateEvent(
            contestant_id=contestant_id,
            new_vote_count=votes,
            vote_percentage=compute_vote_percentage(votes, total_votes),
            total_votes=total_votes,
        )

    async def board(self) -> tuple[list[ContestantSnapshot], int]:
        """All active contestants, most votes first, with percentages."""
        contestants = await self.contestants.list_active()
        total_votes = sum(c.votes for c in contestants)
        return [to_snapshot(c, total_votes) for c in contestants], total_votes

    async def broadcast(self, update: VoteUpdateEvent) -> bool:
        """Publish a voteUpdate. Never raises."""
        if self.broadcaster is None:
            return False
        return await self.broadcaster.publish(
            VOTE_UPDATE_EVENT,
            update.model_dump(mode="json", by_alias=True),
            room=VOTING_ROOM,
        )

    async def board_update(self) -> BoardUpdateEvent:
        """The full contestant list, active or not, for an administrative update."""
        contestants = await self.contestants.list_all()
        return BoardUpdateEvent(
            contestants=[ContestantRead.model_validate(c) for c in contestants],
            total_votes=sum(c.votes for c in contestants),
        )

    async def broadcast_board(self, event: BoardUpdateEvent) -> bool:
        """Publish a full-board voteUpdate. Never raises."""
        if self.broadcaster is None:
            return False
        return await self.broadcaster.publish(
            VOTE_UPDATE_EVENT,
            event.model_dump(mode="json", by_alias=True),
            room=VOTING_ROOM,
        )
