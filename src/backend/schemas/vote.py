"""
Vote-related Pydantic schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from models.vote import VoteSource
from schemas.common import CamelModel
from schemas.contestant import ContestantRead, ContestantSnapshot


class VoteSubmit(CamelModel):
    """Schema for casting a vote."""

    contestant_id: str = Field(..., min_length=1)
    platform: Optional[VoteSource] = None


class VoteResult(CamelModel):
    """Payload returned after an accepted vote."""

    contestant: ContestantSnapshot
    remaining_votes: Optional[int] = Field(
        None, description="Votes left today (quota mode only)"
    )


class VoteUpdateEvent(CamelModel):
    """Real-time event published after every accepted vote."""

    contestant_id: str
    new_vote_count: int
    vote_percentage: int
    total_votes: int


class BoardUpdateEvent(CamelModel):
    """Real-time event published after an admin changes the contestant board."""

    contestants: list[ContestantRead]
    total_votes: int


class VotedContestant(CamelModel):
    """A contestant the caller voted for today."""

    contestant_id: str
    contestant_name: Optional[str] = None
    vote_time: datetime


class VotingStatus(CamelModel):
    """The caller's voting status for today."""

    tracked: bool = Field(..., description="Whether votes are tracked server-side")
    daily_vote_count: Optional[int] = None
    remaining_votes: Optional[int] = None
    daily_limit: Optional[int] = None
    voted_contestants: list[VotedContestant] = Field(default_factory=list)
    message: Optional[str] = None


class TopContestant(CamelModel):
    """Leaderboard entry."""

    id: str
    name: str
    votes: int


class VotingStats(CamelModel):
    """Aggregate voting statistics."""

    total_votes: int
    active_contestants: int
    recent_votes: int = Field(..., description="Valid votes in the trailing 24 hours")
    top_contestants: list[TopContestant]
