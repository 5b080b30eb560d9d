"""
Vote admission policies.

A policy looks at an incoming vote and decides whether it may be recorded,
before any counter is touched. Rejections are ordinary return values, not
exceptions.

Two deployment modes are supported (VOTING_MODE):

- quota: one vote per contestant per voter per UTC day, at most
  DAILY_VOTE_LIMIT votes per voter per day.
- open: every vote for an active contestant is accepted; repeat votes
  double count. Only the request throttle and a replayed X-Request-ID
  are rejected.

The checks made here are fast-path hints. The ledger's
UNIQUE (admission_key, contestant_id) constraint is the real duplicate guard
and is applied when the vote is recorded.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional
from uuid import uuid4

from core.security import create_day_key, utc_today
from models.vote import VoteSource
from repositories.contestant_repository import ContestantRepository
from repositories.vote_repository import VoteRepository

QUOTA_MODE = "quota"
OPEN_MODE = "open"


class RejectReason(str, Enum):
    """Why a vote was not admitted. Values are the public reason strings."""

    NOT_FOUND = "not_found"
    ALREADY_VOTED = "already_voted"
    DAILY_LIMIT = "daily_limit_reached"


CONTESTANT_NOT_FOUND_MESSAGE = "Contestant not found or inactive"
ALREADY_VOTED_MESSAGE = "You have already voted for this contestant today"
REPLAYED_REQUEST_MESSAGE = "This vote request has already been processed"


def daily_limit_message(limit: int) -> str:
    return f"Daily vote limit reached ({limit} votes per day)"


@dataclass(frozen=True)
class VoteRequest:
    """An incoming vote, with the caller identity already derived."""

    contestant_id: str
    voter_fingerprint: str
    request_id: str = field(default_factory=lambda: str(uuid4()))
    user_agent: str = ""
    source: VoteSource = VoteSource.WEBSITE
    day: Optional[date] = None

    @property
    def day_key(self) -> str:
        return create_day_key(self.voter_fingerprint, self.day or utc_today())


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of an admission check."""

    accepted: bool
    reason: Optional[RejectReason] = None
    message: Optional[str] = None
    day_key: str = ""
    admission_key: str = ""
    votes_today: int = 0

    @classmethod
    def accept(cls, day_key: str, admission_key: str, votes_today: int = 0) -> "AdmissionDecision":
        return cls(
            accepted=True,
            day_key=day_key,
            admission_key=admission_key,
            votes_today=votes_today,
        )

    @classmethod
    def reject(cls, reason: RejectReason, message: str, day_key: str = "") -> "AdmissionDecision":
        return cls(accepted=False, reason=reason, message=message, day_key=day_key)


class AdmissionPolicy(ABC):
    """Common checks shared by every mode."""

    mode: str = ""
    # Per-day cap enforced after the ledger insert; None means uncapped.
    daily_limit: Optional[int] = None
    # Whether per-voter daily state is meaningful to report back.
    tracks_voters: bool = False

    def __init__(self, contestants: ContestantRepository, votes: VoteRepository):
        self.contestants = contestants
        self.votes = votes

    async def admit(self, request: VoteRequest) -> AdmissionDecision:
        """Decide whether a vote may be recorded."""
        day_key = request.day_key
        contestant = await self.contestants.get_active_by_id(request.contestant_id)
        if contestant is None:
            return AdmissionDecision.reject(
                RejectReason.NOT_FOUND, CONTESTANT_NOT_FOUND_MESSAGE, day_key=day_key
            )
        return await self._admit_active(request, day_key)

    @abstractmethod
    async def _admit_active(self, request: VoteRequest, day_key: str) -> AdmissionDecision:
        """Mode-specific checks for a vote on an active contestant."""

    def duplicate_rejection(self, day_key: str) -> AdmissionDecision:
        """Decision for a vote the ledger constraint turned away."""
        return AdmissionDecision.reject(RejectReason.ALREADY_VOTED, ALREADY_VOTED_MESSAGE, day_key=day_key)

    def limit_rejection(self, day_key: str) -> AdmissionDecision:
        """Decision for a vote that would push the voter past the daily cap."""
        return AdmissionDecision.reject(
            RejectReason.DAILY_LIMIT,
            daily_limit_message(self.daily_limit or 0),
            day_key=day_key,
        )


class QuotaAdmissionPolicy(AdmissionPolicy):
    """One vote per contestant per day, capped at daily_limit votes per day."""

    mode = QUOTA_MODE
    tracks_voters = True

    def __init__(self, contestants: ContestantRepository, votes: VoteRepository, daily_limit: int = 3):
        super().__init__(contestants, votes)
        self.daily_limit = daily_limit

    async def _admit_active(self, request: VoteRequest, day_key: str) -> AdmissionDecision:
        # Cap first: once it is used up every vote that day is a limit rejection
        votes_today = await self.votes.count_for_day(day_key)
        if votes_today >= self.daily_limit:
            return self.limit_rejection(day_key)

        if await self.votes.exists_for_day(day_key, request.contestant_id):
            return self.duplicate_rejection(day_key)

        return AdmissionDecision.accept(day_key, admission_key=day_key, votes_today=votes_today)


class OpenAdmissionPolicy(AdmissionPolicy):
    """Every vote for an active contestant counts."""

    mode = OPEN_MODE

    async def _admit_active(self, request: VoteRequest, day_key: str) -> AdmissionDecision:
        return AdmissionDecision.accept(day_key, admission_key=f"{day_key}#{request.request_id}")

    def duplicate_rejection(self, day_key: str) -> AdmissionDecision:
        return AdmissionDecision.reject(RejectReason.ALREADY_VOTED, REPLAYED_REQUEST_MESSAGE, day_key=day_key)


def get_admission_policy(
    mode: str,
    contestants: ContestantRepository,
    votes: VoteRepository,
    daily_limit: int = 3,
) -> AdmissionPolicy:
    """Build the policy for a VOTING_MODE value."""
    if mode == QUOTA_MODE:
        return QuotaAdmissionPolicy(contestants, votes, daily_limit=daily_limit)
    if mode == OPEN_MODE:
        return OpenAdmissionPolicy(contestants, votes)
    raise ValueError(f"Unknown voting mode: {mode}")
