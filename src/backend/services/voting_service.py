"""
Voting service.

Runs a vote through admission, the ledger insert and the counter increment
as one database transaction, then computes the refreshed view. Broadcasting
is left to the caller so it can happen after the response is built.

    (day lock) -> admit -> record_vote -> (quota re-check) -> increment -> commit -> view

Rejections come back as a VoteOutcome, not an exception. Store failures are
translated by store_errors() into StoreUnavailableError / UnknownError.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import (
    DuplicateVoteError,
    NotFoundError,
    QuotaExceededError,
    VotingAppError,
    store_errors,
)
from core.security import create_day_key, utc_today
from repositories.contestant_repository import ContestantRepository
from repositories.vote_repository import VoteRepository
from schemas.contestant import ContestantListResponse, ContestantSnapshot
from schemas.vote import TopContestant, VotedContestant, VoteUpdateEvent, VotingStats, VotingStatus
from services.admission_policy import (
    CONTESTANT_NOT_FOUND_MESSAGE,
    AdmissionDecision,
    AdmissionPolicy,
    RejectReason,
    VoteRequest,
    get_admission_policy,
)
from services.aggregation import VoteAggregator, to_snapshot
from services.realtime import Broadcaster

logger = structlog.get_logger(__name__)

VOTE_ACCEPTED_MESSAGE = "Vote submitted successfully"
UNTRACKED_STATUS_MESSAGE = "Votes are not tracked server-side in open voting mode"
TOP_CONTESTANTS_LIMIT = 3
RECENT_VOTES_WINDOW = timedelta(hours=24)

_REASON_ERRORS: dict[RejectReason, type[VotingAppError]] = {
    RejectReason.NOT_FOUND: NotFoundError,
    RejectReason.ALREADY_VOTED: DuplicateVoteError,
    RejectReason.DAILY_LIMIT: QuotaExceededError,
}


@dataclass(frozen=True)
class VoteOutcome:
    """Result of a vote submission."""

    accepted: bool
    message: str
    reason: Optional[RejectReason] = None
    contestant: Optional[ContestantSnapshot] = None
    update: Optional[VoteUpdateEvent] = None
    remaining_votes: Optional[int] = None

    @classmethod
    def rejected(cls, decision: AdmissionDecision) -> "VoteOutcome":
        return cls(accepted=False, message=decision.message or "", reason=decision.reason)

    def to_error(self) -> VotingAppError:
        """The taxonomy error for a rejected outcome."""
        if self.accepted or self.reason is None:
            raise ValueError("Accepted outcomes have no error")
        return _REASON_ERRORS[self.reason](self.message)


class VotingService:
    """Vote submission and the voting read paths."""

    def __init__(
        self,
        db: AsyncSession,
        broadcaster: Optional[Broadcaster] = None,
        mode: Optional[str] = None,
        daily_limit: Optional[int] = None,
    ):
        self.db = db
        self.contestants = ContestantRepository(db)
        self.votes = VoteRepository(db)
        self.aggregator = VoteAggregator(db, broadcaster)
        self.policy: AdmissionPolicy = get_admission_policy(
            mode or settings.VOTING_MODE,
            self.contestants,
            self.votes,
            daily_limit=daily_limit if daily_limit is not None else settings.DAILY_VOTE_LIMIT,
        )

    async def get_contestants(self) -> ContestantListResponse:
        """Active contestants, most votes first, with live percentages."""
        async with store_errors("get_contestants"):
            snapshots, total_votes = await self.aggregator.board()
        return ContestantListResponse(
            data=snapshots,
            total_votes=total_votes,
            total_contestants=len(snapshots),
        )

    async def submit_vote(self, request: VoteRequest) -> VoteOutcome:
        """
        Admit and apply one vote.

        The ledger insert and the counter increment commit together or not at
        all. The percentage in the outcome is computed after the commit, so it
        includes this vote.
        """
        async with store_errors("submit_vote"):
            if self.policy.daily_limit is not None:
                await self.votes.lock_day(request.day_key)

            decision = await self.policy.admit(request)
            if not decision.accepted:
                await self.db.rollback()
                return self._reject(request, decision)

            record = await self.votes.record_vote(
                contestant_id=request.contestant_id,
                voter_fingerprint=request.voter_fingerprint,
                day_key=decision.day_key,
                admission_key=decision.admission_key,
                user_agent=request.user_agent,
                source=request.source,
            )
            if record is None:
                # Lost a race with an identical vote; the constraint decided.
                return self._reject(request, self.policy.duplicate_rejection(decision.day_key))

            if self.policy.daily_limit is not None:
                # Concurrent votes for different contestants can all pass admission.
                votes_today = await self.votes.count_for_day(decision.day_key)
                if votes_today > self.policy.daily_limit:
                    await self.db.rollback()
                    return self._reject(request, self.policy.limit_rejection(decision.day_key))

            if not await self.aggregator.apply_vote(request.contestant_id):
                await self.db.rollback()
                return self._reject(
                    request,
                    AdmissionDecision.reject(RejectReason.NOT_FOUND, CONTESTANT_NOT_FOUND_MESSAGE),
                )

            await self.db.commit()

            update = await self.aggregator.current_view(request.contestant_id)
            contestant = await self.contestants.get_by_id(request.contestant_id)
            if update is None or contestant is None:
                # Deleted between commit and read
                return self._reject(
                    request,
                    AdmissionDecision.reject(RejectReason.NOT_FOUND, CONTESTANT_NOT_FOUND_MESSAGE),
                )
            await self.db.refresh(contestant)

            remaining_votes = None
            if self.policy.daily_limit is not None:
                votes_today = await self.votes.count_for_day(decision.day_key)
                remaining_votes = max(0, self.policy.daily_limit - votes_today)

        logger.info(
            "vote_accepted",
            contestant_id=request.contestant_id,
            voter=request.voter_fingerprint[:8],
            new_vote_count=update.new_vote_count,
            mode=self.policy.mode,
        )

        return VoteOutcome(
            accepted=True,
            message=VOTE_ACCEPTED_MESSAGE,
            contestant=to_snapshot(contestant, update.total_votes),
            update=update,
            remaining_votes=remaining_votes,
        )

    async def broadcast(self, update: VoteUpdateEvent) -> bool:
        """Publish a voteUpdate for an accepted vote. Never raises."""
        return await self.aggregator.broadcast(update)

    async def get_voting_status(self, voter_fingerprint: str, day: Optional[date] = None) -> VotingStatus:
        """
        The caller's votes today.

        Only quota mode tracks voters; open mode answers with a static,
        untracked status.
        """
        if not self.policy.tracks_voters:
            return VotingStatus(tracked=False, message=UNTRACKED_STATUS_MESSAGE)

        day_key = create_day_key(voter_fingerprint, day or utc_today())
        async with store_errors("get_voting_status"):
            rows = await self.votes.list_for_day(day_key)

        daily_limit = self.policy.daily_limit or 0
        return VotingStatus(
            tracked=True,
            daily_vote_count=len(rows),
            remaining_votes=max(0, daily_limit - len(rows)),
            daily_limit=daily_limit,
            voted_contestants=[
                VotedContestant(
                    contestant_id=vote.contestant_id,
                    contestant_name=name,
                    vote_time=vote.voted_at,
                )
                for vote, name in rows
            ],
        )

    async def get_voting_stats(self) -> VotingStats:
        """Totals, the trailing 24 hours and the top three contestants."""
        since = datetime.now(timezone.utc) - RECENT_VOTES_WINDOW
        async with store_errors("get_voting_stats"):
            total_votes = await self.votes.count_valid()
            active_contestants = await self.contestants.count_active()
            recent_votes = await self.votes.count_valid_since(since)
            top = await self.contestants.top_active(limit=TOP_CONTESTANTS_LIMIT)

        return VotingStats(
            total_votes=total_votes,
            active_contestants=active_contestants,
            recent_votes=recent_votes,
            top_contestants=[TopContestant(id=c.id, name=c.name, votes=c.votes) for c in top],
        )

    def _reject(self, request: VoteRequest, decision: AdmissionDecision) -> VoteOutcome:
        logger.info(
            "vote_rejected",
            contestant_id=request.contestant_id,
            voter=request.voter_fingerprint[:8],
            reason=decision.reason.value if decision.reason else None,
            mode=self.policy.mode,
        )
        return VoteOutcome.rejected(decision)
