"""
Voting endpoints.

Votes are attributed to a fingerprint of the caller's network address. In
quota mode each address gets one vote per contestant per UTC day and a
daily cap; in open mode every vote counts.
"""

from typing import Annotated, Optional
from uuid import uuid4

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request

from api.deps import get_voter_fingerprint, get_voting_service, rate_limit_vote
from models.vote import VoteSource
from schemas.common import ApiResponse
from schemas.contestant import ContestantListResponse
from schemas.vote import VoteResult, VoteSubmit, VotingStats, VotingStatus
from services.admission_policy import VoteRequest
from services.voting_service import VotingService

router = APIRouter()

MAX_REQUEST_ID_LENGTH = 100


@router.get("/contestants", response_model=ContestantListResponse)
async def get_contestants(
    service: Annotated[VotingService, Depends(get_voting_service)],
) -> ContestantListResponse:
    """Active contestants, most votes first, with live vote percentages."""
    return await service.get_contestants()


@router.post(
    "/submit",
    response_model=ApiResponse[VoteResult],
    dependencies=[Depends(rate_limit_vote)],
)
async def submit_vote(
    vote_data: VoteSubmit,
    request: Request,
    background_tasks: BackgroundTasks,
    service: Annotated[VotingService, Depends(get_voting_service)],
    voter_fingerprint: Annotated[str, Depends(get_voter_fingerprint)],
    x_request_id: Annotated[Optional[str], Header(alias="X-Request-ID")] = None,
) -> ApiResponse[VoteResult]:
    """
    Cast a vote for a contestant.

    Rejections carry a machine-checkable reason:
    - not_found (404): unknown or inactive contestant
    - already_voted (400): already voted for this contestant today
    - daily_limit_reached (400): daily cap used up

    The voteUpdate broadcast runs after the response has been prepared.
    """
    outcome = await service.submit_vote(
        VoteRequest(
            contestant_id=vote_data.contestant_id,
            voter_fingerprint=voter_fingerprint,
            request_id=(x_request_id or str(uuid4()))[:MAX_REQUEST_ID_LENGTH],
            user_agent=request.headers.get("User-Agent", ""),
            source=vote_data.platform or VoteSource.WEBSITE,
        )
    )

    if not outcome.accepted:
        raise outcome.to_error()

    if outcome.update is not None:
        background_tasks.add_task(service.broadcast, outcome.update)

    return ApiResponse(
        message=outcome.message,
        data=VoteResult(contestant=outcome.contestant, remaining_votes=outcome.remaining_votes),
    )


@router.get("/status", response_model=ApiResponse[VotingStatus])
async def check_voting_status(
    service: Annotated[VotingService, Depends(get_voting_service)],
    voter_fingerprint: Annotated[str, Depends(get_voter_fingerprint)],
) -> ApiResponse[VotingStatus]:
    """The caller's votes today and remaining allowance."""
    return ApiResponse(data=await service.get_voting_status(voter_fingerprint))


@router.get("/stats", response_model=ApiResponse[VotingStats])
async def get_voting_stats(
    service: Annotated[VotingService, Depends(get_voting_service)],
) -> ApiResponse[VotingStats]:
    """Total valid votes, active contestants, last 24 hours and the top three."""
    return ApiResponse(data=await service.get_voting_stats())
