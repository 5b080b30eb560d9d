"""Schemas module initialization."""

from schemas.common import ApiResponse, MessageResponse
from schemas.contestant import ContestantListResponse, ContestantSnapshot
from schemas.vote import VoteResult, VoteSubmit, VoteUpdateEvent, VotingStats, VotingStatus

__all__ = [
    "ApiResponse",
    "MessageResponse",
    "ContestantListResponse",
    "ContestantSnapshot",
    "VoteResult",
    "VoteSubmit",
    "VoteUpdateEvent",
    "VotingStats",
    "VotingStatus",
]
