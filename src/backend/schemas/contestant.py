"""
Contestant schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.common import CamelModel


class ContestantCreate(CamelModel):
    """Schema for creating a contestant (admin)."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    image: str = Field(..., min_length=1, max_length=500)
    season: str = "current"
    instagram_url: Optional[str] = None
    twitter_url: Optional[str] = None
    facebook_url: Optional[str] = None


class ContestantUpdate(CamelModel):
    """Schema for updating a contestant (admin). Only provided fields change."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    image: Optional[str] = Field(None, min_length=1, max_length=500)
    season: Optional[str] = None
    is_active: Optional[bool] = None
    elimination_date: Optional[datetime] = None
    instagram_url: Optional[str] = None
    twitter_url: Optional[str] = None
    facebook_url: Optional[str] = None


class ContestantRead(CamelModel):
    """Stored contestant attributes."""

    id: str
    name: str
    description: str
    image: str
    votes: int
    is_active: bool
    season: str
    elimination_date: Optional[datetime] = None
    entry_date: Optional[datetime] = None
    instagram_url: Optional[str] = None
    twitter_url: Optional[str] = None
    facebook_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ContestantSnapshot(ContestantRead):
    """Contestant with its live vote percentage."""

    vote_percentage: int = Field(0, description="Share of all active votes, rounded to an integer")


class ContestantListResponse(CamelModel):
    """Active contestants ordered by votes."""

    success: bool = True
    data: list[ContestantSnapshot]
    total_votes: int
    total_contestants: int
