"""
Contestant model.

Holds the live vote counter (the Aggregate Store). Vote percentages are
never stored; they are derived from the live counters on every read.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Contestant(Base):
    """
    A contestant fans can vote for.

    votes only increases through voting (atomic UPDATE ... SET votes = votes + 1).
    Inactive contestants keep their counter but are not eligible for votes and
    are excluded from percentage totals.
    """

    __tablename__ = "contestants"

    __table_args__ = (
        Index("ix_contestants_active_votes", "is_active", "votes"),
        Index("ix_contestants_season_votes", "season", "votes"),
        CheckConstraint("votes >= 0", name="ck_contestants_votes_non_negative"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str] = mapped_column(String(500))
    image: Mapped[str] = mapped_column(String(500))

    # Live vote counter
    votes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    season: Mapped[str] = mapped_column(String(50), default="current")

    elimination_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    entry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    # Social links
    instagram_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    twitter_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    facebook_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<Contestant(id={self.id}, name={self.name}, votes={self.votes})>"
