"""
Vote ledger model.

One row per accepted vote. Rows are never deleted; deleting a contestant
only marks its rows invalid.

DUPLICATE GUARD:
- day_key = "YYYY-MM-DD-<fingerprint>" (UTC date), the unit of quota accounting
- admission_key is what the store deduplicates on:
  - quota mode: admission_key == day_key
  - open mode: admission_key == day_key + "#" + request id
- UNIQUE (admission_key, contestant_id) is enforced by the database itself,
  so two racing requests cannot both insert, whatever the application checked
  beforehand.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class VoteSource(str, Enum):
    """Where a vote was cast from."""

    WEBSITE = "website"
    MOBILE = "mobile"
    API = "api"


class VoteRecord(Base):
    """An accepted vote for a contestant."""

    __tablename__ = "votes"

    __table_args__ = (
        UniqueConstraint("admission_key", "contestant_id", name="uq_votes_admission_key_contestant"),
        Index("ix_votes_contestant_voted_at", "contestant_id", "voted_at"),
        Index("ix_votes_valid_voted_at", "is_valid", "voted_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # No foreign key: rows outlive their contestant
    contestant_id: Mapped[str] = mapped_column(String(36), index=True)

    # Keyed hash of the caller's network address (may be empty)
    voter_fingerprint: Mapped[str] = mapped_column(String(64), default="")

    day_key: Mapped[str] = mapped_column(String(128), index=True)
    admission_key: Mapped[str] = mapped_column(String(200))

    voted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    # Free-form client metadata
    user_agent: Mapped[str] = mapped_column(String(500), default="")
    source: Mapped[str] = mapped_column(String(20), default=VoteSource.WEBSITE.value)

    is_valid: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<VoteRecord(contestant={self.contestant_id}, day_key={self.day_key[:10]}...)>"
