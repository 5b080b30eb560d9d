"""
Blog post and comment models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BlogCategory(str, Enum):
    """Blog post categories."""

    MEMES = "memes"
    ANALYSIS = "analysis"
    BEHIND_SCENES = "behind-scenes"
    UPDATES = "updates"
    NEWS = "news"


class BlogPost(Base):
    """A blog post with engagement counters."""

    __tablename__ = "blog_posts"

    __table_args__ = (
        Index("ix_blog_posts_published", "is_published", "published_at"),
        Index("ix_blog_posts_category_published", "category", "is_published", "published_at"),
        Index("ix_blog_posts_featured", "is_featured", "is_published"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    title: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(250), unique=True, index=True)
    content: Mapped[str] = mapped_column(Text)
    excerpt: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    featured_image: Mapped[str] = mapped_column(String(500))
    category: Mapped[str] = mapped_column(String(30), default=BlogCategory.MEMES.value)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    author: Mapped[str] = mapped_column(String(100), default="Admin")

    # SEO
    meta_description: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    meta_keywords: Mapped[list] = mapped_column(JSON, default=list)

    # Engagement
    view_count: Mapped[int] = mapped_column(Integer, default=0)
    share_count: Mapped[int] = mapped_column(Integer, default=0)

    # Status
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)

    # Dates
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )

    comments = relationship("Comment", back_populates="blog_post", passive_deletes=True)


class Comment(Base):
    """
    A reader comment on a blog post.

    Comments are stored unapproved and only listed once a moderator approves them.
    """

    __tablename__ = "comments"

    __table_args__ = (
        Index("ix_comments_post_approved_created", "blog_post_id", "is_approved", "created_at"),
        Index("ix_comments_email_created", "email", "created_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    blog_post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("blog_posts.id", ondelete="CASCADE"),
    )

    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(254))
    content: Mapped[str] = mapped_column(String(1000))

    # Moderation
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False)
    is_spam: Mapped[bool] = mapped_column(Boolean, default=False)

    likes: Mapped[int] = mapped_column(Integer, default=0)

    # Replies
    parent_comment_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("comments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_reply: Mapped[bool] = mapped_column(Boolean, default=False)

    # Metadata
    ip_address: Mapped[str] = mapped_column(String(64), default="")
    user_agent: Mapped[str] = mapped_column(String(500), default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )

    blog_post = relationship("BlogPost", back_populates="comments")
