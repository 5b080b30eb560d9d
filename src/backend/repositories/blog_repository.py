"""
Blog post and comment repositories.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.blog import BlogPost, Comment

EXCERPT_LENGTH = 300

_TAG_RE = re.compile(r"<[^>]*>")


def slugify(title: str) -> str:
    """Build a URL slug from a post title."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9 -]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def make_excerpt(content: str) -> str:
    """First EXCERPT_LENGTH characters of the content with HTML tags removed."""
    return _TAG_RE.sub("", content)[:EXCERPT_LENGTH].strip() + "..."


class BlogPostRepository:
    """Repository for blog post database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    async def get_by_id(self, post_id: str) -> Optional[BlogPost]:
        """Get a post by ID."""
        result = await self.db.execute(select(BlogPost).where(BlogPost.id == post_id))
        return result.scalar_one_or_none()

    async def get_published_by_slug(self, slug: str) -> Optional[BlogPost]:
        """Get a published post by slug."""
        result = await self.db.execute(
            select(BlogPost).where(
                BlogPost.slug == slug.lower(),
                BlogPost.is_published == True,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        """Check if a slug is taken, optionally ignoring one post."""
        query = select(func.count(BlogPost.id)).where(BlogPost.slug == slug.lower())
        if exclude_id:
            query = query.where(BlogPost.id != exclude_id)
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def list_published(
        self,
        page: int = 1,
        per_page: int = 10,
        category: Optional[str] = None,
    ) -> tuple[list[BlogPost], int]:
        """List published posts with pagination, newest first."""
        query = select(BlogPost).where(BlogPost.is_published == True)  # noqa: E712
        count_query = select(func.count(BlogPost.id)).where(BlogPost.is_published == True)  # noqa: E712

        if category and category != "all":
            query = query.where(BlogPost.category == category)
            count_query = count_query.where(BlogPost.category == category)

        # Get total count
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        # Get paginated results
        query = query.order_by(BlogPost.published_at.desc())
        query = query.offset((page - 1) * per_page).limit(per_page)

        result = await self.db.execute(query)
        posts = list(result.scalars().all())

        return posts, total

    async def get_featured(self, limit: int = 5) -> list[BlogPost]:
        """Featured published posts, newest first."""
        result = await self.db.execute(
            select(BlogPost)
            .where(
                BlogPost.is_published == True,  # noqa: E712
                BlogPost.is_featured == True,  # noqa: E712
            )
            .order_by(BlogPost.published_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_recent(self, limit: int = 10) -> list[BlogPost]:
        """Most recently published posts."""
        result = await self.db.execute(
            select(BlogPost)
            .where(BlogPost.is_published == True)  # noqa: E712
            .order_by(BlogPost.published_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[BlogPost]:
        """All posts, newest first (admin view)."""
        result = await self.db.execute(
            select(BlogPost).order_by(BlogPost.published_at.desc(), BlogPost.created_at.desc())
        )
        return list(result.scalars().all())

    async def increment_view_count(self, post_id: str) -> int:
        """Atomically count a view and return the new view count."""
        await self.db.execute(
            update(BlogPost).where(BlogPost.id == post_id).values(view_count=BlogPost.view_count + 1)
        )
        result = await self.db.execute(select(BlogPost.view_count).where(BlogPost.id == post_id))
        return result.scalar_one()

    async def increment_share_count(self, post_id: str) -> int:
        """Atomically count a share and return the new share count."""
        await self.db.execute(
            update(BlogPost).where(BlogPost.id == post_id).values(share_count=BlogPost.share_count + 1)
        )
        result = await self.db.execute(select(BlogPost.share_count).where(BlogPost.id == post_id))
        return result.scalar_one()

    async def create(self, fields: dict) -> BlogPost:
        """
        Create a post.

        Fills in the slug from the title and the excerpt from the content when
        they are missing, and stamps published_at for published posts.
        """
        fields = dict(fields)
        fields["slug"] = (fields.get("slug") or slugify(fields["title"])).lower().strip()
        if not fields.get("excerpt"):
            fields["excerpt"] = make_excerpt(fields["content"])
        if fields.get("is_published") and not fields.get("published_at"):
            fields["published_at"] = datetime.now(timezone.utc)

        post = BlogPost(id=str(uuid4()), **fields)

        self.db.add(post)
        await self.db.flush()
        await self.db.refresh(post)

        return post

    async def update(self, post_id: str, update_fields: dict) -> Optional[BlogPost]:
        """Update a post with the given fields."""
        post = await self.get_by_id(post_id)
        if not post:
            return None

        for field, value in update_fields.items():
            if field == "slug" and value:
                value = value.lower().strip()
            if hasattr(post, field):
                setattr(post, field, value)

        if "content" in update_fields and "excerpt" not in update_fields and not post.excerpt:
            post.excerpt = make_excerpt(post.content)
        if post.is_published and post.published_at is None:
            post.published_at = datetime.now(timezone.utc)

        await self.db.flush()
        await self.db.refresh(post)

        return post

    async def delete(self, post_id: str) -> bool:
        """Delete a post and its comments."""
        post = await self.get_by_id(post_id)
        if not post:
            return False

        comments = await self.db.execute(select(Comment).where(Comment.blog_post_id == post_id))
        for comment in comments.scalars().all():
            await self.db.delete(comment)
        await self.db.delete(post)
        await self.db.flush()
        return True


class CommentRepository:
    """Repository for comment database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, comment_id: str) -> Optional[Comment]:
        """Get a comment by ID."""
        result = await self.db.execute(select(Comment).where(Comment.id == comment_id))
        return result.scalar_one_or_none()

    async def create(
        self,
        blog_post_id: str,
        name: str,
        email: str,
        content: str,
        parent_comment_id: Optional[str] = None,
        ip_address: str = "",
        user_agent: str = "",
    ) -> Comment:
        """Create an unapproved comment."""
        comment = Comment(
            id=str(uuid4()),
            blog_post_id=blog_post_id,
            name=name.strip(),
            email=email.lower().strip(),
            content=content.strip(),
            parent_comment_id=parent_comment_id,
            is_reply=parent_comment_id is not None,
            is_approved=False,
            is_spam=False,
            likes=0,
            ip_address=ip_address,
            user_agent=user_agent[:500],
        )

        self.db.add(comment)
        await self.db.flush()
        await self.db.refresh(comment)

        return comment

    async def list_for_post(self, blog_post_id: str, include_replies: bool = True) -> list[Comment]:
        """Approved, non-spam comments for a post, newest first."""
        query = select(Comment).where(
            Comment.blog_post_id == blog_post_id,
            Comment.is_approved == True,  # noqa: E712
            Comment.is_spam == False,  # noqa: E712
        )
        if not include_replies:
            query = query.where(Comment.is_reply == False)  # noqa: E712

        result = await self.db.execute(query.order_by(Comment.created_at.desc()))
        return list(result.scalars().all())

    async def get_many(self, comment_ids: set[str]) -> dict[str, Comment]:
        """Fetch comments by ID, keyed by ID."""
        if not comment_ids:
            return {}
        result = await self.db.execute(select(Comment).where(Comment.id.in_(comment_ids)))
        return {c.id: c for c in result.scalars().all()}
