"""
Blog reading, sharing and commenting.

Engagement counters (views, shares) are bumped with atomic UPDATEs. Events
for the "blog-updates" room are queued while a request runs and published by
publish_pending() once the response is ready.
"""

import math
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFoundError, ValidationError, store_errors
from models.blog import BlogPost, Comment
from repositories.blog_repository import BlogPostRepository, CommentRepository
from schemas.blog import (
    BlogPostDetail,
    BlogPostList,
    BlogPostSummary,
    BlogPostWithComments,
    CommentCreate,
    CommentParent,
    CommentRead,
    FeaturedPosts,
    Pagination,
    ShareResult,
)
from services.realtime import BLOG_ROOM, Broadcaster

logger = structlog.get_logger(__name__)

POST_NOT_FOUND_MESSAGE = "Blog post not found"
RECENT_POSTS_LIMIT = 3


def _comment_read(comment: Comment, parents: dict[str, Comment]) -> CommentRead:
    result = CommentRead.model_validate(comment)
    parent = parents.get(comment.parent_comment_id) if comment.parent_comment_id else None
    if parent is not None:
        result.parent = CommentParent(id=parent.id, name=parent.name, content=parent.content)
    return result


class BlogService:
    """Public blog operations."""

    def __init__(self, db: AsyncSession, broadcaster: Optional[Broadcaster] = None):
        self.db = db
        self.posts = BlogPostRepository(db)
        self.comments = CommentRepository(db)
        self.broadcaster = broadcaster
        self._pending: list[tuple[str, dict[str, Any]]] = []

    async def list_posts(self, page: int = 1, limit: int = 10, category: Optional[str] = None) -> BlogPostList:
        """A page of published posts, newest first."""
        async with store_errors("list_posts"):
            posts, total = await self.posts.list_published(page=page, per_page=limit, category=category)

        total_pages = math.ceil(total / limit) if limit else 0
        return BlogPostList(
            posts=[BlogPostSummary.model_validate(p) for p in posts],
            pagination=Pagination(
                current_page=page,
                total_pages=total_pages,
                total_posts=total,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
        )

    async def get_featured(self, limit: int = 5) -> FeaturedPosts:
        """Featured posts plus the three most recent ones."""
        async with store_errors("get_featured"):
            featured = await self.posts.get_featured(limit=limit)
            recent = await self.posts.get_recent(limit=RECENT_POSTS_LIMIT)

        return FeaturedPosts(
            featured=[BlogPostDetail.model_validate(p) for p in featured],
            recent=[BlogPostSummary.model_validate(p) for p in recent],
        )

    async def get_post(self, slug: str) -> BlogPostWithComments:
        """
        A published post with its approved comments.

        Counts a view and queues a postView event.
        """
        async with store_errors("get_post"):
            post = await self._get_published(slug)
            view_count = await self.posts.increment_view_count(post.id)
            await self.db.commit()
            await self.db.refresh(post)

            comments = await self.comments.list_for_post(post.id)
            parent_ids = {c.parent_comment_id for c in comments if c.parent_comment_id}
            parents = await self.comments.get_many(parent_ids)

        self._queue("postView", {"postId": post.id, "newViewCount": view_count})

        return BlogPostWithComments(
            post=BlogPostDetail.model_validate(post),
            comments=[_comment_read(c, parents) for c in comments],
        )

    async def share_post(self, slug: str, platform: Optional[str] = None) -> ShareResult:
        """Count a share and queue a postShare event."""
        async with store_errors("share_post"):
            post = await self._get_published(slug)
            share_count = await self.posts.increment_share_count(post.id)
            await self.db.commit()

        logger.info("post_shared", post_id=post.id, platform=platform)
        self._queue(
            "postShare",
            {"postId": post.id, "platform": platform, "newShareCount": share_count},
        )
        return ShareResult(share_count=share_count)

    async def submit_comment(
        self,
        slug: str,
        data: CommentCreate,
        ip_address: str = "",
        user_agent: str = "",
    ) -> CommentRead:
        """
        Store a comment for moderation and queue a newComment event.

        A reply must point at a comment on the same post.
        """
        async with store_errors("submit_comment"):
            post = await self._get_published(slug)

            parents: dict[str, Comment] = {}
            if data.parent_comment_id:
                parent = await self.comments.get_by_id(data.parent_comment_id)
                if parent is None or parent.blog_post_id != post.id:
                    raise ValidationError("Parent comment not found")
                parents[parent.id] = parent

            comment = await self.comments.create(
                blog_post_id=post.id,
                name=data.name,
                email=data.email,
                content=data.content,
                parent_comment_id=data.parent_comment_id,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            await self.db.commit()

        logger.info("comment_submitted", post_id=post.id, comment_id=comment.id, is_reply=comment.is_reply)

        result = _comment_read(comment, parents)
        self._queue(
            "newComment",
            {"postId": post.id, "comment": result.model_dump(mode="json", by_alias=True)},
        )
        return result

    async def publish_pending(self) -> int:
        """Publish queued events on the blog room. Returns how many were handed off."""
        events, self._pending = self._pending, []
        if self.broadcaster is None:
            return 0
        published = 0
        for event, data in events:
            if await self.broadcaster.publish(event, data, room=BLOG_ROOM):
                published += 1
        return published

    async def _get_published(self, slug: str) -> BlogPost:
        post = await self.posts.get_published_by_slug(slug)
        if post is None:
            raise NotFoundError(POST_NOT_FOUND_MESSAGE)
        return post

    def _queue(self, event: str, data: dict[str, Any]) -> None:
        self._pending.append((event, data))
