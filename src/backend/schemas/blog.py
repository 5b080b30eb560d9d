"""
Blog and comment schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from models.blog import BlogCategory
from schemas.common import CamelModel


class BlogPostSummary(CamelModel):
    """Listing view of a post."""

    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    featured_image: str
    category: str
    view_count: int = 0
    share_count: int = 0
    published_at: Optional[datetime] = None


class BlogPostDetail(BlogPostSummary):
    """Full post."""

    content: str
    tags: list[str] = Field(default_factory=list)
    author: str
    meta_description: Optional[str] = None
    meta_keywords: list[str] = Field(default_factory=list)
    is_published: bool
    is_featured: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(CamelModel):
    """Pagination metadata."""

    current_page: int
    total_pages: int
    total_posts: int
    has_next: bool
    has_prev: bool


class BlogPostList(CamelModel):
    """A page of posts."""

    posts: list[BlogPostSummary]
    pagination: Pagination


class FeaturedPosts(CamelModel):
    """Featured posts plus the most recent ones."""

    featured: list[BlogPostDetail]
    recent: list[BlogPostSummary]


class CommentParent(CamelModel):
    """Summary of the comment being replied to."""

    id: str
    name: str
    content: str


class CommentRead(CamelModel):
    """A comment as shown to readers (email is never exposed)."""

    id: str
    blog_post_id: str
    name: str
    content: str
    is_approved: bool
    likes: int = 0
    is_reply: bool = False
    parent_comment_id: Optional[str] = None
    parent: Optional[CommentParent] = None
    created_at: Optional[datetime] = None


class BlogPostWithComments(CamelModel):
    """A post with its approved comments."""

    post: BlogPostDetail
    comments: list[CommentRead]


class ShareRequest(CamelModel):
    """Share tracking request."""

    platform: Optional[str] = Field(None, max_length=50)


class ShareResult(CamelModel):
    """Share counter after recording a share."""

    share_count: int


class CommentCreate(CamelModel):
    """Schema for submitting a comment."""

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    content: str = Field(..., min_length=1, max_length=1000)
    parent_comment_id: Optional[str] = Field(None, max_length=36)


class BlogPostCreate(CamelModel):
    """Schema for creating a post (admin)."""

    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=250)
    excerpt: Optional[str] = Field(None, max_length=500)
    content: str = Field(..., min_length=1)
    category: BlogCategory = BlogCategory.MEMES
    featured_image: str = Field(..., min_length=1, max_length=500)
    tags: list[str] = Field(default_factory=list)
    author: str = Field("Admin", max_length=100)
    meta_description: Optional[str] = Field(None, max_length=160)
    meta_keywords: list[str] = Field(default_factory=list)
    is_published: bool = True
    is_featured: bool = False


class BlogPostUpdate(CamelModel):
    """Schema for updating a post (admin). Only provided fields change."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=250)
    excerpt: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[BlogCategory] = None
    featured_image: Optional[str] = Field(None, min_length=1, max_length=500)
    tags: Optional[list[str]] = None
    author: Optional[str] = Field(None, max_length=100)
    meta_description: Optional[str] = Field(None, max_length=160)
    meta_keywords: Optional[list[str]] = None
    is_published: Optional[bool] = None
    is_featured: Optional[bool] = None
