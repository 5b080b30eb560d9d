"""
Blog endpoints: reading, sharing and commenting on published posts.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from api.deps import get_blog_service, rate_limit_comment
from core.security import get_client_address
from schemas.blog import (
    BlogPostList,
    BlogPostWithComments,
    CommentCreate,
    CommentRead,
    FeaturedPosts,
    ShareRequest,
    ShareResult,
)
from schemas.common import ApiResponse
from services.blog_service import BlogService

router = APIRouter()


@router.get("/posts", response_model=ApiResponse[BlogPostList])
async def get_blog_posts(
    service: Annotated[BlogService, Depends(get_blog_service)],
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    category: Optional[str] = Query(None, max_length=30),
) -> ApiResponse[BlogPostList]:
    """Published posts, newest first. category=all means no filter."""
    return ApiResponse(data=await service.list_posts(page=page, limit=limit, category=category))


@router.get("/featured", response_model=ApiResponse[FeaturedPosts])
async def get_featured_posts(
    service: Annotated[BlogService, Depends(get_blog_service)],
    limit: int = Query(5, ge=1, le=20),
) -> ApiResponse[FeaturedPosts]:
    """Featured posts plus the three most recent."""
    return ApiResponse(data=await service.get_featured(limit=limit))


@router.get("/post/{slug}", response_model=ApiResponse[BlogPostWithComments])
async def get_blog_post(
    slug: str,
    background_tasks: BackgroundTasks,
    service: Annotated[BlogService, Depends(get_blog_service)],
) -> ApiResponse[BlogPostWithComments]:
    """A published post with its approved comments. Counts a view."""
    result = await service.get_post(slug)
    background_tasks.add_task(service.publish_pending)
    return ApiResponse(data=result)


@router.post("/post/{slug}/share", response_model=ApiResponse[ShareResult])
async def share_post(
    slug: str,
    background_tasks: BackgroundTasks,
    service: Annotated[BlogService, Depends(get_blog_service)],
    share: Optional[ShareRequest] = None,
) -> ApiResponse[ShareResult]:
    """Record a share of a post."""
    result = await service.share_post(slug, platform=share.platform if share else None)
    background_tasks.add_task(service.publish_pending)
    return ApiResponse(message="Share recorded successfully", data=result)


@router.post(
    "/post/{slug}/comment",
    response_model=ApiResponse[CommentRead],
    dependencies=[Depends(rate_limit_comment)],
)
async def submit_comment(
    slug: str,
    comment_data: CommentCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    service: Annotated[BlogService, Depends(get_blog_service)],
) -> ApiResponse[CommentRead]:
    """Submit a comment. Comments are held for moderation."""
    result = await service.submit_comment(
        slug,
        comment_data,
        ip_address=get_client_address(request),
        user_agent=request.headers.get("User-Agent", ""),
    )
    background_tasks.add_task(service.publish_pending)
    return ApiResponse(
        message="Comment submitted successfully. It will be reviewed before publishing.",
        data=result,
    )
