"""
Admin endpoints for content management.

Every route requires the X-Admin-Key header. Used for:
- Contestant management (create, update, delete, vote correction)
- Blog post management

Contestant changes push a full-board voteUpdate to the voting room.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_broadcaster, require_admin
from core.errors import NotFoundError, ValidationError, store_errors
from db.session import get_db
from repositories.blog_repository import BlogPostRepository, slugify
from repositories.contestant_repository import ContestantRepository
from schemas.blog import BlogPostCreate, BlogPostDetail, BlogPostUpdate
from schemas.common import ApiResponse, MessageResponse
from schemas.contestant import ContestantCreate, ContestantRead, ContestantUpdate
from services.aggregation import VoteAggregator
from services.realtime import Broadcaster

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])

CONTESTANT_NOT_FOUND = "Contestant not found"
POST_NOT_FOUND = "Blog post not found"
SLUG_TAKEN = "A post with this slug already exists"


async def _schedule_board_update(
    db: AsyncSession,
    broadcaster: Broadcaster,
    background_tasks: BackgroundTasks,
) -> None:
    """Snapshot the board now and publish it after the response."""
    aggregator = VoteAggregator(db, broadcaster)
    event = await aggregator.board_update()
    background_tasks.add_task(aggregator.broadcast_board, event)


# =============================================================================
# Contestants
# =============================================================================


@router.get("/contestants", response_model=ApiResponse[list[ContestantRead]])
async def list_contestants(
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[ContestantRead]]:
    """All contestants, newest first, active or not."""
    async with store_errors("admin_list_contestants"):
        contestants = await ContestantRepository(db).list_all()
    return ApiResponse(data=[ContestantRead.model_validate(c) for c in contestants])


@router.post(
    "/contestants",
    response_model=ApiResponse[ContestantRead],
    status_code=status.HTTP_201_CREATED,
)
async def create_contestant(
    contestant_data: ContestantCreate,
    background_tasks: BackgroundTasks,
    broadcaster: Annotated[Broadcaster, Depends(get_broadcaster)],
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ContestantRead]:
    """Create a contestant with zero votes."""
    async with store_errors("admin_create_contestant"):
        contestant = await ContestantRepository(db).create(**contestant_data.model_dump())
        await db.commit()
        await _schedule_board_update(db, broadcaster, background_tasks)

    logger.info("contestant_created", contestant_id=contestant.id)
    return ApiResponse(
        message="Contestant created successfully",
        data=ContestantRead.model_validate(contestant),
    )


@router.put("/contestants/{contestant_id}", response_model=ApiResponse[ContestantRead])
async def update_contestant(
    contestant_id: str,
    contestant_data: ContestantUpdate,
    background_tasks: BackgroundTasks,
    broadcaster: Annotated[Broadcaster, Depends(get_broadcaster)],
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ContestantRead]:
    """Update a contestant's details. The vote counter is not editable here."""
    async with store_errors("admin_update_contestant"):
        contestant = await ContestantRepository(db).update(
            contestant_id, contestant_data.model_dump(exclude_unset=True)
        )
        if contestant is None:
            raise NotFoundError(CONTESTANT_NOT_FOUND)
        await db.commit()
        await _schedule_board_update(db, broadcaster, background_tasks)

    logger.info("contestant_updated", contestant_id=contestant_id)
    return ApiResponse(
        message="Contestant updated successfully",
        data=ContestantRead.model_validate(contestant),
    )


@router.delete("/contestants/{contestant_id}", response_model=MessageResponse)
async def delete_contestant(
    contestant_id: str,
    background_tasks: BackgroundTasks,
    broadcaster: Annotated[Broadcaster, Depends(get_broadcaster)],
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a contestant. Its vote records are kept but invalidated."""
    async with store_errors("admin_delete_contestant"):
        if not await ContestantRepository(db).delete(contestant_id):
            raise NotFoundError(CONTESTANT_NOT_FOUND)
        await db.commit()
        await _schedule_board_update(db, broadcaster, background_tasks)

    logger.info("contestant_deleted", contestant_id=contestant_id)
    return MessageResponse(message="Contestant deleted successfully")


@router.post("/contestants/{contestant_id}/decrement-votes", response_model=ApiResponse[ContestantRead])
async def decrement_contestant_votes(
    contestant_id: str,
    background_tasks: BackgroundTasks,
    broadcaster: Annotated[Broadcaster, Depends(get_broadcaster)],
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ContestantRead]:
    """
    Remove one vote from a contestant's counter.

    A manual correction; the counter never goes below zero.
    """
    repo = ContestantRepository(db)
    async with store_errors("admin_decrement_votes"):
        contestant = await repo.get_by_id(contestant_id)
        if contestant is None:
            raise NotFoundError(CONTESTANT_NOT_FOUND)
        if not await repo.decrement_votes(contestant_id):
            raise ValidationError("Vote count is already zero")
        await db.commit()
        await db.refresh(contestant)
        await _schedule_board_update(db, broadcaster, background_tasks)

    logger.info("contestant_votes_decremented", contestant_id=contestant_id, votes=contestant.votes)
    return ApiResponse(
        message="Vote count decremented",
        data=ContestantRead.model_validate(contestant),
    )


# =============================================================================
# Blog Posts
# =============================================================================


@router.get("/blog", response_model=ApiResponse[list[BlogPostDetail]])
async def list_blog_posts(
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[BlogPostDetail]]:
    """All posts, published or not."""
    async with store_errors("admin_list_posts"):
        posts = await BlogPostRepository(db).list_all()
    return ApiResponse(data=[BlogPostDetail.model_validate(p) for p in posts])


@router.post(
    "/blog",
    response_model=ApiResponse[BlogPostDetail],
    status_code=status.HTTP_201_CREATED,
)
async def create_blog_post(
    post_data: BlogPostCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BlogPostDetail]:
    """Create a post. The slug defaults to one built from the title."""
    repo = BlogPostRepository(db)
    fields = post_data.model_dump(mode="json")
    fields["slug"] = (fields.get("slug") or slugify(post_data.title)).lower().strip()
    if not fields["slug"]:
        raise ValidationError("A slug could not be derived from the title")

    async with store_errors("admin_create_post"):
        if await repo.slug_exists(fields["slug"]):
            raise ValidationError(SLUG_TAKEN)
        post = await repo.create(fields)
        await db.commit()

    logger.info("blog_post_created", post_id=post.id, slug=post.slug)
    return ApiResponse(
        message="Blog post created successfully",
        data=BlogPostDetail.model_validate(post),
    )


@router.put("/blog/{post_id}", response_model=ApiResponse[BlogPostDetail])
async def update_blog_post(
    post_id: str,
    post_data: BlogPostUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BlogPostDetail]:
    """Update a post. Only provided fields change."""
    repo = BlogPostRepository(db)
    fields = post_data.model_dump(mode="json", exclude_unset=True)

    async with store_errors("admin_update_post"):
        if fields.get("slug") and await repo.slug_exists(fields["slug"], exclude_id=post_id):
            raise ValidationError(SLUG_TAKEN)
        post = await repo.update(post_id, fields)
        if post is None:
            raise NotFoundError(POST_NOT_FOUND)
        await db.commit()

    logger.info("blog_post_updated", post_id=post_id)
    return ApiResponse(
        message="Blog post updated successfully",
        data=BlogPostDetail.model_validate(post),
    )


@router.delete("/blog/{post_id}", response_model=MessageResponse)
async def delete_blog_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a post and its comments."""
    async with store_errors("admin_delete_post"):
        if not await BlogPostRepository(db).delete(post_id):
            raise NotFoundError(POST_NOT_FOUND)
        await db.commit()

    logger.info("blog_post_deleted", post_id=post_id)
    return MessageResponse(message="Blog post deleted successfully")
