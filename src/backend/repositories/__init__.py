"""Repository modules for database access."""

from repositories.blog_repository import BlogPostRepository, CommentRepository
from repositories.contestant_repository import ContestantRepository
from repositories.vote_repository import VoteRepository

__all__ = [
    "BlogPostRepository",
    "CommentRepository",
    "ContestantRepository",
    "VoteRepository",
]
