"""Database models module."""

from models.blog import BlogCategory, BlogPost, Comment
from models.contestant import Contestant
from models.vote import VoteRecord, VoteSource

__all__ = [
    "BlogCategory",
    "BlogPost",
    "Comment",
    "Contestant",
    "VoteRecord",
    "VoteSource",
]
