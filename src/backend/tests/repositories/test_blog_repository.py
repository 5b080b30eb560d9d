"""
Tests for blog repositories and helpers.
"""

import pytest

from repositories.blog_repository import EXCERPT_LENGTH, BlogPostRepository, make_excerpt, slugify


@pytest.mark.unit
class TestSlugify:
    """Test slugify."""

    def test_basic(self) -> None:
        assert slugify("Bigg Boss Telugu: Week 5 Memes!") == "bigg-boss-telugu-week-5-memes"

    def test_collapses_separators(self) -> None:
        assert slugify("  Top   10 -- Moments  ") == "top-10-moments"

    def test_non_ascii_only(self) -> None:
        assert slugify("తెలుగు") == ""


@pytest.mark.unit
class TestMakeExcerpt:
    """Test make_excerpt."""

    def test_strips_tags(self) -> None:
        assert make_excerpt("<p>Hello <b>house</b></p>") == "Hello house..."

    def test_truncates(self) -> None:
        excerpt = make_excerpt("x" * 1000)
        assert excerpt == "x" * EXCERPT_LENGTH + "..."


class TestBlogPostRepository:
    """Test BlogPostRepository against a real database."""

    async def test_published_lookup_is_case_insensitive(self, db_session, create_post) -> None:
        await create_post("Weekly Roundup")

        repo = BlogPostRepository(db_session)

        assert await repo.get_published_by_slug("Weekly-Roundup") is not None

    async def test_slug_exists_excluding_self(self, db_session, create_post) -> None:
        post = await create_post("Weekly Roundup")
        repo = BlogPostRepository(db_session)

        assert await repo.slug_exists("weekly-roundup") is True
        assert await repo.slug_exists("weekly-roundup", exclude_id=post.id) is False

    async def test_counters(self, db_session, create_post) -> None:
        post = await create_post("Weekly Roundup")
        repo = BlogPostRepository(db_session)

        assert await repo.increment_view_count(post.id) == 1
        assert await repo.increment_view_count(post.id) == 2
        assert await repo.increment_share_count(post.id) == 1
