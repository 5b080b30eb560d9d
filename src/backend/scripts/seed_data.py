"""
Seed script to create sample contestants and blog posts for development/demo.
Run with: python -m scripts.seed_data

Safe to run more than once: tables that already hold rows are left alone.
Pass --reset to delete existing contestants, votes and posts first.
"""

import asyncio
import sys

from sqlalchemy import delete, func, select

from db.session import close_db, get_session_factory, init_db
from models.blog import BlogPost, Comment
from models.contestant import Contestant
from models.vote import VoteRecord
from repositories.blog_repository import BlogPostRepository
from repositories.contestant_repository import ContestantRepository

SEED_CONTESTANTS = [
    ("Contestant 1", "Popular contestant with strong fan base and great personality", 2456),
    ("Contestant 2", "Drama queen with entertaining personality and excellent game sense", 1892),
    ("Contestant 3", "Strategic player with good game sense and leadership qualities", 2134),
    ("Contestant 4", "Underdog with surprising popularity and great entertainment value", 1567),
    ("Contestant 5", "Comedy king with great entertainment value and humor", 1234),
    ("Contestant 6", "Strong personality with leadership qualities and strategic mind", 1789),
    ("Contestant 7", "Emotional and relatable contestant with great fan following", 1456),
    ("Contestant 8", "Wildcard entry with unpredictable nature and surprising moves", 1123),
]

SEED_POSTS = [
    {
        "title": "Top 10 Funniest Bigg Boss Memes This Week",
        "content": (
            "<p>This week had some of the most hilarious moments in Bigg Boss Telugu history, "
            "and our community has created some incredible memes to capture them!</p>"
            "<h3>1. The Kitchen Drama Meme</h3>"
            "<p>When Contestant 2 tried to cook and almost burned down the kitchen, the internet went wild!</p>"
            "<h3>2. The Voting Confusion</h3>"
            "<p>Everyone was confused about the voting system this week, leading to this relatable meme.</p>"
        ),
        "excerpt": "Check out the most hilarious memes that have been circulating about our favorite contestants this week...",
        "featured_image": "images/blog-post-1.jpg",
        "category": "memes",
        "tags": ["memes", "contestants", "funny"],
        "meta_description": "Check out the funniest Bigg Boss Telugu memes of the week",
        "meta_keywords": ["bigg boss", "memes", "telugu", "funny"],
        "is_featured": True,
        "view_count": 1240,
        "share_count": 89,
    },
    {
        "title": "Weekly Contestant Performance Analysis",
        "content": (
            "<p>Another week of intense drama and competition in the Bigg Boss house. "
            "Let's analyze how each contestant performed this week.</p>"
            "<h3>Top Performers</h3>"
            "<p>Contestant 1 has been showing excellent leadership skills.</p>"
            "<h3>Surprise Moments</h3>"
            "<p>Contestant 4's unexpected strategy this week surprised everyone!</p>"
        ),
        "excerpt": "Who's winning hearts and who's causing drama? Our detailed analysis of this week's performances...",
        "featured_image": "images/blog-post-2.jpg",
        "category": "analysis",
        "tags": ["analysis", "performance", "week"],
        "meta_description": "Weekly analysis of Bigg Boss Telugu contestants performance",
        "meta_keywords": ["bigg boss", "analysis", "performance", "contestants"],
        "is_featured": False,
        "view_count": 856,
        "share_count": 34,
    },
    {
        "title": "Behind the Scenes: What You Don't See on TV",
        "content": (
            "<p>Ever wondered what happens when the cameras are off in the Bigg Boss house?</p>"
            "<h3>The Real Story</h3>"
            "<p>There are many heartwarming moments that happen off-camera.</p>"
            "<h3>Production Secrets</h3>"
            "<p>Learn how the team captures every important moment and keeps the show running.</p>"
        ),
        "excerpt": "Exclusive insights into the making of Bigg Boss Telugu and what happens when cameras are off...",
        "featured_image": "images/blog-post-3.jpg",
        "category": "behind-scenes",
        "tags": ["behind-scenes", "exclusive", "production"],
        "meta_description": "Behind the scenes secrets of Bigg Boss Telugu production",
        "meta_keywords": ["bigg boss", "behind scenes", "production", "secrets"],
        "is_featured": True,
        "view_count": 2100,
        "share_count": 156,
    },
]


async def seed_data(reset: bool = False) -> None:
    """Create seed contestants and blog posts in the database."""
    await init_db()

    async with get_session_factory()() as session:
        if reset:
            await session.execute(delete(VoteRecord))
            await session.execute(delete(Contestant))
            await session.execute(delete(Comment))
            await session.execute(delete(BlogPost))
            await session.commit()
            print("Cleared existing contestants, votes and blog posts.")

        contestant_count = (await session.execute(select(func.count(Contestant.id)))).scalar() or 0
        if contestant_count:
            print("Contestants already exist in database. Skipping contestants.")
        else:
            repo = ContestantRepository(session)
            for index, (name, description, votes) in enumerate(SEED_CONTESTANTS, start=1):
                await repo.create(
                    name=name,
                    description=description,
                    image=f"images/contestant-{index}.jpg",
                    votes=votes,
                    instagram_url=f"https://instagram.com/contestant{index}",
                    twitter_url=f"https://twitter.com/contestant{index}",
                )
            print(f"Created {len(SEED_CONTESTANTS)} contestants "
                  f"({sum(v for _, _, v in SEED_CONTESTANTS)} votes).")

        post_count = (await session.execute(select(func.count(BlogPost.id)))).scalar() or 0
        if post_count:
            print("Blog posts already exist in database. Skipping blog posts.")
        else:
            repo = BlogPostRepository(session)
            for post_data in SEED_POSTS:
                post = await repo.create({**post_data, "author": "Admin", "is_published": True})
                print(f"Created post: {post.slug}")

        await session.commit()

    await close_db()
    print("Seeding complete.")


if __name__ == "__main__":
    asyncio.run(seed_data(reset="--reset" in sys.argv[1:]))
