"""
Shared fixtures:
  • seen_store — SeenStore over an in-memory Redis double
  • db         — throwaway SQLite database with the real ORM schema
  • seed       — helpers to populate it
"""
from datetime import datetime, timedelta
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from review_feed.clients.redis_client import SeenStore
from review_feed.database import Base
from review_feed.models import (
    Category,
    Comment,
    Follow,
    Like,
    Location,
    Review,
    ReviewStatus,
    User,
    UserCategory,
    UserStatus,
    UserType,
    utcnow,
)
from tests.helpers.fakes import TTL, BrokenRedis, FakeRedis


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def seen_store(fake_redis):
    return SeenStore(fake_redis, TTL)


@pytest.fixture
def broken_seen_store():
    return SeenStore(BrokenRedis(), TTL)


# ─────────────────────────── Database ────────────────────────────────────

@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'feed.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(db_engine):
    session_factory = async_sessionmaker(
        bind=db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


class Seeder:
    """Inserts rows and flushes so ids and defaults are populated."""

    def __init__(self, session: AsyncSession, now: datetime) -> None:
        self.session = session
        self.now = now

    async def _add(self, obj):
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def user(
        self,
        username: str,
        status: str = UserStatus.ACTIVE,
        user_type: str = UserType.INDIVIDUAL,
    ) -> User:
        return await self._add(User(username=username, status=status, user_type=user_type))

    async def business(self, username: str) -> User:
        return await self.user(username, user_type=UserType.BUSINESS)

    async def follow(self, follower: User, followee: User) -> None:
        await self._add(Follow(follower_id=follower.user_id, followee_id=followee.user_id))

    async def category(self, name: str) -> Category:
        return await self._add(Category(name=name))

    async def assign(self, user: User, category: Category) -> None:
        await self._add(UserCategory(user_id=user.user_id, category_id=category.category_id))

    async def location(
        self, user: User, latitude: float, longitude: float, age: timedelta = timedelta(0)
    ) -> Location:
        return await self._add(
            Location(
                user_id=user.user_id,
                latitude=latitude,
                longitude=longitude,
                updated_at=self.now - age,
            )
        )

    async def review(
        self,
        author: User,
        age: timedelta = timedelta(hours=1),
        business: Optional[User] = None,
        status: str = ReviewStatus.ACTIVE,
        video_url: Optional[str] = "https://cdn.example.com/v.mp4",
        views: int = 0,
        title: Optional[str] = None,
    ) -> Review:
        return await self._add(
            Review(
                user_id=author.user_id,
                business_id=business.user_id if business else None,
                status=status,
                video_url=video_url,
                views=views,
                title=title,
                created_at=self.now - age,
            )
        )

    async def like(self, user: User, review: Review) -> None:
        await self._add(Like(user_id=user.user_id, review_id=review.review_id))

    async def comment(self, user: User, review: Review, body: str = "nice") -> None:
        await self._add(Comment(user_id=user.user_id, review_id=review.review_id, body=body))


@pytest.fixture
def now():
    return utcnow().replace(microsecond=0)


@pytest.fixture
def seed(db, now):
    return Seeder(db, now)
