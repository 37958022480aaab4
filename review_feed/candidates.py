"""
Candidate pool retrieval.

Pulls the newest `pool_size` reviews that are eligible for the viewer's feed:

  • status ACTIVE (publicly visible)
  • has a playable video
  • not written by the viewer
  • not in the viewer's seen-set

Recency here is only a cheap pre-filter to bound the pool; the real ordering
happens after scoring. Like and comment counts are aggregated in the same
query, then business categories and locations are batch-loaded for whichever
reviews are tagged with a business.
"""
import logging
from collections import defaultdict
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from review_feed.errors import StoreUnavailable
from review_feed.models import (
    Comment,
    Like,
    Location,
    Review,
    ReviewStatus,
    User,
    UserCategory,
)
from review_feed.ranking.geo import Coordinates
from review_feed.ranking.models import Candidate

logger = logging.getLogger(__name__)


class CandidateFetcher:
    def __init__(self, db: AsyncSession, pool_size: int) -> None:
        self._db = db
        self.pool_size = pool_size

    async def fetch(self, viewer_id: str, seen_ids: Iterable[str]) -> list[Candidate]:
        try:
            return await self._fetch(viewer_id, list(seen_ids))
        except SQLAlchemyError as exc:
            logger.error("Candidate query failed (user=%s): %s", viewer_id, exc)
            raise StoreUnavailable("Primary store unavailable") from exc

    async def _fetch(self, viewer_id: str, seen_ids: list[str]) -> list[Candidate]:
        like_counts = (
            select(Like.review_id, func.count().label("n"))
            .group_by(Like.review_id)
            .subquery()
        )
        comment_counts = (
            select(Comment.review_id, func.count().label("n"))
            .group_by(Comment.review_id)
            .subquery()
        )

        stmt = (
            select(
                Review,
                User.username,
                func.coalesce(like_counts.c.n, 0).label("likes"),
                func.coalesce(comment_counts.c.n, 0).label("comments"),
            )
            .join(User, User.user_id == Review.user_id)
            .outerjoin(like_counts, like_counts.c.review_id == Review.review_id)
            .outerjoin(comment_counts, comment_counts.c.review_id == Review.review_id)
            .where(
                Review.status == ReviewStatus.ACTIVE,
                Review.user_id != viewer_id,
                Review.video_url.is_not(None),
            )
            .order_by(Review.created_at.desc())
            .limit(self.pool_size)
        )
        # NOT IN () is invalid SQL on some backends, so only filter when needed
        if seen_ids:
            stmt = stmt.where(Review.review_id.not_in(seen_ids))

        rows = (await self._db.execute(stmt)).all()

        business_ids = {r.Review.business_id for r in rows if r.Review.business_id}
        categories = await self._business_categories(business_ids)
        locations = await self._business_locations(business_ids)

        candidates = []
        for row in rows:
            review = row.Review
            business_id = review.business_id
            candidates.append(
                Candidate(
                    review_id=review.review_id,
                    author_id=review.user_id,
                    created_at=review.created_at,
                    views=review.views or 0,
                    likes=int(row.likes),
                    comments=int(row.comments),
                    business_id=business_id,
                    business_category_ids=frozenset(categories.get(business_id, ())),
                    business_location=locations.get(business_id),
                    author_username=row.username,
                    title=review.title,
                    caption=review.caption,
                    rating=review.rating,
                    video_url=review.video_url,
                )
            )

        logger.debug(
            "Fetched %d candidates for user %s (%d seen excluded)",
            len(candidates),
            viewer_id,
            len(seen_ids),
        )
        return candidates

    async def _business_categories(self, business_ids: set[str]) -> dict[str, set[str]]:
        if not business_ids:
            return {}
        result = await self._db.execute(
            select(UserCategory.user_id, UserCategory.category_id).where(
                UserCategory.user_id.in_(business_ids)
            )
        )
        categories: dict[str, set[str]] = defaultdict(set)
        for user_id, category_id in result.all():
            categories[user_id].add(category_id)
        return categories

    async def _business_locations(
        self, business_ids: set[str]
    ) -> dict[str, Coordinates]:
        """Most recently updated location per business."""
        if not business_ids:
            return {}
        result = await self._db.execute(
            select(Location.user_id, Location.latitude, Location.longitude)
            .where(Location.user_id.in_(business_ids))
            .order_by(Location.updated_at.desc())
        )
        locations: dict[str, Coordinates] = {}
        for user_id, latitude, longitude in result.all():
            locations.setdefault(user_id, Coordinates(latitude, longitude))
        return locations
