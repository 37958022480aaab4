"""
Viewer context loading.

Resolves everything the scorer needs to know about the viewer, in three
small queries against the primary store:
  • the viewer row (must exist and be ACTIVE)
  • followed user ids and preferred category ids (as sets)
  • the most recently updated saved location, unless the caller supplied one
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from review_feed.errors import StoreUnavailable, ViewerInactive, ViewerNotFound
from review_feed.models import Follow, Location, User, UserCategory, UserStatus
from review_feed.ranking.geo import Coordinates
from review_feed.ranking.models import ViewerContext

logger = logging.getLogger(__name__)


class ViewerContextLoader:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def load(
        self, viewer_id: str, override: Optional[Coordinates] = None
    ) -> ViewerContext:
        try:
            return await self._load(viewer_id, override)
        except SQLAlchemyError as exc:
            logger.error("Viewer context query failed (user=%s): %s", viewer_id, exc)
            raise StoreUnavailable("Primary store unavailable") from exc

    async def _load(
        self, viewer_id: str, override: Optional[Coordinates]
    ) -> ViewerContext:
        viewer = await self._db.get(User, viewer_id)
        if viewer is None:
            raise ViewerNotFound("User not found")
        if viewer.status != UserStatus.ACTIVE:
            raise ViewerInactive("User not found")

        following = await self._db.scalars(
            select(Follow.followee_id).where(Follow.follower_id == viewer_id)
        )
        categories = await self._db.scalars(
            select(UserCategory.category_id).where(UserCategory.user_id == viewer_id)
        )

        location = override
        if location is None:
            location = await self._saved_location(viewer_id)

        return ViewerContext(
            viewer_id=viewer_id,
            following_ids=frozenset(following.all()),
            category_ids=frozenset(categories.all()),
            location=location,
        )

    async def _saved_location(self, viewer_id: str) -> Optional[Coordinates]:
        row = (
            await self._db.execute(
                select(Location.latitude, Location.longitude)
                .where(Location.user_id == viewer_id)
                .order_by(Location.updated_at.desc())
                .limit(1)
            )
        ).first()
        if row is None:
            return None
        return Coordinates(row.latitude, row.longitude)
