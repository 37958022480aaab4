"""
Feed retrieval endpoint — GET /feed?user_id=<id>

Thin transport layer over FeedService (see feed_service.py for the pipeline).
Authentication happens upstream; `user_id` is the already-verified viewer.
Pipeline errors (FeedError) are mapped to HTTP statuses in main.py.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from review_feed.candidates import CandidateFetcher
from review_feed.clients.redis_client import SeenStore, get_seen_store
from review_feed.config import settings
from review_feed.context import ViewerContextLoader
from review_feed.database import get_db
from review_feed.feed_service import FeedService
from review_feed.schemas import ErrorResponse, FeedResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def get_feed_service(
    db: AsyncSession = Depends(get_db),
    seen_store: SeenStore = Depends(get_seen_store),
) -> FeedService:
    return FeedService(
        loader=ViewerContextLoader(db),
        fetcher=CandidateFetcher(db, pool_size=settings.candidate_pool_size),
        seen_store=seen_store,
        algorithm_version=settings.algorithm_version,
        max_limit=settings.feed_max_limit,
    )


@router.get(
    "/",
    response_model=FeedResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_feed(
    user_id: str = Query(..., description="ID of the requesting user"),
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page"),
    limit: int = Query(
        settings.feed_default_limit,
        description=f"Page size, 1..{settings.feed_max_limit}",
    ),
    latitude: Optional[float] = Query(None, description="Overrides the saved location"),
    longitude: Optional[float] = Query(None, description="Overrides the saved location"),
    service: FeedService = Depends(get_feed_service),
):
    return await service.get_feed(
        user_id,
        cursor=cursor,
        limit=limit,
        latitude=latitude,
        longitude=longitude,
    )
