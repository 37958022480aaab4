"""
Personalized review feed pipeline.

  Stage 0 │ Request validation
  ────────┼──────────────────────────────────────────────────────────────
          │  Page size, coordinates range/pairing and cursor decoding. All
          │  fail fast, before any store round-trip or scoring work.

  Stage 1 │ Viewer context
  ────────┼──────────────────────────────────────────────────────────────
          │  Followed users, preferred categories, location (primary store).

  Stage 2 │ Candidate pool
  ────────┼──────────────────────────────────────────────────────────────
          │  Read the seen-set from Redis (degrades to empty on failure),
          │  then fetch the newest eligible reviews excluding it.

  Stage 3 │ Scoring & ranking
  ────────┼──────────────────────────────────────────────────────────────
          │  Five weighted signals per candidate, then a total order by
          │  (final score desc, created_at desc).

  Stage 4 │ Pagination
  ────────┼──────────────────────────────────────────────────────────────
          │  Resume after the cursor position in the recomputed pool and
          │  slice one page; emit the next cursor when the page is full.
"""
import logging
import time
from datetime import datetime
from typing import Callable, Optional

from opentelemetry import trace

from review_feed.candidates import CandidateFetcher
from review_feed.clients.redis_client import SeenStore
from review_feed.context import ViewerContextLoader
from review_feed.errors import InvalidCoordinates, InvalidLimit
from review_feed.models import utcnow
from review_feed.ranking.cursor import Page, decode_cursor, paginate
from review_feed.ranking.geo import Coordinates, is_valid
from review_feed.ranking.models import ScoredCandidate, ViewerContext
from review_feed.ranking.ranker import rank
from review_feed.ranking.scoring import score_candidate
from review_feed.schemas import (
    AlgorithmInfo,
    FeedItem,
    FeedResponse,
    Pagination,
    ScoreBreakdown,
)
from review_feed.telemetry import (
    FEED_CANDIDATES_TOTAL,
    FEED_CURSOR_FALLBACK_TOTAL,
    FEED_LATENCY,
    FEED_SEEN_EXCLUDED_TOTAL,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def parse_coordinates(
    latitude: Optional[float], longitude: Optional[float]
) -> Optional[Coordinates]:
    if latitude is None and longitude is None:
        return None
    if latitude is None or longitude is None:
        raise InvalidCoordinates("latitude and longitude must be provided together")
    if not is_valid(latitude, longitude):
        raise InvalidCoordinates(
            "latitude must be within -90..90 and longitude within -180..180"
        )
    return Coordinates(latitude, longitude)


def check_limit(limit: int, max_limit: int) -> int:
    if not 1 <= limit <= max_limit:
        raise InvalidLimit(f"limit must be within 1..{max_limit}")
    return limit


class FeedService:
    def __init__(
        self,
        loader: ViewerContextLoader,
        fetcher: CandidateFetcher,
        seen_store: SeenStore,
        algorithm_version: str,
        max_limit: int = 50,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._loader = loader
        self._fetcher = fetcher
        self._seen_store = seen_store
        self._algorithm_version = algorithm_version
        self._max_limit = max_limit
        self._clock = clock

    async def get_feed(
        self,
        viewer_id: str,
        cursor: Optional[str] = None,
        limit: int = 10,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> FeedResponse:
        start_time = time.time()

        with tracer.start_as_current_span("get_review_feed") as span:
            span.set_attribute("user.id", viewer_id)
            span.set_attribute("feed.limit", limit)

            # ── Stage 0: validate before touching any store ────────────
            check_limit(limit, self._max_limit)
            override = parse_coordinates(latitude, longitude)
            position = decode_cursor(cursor) if cursor else None

            # ── Stage 1: viewer context ────────────────────────────────
            with tracer.start_as_current_span("stage1_viewer_context"):
                context = await self._loader.load(viewer_id, override)

            # ── Stage 2: seen-set + candidate pool ─────────────────────
            with tracer.start_as_current_span("stage2_candidates"):
                seen_ids = await self._seen_store.get_seen_ids(viewer_id)
                candidates = await self._fetcher.fetch(viewer_id, seen_ids)

            FEED_CANDIDATES_TOTAL.inc(len(candidates))
            FEED_SEEN_EXCLUDED_TOTAL.inc(len(seen_ids))
            span.set_attribute("candidates.pool", len(candidates))
            span.set_attribute("candidates.seen_excluded", len(seen_ids))

            # ── Stage 3: scoring & ranking ─────────────────────────────
            with tracer.start_as_current_span("stage3_rank"):
                now = self._clock()
                ranked = rank(
                    [ScoredCandidate(c, score_candidate(context, c, now)) for c in candidates]
                )

            # ── Stage 4: pagination ────────────────────────────────────
            page = paginate(ranked, position, limit)
            if not page.resumed:
                FEED_CURSOR_FALLBACK_TOTAL.inc()
                span.set_attribute("feed.cursor_fallback", True)

            latency = time.time() - start_time
            FEED_LATENCY.observe(latency)
            span.set_attribute("feed.items_returned", len(page.items))
            logger.debug(
                "Feed for user %s: %d/%d items in %.1fms",
                viewer_id,
                len(page.items),
                len(ranked),
                latency * 1000,
            )

            return self._build_response(context, page, len(seen_ids))

    def _build_response(
        self, context: ViewerContext, page: Page, seen_count: int
    ) -> FeedResponse:
        return FeedResponse(
            items=[_to_feed_item(item) for item in page.items],
            pagination=Pagination(
                next_cursor=page.next_cursor,
                has_next_page=page.has_next_page,
            ),
            algorithm_info=AlgorithmInfo(
                following_count=len(context.following_ids),
                category_count=len(context.category_ids),
                location_based=context.location is not None,
                seen_excluded_count=seen_count,
                algorithm_version=self._algorithm_version,
            ),
        )


def _to_feed_item(item: ScoredCandidate) -> FeedItem:
    c, s = item.candidate, item.score
    return FeedItem(
        review_id=c.review_id,
        user_id=c.author_id,
        username=c.author_username,
        business_id=c.business_id,
        title=c.title,
        caption=c.caption,
        rating=c.rating,
        video_url=c.video_url,
        views=c.views,
        likes_count=c.likes,
        comments_count=c.comments,
        created_at=c.created_at,
        final_score=s.final,
        scores=ScoreBreakdown(
            social=s.social,
            category=s.category,
            location=s.location,
            engagement=s.engagement,
            freshness=s.freshness,
        ),
    )
