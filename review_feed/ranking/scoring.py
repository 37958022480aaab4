"""
Relevance scoring for feed candidates.

Each candidate gets five independent signals on a 0–100 scale, combined with
fixed weights that sum to 1.0:

  final = 0.30 * social        (author is followed by the viewer)
        + 0.25 * category      (business shares a category with the viewer)
        + 0.20 * location      (proximity of the business to the viewer)
        + 0.15 * engagement    (views, likes, comments)
        + 0.10 * freshness     (age tiers)

Everything here is pure: no I/O, no clock reads. The caller passes `now` so
that identical inputs always produce an identical score, which the cursor
codec relies on to find its resume position in a recomputed pool.
"""
from datetime import datetime
from typing import Optional

from review_feed.ranking.geo import Coordinates, equirectangular_km
from review_feed.ranking.models import Candidate, Score, ViewerContext

SOCIAL_WEIGHT = 0.30
CATEGORY_WEIGHT = 0.25
LOCATION_WEIGHT = 0.20
ENGAGEMENT_WEIGHT = 0.15
FRESHNESS_WEIGHT = 0.10

MAX_SCORE = 100.0

FOLLOWED_AUTHOR_SCORE = 100.0
CATEGORY_MATCH_SCORE = 80.0
CATEGORY_BASELINE_SCORE = 10.0     # unmatched content keeps some relevance
LOCATION_UNKNOWN_SCORE = 30.0
LOCATION_POINTS_PER_KM = 2.0       # reaches 0 at 50 km

VIEW_POINTS = 0.1
LIKE_POINTS = 2.0
COMMENT_POINTS = 3.0

# (max age in hours, score); inclusive bounds, checked in ascending order
FRESHNESS_TIERS = (
    (24, 100.0),
    (72, 80.0),
    (168, 60.0),
    (720, 40.0),
)
FRESHNESS_FLOOR_SCORE = 20.0

FINAL_PRECISION = 4


def social_score(following_ids: frozenset[str], author_id: str) -> float:
    return FOLLOWED_AUTHOR_SCORE if author_id in following_ids else 0.0


def category_score(
    viewer_categories: frozenset[str], business_categories: frozenset[str]
) -> float:
    if viewer_categories & business_categories:
        return CATEGORY_MATCH_SCORE
    return CATEGORY_BASELINE_SCORE


def location_score(
    viewer: Optional[Coordinates], business: Optional[Coordinates]
) -> float:
    """100 at the same spot, minus two points per km, floored at 0."""
    if viewer is None or business is None:
        return LOCATION_UNKNOWN_SCORE
    distance = equirectangular_km(viewer, business)
    return max(0.0, MAX_SCORE - LOCATION_POINTS_PER_KM * distance)


def engagement_score(views: int, likes: int, comments: int) -> float:
    raw = views * VIEW_POINTS + likes * LIKE_POINTS + comments * COMMENT_POINTS
    return min(MAX_SCORE, raw)


def freshness_score(created_at: datetime, now: datetime) -> float:
    age_hours = (now - created_at).total_seconds() / 3600
    for max_hours, score in FRESHNESS_TIERS:
        if age_hours <= max_hours:
            return score
    return FRESHNESS_FLOOR_SCORE


def combine(
    social: float,
    category: float,
    location: float,
    engagement: float,
    freshness: float,
) -> float:
    total = (
        SOCIAL_WEIGHT * social
        + CATEGORY_WEIGHT * category
        + LOCATION_WEIGHT * location
        + ENGAGEMENT_WEIGHT * engagement
        + FRESHNESS_WEIGHT * freshness
    )
    # Rounding absorbs float noise so the value survives a cursor round-trip
    return round(max(0.0, min(MAX_SCORE, total)), FINAL_PRECISION)


def score_candidate(
    context: ViewerContext, candidate: Candidate, now: datetime
) -> Score:
    social = social_score(context.following_ids, candidate.author_id)
    category = category_score(context.category_ids, candidate.business_category_ids)
    location = location_score(context.location, candidate.business_location)
    engagement = engagement_score(candidate.views, candidate.likes, candidate.comments)
    freshness = freshness_score(candidate.created_at, now)
    return Score(
        social=social,
        category=category,
        location=location,
        engagement=engagement,
        freshness=freshness,
        final=combine(social, category, location, engagement, freshness),
    )
