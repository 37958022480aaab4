"""
Pydantic request / response schemas for the API layer.
Kept separate from ORM models to avoid coupling transport to storage.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


# ──────────────────────────── Feed ────────────────────────────────────────

class ScoreBreakdown(BaseModel):
    social: float
    category: float
    location: float
    engagement: float
    freshness: float


class FeedItem(BaseModel):
    """A ranked review returned in the feed."""
    review_id: str
    user_id: str
    username: Optional[str]
    business_id: Optional[str]
    title: Optional[str]
    caption: Optional[str]
    rating: Optional[int]
    video_url: Optional[str]
    views: int
    likes_count: int
    comments_count: int
    created_at: datetime
    # Ranking signals exposed for debugging / tuning
    final_score: float
    scores: ScoreBreakdown


class Pagination(BaseModel):
    next_cursor: Optional[str]
    has_next_page: bool


class AlgorithmInfo(BaseModel):
    following_count: int
    category_count: int
    location_based: bool
    seen_excluded_count: int
    algorithm_version: str


class FeedResponse(BaseModel):
    items: list[FeedItem]
    pagination: Pagination
    algorithm_info: AlgorithmInfo


# ──────────────────────────── Seen reviews ────────────────────────────────

class SeenRecord(BaseModel):
    user_id: str
    review_ids: list[str] = Field(..., max_length=500)


class SeenListResponse(BaseModel):
    user_id: str
    review_ids: list[str]
    count: int


class SeenStatusResponse(BaseModel):
    user_id: str
    review_id: str
    seen: bool


# ──────────────────────────── Errors ──────────────────────────────────────

class ErrorResponse(BaseModel):
    detail: str
    error: str
