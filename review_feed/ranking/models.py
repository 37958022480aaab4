"""
In-memory types flowing through the ranking pipeline.

These are read-only snapshots built per request from the primary store.
They are deliberately decoupled from the ORM rows so scoring stays a pure
function of plain values.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from review_feed.ranking.geo import Coordinates


@dataclass(frozen=True)
class ViewerContext:
    viewer_id: str
    following_ids: frozenset[str] = frozenset()
    category_ids: frozenset[str] = frozenset()
    location: Optional[Coordinates] = None


@dataclass(frozen=True)
class Candidate:
    review_id: str
    author_id: str
    created_at: datetime
    views: int = 0
    likes: int = 0
    comments: int = 0
    business_id: Optional[str] = None
    business_category_ids: frozenset[str] = frozenset()
    business_location: Optional[Coordinates] = None
    # Display fields, passed through untouched to the response
    author_username: Optional[str] = None
    title: Optional[str] = None
    caption: Optional[str] = None
    rating: Optional[int] = None
    video_url: Optional[str] = None


@dataclass(frozen=True)
class Score:
    social: float
    category: float
    location: float
    engagement: float
    freshness: float
    final: float


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    score: Score

    @property
    def position(self) -> tuple[float, datetime]:
        """The (final score, created_at) pair a cursor points at."""
        return self.score.final, self.candidate.created_at
