"""
Opaque pagination cursors.

A cursor is base64("<final score>_<ISO created_at>") of the last item on the
previous page. It is not signed: only this service emits and reads it.

The candidate pool is recomputed on every request, so resuming means scanning
the freshly ranked pool for an item at exactly the encoded position. When the
pool has shifted underneath (new reviews, changed counters) there may be no
exact match; we then restart from the top rather than fail the request.
"""
import base64
import binascii
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from review_feed.errors import InvalidCursor
from review_feed.ranking.models import ScoredCandidate

logger = logging.getLogger(__name__)

DELIMITER = "_"


@dataclass(frozen=True)
class Page:
    items: list[ScoredCandidate]
    next_cursor: Optional[str]
    resumed: bool = True

    @property
    def has_next_page(self) -> bool:
        return self.next_cursor is not None


def encode_cursor(score: float, created_at: datetime) -> str:
    payload = f"{score!r}{DELIMITER}{created_at.isoformat()}"
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> tuple[float, datetime]:
    try:
        payload = base64.b64decode(cursor, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise InvalidCursor("Cursor is not valid base64") from exc

    raw_score, sep, raw_timestamp = payload.partition(DELIMITER)
    if not sep:
        raise InvalidCursor("Cursor payload is missing its delimiter")
    try:
        score = float(raw_score)
        created_at = datetime.fromisoformat(raw_timestamp)
    except ValueError as exc:
        raise InvalidCursor("Cursor payload is malformed") from exc
    if not math.isfinite(score):
        raise InvalidCursor("Cursor score is not a finite number")
    return score, created_at


def resume_index(
    ranked: list[ScoredCandidate], position: tuple[float, datetime]
) -> Optional[int]:
    """Index of the item sitting exactly at `position`, or None."""
    for index, item in enumerate(ranked):
        if item.position == position:
            return index
    return None


def paginate(
    ranked: list[ScoredCandidate],
    position: Optional[tuple[float, datetime]],
    limit: int,
) -> Page:
    start = 0
    resumed = True
    if position is not None:
        index = resume_index(ranked, position)
        if index is None:
            logger.debug("Cursor position %s not in pool — restarting", position)
            resumed = False
        else:
            start = index + 1

    items = ranked[start : start + limit]
    next_cursor = None
    if items and len(items) == limit:
        next_cursor = encode_cursor(*items[-1].position)
    return Page(items=items, next_cursor=next_cursor, resumed=resumed)
