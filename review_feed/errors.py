"""
Error taxonomy for the feed pipeline.

Every failure carries an ErrorKind tag and a retryable flag. The pipeline never
imports HTTP types; the transport layer (main.py) maps kinds to status codes.

Seen-set cache failures are deliberately absent here: the Redis client recovers
them locally and the request carries on without deduplication.
"""
import enum


class ErrorKind(str, enum.Enum):
    VIEWER_NOT_FOUND = "viewer_not_found"
    VIEWER_INACTIVE = "viewer_inactive"
    INVALID_CURSOR = "invalid_cursor"
    INVALID_COORDINATES = "invalid_coordinates"
    INVALID_LIMIT = "invalid_limit"
    STORE_UNAVAILABLE = "store_unavailable"


class FeedError(Exception):
    kind: ErrorKind
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ViewerNotFound(FeedError):
    kind = ErrorKind.VIEWER_NOT_FOUND


class ViewerInactive(FeedError):
    kind = ErrorKind.VIEWER_INACTIVE


class InvalidCursor(FeedError):
    kind = ErrorKind.INVALID_CURSOR


class InvalidCoordinates(FeedError):
    kind = ErrorKind.INVALID_COORDINATES


class InvalidLimit(FeedError):
    kind = ErrorKind.INVALID_LIMIT


class StoreUnavailable(FeedError):
    """Primary store failure. Callers may retry with backoff."""

    kind = ErrorKind.STORE_UNAVAILABLE
    retryable = True
