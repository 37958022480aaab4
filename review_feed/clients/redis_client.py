"""
Redis client wrapper.

Responsibilities:
  • Connection     — one process-wide client, created in the app lifespan.
  • Seen reviews   — SET keyed by seen_reviews:{user_id}
                       member = review_id
                       TTL    = settings.seen_ttl_days, refreshed on every write

The seen-set only ever improves the feed (no repeats); it is never allowed to
break it. Every Redis error is logged, counted and swallowed here: reads fall
back to "nothing seen", writes become no-ops.
"""
import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from review_feed.config import settings
from review_feed.telemetry import SEEN_STORE_ERRORS_TOTAL

logger = logging.getLogger(__name__)

_redis: Optional[aioredis.Redis] = None


async def init_redis() -> None:
    global _redis
    _redis = aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        decode_responses=True,
    )
    try:
        await _redis.ping()
        logger.info("Redis connected at %s:%s", settings.redis_host, settings.redis_port)
    except RedisError as exc:
        # The feed still works without the seen-set, so start anyway
        logger.warning("Redis ping failed at startup: %s — seen-set degraded", exc)


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    if _redis is None:
        raise RuntimeError("Redis not initialised — call init_redis() at startup")
    return _redis


# ─────────────────────── Seen Reviews (SET) ───────────────────────────────

SEEN_KEY = "seen_reviews:{user_id}"


class SeenStore:
    """Per-viewer set of review ids already shown in the feed."""

    def __init__(self, redis: aioredis.Redis, ttl_seconds: int) -> None:
        self._redis = redis
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key(user_id: str) -> str:
        return SEEN_KEY.format(user_id=user_id)

    def _recover(self, operation: str, user_id: str, exc: Exception) -> None:
        SEEN_STORE_ERRORS_TOTAL.labels(operation=operation).inc()
        logger.warning(
            "Seen-set %s failed (user=%s): %s — continuing without it",
            operation,
            user_id,
            exc,
        )

    async def mark_seen(
        self, user_id: str, review_id: str, ttl: Optional[int] = None
    ) -> None:
        await self.mark_seen_batch(user_id, [review_id], ttl)

    async def mark_seen_batch(
        self, user_id: str, review_ids: list[str], ttl: Optional[int] = None
    ) -> None:
        """
        SADD the ids and refresh the key TTL in one round-trip.
        Re-adding an existing member is harmless, so this is idempotent.
        """
        if not review_ids:
            return
        key = self.key(user_id)
        try:
            pipe = self._redis.pipeline()
            pipe.sadd(key, *review_ids)
            pipe.expire(key, self.ttl_seconds if ttl is None else ttl)
            await pipe.execute()
        except RedisError as exc:
            self._recover("mark_seen", user_id, exc)
            return
        logger.debug("Marked %d reviews as seen for user %s", len(review_ids), user_id)

    async def get_seen_ids(self, user_id: str) -> list[str]:
        try:
            members = await self._redis.smembers(self.key(user_id))
        except RedisError as exc:
            self._recover("get_seen_ids", user_id, exc)
            return []
        return list(members or [])

    async def is_seen(self, user_id: str, review_id: str) -> bool:
        try:
            return bool(await self._redis.sismember(self.key(user_id), review_id))
        except RedisError as exc:
            self._recover("is_seen", user_id, exc)
            return False

    async def remove_seen(self, user_id: str, review_id: str) -> None:
        try:
            await self._redis.srem(self.key(user_id), review_id)
        except RedisError as exc:
            self._recover("remove_seen", user_id, exc)
            return
        logger.debug("Removed review %s from seen list of user %s", review_id, user_id)

    async def clear_seen(self, user_id: str) -> None:
        try:
            await self._redis.delete(self.key(user_id))
        except RedisError as exc:
            self._recover("clear_seen", user_id, exc)
            return
        logger.info("Cleared seen reviews for user %s", user_id)

    async def count(self, user_id: str) -> int:
        try:
            return int(await self._redis.scard(self.key(user_id)) or 0)
        except RedisError as exc:
            self._recover("count", user_id, exc)
            return 0


async def redis_healthy() -> bool:
    try:
        return bool(await get_redis().ping())
    except (RedisError, RuntimeError) as exc:
        logger.warning("Redis health check failed: %s", exc)
        return False


def get_seen_store() -> SeenStore:
    """FastAPI dependency handing the shared client to a SeenStore."""
    return SeenStore(get_redis(), settings.seen_ttl_seconds)
