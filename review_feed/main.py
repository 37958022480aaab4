"""
Review Feed API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Initialise DB connection pool (primary review store)
  3. Connect to Redis (seen-set cache; degraded mode if unreachable)
  4. Expose Prometheus /metrics endpoint
"""
import logging

import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from review_feed.clients.redis_client import close_redis, init_redis, redis_healthy
from review_feed.config import settings
from review_feed.database import engine
from review_feed.errors import ErrorKind, FeedError
from review_feed.routers import feed, seen
from review_feed.telemetry import instrument_app, setup_tracing

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()

ERROR_STATUS = {
    ErrorKind.VIEWER_NOT_FOUND: 404,
    ErrorKind.VIEWER_INACTIVE: 404,
    ErrorKind.INVALID_CURSOR: 400,
    ErrorKind.INVALID_COORDINATES: 400,
    ErrorKind.INVALID_LIMIT: 400,
    ErrorKind.STORE_UNAVAILABLE: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of all external connections."""
    logger.info("Starting Review Feed API (env=%s)", settings.environment)

    await init_redis()

    logger.info("All services connected. API ready.")
    yield

    logger.info("Shutting down...")
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Review Feed API",
    description=(
        "Personalized video review feed: social, category, location, "
        "engagement and freshness signals with cursor pagination."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(FeedError)
async def feed_error_handler(request: Request, exc: FeedError) -> JSONResponse:
    status_code = ERROR_STATUS.get(exc.kind, 500)
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.kind.value},
        headers=headers,
    )


# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(feed.router, prefix="/feed", tags=["Feed"])
app.include_router(seen.router, prefix="/feed", tags=["Seen"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    redis_status = "ok" if await redis_healthy() else "unavailable"
    return {"status": "ok", "service": settings.service_name, "redis": redis_status}


def run() -> None:
    logger.info("Starting feed server on %s:%d", settings.api_host, settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
