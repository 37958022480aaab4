"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Primary store (MySQL-protocol) ─────────────────────────────────────
    db_host: str = "mysql"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "reviews"

    @property
    def db_url(self) -> str:
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Redis (seen-set cache) ─────────────────────────────────────────────
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0
    seen_ttl_days: int = 30              # how long a review stays "seen"

    @property
    def seen_ttl_seconds(self) -> int:
        return self.seen_ttl_days * 24 * 60 * 60

    # ── Feed ranking ───────────────────────────────────────────────────────
    candidate_pool_size: int = 100       # reviews scored per request
    feed_default_limit: int = 10
    feed_max_limit: int = 50
    algorithm_version: str = "weighted-v1"

    # ── HTTP server ────────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ── Observability ──────────────────────────────────────────────────────
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "review-feed"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
