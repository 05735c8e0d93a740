"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Database (MySQL-protocol compatible) ───────────────────────────────
    db_host: str = "tidb"
    db_port: int = 4000
    db_user: str = "root"
    db_password: str = ""
    db_database: str = "social_feed"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    # Full SQLAlchemy URL; takes precedence over the db_* fields when set
    database_url: Optional[str] = None

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_database}"
        )

    # ── Redis ──────────────────────────────────────────────────────────────
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0
    feed_count_cache_ttl: int = 600      # 10 min TTL for like/comment counters

    # ── Observability ──────────────────────────────────────────────────────
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    tracing_enabled: bool = True
    service_name: str = "feed-service"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
