"""Shared helpers for the job queue."""

from arq.connections import RedisSettings

from app.config import settings


def get_redis_settings() -> RedisSettings:
    """Get Redis settings for ARQ from app configuration.

    Returns:
        ARQ RedisSettings instance
    """
    return RedisSettings.from_dsn(str(settings.redis_url))
