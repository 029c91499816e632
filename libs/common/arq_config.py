"""ARQ (Async Redis Queue) settings for the notification worker.

The API services never talk to Redis: checkout writes outbox rows and the
worker's own cron sweep turns them into jobs. Only the worker and the
operator tooling need these settings.
"""

from urllib.parse import urlparse

from arq.connections import RedisSettings
from libs.common.config import get_settings

QUEUE_NAME = "pasarantar:queue"


def get_redis_settings() -> RedisSettings:
    """Build RedisSettings from REDIS_URL (``redis://`` or ``rediss://``)."""
    parsed = urlparse(get_settings().REDIS_URL)

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or "0"),
        username=parsed.username,
        password=parsed.password,
        ssl=parsed.scheme == "rediss",
        conn_timeout=5,
    )
