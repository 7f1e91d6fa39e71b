"""ARQ (Async Redis Queue) helpers shared by the store worker and its producers.

Producers call ``enqueue`` with the worker function name; the worker reads
``get_redis_settings()`` and listens on ``STORE_QUEUE_NAME``.
"""

from typing import Any, Optional
from urllib.parse import urlparse

from arq import create_pool
from arq.connections import RedisSettings
from arq.jobs import Job
from libs.common.config import get_settings

STORE_QUEUE_NAME = "arq:store"


def get_redis_settings() -> RedisSettings:
    """Parse REDIS_URL from application settings into ARQ RedisSettings."""
    settings = get_settings()
    parsed = urlparse(settings.REDIS_URL)

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or "0"),
        password=parsed.password,
        ssl=parsed.scheme == "rediss",
        conn_timeout=settings.REDIS_CONNECT_TIMEOUT_SECONDS,
    )


async def enqueue(function: str, *args: Any) -> Optional[Job]:
    """Enqueue one job on the store queue, closing the pool afterwards."""
    pool = await create_pool(get_redis_settings())
    try:
        return await pool.enqueue_job(function, *args, _queue_name=STORE_QUEUE_NAME)
    finally:
        await pool.aclose()
