"""Redis client used to publish gamification notifications.

Redis is optional: with ``MINDFUL_REDIS_URL`` unset the client stays ``None``
and notifications are only logged.
"""

import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


async def init_redis(url: str | None) -> None:
    """Create the Redis client, or leave it unset when no URL is configured."""
    global _client  # noqa: PLW0603
    if not url:
        logger.info("No Redis URL configured; notifications will only be logged")
        return
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=10,
    )


async def close_redis() -> None:
    """Close the Redis client if one was created."""
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis | None:
    """Get the Redis client, or None when Redis is disabled or not initialized."""
    return _client
