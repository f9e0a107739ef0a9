"""Gamification arq worker: runs the nightly streak reset.

Usage: arq mindful.gamification.worker.WorkerSettings
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from arq import cron
from arq.connections import RedisSettings

from mindful.config import get_settings
from mindful.database import close_db, get_session_factory, init_db
from mindful.dependencies import get_notifier
from mindful.gamification.engine import GamificationEngine
from mindful.gamification.repository import SqlAlchemyAccountStore
from mindful.middleware.logging import setup_logging
from mindful.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)

_settings = get_settings()


async def gamification_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize DB + Redis connections on worker startup."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url, pool_size=2, max_overflow=0, echo=settings.db_echo)
    await init_redis(settings.redis_url)

    ctx["engine"] = GamificationEngine(
        SqlAlchemyAccountStore(get_session_factory()),
        notifier=get_notifier(),
        settings=settings,
    )
    logger.info("Gamification worker started (streak timezone %s)", settings.streak_timezone)


async def gamification_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    await close_redis()
    await close_db()
    logger.info("Gamification worker shut down")


async def reset_expired_streaks(ctx: dict) -> dict[str, int]:  # type: ignore[type-arg]
    """Scheduled task: zero streaks that missed yesterday's check-in."""
    engine: GamificationEngine = ctx["engine"]
    result = await engine.reset_expired_streaks()
    logger.info(
        "Nightly streak reset: %d users reset, %d processed",
        result.users_reset, result.total_processed,
    )
    return result.model_dump()


class WorkerSettings:
    """arq worker settings for the nightly streak reset."""

    functions = [reset_expired_streaks]
    cron_jobs = [
        cron(
            reset_expired_streaks,
            hour=_settings.streak_reset_hour,
            minute=_settings.streak_reset_minute,
            run_at_startup=False,
        ),
    ]
    on_startup = gamification_startup
    on_shutdown = gamification_shutdown
    # arq keeps its job queue in Redis, so the worker needs it even when the API runs without.
    redis_settings = RedisSettings.from_dsn(_settings.redis_url or "redis://localhost:6379/0")
    # Cron hours are read in the streak timezone so the reset follows its midnight.
    timezone = ZoneInfo(_settings.streak_timezone)
    max_jobs = 1
    job_timeout = 600
