"""Shared FastAPI dependencies."""

from mindful.config import get_settings
from mindful.database import get_session_factory
from mindful.gamification.engine import GamificationEngine
from mindful.gamification.repository import SqlAlchemyAccountStore
from mindful.notifications.notifier import LoggingNotifier, Notifier, PubSubNotifier
from mindful.redis_client import get_redis


def get_notifier() -> Notifier:
    """Publish to Redis when it is initialized, otherwise only log."""
    redis = get_redis()
    if redis is None:
        return LoggingNotifier()
    return PubSubNotifier(redis)


def get_engine() -> GamificationEngine:
    """Build a gamification engine over the application's session factory."""
    return GamificationEngine(
        SqlAlchemyAccountStore(get_session_factory()),
        notifier=get_notifier(),
        settings=get_settings(),
    )
