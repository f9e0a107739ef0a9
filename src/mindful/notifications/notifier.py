"""Outbound notifications for level-ups, badge unlocks and streak bonuses.

The engine calls these only after its unit of work has committed. Delivery
(e-mail, push, in-app) belongs to subscribers of the pub/sub channels.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Protocol

from mindful.gamification.constants import (
    badge_unlocked_message,
    level_up_message,
    streak_bonus_message,
)

logger = logging.getLogger(__name__)

LEVEL_UP_CHANNEL = "pubsub:level_up"
BADGE_UNLOCKED_CHANNEL = "pubsub:badge_unlocked"
STREAK_BONUS_CHANNEL = "pubsub:streak_bonus"


class Notifier(Protocol):
    async def notify_level_up(self, account_id: int, new_level: int, level_name: str) -> None: ...

    async def notify_badge_unlocked(self, account_id: int, badge_name: str) -> None: ...

    async def notify_streak_bonus(self, account_id: int, days: int, bonus_amount: int) -> None: ...


class PubSubNotifier:
    """Publish gamification events to Redis pub/sub."""

    def __init__(self, redis: object) -> None:
        self.redis = redis

    async def _publish(self, channel: str, payload: dict) -> None:
        payload["sent_at"] = datetime.now(timezone.utc).isoformat()
        await self.redis.publish(channel, json.dumps(payload))  # type: ignore[attr-defined]

    async def notify_level_up(self, account_id: int, new_level: int, level_name: str) -> None:
        await self._publish(LEVEL_UP_CHANNEL, {
            "account_id": account_id,
            "new_level": new_level,
            "level_name": level_name,
            "message": level_up_message(new_level, level_name),
        })

    async def notify_badge_unlocked(self, account_id: int, badge_name: str) -> None:
        await self._publish(BADGE_UNLOCKED_CHANNEL, {
            "account_id": account_id,
            "badge_name": badge_name,
            "message": badge_unlocked_message(badge_name),
        })

    async def notify_streak_bonus(self, account_id: int, days: int, bonus_amount: int) -> None:
        await self._publish(STREAK_BONUS_CHANNEL, {
            "account_id": account_id,
            "days": days,
            "bonus_amount": bonus_amount,
            "message": streak_bonus_message(days),
        })


class LoggingNotifier:
    """Fallback used when no Redis connection is configured."""

    async def notify_level_up(self, account_id: int, new_level: int, level_name: str) -> None:
        logger.info("Account %s leveled up to %s: %s", account_id, new_level, level_name)

    async def notify_badge_unlocked(self, account_id: int, badge_name: str) -> None:
        logger.info("Account %s unlocked badge: %s", account_id, badge_name)

    async def notify_streak_bonus(self, account_id: int, days: int, bonus_amount: int) -> None:
        logger.info("Account %s earned a %d-day streak bonus of %d points", account_id, days, bonus_amount)
