"""Gamification engine: the entry point the rest of the platform calls.

Each operation runs in one unit of work. Notifications queued during the
unit are handed to the Notifier only after it commits; a failing Notifier is
logged and never turns a committed award into an error.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from mindful.config import Settings, get_settings
from mindful.gamification import leaderboard_service, points_service, streak_service
from mindful.gamification.badge_evaluator import BadgeCategory, evaluate_all_in_unit, evaluate_in_unit
from mindful.gamification.constants import PointKind
from mindful.gamification.repository import AccountStore, OutboxEvent
from mindful.gamification.schemas import (
    AccountBadgesResponse,
    AwardResult,
    BadgeResponse,
    CalendarDay,
    CheckInResult,
    LeaderboardPeriod,
    LeaderboardResponse,
    OwnedBadgeResponse,
    PointHistory,
    Reconciliation,
    StreakInfo,
    StreakResetResult,
    StreakStats,
    UserStats,
)
from mindful.notifications.notifier import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)


class GamificationEngine:
    """Points ledger, streak tracker and badge evaluator over an injected store."""

    def __init__(
        self,
        store: AccountStore,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.settings = settings or get_settings()

    # --- Points ---

    async def create_account_state(self, account_id: int) -> None:
        """Make an account point-eligible (called on registration)."""
        async with self.store.unit_of_work() as uow:
            await uow.repo.create_state(account_id)

    async def award_points(
        self,
        account_id: int,
        kind: PointKind | str,
        description: str | None = None,
        reference_id: str | None = None,
        reference_type: str | None = None,
        now: datetime | None = None,
    ) -> AwardResult:
        """Award the fixed amount for ``kind`` plus any badges it unlocks.

        Raises NotFoundError for an unknown account and PersistenceError when
        the transaction fails; in both cases nothing was applied.
        """
        async with self.store.unit_of_work() as uow:
            result = await points_service.award_in_unit(
                uow, account_id, kind,
                description=description,
                reference_id=reference_id,
                reference_type=reference_type,
                now=now,
            )
        logger.info(
            "Awarded %d points (%s) to account %s, total=%d",
            result.points_awarded, kind, account_id, result.new_total,
        )
        await self._dispatch(uow.outbox)
        return result

    async def get_user_stats(self, account_id: int) -> UserStats:
        async with self.store.read() as repo:
            return await points_service.get_user_stats(
                repo, account_id, recent_limit=self.settings.recent_transactions_limit
            )

    async def get_point_history(self, account_id: int, limit: int = 50, offset: int = 0) -> PointHistory:
        limit = max(1, min(limit, self.settings.point_history_max_limit))
        async with self.store.read() as repo:
            return await points_service.get_point_history(repo, account_id, limit=limit, offset=max(0, offset))

    async def reconcile(self, account_id: int) -> Reconciliation:
        async with self.store.read() as repo:
            return await points_service.reconcile(repo, account_id)

    # --- Streaks ---

    async def perform_daily_check_in(self, account_id: int, now: datetime | None = None) -> CheckInResult:
        now = now or datetime.now(timezone.utc)
        async with self.store.unit_of_work() as uow:
            result = await streak_service.check_in_in_unit(
                uow, account_id, now, tz_name=self.settings.streak_timezone
            )
        if result.is_new_check_in:
            logger.info("Account %s checked in, streak=%d", account_id, result.current_streak)
        await self._dispatch(uow.outbox)
        return result

    async def reset_expired_streaks(self, now: datetime | None = None) -> StreakResetResult:
        now = now or datetime.now(timezone.utc)
        async with self.store.unit_of_work() as uow:
            return await streak_service.reset_expired_in_unit(uow, now, tz_name=self.settings.streak_timezone)

    async def get_streak_info(self, account_id: int, now: datetime | None = None) -> StreakInfo:
        async with self.store.read() as repo:
            return await streak_service.get_streak_info(
                repo, account_id, now, tz_name=self.settings.streak_timezone
            )

    async def get_check_in_calendar(
        self, account_id: int, days: int = 30, now: datetime | None = None
    ) -> list[CalendarDay]:
        async with self.store.read() as repo:
            return await streak_service.get_check_in_calendar(
                repo, account_id, days, now, tz_name=self.settings.streak_timezone
            )

    async def get_streak_stats(self, account_id: int, now: datetime | None = None) -> StreakStats:
        async with self.store.read() as repo:
            return await streak_service.get_streak_stats(
                repo, account_id, now, tz_name=self.settings.streak_timezone
            )

    # --- Badges ---

    async def list_badges(self) -> list[BadgeResponse]:
        """Public catalog: active badges that are not secret."""
        async with self.store.read() as repo:
            badges = await repo.list_active_badges()
        return [
            BadgeResponse(
                name=b.name,
                title=b.title,
                description=b.description,
                category=b.category,
                rarity=b.rarity,
                points_reward=b.points_reward,
                icon=b.icon,
            )
            for b in badges
            if not b.is_secret
        ]

    async def get_account_badges(self, account_id: int) -> AccountBadgesResponse:
        """Badges the account owns, secret ones included, newest unlock first."""
        async with self.store.read() as repo:
            await repo.require_state(account_id)
            owned = await repo.list_account_badges(account_id)
        badges = [
            OwnedBadgeResponse(
                name=ab.badge.name,
                title=ab.badge.title,
                description=ab.badge.description,
                category=ab.badge.category,
                rarity=ab.badge.rarity,
                points_reward=ab.badge.points_reward,
                icon=ab.badge.icon,
                unlocked_at=ab.unlocked_at,
            )
            for ab in owned
        ]
        return AccountBadgesResponse(badges=badges, total=len(badges))

    async def check_badges(
        self, account_id: int, category: BadgeCategory | str, now: datetime | None = None
    ) -> list[str]:
        """Evaluate one category; safe to call redundantly."""
        async with self.store.unit_of_work() as uow:
            awarded = await evaluate_in_unit(uow, account_id, BadgeCategory(category), now)
        await self._dispatch(uow.outbox)
        return awarded

    async def check_all_badges(self, account_id: int, now: datetime | None = None) -> list[str]:
        async with self.store.unit_of_work() as uow:
            awarded = await evaluate_all_in_unit(uow, account_id, now)
        await self._dispatch(uow.outbox)
        return awarded

    # --- Leaderboard ---

    async def get_leaderboard(
        self,
        period: LeaderboardPeriod | str = LeaderboardPeriod.ALL,
        limit: int = 50,
        now: datetime | None = None,
    ) -> LeaderboardResponse:
        async with self.store.read() as repo:
            return await leaderboard_service.get_leaderboard(repo, period, limit=limit, now=now)

    # --- Notifications ---

    async def _dispatch(self, outbox: list[OutboxEvent]) -> None:
        for event in outbox:
            try:
                match event.event:
                    case "level_up":
                        await self.notifier.notify_level_up(
                            event.account_id, event.data["new_level"], event.data["level_name"]
                        )
                    case "badge_unlocked":
                        await self.notifier.notify_badge_unlocked(event.account_id, event.data["badge_name"])
                    case "streak_bonus":
                        await self.notifier.notify_streak_bonus(
                            event.account_id, event.data["days"], event.data["bonus_amount"]
                        )
                    case _:
                        logger.warning("Unknown outbox event: %s", event.event)
            except Exception:
                logger.warning(
                    "Failed to send %s notification for account %s",
                    event.event, event.account_id, exc_info=True,
                )
