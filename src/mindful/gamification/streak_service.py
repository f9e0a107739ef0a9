"""Streak tracking: daily check-ins, milestone bonuses and the nightly reset.

Every day boundary goes through ``local_day``: the instant is converted to the
configured streak timezone and truncated to its calendar date. Check-ins,
"yesterday" lookups and the reset job all share it.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from mindful.config import get_settings
from mindful.gamification.badge_evaluator import BadgeCategory, evaluate_in_unit
from mindful.gamification.constants import STREAK_BONUS_KINDS, PointKind
from mindful.gamification.errors import ConstraintViolation
from mindful.gamification.points_service import award_in_unit
from mindful.gamification.repository import GamificationRepository, UnitOfWork
from mindful.gamification.schemas import (
    CalendarDay,
    CheckInResult,
    StreakInfo,
    StreakResetResult,
    StreakStats,
)

logger = logging.getLogger(__name__)


def streak_zone(tz_name: str | None = None) -> ZoneInfo:
    return ZoneInfo(tz_name or get_settings().streak_timezone)


def local_day(now: datetime | None = None, tz_name: str | None = None) -> date:
    """Calendar date of ``now`` in the streak timezone (naive input is UTC)."""
    if now is None:
        now = datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(streak_zone(tz_name)).date()


def previous_day(day: date) -> date:
    return day - timedelta(days=1)


def next_streak(current_streak: int, checked_in_yesterday: bool) -> int:
    """A check-in continues the streak only if yesterday has one too."""
    return current_streak + 1 if checked_in_yesterday else 1


async def check_in_in_unit(
    uow: UnitOfWork,
    account_id: int,
    now: datetime,
    tz_name: str | None = None,
) -> CheckInResult:
    """Record today's check-in and advance the streak.

    Duplicate calls on the same day (including concurrent ones that lose the
    insert race) return ``is_new_check_in=False`` and award nothing.
    """
    repo = uow.repo
    # Lock first so concurrent check-ins for one account serialize here.
    state = await repo.require_state(account_id, for_update=True)
    today = local_day(now, tz_name)

    already = CheckInResult(
        is_new_check_in=False,
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
    )
    if await repo.has_check_in(account_id, today):
        return already

    try:
        await repo.insert_check_in(account_id, today, now)
    except ConstraintViolation:
        return already

    checked_in_yesterday = await repo.has_check_in(account_id, previous_day(today))
    new_streak = next_streak(state.current_streak, checked_in_yesterday)
    new_longest = max(state.longest_streak, new_streak)

    state.current_streak = new_streak
    state.longest_streak = new_longest
    state.last_active_at = now
    state.updated_at = now
    await repo.session.flush()

    daily = await award_in_unit(
        uow, account_id, PointKind.DAILY_LOGIN,
        description="Check-in diário realizado",
        reference_type="check_in",
        now=now,
    )
    badges = list(daily.badges_unlocked)

    level_up = daily.level_up
    streak_bonus = None
    bonus_kind = STREAK_BONUS_KINDS.get(new_streak)
    if bonus_kind is not None:
        bonus = await award_in_unit(
            uow, account_id, bonus_kind,
            description=f"Bônus de sequência: {new_streak} dias consecutivos",
            reference_type="streak",
            now=now,
        )
        streak_bonus = bonus.points_awarded
        if bonus.level_up is not None:
            level_up = bonus.level_up
        uow.emit("streak_bonus", account_id, days=new_streak, bonus_amount=streak_bonus)

    badges += await evaluate_in_unit(uow, account_id, BadgeCategory.MILESTONE, now)

    return CheckInResult(
        is_new_check_in=True,
        current_streak=new_streak,
        longest_streak=new_longest,
        points_awarded=daily.points_awarded,
        streak_bonus=streak_bonus,
        badges_unlocked=badges,
        level_up=level_up,
    )


async def reset_expired_in_unit(
    uow: UnitOfWork,
    now: datetime,
    tz_name: str | None = None,
) -> StreakResetResult:
    """Zero the streak of every account whose last check-in is before yesterday.

    Should run shortly after midnight in the streak timezone. A check-in on
    the job's own day also keeps the streak (it restarted at 1). The longest
    streak is never touched. Running it twice finds nothing left to reset.
    """
    repo = uow.repo
    today = local_day(now, tz_name)
    yesterday = previous_day(today)

    states = await repo.accounts_with_streak()
    reset = 0
    for state in states:
        if await repo.has_check_in(state.account_id, yesterday):
            continue
        if await repo.has_check_in(state.account_id, today):
            continue
        logger.debug("Resetting %d-day streak for account %s", state.current_streak, state.account_id)
        state.current_streak = 0
        state.updated_at = now
        reset += 1

    await repo.session.flush()
    logger.info("Streak reset complete: %d of %d accounts reset for %s", reset, len(states), yesterday)
    return StreakResetResult(users_reset=reset, total_processed=len(states))


async def has_checked_in_today(
    repo: GamificationRepository,
    account_id: int,
    now: datetime | None = None,
    tz_name: str | None = None,
) -> bool:
    return await repo.has_check_in(account_id, local_day(now, tz_name))


async def get_streak_info(
    repo: GamificationRepository,
    account_id: int,
    now: datetime | None = None,
    tz_name: str | None = None,
) -> StreakInfo:
    """Current and longest streak plus check-in totals."""
    state = await repo.require_state(account_id)
    return StreakInfo(
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
        last_check_in_date=await repo.last_check_in_date(account_id),
        check_in_count=await repo.count_check_ins(account_id),
        checked_in_today=await has_checked_in_today(repo, account_id, now, tz_name),
    )


async def get_check_in_calendar(
    repo: GamificationRepository,
    account_id: int,
    days: int = 30,
    now: datetime | None = None,
    tz_name: str | None = None,
) -> list[CalendarDay]:
    """One entry per day for the last ``days`` days, oldest first."""
    await repo.require_state(account_id)
    today = local_day(now, tz_name)
    start = today - timedelta(days=days - 1)
    checked = await repo.check_in_dates(account_id, start, today)

    return [
        CalendarDay(day=day, has_check_in=day in checked, is_today=day == today)
        for day in (start + timedelta(days=i) for i in range(days))
    ]


async def get_streak_stats(
    repo: GamificationRepository,
    account_id: int,
    now: datetime | None = None,
    tz_name: str | None = None,
) -> StreakStats:
    """Dashboard figures: totals for the last 7 days, this month and a weekly average."""
    state = await repo.require_state(account_id)
    today = local_day(now, tz_name)

    total = await repo.count_check_ins(account_id)
    this_week = await repo.count_check_ins(account_id, since=today - timedelta(days=6))
    this_month = await repo.count_check_ins(account_id, since=today.replace(day=1))

    average = 0.0
    first = await repo.first_check_in_date(account_id)
    if total and first is not None:
        weeks = max(1, -(-((today - first).days + 1) // 7))
        average = round(total / weeks, 1)

    return StreakStats(
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
        total_check_ins=total,
        this_week_check_ins=this_week,
        this_month_check_ins=this_month,
        average_per_week=average,
    )
