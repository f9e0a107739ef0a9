"""Leaderboard: accounts ranked by total points or by points earned in a recent window.

Ranks come straight from PostgreSQL. ``all`` orders the state rows by their
stored total; ``week`` and ``month`` sum the ledger since the window start and
leave out accounts that earned nothing in it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from mindful.gamification.repository import GamificationRepository
from mindful.gamification.schemas import LeaderboardEntry, LeaderboardPeriod, LeaderboardResponse

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Usuário Anônimo"
MAX_LIMIT = 100

PERIOD_WINDOWS: dict[LeaderboardPeriod, timedelta] = {
    LeaderboardPeriod.WEEK: timedelta(days=7),
    LeaderboardPeriod.MONTH: timedelta(days=30),
}


def period_start(period: LeaderboardPeriod, now: datetime) -> datetime | None:
    """Start of the ranking window, or None for the all-time board."""
    window = PERIOD_WINDOWS.get(period)
    if window is None:
        return None
    return now - window


async def get_leaderboard(
    repo: GamificationRepository,
    period: LeaderboardPeriod | str = LeaderboardPeriod.ALL,
    limit: int = 50,
    now: datetime | None = None,
) -> LeaderboardResponse:
    period = LeaderboardPeriod(period)
    limit = max(1, min(limit, MAX_LIMIT))
    if now is None:
        now = datetime.now(timezone.utc)

    since = period_start(period, now)
    if since is None:
        rows = await repo.top_by_total(limit)
    else:
        rows = await repo.top_by_points_since(since, limit)

    entries = [
        LeaderboardEntry(
            position=position,
            account_id=state.account_id,
            display_name=account.display_name or ANONYMOUS_NAME,
            level=state.level,
            level_name=state.level_name,
            total_points=state.total_points,
            period_points=points,
            current_streak=state.current_streak,
            longest_streak=state.longest_streak,
            member_since=account.created_at,
        )
        for position, (state, account, points) in enumerate(rows, start=1)
    ]
    logger.debug("Leaderboard %s: %d entries", period.value, len(entries))
    return LeaderboardResponse(period=period, entries=entries, total_count=len(entries))
