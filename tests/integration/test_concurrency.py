"""Concurrent units of work on one account: no lost updates, one check-in per day.

These run against a file database so every unit of work gets its own
connection and the gathered calls really overlap.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from mindful.db.models import AccountActivity, AccountBadge, DailyCheckIn, PointTransaction
from mindful.gamification.badge_evaluator import BadgeCategory
from mindful.gamification.constants import PointKind

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def session_factory(file_session_factory):
    return file_session_factory


async def _ledger_kinds(session_factory, account_id: int) -> list[str]:
    async with session_factory() as session:
        result = await session.execute(
            select(PointTransaction.kind).where(PointTransaction.account_id == account_id)
        )
        return list(result.scalars())


class TestConcurrentAwards:
    @pytest.mark.asyncio
    async def test_no_lost_updates(self, engine, make_account, session_factory):
        account_id = await make_account()
        kinds = [PointKind.EXERCISE_COMPLETED] * 4 + [PointKind.COMMENT_CREATED] * 4

        results = await asyncio.gather(*(engine.award_points(account_id, k, now=NOW) for k in kinds))

        assert len(results) == 8
        assert max(r.new_total for r in results) == 120
        reconciliation = await engine.reconcile(account_id)
        assert reconciliation.consistent
        assert reconciliation.total_points == 4 * 25 + 4 * 5
        assert len(await _ledger_kinds(session_factory, account_id)) == 8

        async with session_factory() as session:
            activity = await session.get(AccountActivity, account_id)
        assert activity.exercises_completed == 4
        assert activity.comments_created == 4

    @pytest.mark.asyncio
    async def test_each_award_sees_the_previous_total(self, engine, make_account):
        account_id = await make_account()

        results = await asyncio.gather(
            *(engine.award_points(account_id, PointKind.DAILY_LOGIN, now=NOW) for _ in range(5))
        )

        assert sorted(r.new_total for r in results) == [10, 20, 30, 40, 50]
        assert (await engine.get_user_stats(account_id)).total_points == 50

    @pytest.mark.asyncio
    async def test_badge_awarded_once_under_concurrent_checks(self, engine, make_account, session_factory):
        account_id = await make_account(posts_created=1)

        results = await asyncio.gather(
            *(engine.check_badges(account_id, BadgeCategory.COMMUNITY, now=NOW) for _ in range(3))
        )

        assert sorted(results) == [[], [], ["first_post"]]
        async with session_factory() as session:
            owned = (await session.execute(
                select(AccountBadge).where(AccountBadge.account_id == account_id)
            )).scalars().all()
        assert len(owned) == 1
        assert (await engine.reconcile(account_id)).total_points == 10


class TestConcurrentCheckIns:
    @pytest.mark.asyncio
    async def test_same_day_check_ins_increment_once(self, engine, make_account, session_factory):
        account_id = await make_account()

        results = await asyncio.gather(
            *(engine.perform_daily_check_in(account_id, now=NOW) for _ in range(3))
        )

        assert sorted(r.is_new_check_in for r in results) == [False, False, True]
        assert all(r.current_streak == 1 for r in results)
        assert (await _ledger_kinds(session_factory, account_id)).count("DAILY_LOGIN") == 1

        async with session_factory() as session:
            rows = (await session.execute(
                select(DailyCheckIn).where(DailyCheckIn.account_id == account_id)
            )).scalars().all()
        assert len(rows) == 1
        assert (await engine.get_streak_info(account_id, now=NOW)).current_streak == 1
        assert (await engine.reconcile(account_id)).consistent
