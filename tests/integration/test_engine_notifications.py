"""Notification dispatch tests: only after commit, and failures never surface."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from mindful.gamification.constants import PointKind
from mindful.gamification.engine import GamificationEngine
from mindful.gamification.errors import PersistenceError

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


async def _bring_to_95(engine: GamificationEngine, account_id: int) -> None:
    for kind in [PointKind.EXERCISE_COMPLETED] * 3 + [PointKind.DAILY_LOGIN] * 2:
        await engine.award_points(account_id, kind, now=NOW)


@pytest.mark.asyncio
async def test_failing_notifier_does_not_fail_award(store, settings, failing_notifier, make_account, caplog):
    notifier = failing_notifier
    engine = GamificationEngine(store, notifier=notifier, settings=settings)
    account_id = await make_account()
    await _bring_to_95(engine, account_id)

    result = await engine.award_points(account_id, PointKind.SESSION_ATTENDED, now=NOW)

    assert result.level_up is not None
    assert notifier.calls == 2
    assert (await engine.get_user_stats(account_id)).total_points == 160
    assert "Failed to send level_up notification" in caplog.text
    assert "Failed to send badge_unlocked notification" in caplog.text


@pytest.mark.asyncio
async def test_failing_notifier_does_not_fail_check_in(store, settings, failing_notifier, make_account):
    engine = GamificationEngine(store, notifier=failing_notifier, settings=settings)
    account_id = await make_account()

    result = await engine.perform_daily_check_in(account_id, now=NOW)

    assert result.is_new_check_in is True
    assert result.badges_unlocked == ["welcome", "first_week"]


@pytest.mark.asyncio
async def test_no_notification_when_commit_fails(engine, notifier, make_account, monkeypatch):
    account_id = await make_account()
    await _bring_to_95(engine, account_id)

    async def failing_commit(self):
        raise OperationalError("COMMIT", {}, Exception("connection lost"))

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)
    with pytest.raises(PersistenceError):
        await engine.award_points(account_id, PointKind.SESSION_ATTENDED, now=NOW)
    monkeypatch.undo()

    assert notifier.level_ups == []
    assert (await engine.get_user_stats(account_id)).total_points == 95


@pytest.mark.asyncio
async def test_level_up_caused_by_badge_reward_is_notified(engine, notifier, make_account):
    """Badge unlock and the level-up its reward causes are both reported."""
    account_id = await make_account()
    for _ in range(4):
        await engine.award_points(account_id, PointKind.DAILY_LOGIN, now=NOW)

    # 40 + 50 = 90 stays in level 1; first_session's 15 takes it to 105.
    result = await engine.award_points(account_id, PointKind.SESSION_ATTENDED, now=NOW)

    assert result.new_total == 90
    assert result.level_up is None
    assert result.badges_unlocked == ["first_session"]
    assert notifier.level_ups == [(account_id, 2, "Explorador")]
    assert notifier.badges == [(account_id, "first_session")]
    assert (await engine.get_user_stats(account_id)).total_points == 105
