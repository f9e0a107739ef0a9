"""Points ledger: transaction append, total update and level-up detection."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from mindful.db.models import PointTransaction
from mindful.gamification.badge_evaluator import BadgeCategory, evaluate_in_unit
from mindful.gamification.constants import DEFAULT_DESCRIPTIONS, POINT_VALUES, PointKind
from mindful.gamification.level_thresholds import level_for, points_to_next_level, progress_percent
from mindful.gamification.repository import GamificationRepository, UnitOfWork
from mindful.gamification.schemas import (
    AwardResult,
    LevelUp,
    PointHistory,
    Reconciliation,
    TransactionEntry,
    UserStats,
)

logger = logging.getLogger(__name__)

# Category checks triggered by each kind. Streak bonuses and badge rewards
# trigger nothing, which keeps badge-within-points recursion one level deep.
FOLLOW_UP_CHECKS: dict[PointKind, tuple[BadgeCategory, ...]] = {
    PointKind.POST_CREATED: (BadgeCategory.COMMUNITY,),
    PointKind.COMMENT_CREATED: (BadgeCategory.COMMUNITY, BadgeCategory.SOCIAL),
    PointKind.UPVOTE_RECEIVED: (BadgeCategory.COMMUNITY,),
    PointKind.SESSION_ATTENDED: (BadgeCategory.SESSION,),
    PointKind.MOOD_LOGGED: (BadgeCategory.WELLNESS,),
    PointKind.JOURNAL_WRITTEN: (BadgeCategory.WELLNESS,),
    PointKind.EXERCISE_COMPLETED: (BadgeCategory.WELLNESS,),
}

# Activity counter each kind advances before its follow-up checks run.
ACTIVITY_COUNTERS: dict[PointKind, str] = {
    PointKind.POST_CREATED: "posts_created",
    PointKind.COMMENT_CREATED: "comments_created",
    PointKind.UPVOTE_RECEIVED: "upvotes_received",
    PointKind.SESSION_ATTENDED: "sessions_attended",
    PointKind.MOOD_LOGGED: "mood_entries",
    PointKind.JOURNAL_WRITTEN: "journal_entries",
    PointKind.EXERCISE_COMPLETED: "exercises_completed",
}


def amount_for(kind: PointKind) -> int:
    """Fixed amount for a kind; BADGE_UNLOCKED has none."""
    try:
        return POINT_VALUES[kind]
    except KeyError:
        msg = f"{kind} has no fixed amount; pass the badge reward explicitly"
        raise ValueError(msg) from None


async def award_in_unit(
    uow: UnitOfWork,
    account_id: int,
    kind: PointKind | str,
    description: str | None = None,
    reference_id: str | None = None,
    reference_type: str | None = None,
    amount: int | None = None,
    now: datetime | None = None,
) -> AwardResult:
    """Award points inside the caller's unit of work.

    1. Lock the account's state row and read the current total
    2. Append the ledger entry and write the new total and level
    3. Queue a level_up notification if a tier was crossed
    4. Advance the kind's activity counter
    5. Run the badge checks the kind triggers (rewards join this unit)
    """
    kind = PointKind(kind)
    if amount is None:
        amount = amount_for(kind)
    if now is None:
        now = datetime.now(timezone.utc)

    repo = uow.repo
    state = await repo.require_state(account_id, for_update=True)

    old_level = level_for(state.total_points)
    new_total = state.total_points + amount
    new_level = level_for(new_total)

    await repo.add_transaction(
        account_id=account_id,
        amount=amount,
        kind=kind.value,
        description=description or DEFAULT_DESCRIPTIONS[kind],
        reference_id=reference_id,
        reference_type=reference_type,
        created_at=now,
    )

    state.total_points = new_total
    state.level = new_level["level"]
    state.level_name = new_level["name"]
    state.last_active_at = now
    state.updated_at = now
    await repo.session.flush()

    level_up = None
    if new_level["level"] > old_level["level"]:
        level_up = LevelUp(new_level=new_level["level"], level_name=new_level["name"])
        uow.emit("level_up", account_id, new_level=new_level["level"], level_name=new_level["name"])

    counter = ACTIVITY_COUNTERS.get(kind)
    if counter is not None:
        await repo.increment_activity(account_id, counter, now)

    badges: list[str] = []
    for category in FOLLOW_UP_CHECKS.get(kind, ()):
        badges += await evaluate_in_unit(uow, account_id, category, now)

    return AwardResult(
        points_awarded=amount,
        new_total=new_total,
        level_up=level_up,
        badges_unlocked=badges,
    )


def _entry(t: PointTransaction) -> TransactionEntry:
    return TransactionEntry(
        id=t.id,
        amount=t.amount,
        kind=t.kind,
        description=t.description,
        reference_id=t.reference_id,
        reference_type=t.reference_type,
        created_at=t.created_at,
    )


async def get_point_history(
    repo: GamificationRepository,
    account_id: int,
    limit: int = 50,
    offset: int = 0,
) -> PointHistory:
    """Ledger entries, newest first, with the total count for pagination."""
    await repo.require_state(account_id)
    total = await repo.count_transactions(account_id)
    rows = await repo.list_transactions(account_id, limit=limit, offset=offset)
    return PointHistory(transactions=[_entry(t) for t in rows], total=total)


async def get_user_stats(repo: GamificationRepository, account_id: int, recent_limit: int = 10) -> UserStats:
    """Summary shown on the profile page, read from the state row."""
    state = await repo.require_state(account_id)
    tier = level_for(state.total_points)
    recent = await repo.list_transactions(account_id, limit=recent_limit)

    return UserStats(
        total_points=state.total_points,
        current_level=tier["level"],
        level_name=tier["name"],
        points_to_next_level=points_to_next_level(state.total_points),
        progress_percent=progress_percent(state.total_points),
        badges_count=await repo.count_badges(account_id),
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
        recent_transactions=[_entry(t) for t in recent],
    )


async def reconcile(repo: GamificationRepository, account_id: int) -> Reconciliation:
    """Compare the stored total with the sum of the ledger."""
    state = await repo.require_state(account_id)
    ledger_sum = await repo.sum_transactions(account_id)
    if ledger_sum != state.total_points:
        logger.error(
            "Ledger mismatch for account %s: total=%s ledger=%s",
            account_id, state.total_points, ledger_sum,
        )
    return Reconciliation(
        total_points=state.total_points,
        ledger_sum=ledger_sum,
        consistent=ledger_sum == state.total_points,
    )
