"""Badge evaluator: one predicate group per badge category.

Each predicate is a pure function over ``ActivityCounts`` returning the badge
names whose thresholds are met. ``evaluate_in_unit`` then awards whichever of
those the account does not own yet. Awarding is idempotent, so a category can
be re-evaluated on every related event.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import assert_never

from mindful.config import get_settings
from mindful.gamification.badge_service import award_badge_in_unit
from mindful.gamification.repository import ActivityCounts, UnitOfWork

logger = logging.getLogger(__name__)


class BadgeCategory(StrEnum):
    MILESTONE = "milestone"
    COMMUNITY = "community"
    SESSION = "session"
    WELLNESS = "wellness"
    SOCIAL = "social"
    SPECIAL = "special"


def _met(counts: list[tuple[str, int, int]]) -> list[str]:
    """Names whose (value >= threshold) holds, in declaration order."""
    return [name for name, value, threshold in counts if value >= threshold]


def milestone_candidates(c: ActivityCounts) -> list[str]:
    return ["welcome"] + _met([
        ("first_week", c.days_since_registration, 7),
        ("veteran", c.days_since_registration, 30),
        ("month_warrior", c.longest_streak, 30),
    ])


def community_candidates(c: ActivityCounts) -> list[str]:
    return _met([
        ("first_post", c.posts_created, 1),
        ("storyteller", c.posts_created, 10),
        ("community_leader", c.posts_created, 50),
        ("participative", c.comments_created, 50),
        ("helpful_commenter", c.comment_upvotes_received, 10),
        ("popular", c.upvotes_received, 100),
    ])


def session_candidates(c: ActivityCounts) -> list[str]:
    return _met([
        ("first_session", c.sessions_attended, 1),
        ("regular_attendee", c.sessions_attended, 10),
        ("session_master", c.sessions_attended, 50),
    ])


def wellness_candidates(c: ActivityCounts) -> list[str]:
    return _met([
        ("self_awareness", c.mood_entries, 1),
        ("mood_tracker", c.mood_streak, 7),
        ("mood_month", c.mood_streak, 30),
        ("streak_master", c.mood_streak, 100),
        ("first_journal_entry", c.journal_entries, 1),
        ("journal_keeper", c.journal_entries, 10),
        ("prolific_writer", c.journal_entries, 50),
        ("mindfulness_explorer", c.exercises_completed, 25),
        ("zen_master", c.exercises_completed, 30),
        ("breathing_warrior", c.breathing_exercises_completed, 20),
    ])


def social_candidates(c: ActivityCounts) -> list[str]:
    return _met([
        ("social_butterfly", c.social_connections, 5),
        ("welcoming", c.comments_created, 10),
        ("community_mentor", c.comments_created, 20),
    ])


def special_candidates(c: ActivityCounts, early_adopter_deadline: date) -> list[str]:
    if c.registered_on is not None and c.registered_on < early_adopter_deadline:
        return ["early_adopter"]
    return []


def candidates_for(
    category: BadgeCategory,
    counts: ActivityCounts,
    early_adopter_deadline: date | None = None,
) -> list[str]:
    """Dispatch to the category's predicate group."""
    match category:
        case BadgeCategory.MILESTONE:
            return milestone_candidates(counts)
        case BadgeCategory.COMMUNITY:
            return community_candidates(counts)
        case BadgeCategory.SESSION:
            return session_candidates(counts)
        case BadgeCategory.WELLNESS:
            return wellness_candidates(counts)
        case BadgeCategory.SOCIAL:
            return social_candidates(counts)
        case BadgeCategory.SPECIAL:
            deadline = early_adopter_deadline or get_settings().early_adopter_deadline
            return special_candidates(counts, deadline)
        case _:
            assert_never(category)


async def evaluate_in_unit(
    uow: UnitOfWork,
    account_id: int,
    category: BadgeCategory,
    now: datetime | None = None,
) -> list[str]:
    """Award every newly qualifying badge of one category.

    Returns the badge names awarded by this call (empty when all qualifying
    badges were already owned).
    """
    if now is None:
        now = datetime.now(timezone.utc)

    counts = await uow.repo.get_activity(account_id, now)
    awarded: list[str] = []
    for name in candidates_for(category, counts):
        if await award_badge_in_unit(uow, account_id, name, now):
            awarded.append(name)

    if awarded:
        logger.info("Account %s unlocked %s badges: %s", account_id, category.value, awarded)
    return awarded


async def evaluate_all_in_unit(uow: UnitOfWork, account_id: int, now: datetime | None = None) -> list[str]:
    """Run every category check in turn."""
    awarded: list[str] = []
    for category in BadgeCategory:
        awarded += await evaluate_in_unit(uow, account_id, category, now)
    return awarded
