"""Badge predicate tests: pure threshold checks per category."""

from datetime import date

import pytest

from mindful.gamification.badge_evaluator import BadgeCategory, candidates_for
from mindful.gamification.repository import ActivityCounts
from mindful.gamification.seed import BADGE_SEED_DATA

DEADLINE = date(2024, 12, 1)


class TestMilestone:
    def test_welcome_always_qualifies(self):
        assert candidates_for(BadgeCategory.MILESTONE, ActivityCounts()) == ["welcome"]

    def test_first_week_after_seven_days(self):
        names = candidates_for(BadgeCategory.MILESTONE, ActivityCounts(days_since_registration=7))
        assert "first_week" in names
        assert "veteran" not in names

    def test_veteran_after_thirty_days(self):
        names = candidates_for(BadgeCategory.MILESTONE, ActivityCounts(days_since_registration=30))
        assert {"first_week", "veteran"} <= set(names)

    def test_month_warrior_uses_longest_streak(self):
        assert "month_warrior" in candidates_for(BadgeCategory.MILESTONE, ActivityCounts(longest_streak=30))
        assert "month_warrior" not in candidates_for(BadgeCategory.MILESTONE, ActivityCounts(longest_streak=29))


class TestCommunity:
    def test_no_posts_no_badges(self):
        assert candidates_for(BadgeCategory.COMMUNITY, ActivityCounts()) == []

    def test_first_post(self):
        assert candidates_for(BadgeCategory.COMMUNITY, ActivityCounts(posts_created=1)) == ["first_post"]

    def test_post_tiers_accumulate(self):
        names = candidates_for(BadgeCategory.COMMUNITY, ActivityCounts(posts_created=50))
        assert names[:3] == ["first_post", "storyteller", "community_leader"]

    def test_helpful_commenter_counts_comment_upvotes(self):
        names = candidates_for(BadgeCategory.COMMUNITY, ActivityCounts(comment_upvotes_received=10))
        assert names == ["helpful_commenter"]

    def test_popular_counts_post_upvotes(self):
        assert "popular" in candidates_for(BadgeCategory.COMMUNITY, ActivityCounts(upvotes_received=100))


class TestSession:
    @pytest.mark.parametrize(
        ("attended", "expected"),
        [
            (0, []),
            (1, ["first_session"]),
            (10, ["first_session", "regular_attendee"]),
            (50, ["first_session", "regular_attendee", "session_master"]),
        ],
    )
    def test_attendance_tiers(self, attended, expected):
        assert candidates_for(BadgeCategory.SESSION, ActivityCounts(sessions_attended=attended)) == expected


class TestWellness:
    def test_mood_streak_tiers(self):
        names = candidates_for(BadgeCategory.WELLNESS, ActivityCounts(mood_entries=30, mood_streak=30))
        assert {"self_awareness", "mood_tracker", "mood_month"} <= set(names)
        assert "streak_master" not in names

    def test_journal_tiers(self):
        names = candidates_for(BadgeCategory.WELLNESS, ActivityCounts(journal_entries=10))
        assert names == ["first_journal_entry", "journal_keeper"]

    def test_exercise_badges(self):
        names = candidates_for(
            BadgeCategory.WELLNESS,
            ActivityCounts(exercises_completed=25, breathing_exercises_completed=20),
        )
        assert names == ["mindfulness_explorer", "breathing_warrior"]


class TestSocial:
    def test_social_butterfly(self):
        assert candidates_for(BadgeCategory.SOCIAL, ActivityCounts(social_connections=5)) == ["social_butterfly"]

    def test_comment_tiers(self):
        names = candidates_for(BadgeCategory.SOCIAL, ActivityCounts(comments_created=20))
        assert names == ["welcoming", "community_mentor"]


class TestSpecial:
    def test_registered_before_deadline(self):
        counts = ActivityCounts(registered_on=date(2024, 11, 30))
        assert candidates_for(BadgeCategory.SPECIAL, counts, DEADLINE) == ["early_adopter"]

    def test_registered_on_deadline(self):
        counts = ActivityCounts(registered_on=DEADLINE)
        assert candidates_for(BadgeCategory.SPECIAL, counts, DEADLINE) == []


def test_every_candidate_exists_in_catalog():
    """Predicates only name badges the seed catalog defines."""
    catalog = {b["name"] for b in BADGE_SEED_DATA}
    everything = ActivityCounts(
        posts_created=100, comments_created=100, upvotes_received=100, comment_upvotes_received=100,
        sessions_attended=100, mood_entries=100, mood_streak=100, journal_entries=100,
        exercises_completed=100, breathing_exercises_completed=100, social_connections=100,
        longest_streak=100, days_since_registration=100, registered_on=date(2024, 1, 1),
    )
    named = set()
    for category in BadgeCategory:
        named.update(candidates_for(category, everything, DEADLINE))
    assert named == catalog
