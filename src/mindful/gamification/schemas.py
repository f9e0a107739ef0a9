"""Pydantic models for engine results and gamification endpoints."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from mindful.gamification.constants import PointKind


# --- Points ---


class LevelUp(BaseModel):
    new_level: int
    level_name: str


class AwardResult(BaseModel):
    points_awarded: int
    new_total: int
    level_up: LevelUp | None = None
    badges_unlocked: list[str] = []


class AwardPointsRequest(BaseModel):
    kind: PointKind
    description: str | None = Field(default=None, max_length=256)
    reference_id: str | None = Field(default=None, max_length=128)
    reference_type: str | None = Field(default=None, max_length=32)

    @field_validator("kind")
    @classmethod
    def kind_has_fixed_amount(cls, v: PointKind) -> PointKind:
        if v == PointKind.BADGE_UNLOCKED:
            raise ValueError("BADGE_UNLOCKED is awarded by the badge evaluator only")
        return v


class TransactionEntry(BaseModel):
    id: int
    amount: int
    kind: str
    description: str | None = None
    reference_id: str | None = None
    reference_type: str | None = None
    created_at: datetime


class PointHistory(BaseModel):
    transactions: list[TransactionEntry]
    total: int


class UserStats(BaseModel):
    total_points: int
    current_level: int
    level_name: str
    points_to_next_level: int
    progress_percent: float
    badges_count: int
    current_streak: int
    longest_streak: int
    recent_transactions: list[TransactionEntry]


class Reconciliation(BaseModel):
    total_points: int
    ledger_sum: int
    consistent: bool


# --- Streaks ---


class CheckInResult(BaseModel):
    is_new_check_in: bool
    current_streak: int
    longest_streak: int
    points_awarded: int = 0
    streak_bonus: int | None = None
    badges_unlocked: list[str] = []
    level_up: LevelUp | None = None


class StreakResetResult(BaseModel):
    users_reset: int
    total_processed: int


class StreakInfo(BaseModel):
    current_streak: int
    longest_streak: int
    last_check_in_date: date | None = None
    check_in_count: int
    checked_in_today: bool = False


class CalendarDay(BaseModel):
    day: date
    has_check_in: bool
    is_today: bool


class CheckInCalendarResponse(BaseModel):
    days: list[CalendarDay]


class StreakStats(BaseModel):
    current_streak: int
    longest_streak: int
    total_check_ins: int
    this_week_check_ins: int
    this_month_check_ins: int
    average_per_week: float


# --- Levels & badges ---


class LevelEntry(BaseModel):
    level: int
    name: str
    min_points: int
    max_points: int | None = None


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]


class BadgeResponse(BaseModel):
    name: str
    title: str
    description: str
    category: str
    rarity: str
    points_reward: int
    icon: str | None = None


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]


class BadgeCheckResponse(BaseModel):
    badges_unlocked: list[str]


class OwnedBadgeResponse(BadgeResponse):
    unlocked_at: datetime


class AccountBadgesResponse(BaseModel):
    badges: list[OwnedBadgeResponse]
    total: int


# --- Leaderboard ---


class LeaderboardPeriod(StrEnum):
    ALL = "all"
    WEEK = "week"
    MONTH = "month"


class LeaderboardEntry(BaseModel):
    position: int
    account_id: int
    display_name: str
    level: int
    level_name: str
    total_points: int
    period_points: int
    current_streak: int
    longest_streak: int
    member_since: datetime


class LeaderboardResponse(BaseModel):
    period: LeaderboardPeriod
    entries: list[LeaderboardEntry]
    total_count: int
