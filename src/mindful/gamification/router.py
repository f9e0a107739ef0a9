"""Gamification API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from mindful.dependencies import get_engine
from mindful.gamification.engine import GamificationEngine
from mindful.gamification.level_thresholds import LEVELS
from mindful.gamification.schemas import (
    AccountBadgesResponse,
    AllBadgesResponse,
    AllLevelsResponse,
    AwardPointsRequest,
    AwardResult,
    CheckInCalendarResponse,
    CheckInResult,
    LeaderboardPeriod,
    LeaderboardResponse,
    LevelEntry,
    PointHistory,
    StreakInfo,
    StreakResetResult,
    StreakStats,
    UserStats,
)

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


# ── Catalog ──


@router.get("/levels", response_model=AllLevelsResponse)
async def list_levels():
    """Get all level definitions."""
    return AllLevelsResponse(levels=[LevelEntry(**tier) for tier in LEVELS])


@router.get("/badges", response_model=AllBadgesResponse)
async def list_badges(engine: GamificationEngine = Depends(get_engine)):
    """Get the public badge catalog."""
    return AllBadgesResponse(badges=await engine.list_badges())


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    period: LeaderboardPeriod = Query(LeaderboardPeriod.ALL),
    limit: int = Query(default=50, ge=1, le=100),
    engine: GamificationEngine = Depends(get_engine),
):
    """Accounts ranked by total points, or by points earned in the last week or month."""
    return await engine.get_leaderboard(period, limit=limit)


# ── Accounts ──


@router.post("/accounts/{account_id}/gamification", status_code=201, response_model=UserStats)
async def create_account_state(account_id: int, engine: GamificationEngine = Depends(get_engine)):
    """Create the gamification state for a newly registered account."""
    await engine.create_account_state(account_id)
    return await engine.get_user_stats(account_id)


@router.post("/accounts/{account_id}/points", response_model=AwardResult)
async def award_points(
    account_id: int,
    body: AwardPointsRequest,
    engine: GamificationEngine = Depends(get_engine),
):
    """Award the fixed amount for an activity kind."""
    return await engine.award_points(
        account_id,
        body.kind,
        description=body.description,
        reference_id=body.reference_id,
        reference_type=body.reference_type,
    )


@router.get("/accounts/{account_id}/stats", response_model=UserStats)
async def get_stats(account_id: int, engine: GamificationEngine = Depends(get_engine)):
    return await engine.get_user_stats(account_id)


@router.get("/accounts/{account_id}/points/history", response_model=PointHistory)
async def get_point_history(
    account_id: int,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    engine: GamificationEngine = Depends(get_engine),
):
    """Paginated ledger, newest first."""
    return await engine.get_point_history(account_id, limit=limit, offset=offset)


@router.get("/accounts/{account_id}/badges", response_model=AccountBadgesResponse)
async def get_account_badges(account_id: int, engine: GamificationEngine = Depends(get_engine)):
    """Badges the account has unlocked, newest first."""
    return await engine.get_account_badges(account_id)


# ── Streaks ──


@router.post("/accounts/{account_id}/check-in", response_model=CheckInResult)
async def check_in(account_id: int, engine: GamificationEngine = Depends(get_engine)):
    """Record today's check-in (idempotent within a day)."""
    return await engine.perform_daily_check_in(account_id)


@router.get("/accounts/{account_id}/check-in/calendar", response_model=CheckInCalendarResponse)
async def get_check_in_calendar(
    account_id: int,
    days: int = Query(default=30, ge=1, le=365),
    engine: GamificationEngine = Depends(get_engine),
):
    return CheckInCalendarResponse(days=await engine.get_check_in_calendar(account_id, days=days))


@router.get("/accounts/{account_id}/streak", response_model=StreakInfo)
async def get_streak(account_id: int, engine: GamificationEngine = Depends(get_engine)):
    return await engine.get_streak_info(account_id)


@router.get("/accounts/{account_id}/streak/stats", response_model=StreakStats)
async def get_streak_stats(account_id: int, engine: GamificationEngine = Depends(get_engine)):
    return await engine.get_streak_stats(account_id)


# ── Maintenance ──


@router.post("/maintenance/streaks/reset", response_model=StreakResetResult)
async def reset_streaks(engine: GamificationEngine = Depends(get_engine)):
    """Run the nightly streak reset on demand."""
    return await engine.reset_expired_streaks()
