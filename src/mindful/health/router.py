"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mindful.config import get_settings
from mindful.database import get_session
from mindful.db.models import Badge
from mindful.gamification.seed import BADGE_SEED_DATA
from mindful.redis_client import get_redis

router = APIRouter()

READY_STATES = ("ok", "disabled")


async def _check_badge_catalog(db: AsyncSession) -> str:
    """The seeded catalog must be present, otherwise no badge can ever unlock."""
    result = await db.execute(select(Badge.name))
    missing = {b["name"] for b in BADGE_SEED_DATA} - set(result.scalars())
    if missing:
        return f"missing {len(missing)} of {len(BADGE_SEED_DATA)}: {', '.join(sorted(missing))}"
    return "ok"


async def _check_notifier() -> str:
    redis = get_redis()
    if redis is None:
        return "disabled"
    await redis.ping()
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness check: Account Store reachable, badge catalog seeded, notifier Redis up."""
    checks: dict[str, object] = {}

    try:
        checks["badges"] = await _check_badge_catalog(db)
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"
        checks["badges"] = "unknown"

    try:
        checks["redis"] = await _check_notifier()
    except Exception as exc:
        checks["redis"] = f"error: {exc}"

    all_ok = all(v in READY_STATES for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
