"""Badge award service with duplicate prevention."""

from __future__ import annotations

import logging
from datetime import datetime

from mindful.gamification.constants import PointKind
from mindful.gamification.errors import ConstraintViolation
from mindful.gamification.repository import UnitOfWork

logger = logging.getLogger(__name__)


async def award_badge_in_unit(
    uow: UnitOfWork,
    account_id: int,
    badge_name: str,
    now: datetime,
) -> bool:
    """Award a badge inside the caller's unit of work.

    Returns True if awarded, False if already owned, inactive or unknown.
    Handles:
    1. Insert into account_badges (UNIQUE account_id, badge_id)
    2. Award the badge's point reward as a BADGE_UNLOCKED transaction
    3. Queue the badge_unlocked notification
    """
    from mindful.gamification.points_service import award_in_unit

    repo = uow.repo
    badge = await repo.get_badge_by_name(badge_name)
    if badge is None or not badge.is_active:
        logger.warning("Badge not found or inactive: %s", badge_name)
        return False

    if await repo.owns_badge(account_id, badge.id):
        return False

    try:
        await repo.insert_badge_ownership(account_id, badge.id, now)
    except ConstraintViolation:
        return False  # Race: awarded by a concurrent evaluation

    if badge.points_reward > 0:
        await award_in_unit(
            uow,
            account_id,
            PointKind.BADGE_UNLOCKED,
            description=f"Badge desbloqueado: {badge.title}",
            reference_id=str(badge.id),
            reference_type="badge",
            amount=badge.points_reward,
            now=now,
        )

    uow.emit("badge_unlocked", account_id, badge_name=badge.name, title=badge.title)
    return True
