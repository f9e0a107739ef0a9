"""Account Store: transactional access to gamification rows.

The engine never reaches for a module-level session. It receives an
``AccountStore`` and does all writes of one operation inside a single
``UnitOfWork``; nested work (badge rewards inside a points award) joins that
unit and commits once.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mindful.db.models import (
    Account,
    AccountActivity,
    AccountBadge,
    AccountGamification,
    Badge,
    DailyCheckIn,
    PointTransaction,
)
from mindful.gamification.errors import (
    ConstraintViolation,
    GamificationError,
    NotFoundError,
    PersistenceError,
)
from mindful.gamification.level_thresholds import level_for

logger = logging.getLogger(__name__)

ACTIVITY_COLUMNS = (
    "posts_created",
    "comments_created",
    "upvotes_received",
    "comment_upvotes_received",
    "sessions_attended",
    "mood_entries",
    "mood_streak",
    "journal_entries",
    "exercises_completed",
    "breathing_exercises_completed",
    "social_connections",
)


@dataclass(frozen=True)
class ActivityCounts:
    """Aggregates the badge predicates are evaluated against."""

    posts_created: int = 0
    comments_created: int = 0
    upvotes_received: int = 0
    comment_upvotes_received: int = 0
    sessions_attended: int = 0
    mood_entries: int = 0
    mood_streak: int = 0
    journal_entries: int = 0
    exercises_completed: int = 0
    breathing_exercises_completed: int = 0
    social_connections: int = 0
    daily_check_ins: int = 0
    longest_streak: int = 0
    total_points: int = 0
    days_since_registration: int = 0
    registered_on: date | None = None


@dataclass(frozen=True)
class OutboxEvent:
    """A notification to hand to the Notifier once the unit has committed."""

    event: str
    account_id: int
    data: dict[str, Any]


class GamificationRepository:
    """Row-level reads and writes bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Accounts & state ---

    async def get_account(self, account_id: int) -> Account | None:
        return await self.session.get(Account, account_id)

    async def get_state(self, account_id: int, *, for_update: bool = False) -> AccountGamification | None:
        """Fetch the state row; ``for_update`` takes the row lock awards serialize on."""
        stmt = select(AccountGamification).where(AccountGamification.account_id == account_id)
        if for_update:
            # Re-read under the lock so a row cached earlier in the session is not stale.
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def require_state(self, account_id: int, *, for_update: bool = False) -> AccountGamification:
        state = await self.get_state(account_id, for_update=for_update)
        if state is None:
            raise NotFoundError(account_id)
        return state

    async def create_state(self, account_id: int) -> AccountGamification:
        """Create the state row for a registered account (idempotent)."""
        state = await self.get_state(account_id)
        if state is not None:
            return state
        if await self.get_account(account_id) is None:
            raise NotFoundError(account_id)

        first = level_for(0)
        state = AccountGamification(
            account_id=account_id,
            total_points=0,
            level=first["level"],
            level_name=first["name"],
            current_streak=0,
            longest_streak=0,
            updated_at=datetime.now(timezone.utc),
        )
        try:
            await self._insert_unique(state)
        except ConstraintViolation:
            # Created concurrently by another registration flow.
            return await self.require_state(account_id)
        return state

    async def accounts_with_streak(self) -> list[AccountGamification]:
        result = await self.session.execute(
            select(AccountGamification)
            .where(AccountGamification.current_streak > 0)
            .order_by(AccountGamification.account_id)
            .with_for_update()
        )
        return list(result.scalars())

    async def get_activity(self, account_id: int, now: datetime) -> ActivityCounts:
        """Collect every aggregate the badge predicates need."""
        account = await self.get_account(account_id)
        if account is None:
            raise NotFoundError(account_id)
        state = await self.require_state(account_id)
        activity = await self.session.get(AccountActivity, account_id)
        check_ins = await self.count_check_ins(account_id)

        created_at = account.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        days_since = max(0, (now - created_at).days)

        counters: dict[str, int] = {}
        if activity is not None:
            counters = {column: getattr(activity, column) for column in ACTIVITY_COLUMNS}

        return ActivityCounts(
            **counters,
            daily_check_ins=check_ins,
            longest_streak=state.longest_streak,
            total_points=state.total_points,
            days_since_registration=days_since,
            registered_on=created_at.date(),
        )

    async def increment_activity(self, account_id: int, counter: str, now: datetime) -> int:
        """Bump one activity counter, creating the row on first use; returns the new value."""
        activity = await self.session.get(AccountActivity, account_id)
        if activity is None:
            activity = AccountActivity(account_id=account_id)
            for column in ACTIVITY_COLUMNS:
                setattr(activity, column, 0)
            self.session.add(activity)
        value = getattr(activity, counter) + 1
        setattr(activity, counter, value)
        activity.updated_at = now
        await self.session.flush()
        return value

    # --- Ledger ---

    async def add_transaction(
        self,
        account_id: int,
        amount: int,
        kind: str,
        description: str,
        reference_id: str | None,
        reference_type: str | None,
        created_at: datetime,
    ) -> PointTransaction:
        entry = PointTransaction(
            account_id=account_id,
            amount=amount,
            kind=kind,
            description=description,
            reference_id=reference_id,
            reference_type=reference_type,
            created_at=created_at,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def count_transactions(self, account_id: int) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(PointTransaction).where(PointTransaction.account_id == account_id)
        )
        return result.scalar_one()

    async def sum_transactions(self, account_id: int) -> int:
        result = await self.session.execute(
            select(func.coalesce(func.sum(PointTransaction.amount), 0)).where(
                PointTransaction.account_id == account_id
            )
        )
        return int(result.scalar_one())

    async def list_transactions(self, account_id: int, limit: int, offset: int = 0) -> list[PointTransaction]:
        result = await self.session.execute(
            select(PointTransaction)
            .where(PointTransaction.account_id == account_id)
            .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars())

    # --- Daily check-ins ---

    async def has_check_in(self, account_id: int, day: date) -> bool:
        result = await self.session.execute(
            select(DailyCheckIn.id).where(
                DailyCheckIn.account_id == account_id,
                DailyCheckIn.check_in_date == day,
            )
        )
        return result.scalar_one_or_none() is not None

    async def insert_check_in(self, account_id: int, day: date, created_at: datetime) -> DailyCheckIn:
        """Insert the day's check-in; raises ConstraintViolation if it already exists."""
        row = DailyCheckIn(account_id=account_id, check_in_date=day, created_at=created_at)
        await self._insert_unique(row)
        return row

    async def count_check_ins(self, account_id: int, since: date | None = None) -> int:
        stmt = select(func.count()).select_from(DailyCheckIn).where(DailyCheckIn.account_id == account_id)
        if since is not None:
            stmt = stmt.where(DailyCheckIn.check_in_date >= since)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def check_in_dates(self, account_id: int, start: date, end: date) -> set[date]:
        result = await self.session.execute(
            select(DailyCheckIn.check_in_date).where(
                DailyCheckIn.account_id == account_id,
                DailyCheckIn.check_in_date >= start,
                DailyCheckIn.check_in_date <= end,
            )
        )
        return set(result.scalars())

    async def first_check_in_date(self, account_id: int) -> date | None:
        result = await self.session.execute(
            select(func.min(DailyCheckIn.check_in_date)).where(DailyCheckIn.account_id == account_id)
        )
        return result.scalar_one_or_none()

    async def last_check_in_date(self, account_id: int) -> date | None:
        result = await self.session.execute(
            select(func.max(DailyCheckIn.check_in_date)).where(DailyCheckIn.account_id == account_id)
        )
        return result.scalar_one_or_none()

    # --- Badges ---

    async def get_badge_by_name(self, name: str) -> Badge | None:
        result = await self.session.execute(select(Badge).where(Badge.name == name))
        return result.scalar_one_or_none()

    async def list_active_badges(self) -> list[Badge]:
        result = await self.session.execute(
            select(Badge).where(Badge.is_active.is_(True)).order_by(Badge.sort_order, Badge.name)
        )
        return list(result.scalars())

    async def owns_badge(self, account_id: int, badge_id: int) -> bool:
        result = await self.session.execute(
            select(AccountBadge.id).where(
                AccountBadge.account_id == account_id,
                AccountBadge.badge_id == badge_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def insert_badge_ownership(self, account_id: int, badge_id: int, unlocked_at: datetime) -> AccountBadge:
        """Insert the ownership row; raises ConstraintViolation if already owned."""
        row = AccountBadge(account_id=account_id, badge_id=badge_id, unlocked_at=unlocked_at)
        await self._insert_unique(row)
        return row

    async def count_badges(self, account_id: int) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(AccountBadge).where(AccountBadge.account_id == account_id)
        )
        return result.scalar_one()

    async def list_account_badges(self, account_id: int) -> list[AccountBadge]:
        """Owned badges with their definitions, most recently unlocked first."""
        result = await self.session.execute(
            select(AccountBadge)
            .where(AccountBadge.account_id == account_id)
            .order_by(AccountBadge.unlocked_at.desc(), AccountBadge.id.desc())
        )
        return list(result.scalars())

    # --- Leaderboard ---

    async def top_by_total(self, limit: int) -> list[tuple[AccountGamification, Account, int]]:
        result = await self.session.execute(
            select(AccountGamification, Account)
            .join(Account, Account.id == AccountGamification.account_id)
            .order_by(AccountGamification.total_points.desc(), AccountGamification.account_id)
            .limit(limit)
        )
        return [(state, account, state.total_points) for state, account in result.all()]

    async def top_by_points_since(
        self, since: datetime, limit: int
    ) -> list[tuple[AccountGamification, Account, int]]:
        """Rank accounts by points earned since ``since``; accounts that earned none are left out."""
        earned = (
            select(
                PointTransaction.account_id.label("account_id"),
                func.sum(PointTransaction.amount).label("points"),
            )
            .where(PointTransaction.created_at >= since)
            .group_by(PointTransaction.account_id)
            .having(func.sum(PointTransaction.amount) > 0)
            .subquery()
        )
        result = await self.session.execute(
            select(AccountGamification, Account, earned.c.points)
            .join(earned, earned.c.account_id == AccountGamification.account_id)
            .join(Account, Account.id == AccountGamification.account_id)
            .order_by(earned.c.points.desc(), AccountGamification.account_id)
            .limit(limit)
        )
        return [(state, account, int(points)) for state, account, points in result.all()]

    async def _insert_unique(self, row: object) -> None:
        # SAVEPOINT: a duplicate only discards this insert, not the whole unit.
        try:
            async with self.session.begin_nested():
                self.session.add(row)
                await self.session.flush()
        except IntegrityError as exc:
            raise ConstraintViolation(str(exc.orig)) from exc


@dataclass
class UnitOfWork:
    """One transaction plus the notifications it will release on commit."""

    repo: GamificationRepository
    outbox: list[OutboxEvent] = field(default_factory=list)

    def emit(self, event: str, account_id: int, **data: Any) -> None:
        self.outbox.append(OutboxEvent(event=event, account_id=account_id, data=data))


class AccountStore(Protocol):
    """Capability the engine is constructed with."""

    def unit_of_work(self) -> Any:
        """Async context manager yielding a UnitOfWork that commits on clean exit."""

    def read(self) -> Any:
        """Async context manager yielding a repository for read-only queries."""


class SqlAlchemyAccountStore:
    """Account Store backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[UnitOfWork]:
        async with self._session_factory() as session:
            uow = UnitOfWork(GamificationRepository(session))
            try:
                yield uow
                await session.commit()
            except GamificationError:
                await session.rollback()
                raise
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.warning("Unit of work rolled back: %s", exc)
                raise PersistenceError(str(exc)) from exc
            except BaseException:
                await session.rollback()
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[GamificationRepository]:
        async with self._session_factory() as session:
            try:
                yield GamificationRepository(session)
            except SQLAlchemyError as exc:
                raise PersistenceError(str(exc)) from exc
