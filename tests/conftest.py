"""Shared test fixtures.

The Account Store runs against in-memory SQLite (aiosqlite). pysqlite's own
transaction handling breaks SAVEPOINT, so the engine takes over BEGIN itself.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mindful.config import Settings
from mindful.db import models  # noqa: F401
from mindful.db.base import Base
from mindful.db.models import Account, AccountActivity, AccountGamification
from mindful.gamification.engine import GamificationEngine
from mindful.gamification.repository import SqlAlchemyAccountStore
from mindful.gamification.seed import seed_badges

DEFAULT_CREATED_AT = datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc)


class RecordingNotifier:
    """Notifier double that records every call."""

    def __init__(self) -> None:
        self.level_ups: list[tuple[int, int, str]] = []
        self.badges: list[tuple[int, str]] = []
        self.streak_bonuses: list[tuple[int, int, int]] = []

    async def notify_level_up(self, account_id: int, new_level: int, level_name: str) -> None:
        self.level_ups.append((account_id, new_level, level_name))

    async def notify_badge_unlocked(self, account_id: int, badge_name: str) -> None:
        self.badges.append((account_id, badge_name))

    async def notify_streak_bonus(self, account_id: int, days: int, bonus_amount: int) -> None:
        self.streak_bonuses.append((account_id, days, bonus_amount))


class FailingNotifier:
    """Notifier double whose every call raises."""

    def __init__(self) -> None:
        self.calls = 0

    async def notify_level_up(self, account_id: int, new_level: int, level_name: str) -> None:
        self.calls += 1
        raise ConnectionError("pub/sub unavailable")

    async def notify_badge_unlocked(self, account_id: int, badge_name: str) -> None:
        self.calls += 1
        raise ConnectionError("pub/sub unavailable")

    async def notify_streak_bonus(self, account_id: int, days: int, bonus_amount: int) -> None:
        self.calls += 1
        raise ConnectionError("pub/sub unavailable")


async def _sqlite_factory(
    url: str, begin: str, **engine_kwargs
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Build a schema-initialized, catalog-seeded SQLite engine."""
    engine = create_async_engine(url, **engine_kwargs)

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, _record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql(begin)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await seed_badges(session)
    return engine, factory


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh in-memory schema with the badge catalog seeded."""
    engine, factory = await _sqlite_factory(
        "sqlite+aiosqlite://",
        "BEGIN",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """File database with one connection per unit of work.

    SQLite has no row locks, so every transaction opens with BEGIN IMMEDIATE:
    the write lock is taken up front and concurrent units queue behind it,
    the way awards queue on the state row's FOR UPDATE lock in PostgreSQL.
    """
    engine, factory = await _sqlite_factory(
        f"sqlite+aiosqlite:///{tmp_path / 'gamification.db'}",
        "BEGIN IMMEDIATE",
        connect_args={"timeout": 30},
    )
    yield factory
    await engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        streak_timezone="UTC",
        early_adopter_deadline=date(2024, 12, 1),
        recent_transactions_limit=10,
        point_history_max_limit=100,
    )


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> SqlAlchemyAccountStore:
    return SqlAlchemyAccountStore(session_factory)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()


@pytest.fixture
def engine(store: SqlAlchemyAccountStore, notifier: RecordingNotifier, settings: Settings) -> GamificationEngine:
    return GamificationEngine(store, notifier=notifier, settings=settings)


@pytest.fixture
def make_account(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[int]]:
    """Factory: insert an account (and by default its gamification state)."""

    async def _make(
        created_at: datetime = DEFAULT_CREATED_AT,
        with_state: bool = True,
        **activity: int,
    ) -> int:
        async with session_factory() as session:
            account = Account(display_name="tester", created_at=created_at)
            session.add(account)
            await session.flush()
            if with_state:
                session.add(AccountGamification(
                    account_id=account.id,
                    total_points=0,
                    level=1,
                    level_name="Iniciante",
                    current_streak=0,
                    longest_streak=0,
                    updated_at=created_at,
                ))
            if activity:
                session.add(AccountActivity(account_id=account.id, **activity))
            await session.commit()
            return account.id

    return _make


@pytest.fixture
def set_activity(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[None]]:
    """Overwrite activity counters, as the platform's CRUD flows would."""

    async def _set(account_id: int, **counters: int) -> None:
        async with session_factory() as session:
            activity = await session.get(AccountActivity, account_id)
            if activity is None:
                activity = AccountActivity(account_id=account_id)
                session.add(activity)
            for key, value in counters.items():
                setattr(activity, key, value)
            await session.commit()

    return _set


@pytest_asyncio.fixture
async def client(
    engine: GamificationEngine,
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, with the engine and DB session pointed at the test store."""
    from mindful.database import get_session
    from mindful.dependencies import get_engine
    from mindful.main import create_app

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app = create_app()
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_session] = _session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
