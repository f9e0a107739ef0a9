"""ORM models for the gamification Account Store.

The ``accounts`` table is owned by the wider platform (registration, auth);
only the columns the engine reads are mapped here.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mindful.db.base import Base, BigIntPK


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class Account(Base):
    """Maps to the platform's 'accounts' table."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    display_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class AccountGamification(Base):
    """Points, level and streak state, one row per account, locked during awards."""

    __tablename__ = "account_gamification"

    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True
    )
    total_points: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    level_name: Mapped[str] = mapped_column(
        String(64), nullable=False, default="Iniciante", server_default="Iniciante"
    )
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_active_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class AccountActivity(Base):
    """Denormalized activity counters read by the badge predicates.

    Point awards advance the per-kind counters (posts, sessions, journal
    entries...) in the same transaction. Counters with no point kind of their
    own (mood streak, breathing exercises, connections) are written by the
    platform's CRUD flows.
    """

    __tablename__ = "account_activity"

    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True
    )
    posts_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    comments_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    upvotes_received: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    comment_upvotes_received: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    sessions_attended: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    mood_entries: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    mood_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    journal_entries: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    exercises_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    breathing_exercises_completed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    social_connections: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Ledger & check-ins
# ---------------------------------------------------------------------------


class PointTransaction(Base):
    """Immutable point ledger entry; the account total is the sum of these."""

    __tablename__ = "point_transactions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(String(256), nullable=False)
    reference_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    reference_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class DailyCheckIn(Base):
    """One row per account per calendar day, UNIQUE(account_id, date)."""

    __tablename__ = "daily_check_ins"
    __table_args__ = (
        UniqueConstraint("account_id", "date", name="daily_check_ins_account_id_date_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    check_in_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


class Badge(Base):
    """Badge catalog entry; the unique name is the award key."""

    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False)
    points_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    icon: Mapped[str | None] = mapped_column(String(16), nullable=True)
    is_secret: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


class AccountBadge(Base):
    """Badges owned by accounts, UNIQUE(account_id, badge_id)."""

    __tablename__ = "account_badges"
    __table_args__ = (
        UniqueConstraint("account_id", "badge_id", name="account_badges_account_id_badge_id_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    badge_id: Mapped[int] = mapped_column(Integer, ForeignKey("badges.id"), nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    badge: Mapped[Badge] = relationship("Badge", lazy="joined")
