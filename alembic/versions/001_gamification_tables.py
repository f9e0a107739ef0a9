"""Gamification tables.

Creates account_gamification, account_activity, point_transactions,
daily_check_ins, badges and account_badges. The accounts table is owned by
the platform and only created here when missing.

Revision ID: 001_gamification_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_gamification_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Accounts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id BIGSERIAL PRIMARY KEY,
            display_name VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Account Gamification (row-locked during awards) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS account_gamification (
            account_id BIGINT PRIMARY KEY REFERENCES accounts(id) ON DELETE CASCADE,
            total_points BIGINT NOT NULL DEFAULT 0 CHECK (total_points >= 0),
            level INTEGER NOT NULL DEFAULT 1,
            level_name VARCHAR(64) NOT NULL DEFAULT 'Iniciante',
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_active_at TIMESTAMPTZ,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_account_gamification_streak
        ON account_gamification(current_streak) WHERE current_streak > 0
    """)

    # --- Account Activity ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS account_activity (
            account_id BIGINT PRIMARY KEY REFERENCES accounts(id) ON DELETE CASCADE,
            posts_created INTEGER NOT NULL DEFAULT 0,
            comments_created INTEGER NOT NULL DEFAULT 0,
            upvotes_received INTEGER NOT NULL DEFAULT 0,
            comment_upvotes_received INTEGER NOT NULL DEFAULT 0,
            sessions_attended INTEGER NOT NULL DEFAULT 0,
            mood_entries INTEGER NOT NULL DEFAULT 0,
            mood_streak INTEGER NOT NULL DEFAULT 0,
            journal_entries INTEGER NOT NULL DEFAULT 0,
            exercises_completed INTEGER NOT NULL DEFAULT 0,
            breathing_exercises_completed INTEGER NOT NULL DEFAULT 0,
            social_connections INTEGER NOT NULL DEFAULT 0,
            updated_at TIMESTAMPTZ
        )
    """)

    # --- Point Transactions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS point_transactions (
            id BIGSERIAL PRIMARY KEY,
            account_id BIGINT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
            amount INTEGER NOT NULL,
            kind VARCHAR(32) NOT NULL,
            description VARCHAR(256) NOT NULL,
            reference_id VARCHAR(128),
            reference_type VARCHAR(32),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_point_transactions_account_time
        ON point_transactions(account_id, created_at DESC)
    """)

    # --- Daily Check-ins ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS daily_check_ins (
            id BIGSERIAL PRIMARY KEY,
            account_id BIGINT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
            date DATE NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT daily_check_ins_account_id_date_key UNIQUE (account_id, date)
        )
    """)

    # --- Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id SERIAL PRIMARY KEY,
            name VARCHAR(64) UNIQUE NOT NULL,
            title VARCHAR(128) NOT NULL,
            description TEXT NOT NULL,
            category VARCHAR(16) NOT NULL,
            rarity VARCHAR(16) NOT NULL,
            points_reward INTEGER NOT NULL DEFAULT 0,
            icon VARCHAR(16),
            is_secret BOOLEAN NOT NULL DEFAULT false,
            is_active BOOLEAN NOT NULL DEFAULT true,
            sort_order INTEGER NOT NULL DEFAULT 0
        )
    """)

    # --- Account Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS account_badges (
            id BIGSERIAL PRIMARY KEY,
            account_id BIGINT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
            badge_id INTEGER NOT NULL REFERENCES badges(id),
            unlocked_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT account_badges_account_id_badge_id_key UNIQUE (account_id, badge_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_account_badges_account
        ON account_badges(account_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS account_badges CASCADE")
    op.execute("DROP TABLE IF EXISTS badges CASCADE")
    op.execute("DROP TABLE IF EXISTS daily_check_ins CASCADE")
    op.execute("DROP TABLE IF EXISTS point_transactions CASCADE")
    op.execute("DROP TABLE IF EXISTS account_activity CASCADE")
    op.execute("DROP TABLE IF EXISTS account_gamification CASCADE")
