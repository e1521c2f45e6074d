"""Baseline schema: sessions, aggregates, achievement ledger, groups.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_baseline"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- Raw session records ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS session_records (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(128) NOT NULL,
            timestamp BIGINT NOT NULL,
            duration INTEGER NOT NULL,
            category INTEGER NOT NULL,
            notes VARCHAR(280),
            day_index INTEGER NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT session_records_user_id_timestamp_key UNIQUE (user_id, timestamp),
            CONSTRAINT session_records_duration_check CHECK (duration BETWEEN 1 AND 1440),
            CONSTRAINT session_records_category_check CHECK (category BETWEEN 1 AND 5)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_session_records_user_id
        ON session_records(user_id)
    """)

    # --- Per-user aggregate ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_aggregates (
            user_id VARCHAR(128) PRIMARY KEY,
            total_sessions INTEGER NOT NULL DEFAULT 0,
            total_duration BIGINT NOT NULL DEFAULT 0,
            current_streak INTEGER NOT NULL DEFAULT 0,
            last_active_day INTEGER NOT NULL DEFAULT 0,
            activity_types_seen JSONB NOT NULL DEFAULT '[]',
            achievements_owned JSONB NOT NULL DEFAULT '[]',
            milestones_awarded JSONB NOT NULL DEFAULT '[]',
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Achievement ledger (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id SERIAL PRIMARY KEY,
            owner VARCHAR(128) NOT NULL,
            category VARCHAR(32) NOT NULL,
            milestone INTEGER NOT NULL,
            awarded_at BIGINT NOT NULL,
            description VARCHAR(128) NOT NULL,
            CONSTRAINT achievements_owner_category_milestone_key UNIQUE (owner, category, milestone)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_achievements_owner
        ON achievements(owner)
    """)

    # --- Groups ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS groups (
            id SERIAL PRIMARY KEY,
            name VARCHAR(64) NOT NULL,
            creator VARCHAR(128) NOT NULL,
            member_count INTEGER NOT NULL DEFAULT 0,
            created_at BIGINT NOT NULL
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS group_members (
            id SERIAL PRIMARY KEY,
            group_id INTEGER NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            user_id VARCHAR(128) NOT NULL,
            joined_at BIGINT NOT NULL,
            CONSTRAINT group_members_group_user_key UNIQUE (group_id, user_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_group_members_user_id
        ON group_members(user_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS group_members CASCADE")
    op.execute("DROP TABLE IF EXISTS groups CASCADE")
    op.execute("DROP TABLE IF EXISTS achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS user_aggregates CASCADE")
    op.execute("DROP TABLE IF EXISTS session_records CASCADE")
