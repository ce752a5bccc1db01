"""ZE Club tables.

Creates users, missions, mission_submissions, rewards and
redemption_requests. The partial unique index on mission_submissions allows
at most one pending or approved submission per (user, mission).

Revision ID: 001_club_tables
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_club_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            email VARCHAR(320) UNIQUE,
            name VARCHAR(128),
            discord_id VARCHAR(64) UNIQUE,
            ze_tag VARCHAR(20) UNIQUE,
            image_url TEXT,
            roles JSONB NOT NULL DEFAULT '["user"]',
            ze_coins INTEGER NOT NULL DEFAULT 0,
            experience INTEGER NOT NULL DEFAULT 0,
            points INTEGER NOT NULL DEFAULT 0,
            rank VARCHAR(32) NOT NULL DEFAULT 'Rookie',
            rank_icon VARCHAR(128) NOT NULL DEFAULT '/images/ranks/rookie.png',
            progress_to_next_rank INTEGER NOT NULL DEFAULT 0,
            next_rank_points INTEGER NOT NULL DEFAULT 100,
            current_rank_points INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_login_at TIMESTAMPTZ,
            CONSTRAINT ck_users_ze_coins_non_negative CHECK (ze_coins >= 0),
            CONSTRAINT ck_users_experience_non_negative CHECK (experience >= 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_users_experience
        ON users(experience)
    """)

    # --- Missions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS missions (
            id SERIAL PRIMARY KEY,
            name VARCHAR(200) NOT NULL,
            description TEXT NOT NULL,
            instructions TEXT NOT NULL,
            points INTEGER NOT NULL,
            category VARCHAR(64) NOT NULL DEFAULT 'General',
            difficulty VARCHAR(16) NOT NULL DEFAULT 'Easy',
            required_proof_type VARCHAR(16) NOT NULL DEFAULT 'image',
            max_file_size_mb INTEGER NOT NULL DEFAULT 50,
            example_image_url TEXT,
            is_time_limited BOOLEAN NOT NULL DEFAULT false,
            start_date TIMESTAMPTZ,
            end_date TIMESTAMPTZ,
            days_available INTEGER,
            active BOOLEAN NOT NULL DEFAULT true,
            featured BOOLEAN NOT NULL DEFAULT false,
            max_completions INTEGER,
            current_completions INTEGER NOT NULL DEFAULT 0,
            created_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            deactivated_at TIMESTAMPTZ,
            deactivated_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            is_deleted BOOLEAN NOT NULL DEFAULT false,
            deleted_at TIMESTAMPTZ,
            deleted_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            CONSTRAINT ck_missions_points_non_negative CHECK (points >= 0),
            CONSTRAINT ck_missions_completions_non_negative CHECK (current_completions >= 0),
            CONSTRAINT ck_missions_max_file_size CHECK (max_file_size_mb BETWEEN 1 AND 100)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_missions_listing
        ON missions(active, featured, created_at)
    """)

    # --- Mission Submissions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS mission_submissions (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            mission_id INTEGER NOT NULL REFERENCES missions(id) ON DELETE CASCADE,
            proof_url TEXT NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            submitted_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            remarks TEXT,
            approved_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            approved_at TIMESTAMPTZ,
            points_awarded INTEGER,
            reverted_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            reverted_at TIMESTAMPTZ,
            revert_reason TEXT,
            CONSTRAINT ck_mission_submissions_status
                CHECK (status IN ('pending', 'approved', 'rejected', 'reverted'))
        )
    """)
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS uq_mission_submissions_active
        ON mission_submissions(user_id, mission_id)
        WHERE status IN ('pending', 'approved')
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_mission_submissions_status
        ON mission_submissions(status, submitted_at)
    """)

    # --- Rewards ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS rewards (
            id SERIAL PRIMARY KEY,
            name VARCHAR(200) NOT NULL,
            description TEXT NOT NULL,
            cost INTEGER NOT NULL,
            stock INTEGER NOT NULL,
            required_rank VARCHAR(32) NOT NULL DEFAULT 'Rookie',
            exclusive_to_top3 BOOLEAN NOT NULL DEFAULT false,
            discountable BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_rewards_cost_non_negative CHECK (cost >= 0),
            CONSTRAINT ck_rewards_stock_non_negative CHECK (stock >= 0)
        )
    """)

    # --- Redemption Requests ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS redemption_requests (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            user_name VARCHAR(320) NOT NULL,
            user_email VARCHAR(320),
            reward_id INTEGER REFERENCES rewards(id) ON DELETE SET NULL,
            reward_name VARCHAR(200) NOT NULL,
            reward_cost INTEGER NOT NULL,
            contact_name VARCHAR(128) NOT NULL,
            contact_email VARCHAR(320) NOT NULL,
            contact_phone VARCHAR(32) NOT NULL,
            address TEXT NOT NULL,
            additional_notes TEXT,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            admin_notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            processed_at TIMESTAMPTZ,
            processed_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            CONSTRAINT ck_redemption_requests_status
                CHECK (status IN ('pending', 'processing', 'completed', 'cancelled'))
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_redemption_requests_user
        ON redemption_requests(user_id, created_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_redemption_requests_status
        ON redemption_requests(status, created_at)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS redemption_requests CASCADE")
    op.execute("DROP TABLE IF EXISTS rewards CASCADE")
    op.execute("DROP TABLE IF EXISTS mission_submissions CASCADE")
    op.execute("DROP TABLE IF EXISTS missions CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
