"""Member bio, events and announcements.

Adds users.bio for the profile page and the events and announcements tables
managed from the admin console.

Revision ID: 002_profile_events_announcements
Revises: 001_club_tables
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_profile_events_announcements"
down_revision: str | None = "001_club_tables"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("ALTER TABLE users ADD COLUMN IF NOT EXISTS bio VARCHAR(200)")

    # --- Events ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS events (
            id SERIAL PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            description TEXT NOT NULL,
            event_date TIMESTAMPTZ NOT NULL,
            event_type VARCHAR(16) NOT NULL,
            image_url TEXT,
            location VARCHAR(200),
            registration_link TEXT,
            featured BOOLEAN NOT NULL DEFAULT false,
            games JSONB NOT NULL DEFAULT '[]',
            organizer VARCHAR(128) NOT NULL DEFAULT 'Zero Error Esports',
            max_participants INTEGER,
            current_participants INTEGER NOT NULL DEFAULT 0,
            status VARCHAR(16) NOT NULL DEFAULT 'draft',
            created_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_events_event_type CHECK (event_type IN ('upcoming', 'past', 'current')),
            CONSTRAINT ck_events_status CHECK (status IN ('draft', 'published', 'cancelled')),
            CONSTRAINT ck_events_max_participants CHECK (max_participants IS NULL OR max_participants >= 0),
            CONSTRAINT ck_events_current_participants CHECK (current_participants >= 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_events_type_status_date
        ON events(event_type, status, event_date)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_events_featured_status_date
        ON events(featured, status, event_date)
    """)

    # --- Announcements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS announcements (
            id SERIAL PRIMARY KEY,
            title VARCHAR(100) NOT NULL,
            message VARCHAR(500) NOT NULL,
            type VARCHAR(16) NOT NULL DEFAULT 'info',
            priority INTEGER NOT NULL DEFAULT 5,
            active BOOLEAN NOT NULL DEFAULT true,
            start_date TIMESTAMPTZ,
            end_date TIMESTAMPTZ,
            link TEXT,
            link_text VARCHAR(100),
            target_pages JSONB NOT NULL DEFAULT '["all"]',
            dismissible BOOLEAN NOT NULL DEFAULT true,
            created_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_announcements_type CHECK (type IN ('info', 'warning', 'success', 'urgent')),
            CONSTRAINT ck_announcements_priority CHECK (priority BETWEEN 1 AND 10)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_announcements_active_priority
        ON announcements(active, priority)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_announcements_window
        ON announcements(start_date, end_date)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS announcements CASCADE")
    op.execute("DROP TABLE IF EXISTS events CASCADE")
    op.execute("ALTER TABLE users DROP COLUMN IF EXISTS bio")
