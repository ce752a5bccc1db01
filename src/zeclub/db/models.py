"""ORM models for the ZE Club schema.

Tables are created by the Alembic migrations in ``alembic/versions``; the
declarations here must stay in step with them.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
    func,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from zeclub.db.base import Base

SUBMISSION_STATUSES = ("pending", "approved", "rejected", "reverted")
REDEMPTION_STATUSES = ("pending", "processing", "completed", "cancelled")
MISSION_DIFFICULTIES = ("Easy", "Medium", "Hard")
PROOF_TYPES = ("image", "video", "both")
EVENT_TYPES = ("upcoming", "past", "current")
EVENT_STATUSES = ("draft", "published", "cancelled")
ANNOUNCEMENT_TYPES = ("info", "warning", "success", "urgent")

# Only these block a fresh submission for the same (user, mission)
_ACTIVE_SUBMISSION = text("status IN ('pending', 'approved')")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Club member. Rank fields are a cache of compute_rank(experience)."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("ze_coins >= 0", name="ck_users_ze_coins_non_negative"),
        CheckConstraint("experience >= 0", name="ck_users_experience_non_negative"),
        Index("idx_users_experience", "experience"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    discord_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    ze_tag: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(String(200), nullable=True)
    roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=lambda: ["user"])

    # --- Ledger ---
    ze_coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")  # legacy mirror of experience

    # --- Cached rank ---
    rank: Mapped[str] = mapped_column(String(32), nullable=False, default="Rookie", server_default="Rookie")
    rank_icon: Mapped[str] = mapped_column(
        String(128), nullable=False, default="/images/ranks/rookie.png", server_default="/images/ranks/rookie.png"
    )
    progress_to_next_rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    next_rank_points: Mapped[int] = mapped_column(Integer, nullable=False, default=100, server_default="100")
    current_rank_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_admin(self) -> bool:
        return "admin" in (self.roles or [])


# ---------------------------------------------------------------------------
# Missions
# ---------------------------------------------------------------------------


class Mission(Base):
    """A task with a point award, an optional time window and completion cap."""

    __tablename__ = "missions"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_missions_points_non_negative"),
        CheckConstraint("current_completions >= 0", name="ck_missions_completions_non_negative"),
        CheckConstraint("max_file_size_mb BETWEEN 1 AND 100", name="ck_missions_max_file_size"),
        Index("idx_missions_listing", "active", "featured", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    instructions: Mapped[str] = mapped_column(Text, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="General", server_default="General")
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False, default="Easy", server_default="Easy")
    required_proof_type: Mapped[str] = mapped_column(String(16), nullable=False, default="image", server_default="image")
    max_file_size_mb: Mapped[int] = mapped_column(Integer, nullable=False, default=50, server_default="50")
    example_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Time window ---
    is_time_limited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    days_available: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # --- Status ---
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    max_completions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_completions: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    # --- Metadata ---
    created_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deactivated_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


class MissionSubmission(Base):
    """Proof of completion awaiting (or past) admin review."""

    __tablename__ = "mission_submissions"
    __table_args__ = (
        Index(
            "uq_mission_submissions_active",
            "user_id",
            "mission_id",
            unique=True,
            postgresql_where=_ACTIVE_SUBMISSION,
            sqlite_where=_ACTIVE_SUBMISSION,
        ),
        Index("idx_mission_submissions_status", "status", "submitted_at"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'reverted')",
            name="ck_mission_submissions_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    mission_id: Mapped[int] = mapped_column(Integer, ForeignKey("missions.id", ondelete="CASCADE"), nullable=False)
    proof_url: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    points_awarded: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reverted_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reverted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revert_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped[User] = relationship("User", foreign_keys=[user_id])
    mission: Mapped[Mission] = relationship("Mission")


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------


class Reward(Base):
    """Catalog item bought with ZE Coins."""

    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("cost >= 0", name="ck_rewards_cost_non_negative"),
        CheckConstraint("stock >= 0", name="ck_rewards_stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    cost: Mapped[int] = mapped_column(Integer, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False)
    required_rank: Mapped[str] = mapped_column(String(32), nullable=False, default="Rookie", server_default="Rookie")
    exclusive_to_top3: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    discountable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )


class RedemptionRequest(Base):
    """A redeemed reward awaiting fulfillment. Created together with the stock/coin deduction."""

    __tablename__ = "redemption_requests"
    __table_args__ = (
        Index("idx_redemption_requests_user", "user_id", "created_at"),
        Index("idx_redemption_requests_status", "status", "created_at"),
        CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'cancelled')",
            name="ck_redemption_requests_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_name: Mapped[str] = mapped_column(String(320), nullable=False)
    user_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    reward_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("rewards.id", ondelete="SET NULL"), nullable=True)
    reward_name: Mapped[str] = mapped_column(String(200), nullable=False)
    reward_cost: Mapped[int] = mapped_column(Integer, nullable=False)

    # --- Fulfillment contact ---
    contact_name: Mapped[str] = mapped_column(String(128), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(320), nullable=False)
    contact_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


# ---------------------------------------------------------------------------
# Events & announcements
# ---------------------------------------------------------------------------


class Event(Base):
    """A tournament, meetup or stream listed on the portal. Only published events are public."""

    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("event_type IN ('upcoming', 'past', 'current')", name="ck_events_event_type"),
        CheckConstraint("status IN ('draft', 'published', 'cancelled')", name="ck_events_status"),
        CheckConstraint("max_participants IS NULL OR max_participants >= 0", name="ck_events_max_participants"),
        CheckConstraint("current_participants >= 0", name="ck_events_current_participants"),
        Index("idx_events_type_status_date", "event_type", "status", "event_date"),
        Index("idx_events_featured_status_date", "featured", "status", "event_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    event_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    event_type: Mapped[str] = mapped_column(String(16), nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    registration_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    games: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=lambda: [])
    organizer: Mapped[str] = mapped_column(
        String(128), nullable=False, default="Zero Error Esports", server_default="Zero Error Esports"
    )
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft", server_default="draft")
    created_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )


class Announcement(Base):
    """Banner message shown while active and inside its optional date window."""

    __tablename__ = "announcements"
    __table_args__ = (
        CheckConstraint("type IN ('info', 'warning', 'success', 'urgent')", name="ck_announcements_type"),
        CheckConstraint("priority BETWEEN 1 AND 10", name="ck_announcements_priority"),
        Index("idx_announcements_active_priority", "active", "priority"),
        Index("idx_announcements_window", "start_date", "end_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="info", server_default="info")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=5, server_default="5")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    link: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_text: Mapped[str | None] = mapped_column(String(100), nullable=True)
    target_pages: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=lambda: ["all"])
    dismissible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )
