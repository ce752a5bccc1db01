"""Mission administration and member listings."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select

from zeclub.db.models import Mission, MissionSubmission
from zeclub.errors import ClubValidationError, NotFoundError
from zeclub.missions.availability import as_utc, is_mission_available
from zeclub.submissions.state_machine import APPROVED, BLOCKING_STATUSES, PENDING

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Columns an admin may set through create/update
EDITABLE_FIELDS = (
    "name",
    "description",
    "instructions",
    "points",
    "category",
    "difficulty",
    "required_proof_type",
    "max_file_size_mb",
    "example_image_url",
    "is_time_limited",
    "start_date",
    "end_date",
    "days_available",
    "active",
    "featured",
    "max_completions",
)


def resolve_window(data: dict[str, Any], now: datetime) -> dict[str, Any]:
    """Derive ``end_date`` from ``days_available`` and check the window is not empty.

    Mutates and returns ``data``.
    """
    if not data.get("is_time_limited"):
        return data

    start = as_utc(data.get("start_date"))
    end = as_utc(data.get("end_date"))
    if end is None and data.get("days_available"):
        end = (start or now) + timedelta(days=data["days_available"])
        data["end_date"] = end

    if start is not None and end is not None and end <= start:
        raise ClubValidationError("End date must be after start date")
    return data


async def get_mission(db: AsyncSession, mission_id: int) -> Mission:
    mission = await db.get(Mission, mission_id)
    if mission is None or mission.is_deleted:
        raise NotFoundError("Mission not found")
    return mission


async def create_mission(
    db: AsyncSession,
    data: dict[str, Any],
    admin_id: int,
    now: datetime | None = None,
) -> Mission:
    """Create a mission from validated admin input."""
    now = now or datetime.now(timezone.utc)
    fields = resolve_window({k: v for k, v in data.items() if k in EDITABLE_FIELDS}, now)

    mission = Mission(**fields, created_by=admin_id, current_completions=0)
    db.add(mission)
    await db.flush()

    logger.info("mission_created", mission_id=mission.id, admin_id=admin_id, points=mission.points)
    return mission


async def update_mission(
    db: AsyncSession,
    mission_id: int,
    changes: dict[str, Any],
    now: datetime | None = None,
) -> Mission:
    """Apply a partial update. The window is validated against the merged values."""
    now = now or datetime.now(timezone.utc)
    mission = await get_mission(db, mission_id)

    columns = Mission.__table__.c
    changes = {
        k: v for k, v in changes.items()
        if k in EDITABLE_FIELDS and (v is not None or columns[k].nullable)
    }
    merged = {field: getattr(mission, field) for field in ("is_time_limited", "start_date", "end_date")}
    merged.update(changes)
    if changes.get("days_available") and "end_date" not in changes:
        merged["end_date"] = None
    resolve_window(merged, now)
    if merged.get("end_date") is not None:
        changes["end_date"] = merged["end_date"]

    for field, value in changes.items():
        setattr(mission, field, value)
    await db.flush()

    logger.info("mission_updated", mission_id=mission_id, fields=sorted(changes))
    return mission


async def set_mission_active(
    db: AsyncSession,
    mission_id: int,
    active: bool,
    admin_id: int,
    now: datetime | None = None,
) -> Mission:
    """Toggle a mission on or off, recording who deactivated it."""
    now = now or datetime.now(timezone.utc)
    mission = await get_mission(db, mission_id)
    mission.active = active
    if active:
        mission.deactivated_at = None
        mission.deactivated_by = None
    else:
        mission.deactivated_at = now
        mission.deactivated_by = admin_id
    await db.flush()

    logger.info("mission_active_toggled", mission_id=mission_id, active=active, admin_id=admin_id)
    return mission


async def delete_mission(
    db: AsyncSession,
    mission_id: int,
    admin_id: int,
    now: datetime | None = None,
) -> tuple[Mission, int]:
    """Soft-delete a mission. Returns it with the count of submissions still pending review."""
    now = now or datetime.now(timezone.utc)
    mission = await get_mission(db, mission_id)
    mission.active = False
    mission.is_deleted = True
    mission.deleted_at = now
    mission.deleted_by = admin_id
    mission.deactivated_at = now
    mission.deactivated_by = admin_id
    await db.flush()

    result = await db.execute(
        select(func.count())
        .select_from(MissionSubmission)
        .where(MissionSubmission.mission_id == mission_id, MissionSubmission.status == PENDING)
    )
    pending = result.scalar_one()

    logger.info("mission_deleted", mission_id=mission_id, admin_id=admin_id, pending_submissions=pending)
    return mission, pending


async def list_admin_missions(db: AsyncSession, include_inactive: bool = True) -> list[Mission]:
    """All non-deleted missions, newest first."""
    query = select(Mission).where(Mission.is_deleted.is_(False))
    if not include_inactive:
        query = query.where(Mission.active.is_(True))
    result = await db.execute(query.order_by(Mission.created_at.desc(), Mission.id.desc()))
    return list(result.scalars().all())


async def list_available_missions(
    db: AsyncSession,
    now: datetime | None = None,
    featured_only: bool = False,
    limit: int | None = None,
) -> list[Mission]:
    """Missions open for submission, featured first then newest."""
    now = now or datetime.now(timezone.utc)
    query = select(Mission).where(Mission.active.is_(True), Mission.is_deleted.is_(False))
    if featured_only:
        query = query.where(Mission.featured.is_(True))
    result = await db.execute(
        query.order_by(Mission.featured.desc(), Mission.created_at.desc(), Mission.id.desc())
    )
    missions = [m for m in result.scalars() if is_mission_available(m, now)]
    if limit is not None:
        missions = missions[:limit]
    return missions


async def get_user_mission_states(db: AsyncSession, user_id: int) -> dict[int, str]:
    """Map mission id -> the user's blocking submission status (pending or approved)."""
    result = await db.execute(
        select(MissionSubmission.mission_id, MissionSubmission.status).where(
            MissionSubmission.user_id == user_id,
            MissionSubmission.status.in_(BLOCKING_STATUSES),
        )
    )
    states: dict[int, str] = {}
    for mission_id, status in result:
        if states.get(mission_id) != APPROVED:
            states[mission_id] = status
    return states
