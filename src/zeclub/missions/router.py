"""Mission endpoints: member listings and admin management."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from zeclub.auth.dependencies import get_current_user, get_optional_user, require_admin
from zeclub.config import get_settings
from zeclub.database import get_session
from zeclub.db.models import Mission, User
from zeclub.errors import ClubError
from zeclub.missions.availability import availability_flags
from zeclub.missions.schemas import (
    MemberMissionListResponse,
    MemberMissionResponse,
    MissionActiveRequest,
    MissionCreateRequest,
    MissionDeleteResponse,
    MissionListResponse,
    MissionResponse,
    MissionUpdateRequest,
)
from zeclub.missions.service import (
    create_mission,
    delete_mission,
    get_user_mission_states,
    list_admin_missions,
    list_available_missions,
    set_mission_active,
    update_mission,
)
from zeclub.submissions.state_machine import APPROVED, PENDING

router = APIRouter(prefix="/api/v1", tags=["Missions"])


def _mission_fields(mission: Mission, now: datetime) -> dict:
    return {
        "id": mission.id,
        "name": mission.name,
        "description": mission.description,
        "instructions": mission.instructions,
        "points": mission.points,
        "category": mission.category,
        "difficulty": mission.difficulty,
        "required_proof_type": mission.required_proof_type,
        "max_file_size_mb": mission.max_file_size_mb,
        "example_image_url": mission.example_image_url,
        "is_time_limited": mission.is_time_limited,
        "start_date": mission.start_date,
        "end_date": mission.end_date,
        "days_available": mission.days_available,
        "active": mission.active,
        "featured": mission.featured,
        "max_completions": mission.max_completions,
        "current_completions": mission.current_completions,
        "created_at": mission.created_at,
        "updated_at": mission.updated_at,
        "deactivated_at": mission.deactivated_at,
        **availability_flags(mission, now),
    }


def _mission_response(mission: Mission, now: datetime | None = None) -> MissionResponse:
    return MissionResponse(**_mission_fields(mission, now or datetime.now(timezone.utc)))


async def _member_listing(
    db: AsyncSession,
    user: User | None,
    missions: list[Mission],
    now: datetime,
) -> MemberMissionListResponse:
    states = await get_user_mission_states(db, user.id) if user else {}
    items = [
        MemberMissionResponse(
            **_mission_fields(m, now),
            is_completed=states.get(m.id) == APPROVED,
            is_pending=states.get(m.id) == PENDING,
        )
        for m in missions
    ]
    return MemberMissionListResponse(missions=items, total=len(items))


# ── Member endpoints ──


@router.get("/ze-club/missions", response_model=MemberMissionListResponse)
async def available_missions(
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> MemberMissionListResponse:
    """Missions open for submission, annotated with the caller's progress when signed in."""
    now = datetime.now(timezone.utc)
    missions = await list_available_missions(db, now)
    return await _member_listing(db, user, missions, now)


@router.get("/ze-club/missions/featured", response_model=MemberMissionListResponse)
async def featured_missions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MemberMissionListResponse:
    """Featured missions for the dashboard."""
    now = datetime.now(timezone.utc)
    missions = await list_available_missions(
        db, now, featured_only=True, limit=get_settings().featured_missions_limit
    )
    return await _member_listing(db, user, missions, now)


# ── Admin endpoints ──


@router.get("/admin/missions", response_model=MissionListResponse)
async def admin_list_missions(
    include_inactive: bool = Query(True),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MissionListResponse:
    """All missions that have not been deleted."""
    now = datetime.now(timezone.utc)
    missions = await list_admin_missions(db, include_inactive=include_inactive)
    return MissionListResponse(
        missions=[_mission_response(m, now) for m in missions],
        total=len(missions),
    )


@router.post("/admin/missions", response_model=MissionResponse, status_code=201)
async def admin_create_mission(
    body: MissionCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MissionResponse:
    """Create a mission."""
    try:
        mission = await create_mission(db, body.model_dump(), admin.id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return _mission_response(mission)


@router.put("/admin/missions/{mission_id}", response_model=MissionResponse)
async def admin_update_mission(
    mission_id: int,
    body: MissionUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MissionResponse:
    """Update the fields sent in the body."""
    try:
        mission = await update_mission(db, mission_id, body.model_dump(exclude_unset=True))
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return _mission_response(mission)


@router.patch("/admin/missions/{mission_id}/active", response_model=MissionResponse)
async def admin_toggle_mission(
    mission_id: int,
    body: MissionActiveRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MissionResponse:
    """Activate or deactivate a mission."""
    try:
        mission = await set_mission_active(db, mission_id, body.active, admin.id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return _mission_response(mission)


@router.delete("/admin/missions/{mission_id}", response_model=MissionDeleteResponse)
async def admin_delete_mission(
    mission_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MissionDeleteResponse:
    """Soft-delete a mission. Pending submissions stay reviewable."""
    try:
        mission, pending = await delete_mission(db, mission_id, admin.id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    if pending:
        message = f"Mission deactivated. {pending} pending submissions still need review."
    else:
        message = "Mission deactivated successfully"
    return MissionDeleteResponse(
        message=message,
        mission=_mission_response(mission),
        pending_submissions=pending,
    )
