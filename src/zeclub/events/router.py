"""Event endpoints: public listings and admin management."""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from zeclub.auth.dependencies import require_admin
from zeclub.database import get_session
from zeclub.db.models import User
from zeclub.errors import ClubError
from zeclub.events.schemas import (
    AdminEventListResponse,
    AdminEventResponse,
    EventCreateRequest,
    EventDeleteResponse,
    EventListResponse,
    EventPagination,
    EventResponse,
    EventUpdateRequest,
)
from zeclub.events.service import (
    create_event,
    delete_event,
    list_admin_events,
    list_current_events,
    list_public_events,
    update_event,
)

router = APIRouter(prefix="/api/v1", tags=["Events"])


# ── Public endpoints ──


@router.get("/events", response_model=EventListResponse)
async def public_events(
    event_type: str | None = Query(None),
    featured: bool | None = Query(None),
    limit: int = Query(0, ge=0, le=100),
    db: AsyncSession = Depends(get_session),
) -> EventListResponse:
    """Published events, optionally only upcoming or past, or only featured."""
    try:
        events = await list_public_events(db, event_type=event_type, featured=featured, limit=limit or None)
    except ClubError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return EventListResponse(events=[EventResponse.model_validate(e) for e in events], count=len(events))


@router.get("/events/current", response_model=EventListResponse)
async def current_events(db: AsyncSession = Depends(get_session)) -> EventListResponse:
    """Published events happening today."""
    events = await list_current_events(db)
    return EventListResponse(events=[EventResponse.model_validate(e) for e in events], count=len(events))


# ── Admin endpoints ──


@router.get("/admin/events", response_model=AdminEventListResponse)
async def admin_list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    event_type: str | None = Query(None),
    status: str | None = Query(None),
    featured: bool | None = Query(None),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminEventListResponse:
    try:
        events, total = await list_admin_events(
            db, page=page, limit=limit, search=search, event_type=event_type, status=status, featured=featured
        )
    except ClubError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return AdminEventListResponse(
        events=[AdminEventResponse.model_validate(e) for e in events],
        pagination=EventPagination(total=total, page=page, limit=limit, total_pages=math.ceil(total / limit)),
    )


@router.post("/admin/events", response_model=AdminEventResponse, status_code=201)
async def admin_create_event(
    body: EventCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminEventResponse:
    try:
        event = await create_event(db, body.model_dump(), admin.id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return AdminEventResponse.model_validate(event)


@router.put("/admin/events/{event_id}", response_model=AdminEventResponse)
async def admin_update_event(
    event_id: int,
    body: EventUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminEventResponse:
    """Update the fields sent in the body."""
    try:
        event = await update_event(db, event_id, body.model_dump(exclude_unset=True))
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return AdminEventResponse.model_validate(event)


@router.delete("/admin/events/{event_id}", response_model=EventDeleteResponse)
async def admin_delete_event(
    event_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> EventDeleteResponse:
    try:
        await delete_event(db, event_id, admin.id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return EventDeleteResponse(message="Event deleted successfully")
