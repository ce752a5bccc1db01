"""Announcement endpoints: the live banner feed and admin management."""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from zeclub.announcements.schemas import (
    AnnouncementCreateRequest,
    AnnouncementDeleteResponse,
    AnnouncementListResponse,
    AnnouncementPagination,
    AnnouncementResponse,
    AnnouncementUpdateRequest,
)
from zeclub.announcements.service import (
    ALL_PAGES,
    create_announcement,
    delete_announcement,
    list_admin_announcements,
    list_live_announcements,
    update_announcement,
)
from zeclub.auth.dependencies import require_admin
from zeclub.database import get_session
from zeclub.db.models import User
from zeclub.errors import ClubError

router = APIRouter(prefix="/api/v1", tags=["Announcements"])


@router.get("/announcements/active", response_model=AnnouncementListResponse)
async def active_announcements(
    page: int = Query(1, ge=1),
    target_page: str = Query(ALL_PAGES, min_length=1, max_length=64),
    db: AsyncSession = Depends(get_session),
) -> AnnouncementListResponse:
    """Live announcements for a page, three per page, highest priority first."""
    feed = await list_live_announcements(db, page=page, target_page=target_page)
    return AnnouncementListResponse(
        announcements=[AnnouncementResponse.model_validate(a) for a in feed.pop("announcements")],
        pagination=AnnouncementPagination(**feed),
    )


# ── Admin endpoints ──


@router.get("/admin/announcements", response_model=AnnouncementListResponse)
async def admin_list_announcements(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    search: str | None = Query(None, max_length=100),
    active: bool | None = Query(None),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AnnouncementListResponse:
    announcements, total = await list_admin_announcements(db, page=page, limit=limit, search=search, active=active)
    return AnnouncementListResponse(
        announcements=[AnnouncementResponse.model_validate(a) for a in announcements],
        pagination=AnnouncementPagination(
            page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) or 1
        ),
    )


@router.post("/admin/announcements", response_model=AnnouncementResponse, status_code=201)
async def admin_create_announcement(
    body: AnnouncementCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AnnouncementResponse:
    try:
        announcement = await create_announcement(db, body.model_dump(), admin.id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return AnnouncementResponse.model_validate(announcement)


@router.put("/admin/announcements/{announcement_id}", response_model=AnnouncementResponse)
async def admin_update_announcement(
    announcement_id: int,
    body: AnnouncementUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AnnouncementResponse:
    """Update the fields sent in the body."""
    try:
        announcement = await update_announcement(db, announcement_id, body.model_dump(exclude_unset=True))
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return AnnouncementResponse.model_validate(announcement)


@router.delete("/admin/announcements/{announcement_id}", response_model=AnnouncementDeleteResponse)
async def admin_delete_announcement(
    announcement_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AnnouncementDeleteResponse:
    try:
        await delete_announcement(db, announcement_id, admin.id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return AnnouncementDeleteResponse(message="Announcement deleted")
