"""Announcement banners: admin management and the live feed.

An announcement is live while it is active and ``now`` falls inside its
optional [start_date, end_date] window. ``target_pages`` names the pages it
shows on; ``"all"`` matches every page.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, or_, select

from zeclub.db.models import ANNOUNCEMENT_TYPES, Announcement
from zeclub.db.search import LIKE_ESCAPE, contains_pattern
from zeclub.errors import ClubValidationError, NotFoundError
from zeclub.missions.availability import as_utc, to_utc

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ALL_PAGES = "all"
DEFAULT_PRIORITY = 5
MIN_PRIORITY = 1
MAX_PRIORITY = 10
LIVE_PAGE_SIZE = 3

EDITABLE_FIELDS = (
    "title",
    "message",
    "type",
    "priority",
    "active",
    "start_date",
    "end_date",
    "link",
    "link_text",
    "target_pages",
    "dismissible",
)


def clamp_priority(priority: int | None) -> int:
    """Missing or zero falls back to the default; anything else is clamped to 1..10."""
    if not priority:
        return DEFAULT_PRIORITY
    return min(max(priority, MIN_PRIORITY), MAX_PRIORITY)


def normalize_target_pages(pages: list[str] | None) -> list[str]:
    cleaned = [p.strip() for p in pages or [] if p and p.strip()]
    return cleaned or [ALL_PAGES]


def is_live(announcement: Announcement, now: datetime) -> bool:
    if not announcement.active:
        return False
    start = as_utc(announcement.start_date)
    end = as_utc(announcement.end_date)
    if start is not None and start > now:
        return False
    return end is None or end >= now


def shows_on(announcement: Announcement, page: str) -> bool:
    targets = announcement.target_pages or [ALL_PAGES]
    return page == ALL_PAGES or ALL_PAGES in targets or page in targets


def _check_window(start: datetime | None, end: datetime | None) -> None:
    start, end = as_utc(start), as_utc(end)
    if start is not None and end is not None and end <= start:
        raise ClubValidationError("End date must be after start date")


def _normalize(fields: dict[str, Any]) -> dict[str, Any]:
    if fields.get("type") is not None and fields["type"] not in ANNOUNCEMENT_TYPES:
        raise ClubValidationError(f"Invalid type. Must be one of: {', '.join(ANNOUNCEMENT_TYPES)}")
    if "priority" in fields:
        fields["priority"] = clamp_priority(fields["priority"])
    if "target_pages" in fields:
        fields["target_pages"] = normalize_target_pages(fields["target_pages"])
    for field in ("start_date", "end_date"):
        if field in fields:
            fields[field] = to_utc(fields[field])
    return fields


async def get_announcement(db: AsyncSession, announcement_id: int) -> Announcement:
    announcement = await db.get(Announcement, announcement_id)
    if announcement is None:
        raise NotFoundError("Announcement not found")
    return announcement


async def create_announcement(db: AsyncSession, data: dict[str, Any], admin_id: int) -> Announcement:
    fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    fields.setdefault("priority", None)
    fields.setdefault("target_pages", None)
    fields = _normalize(fields)
    _check_window(fields.get("start_date"), fields.get("end_date"))

    announcement = Announcement(**{k: v for k, v in fields.items() if v is not None}, created_by=admin_id)
    db.add(announcement)
    await db.flush()

    logger.info("announcement_created", announcement_id=announcement.id, admin_id=admin_id)
    return announcement


async def update_announcement(db: AsyncSession, announcement_id: int, changes: dict[str, Any]) -> Announcement:
    """Apply a partial update. The window is validated against the merged values."""
    announcement = await get_announcement(db, announcement_id)

    columns = Announcement.__table__.c
    changes = _normalize({
        k: v for k, v in changes.items()
        if k in EDITABLE_FIELDS and (v is not None or columns[k].nullable or k in ("priority", "target_pages"))
    })
    _check_window(
        changes.get("start_date", announcement.start_date),
        changes.get("end_date", announcement.end_date),
    )

    for field, value in changes.items():
        setattr(announcement, field, value)
    await db.flush()

    logger.info("announcement_updated", announcement_id=announcement_id, fields=sorted(changes))
    return announcement


async def delete_announcement(db: AsyncSession, announcement_id: int, admin_id: int) -> None:
    announcement = await get_announcement(db, announcement_id)
    await db.delete(announcement)
    await db.flush()

    logger.info("announcement_deleted", announcement_id=announcement_id, admin_id=admin_id)


async def list_live_announcements(
    db: AsyncSession,
    page: int = 1,
    target_page: str = ALL_PAGES,
    now: datetime | None = None,
    page_size: int = LIVE_PAGE_SIZE,
) -> dict:
    """One page of live announcements for ``target_page``, highest priority first."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(Announcement)
        .where(Announcement.active.is_(True))
        .order_by(Announcement.priority.desc(), Announcement.updated_at.desc(), Announcement.id.desc())
    )
    # Date window and target pages are checked in Python
    live = [a for a in result.scalars() if is_live(a, now) and shows_on(a, target_page)]

    start = (page - 1) * page_size
    total = len(live)
    return {
        "announcements": live[start:start + page_size],
        "page": page,
        "limit": page_size,
        "total": total,
        "total_pages": math.ceil(total / page_size) or 1,
        "has_more": page * page_size < total,
    }


async def list_admin_announcements(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    active: bool | None = None,
) -> tuple[list[Announcement], int]:
    """Every announcement, newest first. Returns the page and the total number of matches."""
    query = select(Announcement)
    if search and search.strip():
        pattern = contains_pattern(search.strip())
        query = query.where(or_(
            Announcement.title.ilike(pattern, escape=LIKE_ESCAPE),
            Announcement.message.ilike(pattern, escape=LIKE_ESCAPE),
        ))
    if active is not None:
        query = query.where(Announcement.active.is_(active))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(Announcement.created_at.desc(), Announcement.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
