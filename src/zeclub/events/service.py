"""Event administration and the public event listings.

Only published events are public. Dates are stored in UTC; "current" events
are the published ones dated within today's UTC day.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, or_, select

from zeclub.db.models import EVENT_STATUSES, EVENT_TYPES, Event
from zeclub.db.search import LIKE_ESCAPE, contains_pattern
from zeclub.errors import ClubValidationError, NotFoundError
from zeclub.missions.availability import to_utc

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

PUBLISHED = "published"
CURRENT_EVENTS_LIMIT = 6

EDITABLE_FIELDS = (
    "title",
    "description",
    "event_date",
    "event_type",
    "image_url",
    "location",
    "registration_link",
    "featured",
    "games",
    "organizer",
    "max_participants",
    "status",
)


def _check_choice(value: str | None, choices: tuple[str, ...], label: str) -> None:
    if value is not None and value not in choices:
        raise ClubValidationError(f"Invalid {label}. Must be one of: {', '.join(choices)}")


async def get_event(db: AsyncSession, event_id: int) -> Event:
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    return event


async def create_event(db: AsyncSession, data: dict[str, Any], admin_id: int) -> Event:
    """Create an event from validated admin input. New events start as drafts."""
    fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS and v is not None}
    _check_choice(fields.get("event_type"), EVENT_TYPES, "event type")
    _check_choice(fields.get("status"), EVENT_STATUSES, "status")
    fields["event_date"] = to_utc(fields.get("event_date"))

    event = Event(**fields, created_by=admin_id, current_participants=0)
    db.add(event)
    await db.flush()

    logger.info("event_created", event_id=event.id, admin_id=admin_id, status=event.status)
    return event


async def update_event(db: AsyncSession, event_id: int, changes: dict[str, Any]) -> Event:
    """Apply a partial update. ``None`` only clears nullable columns."""
    event = await get_event(db, event_id)

    columns = Event.__table__.c
    changes = {
        k: v for k, v in changes.items()
        if k in EDITABLE_FIELDS and (v is not None or columns[k].nullable)
    }
    _check_choice(changes.get("event_type"), EVENT_TYPES, "event type")
    _check_choice(changes.get("status"), EVENT_STATUSES, "status")
    if "event_date" in changes:
        changes["event_date"] = to_utc(changes["event_date"])

    for field, value in changes.items():
        setattr(event, field, value)
    await db.flush()

    logger.info("event_updated", event_id=event_id, fields=sorted(changes))
    return event


async def delete_event(db: AsyncSession, event_id: int, admin_id: int) -> None:
    """Remove an event for good."""
    event = await get_event(db, event_id)
    await db.delete(event)
    await db.flush()

    logger.info("event_deleted", event_id=event_id, admin_id=admin_id)


async def list_public_events(
    db: AsyncSession,
    event_type: str | None = None,
    featured: bool | None = None,
    limit: int | None = None,
) -> list[Event]:
    """Published events. Upcoming ones soonest first, everything else most recent first."""
    _check_choice(event_type, EVENT_TYPES, "event type")
    query = select(Event).where(Event.status == PUBLISHED)
    if event_type is not None:
        query = query.where(Event.event_type == event_type)
    if featured is not None:
        query = query.where(Event.featured.is_(featured))

    if event_type == "upcoming":
        query = query.order_by(Event.event_date.asc(), Event.id.asc())
    else:
        query = query.order_by(Event.event_date.desc(), Event.id.desc())
    if limit:
        query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def list_current_events(
    db: AsyncSession,
    now: datetime | None = None,
    limit: int = CURRENT_EVENTS_LIMIT,
) -> list[Event]:
    """Published events dated today (UTC), earliest first."""
    now = to_utc(now) or datetime.now(timezone.utc)
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)

    result = await db.execute(
        select(Event)
        .where(
            Event.status == PUBLISHED,
            Event.event_date >= day_start,
            Event.event_date < day_end,
        )
        .order_by(Event.event_date.asc(), Event.id.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def _page(db: AsyncSession, query: Select, page: int, limit: int) -> tuple[list[Event], int]:
    total = (await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))).scalar_one()
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().all()), total


async def list_admin_events(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    event_type: str | None = None,
    status: str | None = None,
    featured: bool | None = None,
) -> tuple[list[Event], int]:
    """Every event, newest date first, filtered for the admin console.

    Returns the requested page and the total number of matches.
    """
    _check_choice(event_type, EVENT_TYPES, "event type")
    _check_choice(status, EVENT_STATUSES, "status")

    query = select(Event)
    if search and search.strip():
        pattern = contains_pattern(search.strip())
        query = query.where(or_(
            Event.title.ilike(pattern, escape=LIKE_ESCAPE),
            Event.description.ilike(pattern, escape=LIKE_ESCAPE),
            Event.location.ilike(pattern, escape=LIKE_ESCAPE),
        ))
    if event_type is not None:
        query = query.where(Event.event_type == event_type)
    if status is not None:
        query = query.where(Event.status == status)
    if featured is not None:
        query = query.where(Event.featured.is_(featured))

    return await _page(db, query.order_by(Event.event_date.desc(), Event.id.desc()), page, limit)
