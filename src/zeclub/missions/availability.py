"""Mission availability gate.

A mission is open for submission when it is active, inside its time window
(if time-limited) and below its completion cap (if any). The same predicate
filters listings and guards submission; it is always re-evaluated server-side
at submission time.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zeclub.db.models import Mission


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes coming back from the database as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_utc(value: datetime | None) -> datetime | None:
    """Convert to UTC before storing (SQLite keeps the wall time and drops the offset)."""
    value = as_utc(value)
    return value.astimezone(timezone.utc) if value is not None else None


def mission_window_end(mission: Mission) -> datetime | None:
    """Effective end of the window: end_date, else start_date + days_available, else open."""
    end = as_utc(mission.end_date)
    if end is not None:
        return end
    start = as_utc(mission.start_date)
    if start is not None and mission.days_available:
        return start + timedelta(days=mission.days_available)
    return None


def is_expired(mission: Mission, now: datetime) -> bool:
    if not mission.is_time_limited:
        return False
    end = mission_window_end(mission)
    return end is not None and now > end


def has_started(mission: Mission, now: datetime) -> bool:
    if not mission.is_time_limited:
        return True
    start = as_utc(mission.start_date)
    return start is None or now >= start


def is_maxed_out(mission: Mission) -> bool:
    """A missing or zero cap means unlimited."""
    if not mission.max_completions:
        return False
    return mission.current_completions >= mission.max_completions


def is_mission_available(mission: Mission, now: datetime | None = None) -> bool:
    """True when the mission accepts submissions at ``now``."""
    now = now or datetime.now(timezone.utc)
    return (
        bool(mission.active)
        and has_started(mission, now)
        and not is_expired(mission, now)
        and not is_maxed_out(mission)
    )


def days_remaining(mission: Mission, now: datetime) -> int | None:
    """Whole days left in the window (rounded up), None when unbounded or expired."""
    if not mission.is_time_limited:
        return None
    end = mission_window_end(mission)
    if end is None or now > end:
        return None
    return math.ceil((end - now).total_seconds() / 86400)


def availability_flags(mission: Mission, now: datetime) -> dict:
    """Computed listing fields for one mission."""
    expired = is_expired(mission, now)
    maxed = is_maxed_out(mission)
    return {
        "is_expired": expired,
        "is_maxed_out": maxed,
        "days_remaining": days_remaining(mission, now),
        "is_available": is_mission_available(mission, now),
    }
