"""Announcement banners: normalization, the live feed and admin listing."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from zeclub.announcements.service import (
    clamp_priority,
    create_announcement,
    delete_announcement,
    get_announcement,
    list_admin_announcements,
    list_live_announcements,
    normalize_target_pages,
    update_announcement,
)
from zeclub.errors import ClubValidationError, NotFoundError

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


async def _announcement(db_session, admin, **fields):
    fields.setdefault("title", "Season 3 is live")
    fields.setdefault("message", "New missions every week")
    announcement = await create_announcement(db_session, fields, admin.id)
    await db_session.commit()
    return announcement


@pytest.mark.parametrize(
    ("given", "expected"),
    [(None, 5), (0, 5), (-3, 1), (1, 1), (7, 7), (10, 10), (15, 10)],
)
def test_clamp_priority(given, expected):
    assert clamp_priority(given) == expected


@pytest.mark.parametrize(
    ("given", "expected"),
    [(None, ["all"]), ([], ["all"]), (["  "], ["all"]), (["ze-club", " home "], ["ze-club", "home"])],
)
def test_normalize_target_pages(given, expected):
    assert normalize_target_pages(given) == expected


class TestCreateAnnouncement:
    @pytest.mark.asyncio
    async def test_defaults(self, db_session, admin):
        announcement = await _announcement(db_session, admin)
        assert announcement.type == "info"
        assert announcement.priority == 5
        assert announcement.active is True
        assert announcement.dismissible is True
        assert announcement.target_pages == ["all"]
        assert announcement.created_by == admin.id

    @pytest.mark.asyncio
    async def test_priority_clamped(self, db_session, admin):
        announcement = await _announcement(db_session, admin, priority=42)
        assert announcement.priority == 10

    @pytest.mark.asyncio
    async def test_end_before_start(self, db_session, admin):
        with pytest.raises(ClubValidationError, match="End date must be after start date"):
            await create_announcement(
                db_session,
                {"title": "T", "message": "M", "start_date": NOW, "end_date": NOW - timedelta(days=1)},
                admin.id,
            )


class TestLiveFeed:
    @pytest.mark.asyncio
    async def test_window_and_active_flag(self, db_session, admin):
        await _announcement(db_session, admin, title="Open ended")
        await _announcement(
            db_session, admin, title="In window", start_date=NOW - timedelta(days=1), end_date=NOW + timedelta(days=1)
        )
        await _announcement(db_session, admin, title="Not yet", start_date=NOW + timedelta(hours=1))
        await _announcement(db_session, admin, title="Over", end_date=NOW - timedelta(minutes=1))
        await _announcement(db_session, admin, title="Switched off", active=False)

        feed = await list_live_announcements(db_session, now=NOW)
        assert sorted(a.title for a in feed["announcements"]) == ["In window", "Open ended"]
        assert feed["total"] == 2
        assert feed["has_more"] is False

    @pytest.mark.asyncio
    async def test_priority_order_and_pages(self, db_session, admin):
        for priority in (2, 9, 5, 7):
            await _announcement(db_session, admin, title=f"P{priority}", priority=priority)

        first = await list_live_announcements(db_session, page=1, now=NOW)
        assert [a.title for a in first["announcements"]] == ["P9", "P7", "P5"]
        assert first["has_more"] is True
        assert first["total_pages"] == 2

        second = await list_live_announcements(db_session, page=2, now=NOW)
        assert [a.title for a in second["announcements"]] == ["P2"]
        assert second["has_more"] is False

    @pytest.mark.asyncio
    async def test_target_pages(self, db_session, admin):
        await _announcement(db_session, admin, title="Everywhere", priority=3)
        await _announcement(db_session, admin, title="Club only", target_pages=["ze-club"], priority=2)
        await _announcement(db_session, admin, title="Home only", target_pages=["home"], priority=1)

        club = await list_live_announcements(db_session, target_page="ze-club", now=NOW)
        assert [a.title for a in club["announcements"]] == ["Everywhere", "Club only"]

        everything = await list_live_announcements(db_session, now=NOW)
        assert everything["total"] == 3


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_update_checks_merged_window(self, db_session, admin):
        announcement = await _announcement(db_session, admin, start_date=NOW)
        with pytest.raises(ClubValidationError):
            await update_announcement(db_session, announcement.id, {"end_date": NOW - timedelta(hours=1)})

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, admin):
        announcement = await _announcement(db_session, admin, link="https://zeroerror.gg/s3")

        updated = await update_announcement(
            db_session, announcement.id, {"type": "urgent", "priority": 0, "link": None, "target_pages": []}
        )
        await db_session.commit()

        assert updated.type == "urgent"
        assert updated.priority == 5
        assert updated.link is None
        assert updated.target_pages == ["all"]
        assert updated.title == "Season 3 is live"

    @pytest.mark.asyncio
    async def test_delete(self, db_session, admin):
        announcement = await _announcement(db_session, admin)
        announcement_id = announcement.id

        await delete_announcement(db_session, announcement_id, admin.id)
        await db_session.commit()

        with pytest.raises(NotFoundError):
            await get_announcement(db_session, announcement_id)


@pytest.mark.asyncio
async def test_admin_listing(db_session, admin):
    await _announcement(db_session, admin, title="Maintenance window", message="Servers down Sunday")
    await _announcement(db_session, admin, title="Jersey drop", message="New merch", active=False)

    _, total = await list_admin_announcements(db_session)
    assert total == 2

    inactive, total = await list_admin_announcements(db_session, active=False)
    assert total == 1
    assert [a.title for a in inactive] == ["Jersey drop"]

    found, total = await list_admin_announcements(db_session, search="sunday")
    assert [a.title for a in found] == ["Maintenance window"]
