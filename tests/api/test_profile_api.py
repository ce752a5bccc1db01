"""Member profile and ZE Tag endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestProfileApi:
    @pytest.mark.asyncio
    async def test_get_profile(self, client: AsyncClient, member, member_headers: dict):
        response = await client.get("/api/v1/ze-club/user/profile", headers=member_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["profile"]["id"] == member.id
        assert data["profile"]["ze_tag"] == "ACE"
        assert data["profile"]["rank"] == "Rookie"
        assert data["stats"] == {
            "completed_missions": 0,
            "pending_missions": 0,
            "ze_coins": 0,
            "experience": 0,
            "leaderboard_position": 1,
        }

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/ze-club/user/profile")
        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_update_bio(self, client: AsyncClient, member_headers: dict):
        response = await client.patch(
            "/api/v1/ze-club/user/profile", json={"bio": " Flex player "}, headers=member_headers
        )
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["profile"]["bio"] == "Flex player"

        again = await client.get("/api/v1/ze-club/user/profile", headers=member_headers)
        assert again.json()["profile"]["bio"] == "Flex player"

    @pytest.mark.asyncio
    async def test_bio_too_long(self, client: AsyncClient, member_headers: dict):
        response = await client.patch(
            "/api/v1/ze-club/user/profile", json={"bio": "x" * 201}, headers=member_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Bio must be 200 characters or less"


class TestZeTagApi:
    @pytest.mark.asyncio
    async def test_check(self, client: AsyncClient, member, member_headers: dict, make_user):
        await make_user(ze_tag="Blaze")

        taken = await client.get("/api/v1/ze-club/user/profile/ze-tag/check?ze_tag=Blaze", headers=member_headers)
        assert taken.status_code == 200
        assert taken.json() == {"available": False, "ze_tag": "Blaze", "error": None}

        own = await client.get("/api/v1/ze-club/user/profile/ze-tag/check?ze_tag=ACE", headers=member_headers)
        assert own.json()["available"] is True

        malformed = await client.get("/api/v1/ze-club/user/profile/ze-tag/check?ze_tag=a-b", headers=member_headers)
        assert malformed.status_code == 200
        assert malformed.json()["available"] is False
        assert "3-20 characters" in malformed.json()["error"]

    @pytest.mark.asyncio
    async def test_change(self, client: AsyncClient, member_headers: dict):
        response = await client.patch(
            "/api/v1/ze-club/user/profile/ze-tag", json={"ze_tag": "AceOfSpades"}, headers=member_headers
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "ze_tag": "AceOfSpades"}

        dashboard = await client.get("/api/v1/ze-club/user/dashboard", headers=member_headers)
        assert dashboard.json()["ze_tag"] == "AceOfSpades"

    @pytest.mark.asyncio
    async def test_change_to_taken_tag(self, client: AsyncClient, member_headers: dict, make_user):
        await make_user(ze_tag="Blaze")
        response = await client.patch(
            "/api/v1/ze-club/user/profile/ze-tag", json={"ze_tag": "Blaze"}, headers=member_headers
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "This ZE Tag is already taken"

    @pytest.mark.asyncio
    async def test_change_malformed(self, client: AsyncClient, member_headers: dict):
        response = await client.patch(
            "/api/v1/ze-club/user/profile/ze-tag", json={"ze_tag": "x"}, headers=member_headers
        )
        assert response.status_code == 400
