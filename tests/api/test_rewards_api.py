"""Rewards catalog and redemption endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from zeclub.auth.jwt import create_access_token


def _headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.roles)}"}


def _redemption(reward_id: int, **overrides) -> dict:
    payload = {
        "reward_id": reward_id,
        "contact_name": "Ace Player",
        "contact_email": "ace@zeroerror.gg",
        "contact_phone": "555-123-4567",
        "address": "Thamel, Kathmandu",
    }
    payload.update(overrides)
    return payload


class TestCatalog:
    @pytest.mark.asyncio
    async def test_anonymous_catalog_hides_out_of_stock(self, client: AsyncClient, make_reward):
        await make_reward(name="Jersey", cost=300)
        await make_reward(name="Sticker pack", cost=50)
        await make_reward(name="Gone", stock=0)

        response = await client.get("/api/v1/ze-club/rewards")
        assert response.status_code == 200
        names = [r["name"] for r in response.json()["rewards"]]
        assert names == ["Sticker pack", "Jersey"]

    @pytest.mark.asyncio
    async def test_member_catalog_is_priced_for_caller(self, client: AsyncClient, make_user, make_reward):
        vanguard = await make_user(experience=600, ze_coins=95)
        await make_reward(name="Jersey", cost=100)
        await make_reward(name="Legend cape", cost=100, required_rank="Errorless Legend")

        response = await client.get("/api/v1/ze-club/rewards", headers=_headers(vanguard))
        rewards = {r["name"]: r for r in response.json()["rewards"]}

        assert rewards["Jersey"]["final_cost"] == 90
        assert rewards["Jersey"]["is_eligible"] is True
        assert rewards["Jersey"]["can_afford"] is True
        assert rewards["Legend cape"]["is_eligible"] is False
        assert "Errorless Legend" in rewards["Legend cape"]["ineligible_reason"]


class TestRedemption:
    @pytest.mark.asyncio
    async def test_redeem_and_list(self, client: AsyncClient, make_user, make_reward):
        user = await make_user(ze_coins=250)
        reward = await make_reward(cost=100, stock=2)

        response = await client.post(
            "/api/v1/ze-club/redemption-requests", json=_redemption(reward.id), headers=_headers(user)
        )
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Redemption request submitted successfully"
        assert data["reward_cost"] == 100
        assert data["new_balance"] == 150

        history = await client.get("/api/v1/ze-club/user-redemptions", headers=_headers(user))
        assert history.json()["total"] == 1
        assert history.json()["requests"][0]["id"] == data["request_id"]
        assert history.json()["requests"][0]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_invalid_email_is_schema_error(self, client: AsyncClient, make_user, make_reward):
        user = await make_user(ze_coins=250)
        reward = await make_reward()
        response = await client.post(
            "/api/v1/ze-club/redemption-requests",
            json=_redemption(reward.id, contact_email="not-an-email"),
            headers=_headers(user),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_blank_contact_name_is_schema_error(self, client: AsyncClient, make_user, make_reward):
        user = await make_user(ze_coins=250)
        reward = await make_reward()
        response = await client.post(
            "/api/v1/ze-club/redemption-requests",
            json=_redemption(reward.id, contact_name="   "),
            headers=_headers(user),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_invalid_phone(self, client: AsyncClient, make_user, make_reward):
        user = await make_user(ze_coins=250)
        reward = await make_reward()
        response = await client.post(
            "/api/v1/ze-club/redemption-requests",
            json=_redemption(reward.id, contact_phone="12"),
            headers=_headers(user),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid phone number format"

    @pytest.mark.asyncio
    async def test_insufficient_coins(self, client: AsyncClient, make_user, make_reward):
        user = await make_user(ze_coins=10)
        reward = await make_reward(cost=100, stock=1)
        response = await client.post(
            "/api/v1/ze-club/redemption-requests", json=_redemption(reward.id), headers=_headers(user)
        )
        assert response.status_code == 409

        catalog = await client.get("/api/v1/ze-club/rewards")
        assert catalog.json()["rewards"][0]["stock"] == 1

    @pytest.mark.asyncio
    async def test_rank_gate(self, client: AsyncClient, make_user, make_reward):
        user = await make_user(ze_coins=1000)
        reward = await make_reward(required_rank="Vanguard")
        response = await client.post(
            "/api/v1/ze-club/redemption-requests", json=_redemption(reward.id), headers=_headers(user)
        )
        assert response.status_code == 403


class TestAdminRewards:
    @pytest.mark.asyncio
    async def test_catalog_crud(self, client: AsyncClient, admin_headers: dict):
        created = await client.post(
            "/api/v1/admin/rewards",
            json={"name": "Mousepad", "description": "XL team mousepad", "cost": 400, "stock": 10},
            headers=admin_headers,
        )
        assert created.status_code == 201
        reward_id = created.json()["id"]

        updated = await client.put(f"/api/v1/admin/rewards/{reward_id}", json={"stock": 0}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.json()["stock"] == 0

        listing = await client.get("/api/v1/admin/rewards", headers=admin_headers)
        assert listing.json()["total"] == 1

        deleted = await client.delete(f"/api/v1/admin/rewards/{reward_id}", headers=admin_headers)
        assert deleted.status_code == 200
        missing = await client.delete(f"/api/v1/admin/rewards/{reward_id}", headers=admin_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_required_rank(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/v1/admin/rewards",
            json={"name": "Cape", "description": "Cape", "cost": 1, "stock": 1, "required_rank": "Overlord"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_process_request(self, client: AsyncClient, make_user, make_reward, admin_headers: dict):
        user = await make_user(ze_coins=100)
        reward = await make_reward(cost=100)
        created = await client.post(
            "/api/v1/ze-club/redemption-requests", json=_redemption(reward.id), headers=_headers(user)
        )
        request_id = created.json()["request_id"]

        pending = await client.get("/api/v1/admin/redemption-requests?status=pending", headers=admin_headers)
        assert pending.json()["total"] == 1

        processed = await client.patch(
            f"/api/v1/admin/redemption-requests/{request_id}",
            json={"status": "processing", "admin_notes": "Packed"},
            headers=admin_headers,
        )
        assert processed.status_code == 200
        assert processed.json()["redemption_request"]["status"] == "processing"
        assert processed.json()["redemption_request"]["processed_at"] is not None

        bad_filter = await client.get("/api/v1/admin/redemption-requests?status=lost", headers=admin_headers)
        assert bad_filter.status_code == 400
