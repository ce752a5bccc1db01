"""Reward redemption: pricing, eligibility, stock and balance."""

from __future__ import annotations

import pytest

from zeclub.db.models import Reward, User
from zeclub.errors import ClubValidationError, EligibilityError, NotFoundError, StateConflictError
from zeclub.rewards.service import (
    ineligibility_reason,
    list_redemption_requests,
    list_user_redemptions,
    redeem_reward,
    update_redemption_request,
)


def _contact(**overrides) -> dict:
    contact = {
        "contact_name": "Ace Player",
        "contact_email": "ace@zeroerror.gg",
        "contact_phone": "555-123-4567",
        "address": "Thamel, Kathmandu",
        "additional_notes": None,
    }
    contact.update(overrides)
    return contact


async def _reload(session, model, pk):
    return await session.get(model, pk, populate_existing=True)


class TestRedeemReward:
    @pytest.mark.asyncio
    async def test_vanguard_pays_discounted_price(self, db_session, make_user, make_reward):
        user = await make_user(experience=500, ze_coins=1000)
        reward = await make_reward(cost=100, stock=5)

        request = await redeem_reward(db_session, user.id, reward.id, _contact())
        await db_session.commit()

        assert request.reward_cost == 90
        assert request.reward_name == reward.name
        assert request.status == "pending"
        assert request.user_name == user.name

        stored_user = await _reload(db_session, User, user.id)
        assert stored_user.ze_coins == 910
        assert stored_user.experience == 500
        assert stored_user.rank == "Vanguard"
        assert (await _reload(db_session, Reward, reward.id)).stock == 4

    @pytest.mark.asyncio
    async def test_rookie_pays_full_price(self, db_session, make_user, make_reward):
        user = await make_user(ze_coins=150)
        reward = await make_reward(cost=100)

        request = await redeem_reward(db_session, user.id, reward.id, _contact())
        await db_session.commit()

        assert request.reward_cost == 100
        assert (await _reload(db_session, User, user.id)).ze_coins == 50

    @pytest.mark.asyncio
    async def test_non_discountable_reward_keeps_price(self, db_session, make_user, make_reward):
        user = await make_user(experience=500, ze_coins=1000)
        reward = await make_reward(cost=100, discountable=False)

        request = await redeem_reward(db_session, user.id, reward.id, _contact())
        await db_session.commit()
        assert request.reward_cost == 100

    @pytest.mark.asyncio
    async def test_insufficient_coins_leaves_stock(self, db_session, make_user, make_reward):
        user = await make_user(ze_coins=50)
        reward = await make_reward(cost=100, stock=5)

        with pytest.raises(StateConflictError, match="Insufficient ZE Coins"):
            await redeem_reward(db_session, user.id, reward.id, _contact())
        await db_session.rollback()

        assert (await _reload(db_session, Reward, reward.id)).stock == 5
        assert (await _reload(db_session, User, user.id)).ze_coins == 50

    @pytest.mark.asyncio
    async def test_out_of_stock(self, db_session, make_user, make_reward):
        user = await make_user(ze_coins=500)
        reward = await make_reward(stock=0)

        with pytest.raises(StateConflictError, match="out of stock"):
            await redeem_reward(db_session, user.id, reward.id, _contact())

    @pytest.mark.asyncio
    async def test_rank_requirement(self, db_session, make_user, make_reward):
        user = await make_user(experience=120, ze_coins=1000)
        reward = await make_reward(required_rank="Gladiator")

        with pytest.raises(EligibilityError, match="Requires Gladiator"):
            await redeem_reward(db_session, user.id, reward.id, _contact())

    @pytest.mark.asyncio
    async def test_invalid_phone(self, db_session, make_user, make_reward):
        user = await make_user(ze_coins=1000)
        reward = await make_reward()

        with pytest.raises(ClubValidationError, match="phone"):
            await redeem_reward(db_session, user.id, reward.id, _contact(contact_phone="call me"))

    @pytest.mark.asyncio
    async def test_unknown_reward(self, db_session, make_user):
        user = await make_user(ze_coins=1000)
        with pytest.raises(NotFoundError):
            await redeem_reward(db_session, user.id, 999, _contact())


class TestTopExclusive:
    @pytest.mark.asyncio
    async def test_legend_inside_top_three(self, db_session, make_user, make_reward):
        await make_user(experience=1300)
        await make_user(experience=1200)
        legend = await make_user(experience=1100, ze_coins=500)
        reward = await make_reward(exclusive_to_top3=True)

        assert await ineligibility_reason(db_session, legend, reward) is None

    @pytest.mark.asyncio
    async def test_legend_outside_top_three(self, db_session, make_user, make_reward):
        for experience in (1400, 1300, 1200):
            await make_user(experience=experience)
        legend = await make_user(experience=1100, ze_coins=500)
        reward = await make_reward(exclusive_to_top3=True)

        with pytest.raises(EligibilityError, match="Top 3"):
            await redeem_reward(db_session, legend.id, reward.id, _contact())

    @pytest.mark.asyncio
    async def test_requires_top_rank(self, db_session, make_user, make_reward):
        user = await make_user(experience=900, ze_coins=500)
        reward = await make_reward(exclusive_to_top3=True)

        reason = await ineligibility_reason(db_session, user, reward)
        assert reason == "This reward is exclusive to Errorless Legends only."


class TestRedemptionRequests:
    @pytest.mark.asyncio
    async def test_user_history_newest_first(self, db_session, make_user, make_reward):
        user = await make_user(ze_coins=1000)
        reward = await make_reward(cost=100)
        first = await redeem_reward(db_session, user.id, reward.id, _contact())
        second = await redeem_reward(db_session, user.id, reward.id, _contact())
        await db_session.commit()

        history = await list_user_redemptions(db_session, user.id)
        assert [r.id for r in history] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_admin_processes_request(self, db_session, make_user, make_reward, admin):
        user = await make_user(ze_coins=1000)
        reward = await make_reward(cost=100)
        request = await redeem_reward(db_session, user.id, reward.id, _contact())
        await db_session.commit()

        updated = await update_redemption_request(
            db_session, request.id, admin.id, status="completed", admin_notes="Shipped"
        )
        await db_session.commit()

        assert updated.status == "completed"
        assert updated.processed_at is not None
        assert updated.processed_by == admin.id
        assert updated.admin_notes == "Shipped"
        assert [r.id for r in await list_redemption_requests(db_session, "completed")] == [request.id]
        assert await list_redemption_requests(db_session, "pending") == []

    @pytest.mark.asyncio
    async def test_cancel_does_not_refund(self, db_session, make_user, make_reward, admin):
        user = await make_user(ze_coins=100)
        reward = await make_reward(cost=100, stock=1)
        request = await redeem_reward(db_session, user.id, reward.id, _contact())
        await db_session.commit()

        await update_redemption_request(db_session, request.id, admin.id, status="cancelled")
        await db_session.commit()

        assert (await _reload(db_session, User, user.id)).ze_coins == 0
        assert (await _reload(db_session, Reward, reward.id)).stock == 0

    @pytest.mark.asyncio
    async def test_unknown_status_filter(self, db_session):
        with pytest.raises(ClubValidationError):
            await list_redemption_requests(db_session, "shipped")
