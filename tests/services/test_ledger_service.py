"""ZE Coins / experience ledger."""

from __future__ import annotations

import pytest

from zeclub.db.models import User
from zeclub.errors import ClubValidationError, NotFoundError
from zeclub.gamification.ledger_service import credit, debit_for_revert, recompute_rank, spend_coins


class TestCredit:
    @pytest.mark.asyncio
    async def test_first_mission_reaches_contender(self, db_session, make_user):
        """A Rookie with 0 experience earning 100 becomes Contender at 0% progress."""
        user = await make_user()

        change = await credit(db_session, user.id, 100)
        await db_session.commit()

        assert change["old_rank"] == "Rookie"
        assert change["new_rank"] == "Contender"
        assert change["rank_changed"] is True

        stored = await db_session.get(User, user.id, populate_existing=True)
        assert stored.ze_coins == 100
        assert stored.experience == 100
        assert stored.points == 100
        assert stored.rank == "Contender"
        assert stored.progress_to_next_rank == 0
        assert stored.next_rank_points == 250
        assert stored.current_rank_points == 100

    @pytest.mark.asyncio
    async def test_credit_within_rank(self, db_session, make_user):
        user = await make_user(experience=120, ze_coins=20)
        change = await credit(db_session, user.id, 30)
        assert change["rank_changed"] is False
        assert change["ze_coins"] == 50
        assert change["experience"] == 150

    @pytest.mark.asyncio
    async def test_negative_amount_rejected(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(ClubValidationError):
            await credit(db_session, user.id, -10)

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await credit(db_session, 9999, 10)


class TestDebitForRevert:
    @pytest.mark.asyncio
    async def test_spent_coins_reported_as_shortfall(self, db_session, make_user):
        """Coins already spent cannot go negative; the gap is reported."""
        user = await make_user(experience=100, ze_coins=30)

        change = await debit_for_revert(db_session, user.id, 100)
        await db_session.commit()

        assert change["coins_deducted"] == 30
        assert change["coin_shortfall"] == 70
        assert change["ze_coins"] == 0
        assert change["experience"] == 0
        assert change["old_rank"] == "Contender"
        assert change["new_rank"] == "Rookie"

        stored = await db_session.get(User, user.id, populate_existing=True)
        assert stored.ze_coins == 0
        assert stored.points == 0
        assert stored.rank_icon == "/images/ranks/rookie.png"

    @pytest.mark.asyncio
    async def test_experience_floored_at_zero(self, db_session, make_user):
        user = await make_user(experience=40, ze_coins=500)
        change = await debit_for_revert(db_session, user.id, 100)
        assert change["experience"] == 0
        assert change["ze_coins"] == 400
        assert change["coin_shortfall"] == 0


class TestSpendCoins:
    @pytest.mark.asyncio
    async def test_spend_within_balance(self, db_session, make_user):
        user = await make_user(experience=300, ze_coins=150)
        assert await spend_coins(db_session, user.id, 100) is True
        await db_session.commit()

        stored = await db_session.get(User, user.id, populate_existing=True)
        assert stored.ze_coins == 50
        assert stored.experience == 300

    @pytest.mark.asyncio
    async def test_insufficient_balance_changes_nothing(self, db_session, make_user):
        user = await make_user(ze_coins=99)
        assert await spend_coins(db_session, user.id, 100) is False
        stored = await db_session.get(User, user.id, populate_existing=True)
        assert stored.ze_coins == 99


@pytest.mark.asyncio
async def test_recompute_rank_repairs_drifted_row(db_session, make_user):
    user = await make_user(experience=520)
    stored = await db_session.get(User, user.id)
    stored.rank = "Rookie"
    stored.progress_to_next_rank = 0
    await db_session.commit()

    info = await recompute_rank(db_session, user.id)
    await db_session.commit()

    assert info["rank"] == "Vanguard"
    assert info["progress_to_next_rank"] == 4
    refreshed = await db_session.get(User, user.id, populate_existing=True)
    assert refreshed.rank == "Vanguard"
