"""Reward pricing and contact validation."""

import pytest

from zeclub.db.models import Reward
from zeclub.rewards.service import final_cost, is_valid_phone


def _reward(cost: int = 100, discountable: bool = True) -> Reward:
    return Reward(name="Mousepad", description="XL mousepad", cost=cost, stock=1, discountable=discountable)


class TestFinalCost:
    @pytest.mark.parametrize("rank", ["Rookie", "Contender", "Gladiator"])
    def test_full_price_below_vanguard(self, rank):
        assert final_cost(_reward(), rank) == 100

    @pytest.mark.parametrize("rank", ["Vanguard", "Errorless Legend"])
    def test_discount_from_vanguard(self, rank):
        assert final_cost(_reward(), rank) == 90

    def test_discount_is_floored(self):
        """floor(155 * 0.9) = floor(139.5) = 139."""
        assert final_cost(_reward(cost=155), "Vanguard") == 139

    def test_non_discountable_reward(self):
        assert final_cost(_reward(discountable=False), "Errorless Legend") == 100


class TestPhoneValidation:
    @pytest.mark.parametrize("phone", ["5551234567", "+1 555 123 4567", "(555)123-4567", "555.123.456789"])
    def test_accepted(self, phone):
        assert is_valid_phone(phone)

    @pytest.mark.parametrize("phone", ["", "12345", "call me", "555-123-45"])
    def test_rejected(self, phone):
        assert not is_valid_phone(phone)
