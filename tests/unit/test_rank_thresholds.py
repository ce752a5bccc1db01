"""Rank table and progress computation."""

import pytest

from zeclub.db.models import User
from zeclub.gamification.rank_thresholds import (
    RANK_NAMES,
    RANK_TABLE,
    TOP_RANK,
    apply_rank,
    compute_rank,
    rank_value,
)


class TestRankTable:
    def test_thresholds_ascending_from_zero(self):
        thresholds = [r["min_experience"] for r in RANK_TABLE]
        assert thresholds[0] == 0
        assert thresholds == sorted(thresholds)
        assert len(set(thresholds)) == len(thresholds)

    def test_five_tiers(self):
        assert RANK_NAMES == ["Rookie", "Contender", "Gladiator", "Vanguard", "Errorless Legend"]
        assert TOP_RANK == "Errorless Legend"

    def test_rank_value_ordering(self):
        assert rank_value("Rookie") == 0
        assert rank_value("Vanguard") == 3
        assert rank_value("Errorless Legend") == 4

    def test_unknown_rank_counts_as_lowest(self):
        assert rank_value("Diamond") == 0
        assert rank_value(None) == 0


class TestComputeRank:
    def test_zero_experience_is_rookie(self):
        info = compute_rank(0)
        assert info == {
            "rank": "Rookie",
            "rank_icon": "/images/ranks/rookie.png",
            "progress_to_next_rank": 0,
            "next_rank_points": 100,
            "current_rank_points": 0,
        }

    def test_just_below_threshold(self):
        """99 experience is still Rookie at 99%."""
        info = compute_rank(99)
        assert info["rank"] == "Rookie"
        assert info["progress_to_next_rank"] == 99

    def test_exact_threshold_starts_next_rank_at_zero(self):
        info = compute_rank(100)
        assert info["rank"] == "Contender"
        assert info["progress_to_next_rank"] == 0
        assert info["current_rank_points"] == 100
        assert info["next_rank_points"] == 250

    def test_progress_is_floored(self):
        """(175 - 100) / 150 = 50%; (199 - 100) / 150 = 66.0 -> 66."""
        assert compute_rank(175)["progress_to_next_rank"] == 50
        assert compute_rank(199)["progress_to_next_rank"] == 66

    @pytest.mark.parametrize("experience", [1000, 1001, 250000])
    def test_top_rank_pinned_at_full_progress(self, experience):
        info = compute_rank(experience)
        assert info["rank"] == "Errorless Legend"
        assert info["progress_to_next_rank"] == 100
        assert info["next_rank_points"] == 1000
        assert info["current_rank_points"] == 1000

    def test_negative_experience_maps_to_first_rank(self):
        info = compute_rank(-50)
        assert info["rank"] == "Rookie"
        assert info["progress_to_next_rank"] == 0

    def test_custom_table(self):
        table = [
            {"name": "Low", "min_experience": 0, "icon": "low.png"},
            {"name": "High", "min_experience": 10, "icon": "high.png"},
        ]
        assert compute_rank(5, table)["progress_to_next_rank"] == 50
        assert compute_rank(10, table)["rank"] == "High"

    def test_deterministic(self):
        assert compute_rank(420) == compute_rank(420)


class TestApplyRank:
    def test_writes_cached_fields(self):
        user = User(experience=600)
        info = apply_rank(user)
        assert user.rank == "Vanguard" == info["rank"]
        assert user.rank_icon == "/images/ranks/vanguard.png"
        assert user.progress_to_next_rank == 20
        assert user.next_rank_points == 1000
        assert user.current_rank_points == 500
