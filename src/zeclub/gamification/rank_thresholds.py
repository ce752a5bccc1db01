"""Rank thresholds and progress computation.

The icon paths are served by the website; keep them in sync with
``public/images/ranks``.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zeclub.db.models import User

RANK_TABLE: list[dict] = [
    {"name": "Rookie", "min_experience": 0, "icon": "/images/ranks/rookie.png"},
    {"name": "Contender", "min_experience": 100, "icon": "/images/ranks/contender.png"},
    {"name": "Gladiator", "min_experience": 250, "icon": "/images/ranks/gladiator.png"},
    {"name": "Vanguard", "min_experience": 500, "icon": "/images/ranks/vanguard.png"},
    {"name": "Errorless Legend", "min_experience": 1000, "icon": "/images/ranks/errorless-legend.png"},
]

RANK_NAMES: list[str] = [r["name"] for r in RANK_TABLE]
TOP_RANK: str = RANK_TABLE[-1]["name"]


def rank_value(name: str | None) -> int:
    """Ordinal of a rank name (Rookie=0). Unknown names count as the lowest rank."""
    try:
        return RANK_NAMES.index(name)  # type: ignore[arg-type]
    except ValueError:
        return 0


def compute_rank(experience: int, table: list[dict] | None = None) -> dict:
    """Compute rank and progress from experience.

    The table must be sorted ascending by ``min_experience`` and start at 0.
    Experience below the first threshold still maps to the first rank.
    """
    table = table or RANK_TABLE

    index = 0
    for i, entry in enumerate(table):
        if experience >= entry["min_experience"]:
            index = i

    current = table[index]

    # Top rank is pinned at 100%
    if index == len(table) - 1:
        return {
            "rank": current["name"],
            "rank_icon": current["icon"],
            "progress_to_next_rank": 100,
            "next_rank_points": current["min_experience"],
            "current_rank_points": current["min_experience"],
        }

    nxt = table[index + 1]
    into_rank = experience - current["min_experience"]
    band = nxt["min_experience"] - current["min_experience"]
    progress = math.floor(into_rank / band * 100)

    return {
        "rank": current["name"],
        "rank_icon": current["icon"],
        "progress_to_next_rank": max(0, min(progress, 100)),
        "next_rank_points": nxt["min_experience"],
        "current_rank_points": current["min_experience"],
    }


def apply_rank(user: User) -> dict:
    """Write the cached rank fields onto ``user`` from its experience. Returns the rank info."""
    info = compute_rank(user.experience)
    user.rank = info["rank"]
    user.rank_icon = info["rank_icon"]
    user.progress_to_next_rank = info["progress_to_next_rank"]
    user.next_rank_points = info["next_rank_points"]
    user.current_rank_points = info["current_rank_points"]
    return info
