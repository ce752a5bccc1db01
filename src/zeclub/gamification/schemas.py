"""Pydantic response models for rank, dashboard and leaderboard endpoints."""

from __future__ import annotations

from pydantic import BaseModel


# --- Ranks ---


class RankEntry(BaseModel):
    name: str
    min_experience: int
    icon: str


class AllRanksResponse(BaseModel):
    ranks: list[RankEntry]


# --- Dashboard ---


class DashboardResponse(BaseModel):
    ze_coins: int
    experience: int
    total_points: int
    rank: str
    rank_icon: str
    progress: int
    progress_to_next_rank: int
    next_rank_points: int
    current_rank_points: int
    leaderboard_rank: int
    ze_tag: str | None = None


# --- Leaderboard ---


class LeaderboardEntry(BaseModel):
    position: int
    user_id: int
    name: str | None = None
    ze_tag: str | None = None
    rank: str
    rank_icon: str
    experience: int
    image_url: str | None = None


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]
    total: int
