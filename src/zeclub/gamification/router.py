"""Rank, dashboard and leaderboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from zeclub.auth.dependencies import get_current_user
from zeclub.config import get_settings
from zeclub.database import get_session
from zeclub.db.models import User
from zeclub.gamification.leaderboard_service import get_leaderboard, leaderboard_position
from zeclub.gamification.rank_thresholds import RANK_TABLE
from zeclub.gamification.schemas import (
    AllRanksResponse,
    DashboardResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    RankEntry,
)

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


@router.get("/ze-club/ranks", response_model=AllRanksResponse)
async def list_ranks() -> AllRanksResponse:
    """The rank ladder, lowest first."""
    return AllRanksResponse(ranks=[RankEntry(**r) for r in RANK_TABLE])


@router.get("/ze-club/user/dashboard", response_model=DashboardResponse)
async def user_dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> DashboardResponse:
    """ZE Coins, experience, rank progress and leaderboard position of the caller."""
    position = await leaderboard_position(db, user.experience)
    return DashboardResponse(
        ze_coins=user.ze_coins,
        experience=user.experience,
        total_points=user.experience,
        rank=user.rank,
        rank_icon=user.rank_icon,
        progress=user.progress_to_next_rank,
        progress_to_next_rank=user.progress_to_next_rank,
        next_rank_points=user.next_rank_points,
        current_rank_points=user.current_rank_points,
        leaderboard_rank=position,
        ze_tag=user.ze_tag,
    )


@router.get("/ze-club/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(db: AsyncSession = Depends(get_session)) -> LeaderboardResponse:
    """Top members by experience."""
    entries = await get_leaderboard(db, get_settings().leaderboard_size)
    return LeaderboardResponse(
        entries=[LeaderboardEntry(**e) for e in entries],
        total=len(entries),
    )
