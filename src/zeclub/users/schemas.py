"""Request/response schemas for admin user endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class AdminUserResponse(BaseModel):
    """A member as shown in the admin console."""

    id: int
    name: str | None = None
    email: str | None = None
    ze_tag: str | None = None
    discord_id: str | None = None
    image_url: str | None = None
    roles: list[str]
    ze_coins: int
    experience: int
    rank: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserSearchResponse(BaseModel):
    users: list[AdminUserResponse]


class AdminListResponse(BaseModel):
    admins: list[AdminUserResponse]


class RoleChangeRequest(BaseModel):
    user_id: int
    action: Literal["add", "remove"]


class RoleChangeResponse(BaseModel):
    success: bool
    user: AdminUserResponse


class RecomputeRankResponse(BaseModel):
    user_id: int
    rank: str
    rank_icon: str
    progress_to_next_rank: int
    next_rank_points: int
    current_rank_points: int


# --- Member profile ---


class ProfileResponse(BaseModel):
    id: int
    email: str | None = None
    name: str | None = None
    image_url: str | None = None
    ze_tag: str | None = None
    bio: str | None = None
    ze_coins: int
    experience: int
    points: int
    rank: str
    rank_icon: str
    progress_to_next_rank: int
    next_rank_points: int
    current_rank_points: int
    roles: list[str]
    created_at: datetime | None = None
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProfileStats(BaseModel):
    completed_missions: int
    pending_missions: int
    ze_coins: int
    experience: int
    leaderboard_position: int


class ProfileEnvelope(BaseModel):
    profile: ProfileResponse
    stats: ProfileStats


class ProfileUpdateRequest(BaseModel):
    bio: str | None = None


class ProfileUpdateResponse(BaseModel):
    success: bool
    profile: ProfileResponse


class ZeTagCheckResponse(BaseModel):
    available: bool
    ze_tag: str
    error: str | None = None


class ZeTagChangeRequest(BaseModel):
    ze_tag: str


class ZeTagChangeResponse(BaseModel):
    success: bool
    ze_tag: str
