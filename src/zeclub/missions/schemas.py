"""Pydantic request/response models for mission endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Difficulty = Literal["Easy", "Medium", "Hard"]
ProofType = Literal["image", "video", "both"]


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class MissionCreateRequest(BaseModel):
    """Create a mission. ``end_date`` is derived from ``days_available`` when omitted."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    instructions: str = Field(..., min_length=1)
    points: int = Field(..., ge=0)
    category: str = Field("General", min_length=1, max_length=64)
    difficulty: Difficulty = "Easy"
    required_proof_type: ProofType = "image"
    max_file_size_mb: int = Field(50, ge=1, le=100)
    example_image_url: str | None = None
    is_time_limited: bool = False
    start_date: datetime | None = None
    end_date: datetime | None = None
    days_available: int | None = Field(None, ge=1)
    active: bool = True
    featured: bool = False
    max_completions: int | None = Field(None, ge=0)


class MissionUpdateRequest(BaseModel):
    """Partial update. Only the fields sent are changed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    instructions: str | None = Field(None, min_length=1)
    points: int | None = Field(None, ge=0)
    category: str | None = Field(None, min_length=1, max_length=64)
    difficulty: Difficulty | None = None
    required_proof_type: ProofType | None = None
    max_file_size_mb: int | None = Field(None, ge=1, le=100)
    example_image_url: str | None = None
    is_time_limited: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    days_available: int | None = Field(None, ge=1)
    active: bool | None = None
    featured: bool | None = None
    max_completions: int | None = Field(None, ge=0)


class MissionActiveRequest(BaseModel):
    active: bool


class MissionResponse(BaseModel):
    id: int
    name: str
    description: str
    instructions: str
    points: int
    category: str
    difficulty: str
    required_proof_type: str
    max_file_size_mb: int
    example_image_url: str | None = None
    is_time_limited: bool
    start_date: datetime | None = None
    end_date: datetime | None = None
    days_available: int | None = None
    active: bool
    featured: bool
    max_completions: int | None = None
    current_completions: int
    created_at: datetime
    updated_at: datetime
    deactivated_at: datetime | None = None
    is_expired: bool = False
    is_maxed_out: bool = False
    days_remaining: int | None = None
    is_available: bool = True


class MissionListResponse(BaseModel):
    missions: list[MissionResponse]
    total: int


class MissionDeleteResponse(BaseModel):
    message: str
    mission: MissionResponse
    pending_submissions: int


# ---------------------------------------------------------------------------
# Member
# ---------------------------------------------------------------------------


class MemberMissionResponse(MissionResponse):
    """Mission as seen by a member, with their own submission state."""

    is_completed: bool = False
    is_pending: bool = False


class MemberMissionListResponse(BaseModel):
    missions: list[MemberMissionResponse]
    total: int
