"""Pydantic request/response models for submission endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class SubmissionCreateRequest(BaseModel):
    proof_url: str = Field(..., min_length=1, max_length=2048)


class VerifySubmissionRequest(BaseModel):
    submission_id: int
    status: Literal["approved", "rejected"]
    remarks: str | None = Field(None, max_length=1000)


class RevertSubmissionRequest(BaseModel):
    submission_id: int
    revert_reason: str | None = Field(None, max_length=1000)


class SubmissionResponse(BaseModel):
    id: int
    user_id: int
    mission_id: int
    proof_url: str
    status: str
    submitted_at: datetime
    remarks: str | None = None
    approved_by: int | None = None
    approved_at: datetime | None = None
    reverted_by: int | None = None
    reverted_at: datetime | None = None
    revert_reason: str | None = None
    mission_name: str | None = None
    mission_points: int | None = None
    user_ze_tag: str | None = None
    user_email: str | None = None


class SubmissionListResponse(BaseModel):
    submissions: list[SubmissionResponse]
    total: int


class VerifySubmissionResponse(BaseModel):
    message: str
    submission: SubmissionResponse
    points_awarded: int = 0
    new_balance: int | None = None
    new_experience: int | None = None
    old_rank: str | None = None
    new_rank: str | None = None
    rank_changed: bool = False


class RevertDetails(BaseModel):
    points_deducted: int
    coins_deducted: int
    coin_shortfall: int
    new_balance: int
    new_experience: int
    old_rank: str
    new_rank: str
    rank_changed: bool
    active_redemptions: int = 0


class RevertSubmissionResponse(BaseModel):
    message: str
    submission: SubmissionResponse
    details: RevertDetails
