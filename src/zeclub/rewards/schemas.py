"""Pydantic request/response models for reward endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

RedemptionStatus = Literal["pending", "processing", "completed", "cancelled"]


# --- Catalog ---


class RewardCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    cost: int = Field(..., ge=0)
    stock: int = Field(..., ge=0)
    required_rank: str = "Rookie"
    exclusive_to_top3: bool = False
    discountable: bool = True


class RewardUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    cost: int | None = Field(None, ge=0)
    stock: int | None = Field(None, ge=0)
    required_rank: str | None = None
    exclusive_to_top3: bool | None = None
    discountable: bool | None = None


class RewardResponse(BaseModel):
    id: int
    name: str
    description: str
    cost: int
    stock: int
    required_rank: str
    exclusive_to_top3: bool
    discountable: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MemberRewardResponse(RewardResponse):
    """Reward priced and checked for the caller (defaults apply to anonymous callers)."""

    final_cost: int
    is_eligible: bool = True
    ineligible_reason: str | None = None
    can_afford: bool = False


class MemberRewardListResponse(BaseModel):
    rewards: list[MemberRewardResponse]
    total: int


class RewardListResponse(BaseModel):
    rewards: list[RewardResponse]
    total: int


# --- Redemption ---


class RedemptionCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reward_id: int
    contact_name: str = Field(..., min_length=1, max_length=128)
    contact_email: EmailStr
    contact_phone: str = Field(..., min_length=1, max_length=32)
    address: str = Field(..., min_length=1, max_length=1000)
    additional_notes: str | None = Field(None, max_length=1000)


class RedemptionUpdateRequest(BaseModel):
    status: RedemptionStatus | None = None
    admin_notes: str | None = Field(None, max_length=2000)


class RedemptionResponse(BaseModel):
    id: int
    user_id: int
    user_name: str
    user_email: str | None = None
    reward_id: int | None = None
    reward_name: str
    reward_cost: int
    contact_name: str
    contact_email: str
    contact_phone: str
    address: str
    additional_notes: str | None = None
    status: str
    admin_notes: str | None = None
    created_at: datetime
    updated_at: datetime
    processed_at: datetime | None = None
    processed_by: int | None = None

    model_config = {"from_attributes": True}


class RedemptionCreateResponse(BaseModel):
    message: str
    request_id: int
    reward_cost: int
    new_balance: int


class RedemptionListResponse(BaseModel):
    requests: list[RedemptionResponse]
    total: int


class RedemptionUpdateResponse(BaseModel):
    message: str
    redemption_request: RedemptionResponse


class DeleteResponse(BaseModel):
    message: str
