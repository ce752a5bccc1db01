"""Reward catalog and redemption endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from zeclub.auth.dependencies import get_current_user, get_optional_user, require_admin
from zeclub.database import get_session
from zeclub.db.models import User
from zeclub.errors import ClubError
from zeclub.gamification.leaderboard_service import count_users_ahead
from zeclub.rewards.schemas import (
    DeleteResponse,
    MemberRewardListResponse,
    MemberRewardResponse,
    RedemptionCreateRequest,
    RedemptionCreateResponse,
    RedemptionListResponse,
    RedemptionResponse,
    RedemptionUpdateRequest,
    RedemptionUpdateResponse,
    RewardCreateRequest,
    RewardListResponse,
    RewardResponse,
    RewardUpdateRequest,
)
from zeclub.rewards.service import (
    create_reward,
    delete_reward,
    final_cost,
    ineligibility_reason,
    list_redemption_requests,
    list_rewards,
    list_user_redemptions,
    redeem_reward,
    update_redemption_request,
    update_reward,
)

router = APIRouter(prefix="/api/v1", tags=["Rewards"])


# ── Member endpoints ──


@router.get("/ze-club/rewards", response_model=MemberRewardListResponse)
async def rewards_catalog(
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> MemberRewardListResponse:
    """In-stock rewards, cheapest first, priced for the caller."""
    rewards = await list_rewards(db)
    users_ahead = await count_users_ahead(db, user.experience) if user else None

    items = []
    for r in rewards:
        base = RewardResponse.model_validate(r).model_dump()
        if user is None:
            items.append(MemberRewardResponse(**base, final_cost=r.cost))
            continue
        cost = final_cost(r, user.rank)
        reason = await ineligibility_reason(db, user, r, users_ahead=users_ahead)
        items.append(MemberRewardResponse(
            **base,
            final_cost=cost,
            is_eligible=reason is None,
            ineligible_reason=reason,
            can_afford=user.ze_coins >= cost,
        ))
    return MemberRewardListResponse(rewards=items, total=len(items))


@router.post("/ze-club/redemption-requests", response_model=RedemptionCreateResponse, status_code=201)
async def create_redemption_request(
    body: RedemptionCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RedemptionCreateResponse:
    """Redeem a reward: takes one unit of stock and the ZE Coins, opens a request."""
    try:
        request = await redeem_reward(db, user.id, body.reward_id, body.model_dump())
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    return RedemptionCreateResponse(
        message="Redemption request submitted successfully",
        request_id=request.id,
        reward_cost=request.reward_cost,
        new_balance=user.ze_coins,
    )


@router.get("/ze-club/user-redemptions", response_model=RedemptionListResponse)
async def my_redemptions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RedemptionListResponse:
    """The caller's redemption requests, newest first."""
    requests = await list_user_redemptions(db, user.id)
    return RedemptionListResponse(
        requests=[RedemptionResponse.model_validate(r) for r in requests],
        total=len(requests),
    )


# ── Admin: redemption requests ──


@router.get("/admin/redemption-requests", response_model=RedemptionListResponse)
async def admin_list_redemptions(
    status: str | None = Query(None),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> RedemptionListResponse:
    """All redemption requests, optionally filtered by status."""
    try:
        requests = await list_redemption_requests(db, status)
    except ClubError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return RedemptionListResponse(
        requests=[RedemptionResponse.model_validate(r) for r in requests],
        total=len(requests),
    )


@router.patch("/admin/redemption-requests/{request_id}", response_model=RedemptionUpdateResponse)
async def admin_update_redemption(
    request_id: int,
    body: RedemptionUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> RedemptionUpdateResponse:
    """Update fulfillment status and notes."""
    try:
        request = await update_redemption_request(
            db, request_id, admin.id, status=body.status, admin_notes=body.admin_notes
        )
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    return RedemptionUpdateResponse(
        message="Redemption request updated successfully",
        redemption_request=RedemptionResponse.model_validate(request),
    )


# ── Admin: catalog ──


@router.get("/admin/rewards", response_model=RewardListResponse)
async def admin_list_rewards(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> RewardListResponse:
    """Every reward, including those out of stock."""
    rewards = await list_rewards(db, in_stock_only=False)
    return RewardListResponse(
        rewards=[RewardResponse.model_validate(r) for r in rewards],
        total=len(rewards),
    )


@router.post("/admin/rewards", response_model=RewardResponse, status_code=201)
async def admin_create_reward(
    body: RewardCreateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> RewardResponse:
    try:
        reward = await create_reward(db, body.model_dump())
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return RewardResponse.model_validate(reward)


@router.put("/admin/rewards/{reward_id}", response_model=RewardResponse)
async def admin_update_reward(
    reward_id: int,
    body: RewardUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> RewardResponse:
    try:
        reward = await update_reward(db, reward_id, body.model_dump(exclude_unset=True))
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return RewardResponse.model_validate(reward)


@router.delete("/admin/rewards/{reward_id}", response_model=DeleteResponse)
async def admin_delete_reward(
    reward_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DeleteResponse:
    try:
        await delete_reward(db, reward_id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return DeleteResponse(message="Reward deleted successfully")
