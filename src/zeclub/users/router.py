"""User endpoints: the member profile and ZE Tag, admin lookup, roles and rank repair."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from zeclub.auth.dependencies import get_current_user, require_admin
from zeclub.database import get_session
from zeclub.db.models import User
from zeclub.errors import ClubError
from zeclub.gamification.ledger_service import recompute_rank
from zeclub.users.profile_service import (
    ZE_TAG_FORMAT_MESSAGE,
    change_ze_tag,
    get_profile_stats,
    is_valid_ze_tag,
    is_ze_tag_available,
    update_bio,
)
from zeclub.users.schemas import (
    AdminListResponse,
    AdminUserResponse,
    ProfileEnvelope,
    ProfileResponse,
    ProfileStats,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    RecomputeRankResponse,
    RoleChangeRequest,
    RoleChangeResponse,
    UserSearchResponse,
    ZeTagChangeRequest,
    ZeTagChangeResponse,
    ZeTagCheckResponse,
)
from zeclub.users.service import list_admins, search_users, set_admin_role

router = APIRouter(prefix="/api/v1", tags=["Users"])


# ── Member profile ──


@router.get("/ze-club/user/profile", response_model=ProfileEnvelope)
async def get_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileEnvelope:
    """The caller's profile with mission counts and leaderboard position."""
    stats = await get_profile_stats(db, user)
    return ProfileEnvelope(profile=ProfileResponse.model_validate(user), stats=ProfileStats(**stats))


@router.patch("/ze-club/user/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileUpdateResponse:
    """Update the caller's bio. Omitted fields are left as they are."""
    if body.bio is not None:
        try:
            user = await update_bio(db, user.id, body.bio)
            await db.commit()
        except ClubError as e:
            await db.rollback()
            raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return ProfileUpdateResponse(success=True, profile=ProfileResponse.model_validate(user))


@router.get("/ze-club/user/profile/ze-tag/check", response_model=ZeTagCheckResponse)
async def check_ze_tag(
    ze_tag: str = Query(..., min_length=1, max_length=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ZeTagCheckResponse:
    """Whether ``ze_tag`` is well formed and free. The caller's own tag counts as free."""
    if not is_valid_ze_tag(ze_tag):
        return ZeTagCheckResponse(available=False, ze_tag=ze_tag, error=ZE_TAG_FORMAT_MESSAGE)
    available = await is_ze_tag_available(db, ze_tag, user.id)
    return ZeTagCheckResponse(available=available, ze_tag=ze_tag)


@router.patch("/ze-club/user/profile/ze-tag", response_model=ZeTagChangeResponse)
async def update_ze_tag(
    body: ZeTagChangeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ZeTagChangeResponse:
    """Change the caller's ZE Tag. 409 when another member holds it."""
    try:
        user = await change_ze_tag(db, user.id, body.ze_tag)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return ZeTagChangeResponse(success=True, ze_tag=user.ze_tag)


# ── Admin ──


@router.get("/admin/users/search", response_model=UserSearchResponse)
async def admin_search_users(
    q: str = Query("", max_length=100),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UserSearchResponse:
    """Find members by name, email or ZE tag."""
    users = await search_users(db, q)
    return UserSearchResponse(users=[AdminUserResponse.model_validate(u) for u in users])


@router.get("/admin/users/admins", response_model=AdminListResponse)
async def admin_list_admins(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminListResponse:
    admins = await list_admins(db)
    return AdminListResponse(admins=[AdminUserResponse.model_validate(u) for u in admins])


@router.patch("/admin/users/roles", response_model=RoleChangeResponse)
async def admin_change_role(
    body: RoleChangeRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> RoleChangeResponse:
    """Grant or revoke the admin role. Admins cannot demote themselves."""
    try:
        user = await set_admin_role(db, body.user_id, body.action, admin.id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return RoleChangeResponse(success=True, user=AdminUserResponse.model_validate(user))


@router.post("/admin/users/{user_id}/recompute-rank", response_model=RecomputeRankResponse)
async def admin_recompute_rank(
    user_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> RecomputeRankResponse:
    """Rebuild a member's cached rank fields from their experience."""
    try:
        info = await recompute_rank(db, user_id)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return RecomputeRankResponse(user_id=user_id, **info)
