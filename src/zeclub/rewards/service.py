"""Reward catalog, eligibility and redemption.

Rules:
- A member may redeem a reward whose ``required_rank`` is at or below their own.
- ``exclusive_to_top3`` rewards additionally require the top rank and fewer
  than ``top_exclusive_size`` members with strictly more experience.
- Vanguard and above pay a discounted price on discountable rewards.
- Redemption spends ZE Coins only; experience and rank never change.
- Stock and balance are both taken with conditional updates inside one
  transaction, so two concurrent redemptions can never oversell or overspend.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select, update

from zeclub.config import get_settings
from zeclub.db.models import REDEMPTION_STATUSES, RedemptionRequest, Reward, User
from zeclub.errors import ClubValidationError, EligibilityError, NotFoundError, StateConflictError
from zeclub.gamification.leaderboard_service import count_users_ahead
from zeclub.gamification.ledger_service import spend_coins
from zeclub.gamification.rank_thresholds import RANK_NAMES, TOP_RANK, rank_value

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

DISCOUNT_RANK = "Vanguard"

PHONE_PATTERN = re.compile(r"^[+]?[(]?[0-9]{3}[)]?[-\s.]?[0-9]{3}[-\s.]?[0-9]{4,6}$")


def is_valid_phone(phone: str) -> bool:
    """Loose international format: 10-12 digits with optional separators."""
    return bool(PHONE_PATTERN.match(re.sub(r"\s", "", phone)))


def final_cost(reward: Reward, user_rank: str | None) -> int:
    """Price the member pays after any rank discount."""
    if reward.discountable and rank_value(user_rank) >= rank_value(DISCOUNT_RANK):
        percent = get_settings().vanguard_discount_percent
        return reward.cost * (100 - percent) // 100
    return reward.cost


async def ineligibility_reason(
    db: AsyncSession,
    user: User,
    reward: Reward,
    users_ahead: int | None = None,
) -> str | None:
    """Why ``user`` may not redeem ``reward``, or None when eligible."""
    if rank_value(user.rank) < rank_value(reward.required_rank):
        return f"Rank requirement not met. Requires {reward.required_rank} rank or higher."
    if reward.exclusive_to_top3:
        if user.rank != TOP_RANK:
            return f"This reward is exclusive to {TOP_RANK}s only."
        if users_ahead is None:
            users_ahead = await count_users_ahead(db, user.experience)
        size = get_settings().top_exclusive_size
        if users_ahead >= size:
            return f"This reward is exclusive to Top {size} {TOP_RANK}s only."
    return None


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def validate_reward_fields(data: dict[str, Any]) -> None:
    if data.get("cost") is not None and data["cost"] < 0:
        raise ClubValidationError("Cost must be a non-negative number")
    if data.get("stock") is not None and data["stock"] < 0:
        raise ClubValidationError("Stock must be a non-negative number")
    if data.get("required_rank") is not None and data["required_rank"] not in RANK_NAMES:
        raise ClubValidationError(f"Unknown rank: {data['required_rank']}")


async def get_reward(db: AsyncSession, reward_id: int) -> Reward:
    reward = await db.get(Reward, reward_id)
    if reward is None:
        raise NotFoundError("Reward not found")
    return reward


async def list_rewards(db: AsyncSession, in_stock_only: bool = True) -> list[Reward]:
    """Rewards cheapest first."""
    query = select(Reward)
    if in_stock_only:
        query = query.where(Reward.stock > 0)
    result = await db.execute(query.order_by(Reward.cost.asc(), Reward.id.asc()))
    return list(result.scalars().all())


async def create_reward(db: AsyncSession, data: dict[str, Any]) -> Reward:
    validate_reward_fields(data)
    reward = Reward(**data)
    db.add(reward)
    await db.flush()
    logger.info("reward_created", reward_id=reward.id, cost=reward.cost, stock=reward.stock)
    return reward


async def update_reward(db: AsyncSession, reward_id: int, changes: dict[str, Any]) -> Reward:
    changes = {k: v for k, v in changes.items() if v is not None}
    validate_reward_fields(changes)
    reward = await get_reward(db, reward_id)
    for field, value in changes.items():
        setattr(reward, field, value)
    await db.flush()
    logger.info("reward_updated", reward_id=reward_id, fields=sorted(changes))
    return reward


async def delete_reward(db: AsyncSession, reward_id: int) -> None:
    """Hard delete. Past redemption requests keep their reward name and cost."""
    reward = await get_reward(db, reward_id)
    await db.delete(reward)
    await db.flush()
    logger.info("reward_deleted", reward_id=reward_id)


# ---------------------------------------------------------------------------
# Redemption
# ---------------------------------------------------------------------------


async def redeem_reward(
    db: AsyncSession,
    user_id: int,
    reward_id: int,
    contact: dict[str, Any],
) -> RedemptionRequest:
    """Spend ZE Coins on a reward and open a fulfillment request."""
    if not is_valid_phone(contact["contact_phone"]):
        raise ClubValidationError("Invalid phone number format")

    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    reward = await get_reward(db, reward_id)
    if reward.stock <= 0:
        raise StateConflictError("Reward is out of stock")

    reason = await ineligibility_reason(db, user, reward)
    if reason is not None:
        raise EligibilityError(reason)

    cost = final_cost(reward, user.rank)

    taken = await db.execute(
        update(Reward)
        .where(Reward.id == reward_id, Reward.stock > 0)
        .values(stock=Reward.stock - 1)
    )
    if taken.rowcount != 1:
        raise StateConflictError("Reward is out of stock")

    if not await spend_coins(db, user_id, cost):
        raise StateConflictError(f"Insufficient ZE Coins: {cost} required, {user.ze_coins} available")

    request = RedemptionRequest(
        user_id=user_id,
        user_name=user.name or user.email or "Unknown User",
        user_email=user.email,
        reward_id=reward.id,
        reward_name=reward.name,
        reward_cost=cost,
        contact_name=contact["contact_name"],
        contact_email=contact["contact_email"],
        contact_phone=contact["contact_phone"],
        address=contact["address"],
        additional_notes=contact.get("additional_notes"),
        status="pending",
    )
    db.add(request)
    await db.flush()

    logger.info(
        "reward_redeemed",
        request_id=request.id,
        user_id=user_id,
        reward_id=reward_id,
        cost=cost,
        original_cost=reward.cost,
    )
    return request


async def list_user_redemptions(db: AsyncSession, user_id: int) -> list[RedemptionRequest]:
    result = await db.execute(
        select(RedemptionRequest)
        .where(RedemptionRequest.user_id == user_id)
        .order_by(RedemptionRequest.created_at.desc(), RedemptionRequest.id.desc())
    )
    return list(result.scalars().all())


async def list_redemption_requests(db: AsyncSession, status: str | None = None) -> list[RedemptionRequest]:
    query = select(RedemptionRequest)
    if status is not None:
        if status not in REDEMPTION_STATUSES:
            raise ClubValidationError(
                f"Invalid status. Must be one of: {', '.join(REDEMPTION_STATUSES)}"
            )
        query = query.where(RedemptionRequest.status == status)
    result = await db.execute(query.order_by(RedemptionRequest.created_at.desc(), RedemptionRequest.id.desc()))
    return list(result.scalars().all())


async def update_redemption_request(
    db: AsyncSession,
    request_id: int,
    admin_id: int,
    status: str | None = None,
    admin_notes: str | None = None,
    now: datetime | None = None,
) -> RedemptionRequest:
    """Move a request through fulfillment. Coins are not refunded on cancel."""
    now = now or datetime.now(timezone.utc)
    if status is not None and status not in REDEMPTION_STATUSES:
        raise ClubValidationError(f"Invalid status. Must be one of: {', '.join(REDEMPTION_STATUSES)}")

    request = await db.get(RedemptionRequest, request_id)
    if request is None:
        raise NotFoundError("Redemption request not found")

    if status is not None:
        request.status = status
        if status != "pending":
            request.processed_at = now
            request.processed_by = admin_id
    if admin_notes is not None:
        request.admin_notes = admin_notes
    await db.flush()

    logger.info("redemption_request_updated", request_id=request_id, status=request.status, admin_id=admin_id)
    return request
