"""ZE Coins / experience ledger with rank recomputation.

Every mutation locks the user row for the rest of the transaction, applies the
change, then refreshes the cached rank fields. Callers own the commit.

- ``experience`` only grows through ``credit``; ``debit_for_revert`` is the
  single path that lowers it.
- ``ze_coins`` never goes below zero: reverts floor it and report the
  shortfall, purchases are conditional on the balance.
- ``points`` is a legacy mirror of ``experience``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select, update

from zeclub.db.models import User
from zeclub.errors import ClubValidationError, NotFoundError
from zeclub.gamification.rank_thresholds import apply_rank

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def lock_user(db: AsyncSession, user_id: int) -> User:
    """Load a user with a row lock, refreshing any stale copy in the session."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def credit(db: AsyncSession, user_id: int, amount: int) -> dict:
    """Add ``amount`` to both ZE Coins and experience, then recompute rank."""
    if amount < 0:
        raise ClubValidationError("Credit amount must be non-negative")

    user = await lock_user(db, user_id)
    old_rank = user.rank

    user.ze_coins += amount
    user.experience += amount
    user.points = user.experience
    info = apply_rank(user)
    await db.flush()

    logger.info(
        "ledger_credit",
        user_id=user_id,
        amount=amount,
        ze_coins=user.ze_coins,
        experience=user.experience,
        old_rank=old_rank,
        new_rank=info["rank"],
    )
    return {
        "amount": amount,
        "ze_coins": user.ze_coins,
        "experience": user.experience,
        "old_rank": old_rank,
        "new_rank": info["rank"],
        "rank_changed": old_rank != info["rank"],
    }


async def debit_for_revert(db: AsyncSession, user_id: int, amount: int) -> dict:
    """Take back ``amount`` from experience and coins, both floored at zero.

    Coins may already have been spent; whatever could not be recovered is
    returned as ``coin_shortfall``.
    """
    if amount < 0:
        raise ClubValidationError("Debit amount must be non-negative")

    user = await lock_user(db, user_id)
    old_rank = user.rank

    coins_deducted = min(user.ze_coins, amount)
    user.ze_coins -= coins_deducted
    user.experience = max(0, user.experience - amount)
    user.points = user.experience
    info = apply_rank(user)
    await db.flush()

    shortfall = amount - coins_deducted
    logger.info(
        "ledger_debit",
        user_id=user_id,
        amount=amount,
        coins_deducted=coins_deducted,
        coin_shortfall=shortfall,
        experience=user.experience,
        old_rank=old_rank,
        new_rank=info["rank"],
    )
    return {
        "amount": amount,
        "coins_deducted": coins_deducted,
        "coin_shortfall": shortfall,
        "ze_coins": user.ze_coins,
        "experience": user.experience,
        "old_rank": old_rank,
        "new_rank": info["rank"],
        "rank_changed": old_rank != info["rank"],
    }


async def spend_coins(db: AsyncSession, user_id: int, cost: int) -> bool:
    """Deduct ``cost`` ZE Coins only if the balance covers it. Experience is untouched.

    Returns False when the balance is insufficient (nothing changes).
    """
    if cost < 0:
        raise ClubValidationError("Cost must be non-negative")

    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.ze_coins >= cost)
        .values(ze_coins=User.ze_coins - cost)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1


async def recompute_rank(db: AsyncSession, user_id: int) -> dict:
    """Rebuild the cached rank fields from experience (repairs drifted rows)."""
    user = await lock_user(db, user_id)
    info = apply_rank(user)
    user.points = user.experience
    await db.flush()
    return info
