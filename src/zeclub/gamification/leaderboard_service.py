"""Leaderboard queries, ordered by experience.

Position is competition-style: users tied on experience share a position, and
a user's position is one more than the number of users strictly ahead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select

from zeclub.db.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def count_users_ahead(db: AsyncSession, experience: int) -> int:
    """Number of users with strictly more experience."""
    result = await db.execute(select(func.count()).select_from(User).where(User.experience > experience))
    return result.scalar_one()


async def leaderboard_position(db: AsyncSession, experience: int) -> int:
    return await count_users_ahead(db, experience) + 1


async def get_leaderboard(db: AsyncSession, limit: int) -> list[dict]:
    """Top ``limit`` users by experience (ties broken by id)."""
    result = await db.execute(
        select(User).order_by(User.experience.desc(), User.id.asc()).limit(limit)
    )
    entries = []
    previous_experience: int | None = None
    position = 0
    for index, user in enumerate(result.scalars(), start=1):
        if user.experience != previous_experience:
            position = index
            previous_experience = user.experience
        entries.append({
            "position": position,
            "user_id": user.id,
            "name": user.name,
            "ze_tag": user.ze_tag,
            "rank": user.rank,
            "rank_icon": user.rank_icon,
            "experience": user.experience,
            "image_url": user.image_url,
        })
    return entries
