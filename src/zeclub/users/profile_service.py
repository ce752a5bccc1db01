"""Member profile: bio, ZE Tag and progress stats.

ZE Tags are unique. Availability is checked first for a friendly message;
the unique index on ``users.ze_tag`` decides when two members race for the
same tag.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from zeclub.db.models import MissionSubmission, User
from zeclub.errors import ClubValidationError, NotFoundError, StateConflictError
from zeclub.gamification.leaderboard_service import leaderboard_position
from zeclub.submissions.state_machine import APPROVED, PENDING

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ZE_TAG_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")
ZE_TAG_FORMAT_MESSAGE = "ZE Tag must be 3-20 characters (alphanumeric and underscore only)"
ZE_TAG_TAKEN_MESSAGE = "This ZE Tag is already taken"
BIO_MAX_LENGTH = 200


def is_valid_ze_tag(ze_tag: str) -> bool:
    return bool(ZE_TAG_PATTERN.match(ze_tag))


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_profile_stats(db: AsyncSession, user: User) -> dict:
    """Mission counts and leaderboard position shown on the profile page."""
    result = await db.execute(
        select(MissionSubmission.status, func.count())
        .where(
            MissionSubmission.user_id == user.id,
            MissionSubmission.status.in_((APPROVED, PENDING)),
        )
        .group_by(MissionSubmission.status)
    )
    counts = dict(result.all())
    return {
        "completed_missions": counts.get(APPROVED, 0),
        "pending_missions": counts.get(PENDING, 0),
        "ze_coins": user.ze_coins,
        "experience": user.experience,
        "leaderboard_position": await leaderboard_position(db, user.experience),
    }


async def update_bio(db: AsyncSession, user_id: int, bio: str) -> User:
    bio = bio.strip()
    if len(bio) > BIO_MAX_LENGTH:
        raise ClubValidationError(f"Bio must be {BIO_MAX_LENGTH} characters or less")

    user = await get_user(db, user_id)
    user.bio = bio
    await db.flush()

    logger.info("profile_updated", user_id=user_id)
    return user


async def is_ze_tag_available(db: AsyncSession, ze_tag: str, user_id: int) -> bool:
    """True unless another member already holds ``ze_tag`` (exact match)."""
    result = await db.execute(
        select(User.id).where(User.ze_tag == ze_tag, User.id != user_id).limit(1)
    )
    return result.scalar_one_or_none() is None


async def change_ze_tag(db: AsyncSession, user_id: int, ze_tag: str) -> User:
    """Give the member a new ZE Tag.

    Raises:
        ClubValidationError: the tag is empty or malformed.
        StateConflictError: another member holds the tag.
        NotFoundError: the member does not exist.
    """
    if not ze_tag:
        raise ClubValidationError("ZE Tag is required")
    if not is_valid_ze_tag(ze_tag):
        raise ClubValidationError(ZE_TAG_FORMAT_MESSAGE)
    if not await is_ze_tag_available(db, ze_tag, user_id):
        raise StateConflictError(ZE_TAG_TAKEN_MESSAGE)

    user = await get_user(db, user_id)
    previous = user.ze_tag
    user.ze_tag = ze_tag
    try:
        await db.flush()
    except IntegrityError as e:
        raise StateConflictError(ZE_TAG_TAKEN_MESSAGE) from e

    logger.info("ze_tag_changed", user_id=user_id, previous=previous, ze_tag=ze_tag)
    return user
