"""Mission submission business logic.

Rules:
- A submission is only accepted while the mission is available (re-checked here,
  not only when listing).
- At most one pending/approved submission per (user, mission). The partial
  unique index enforces it under concurrency; the pre-check only gives a
  friendlier message.
- Approval moves the submission out of ``pending``, takes a completion slot and
  credits the mission points, all in the caller's transaction. Any failure
  leaves nothing applied once the caller rolls back.
- The points credited are recorded on the submission; revert takes back exactly
  that amount, whatever the mission is worth by then. Revert is only valid from
  ``approved``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from zeclub.db.models import Mission, MissionSubmission, RedemptionRequest
from zeclub.errors import ClubValidationError, NotFoundError, StateConflictError
from zeclub.gamification.ledger_service import credit, debit_for_revert
from zeclub.missions.availability import is_mission_available
from zeclub.submissions.state_machine import (
    APPROVED,
    BLOCKING_STATUSES,
    PENDING,
    REJECTED,
    REVERTED,
    REVIEW_OUTCOMES,
    validate_transition,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

DEFAULT_REVERT_REASON = "Approval reverted by admin"


async def get_submission(db: AsyncSession, submission_id: int) -> MissionSubmission:
    result = await db.execute(
        select(MissionSubmission)
        .where(MissionSubmission.id == submission_id)
        .options(selectinload(MissionSubmission.mission), selectinload(MissionSubmission.user))
        .execution_options(populate_existing=True)
    )
    submission = result.scalar_one_or_none()
    if submission is None:
        raise NotFoundError("Submission not found")
    return submission


async def get_blocking_submission(db: AsyncSession, user_id: int, mission_id: int) -> MissionSubmission | None:
    """The user's pending or approved submission for a mission, if any."""
    result = await db.execute(
        select(MissionSubmission).where(
            MissionSubmission.user_id == user_id,
            MissionSubmission.mission_id == mission_id,
            MissionSubmission.status.in_(BLOCKING_STATUSES),
        )
    )
    return result.scalar_one_or_none()


async def create_submission(
    db: AsyncSession,
    user_id: int,
    mission_id: int,
    proof_url: str,
    now: datetime | None = None,
) -> MissionSubmission:
    """Submit proof for a mission. The submission starts as pending."""
    if not proof_url or not proof_url.strip():
        raise ClubValidationError("Proof URL is required")

    now = now or datetime.now(timezone.utc)
    mission = await db.get(Mission, mission_id)
    if mission is None:
        raise NotFoundError("Mission not found")
    if not is_mission_available(mission, now):
        raise StateConflictError("This mission is not available for submission")

    existing = await get_blocking_submission(db, user_id, mission_id)
    if existing is not None:
        if existing.status == APPROVED:
            raise StateConflictError("You have already completed this mission")
        raise StateConflictError("You already have a pending submission for this mission")

    submission = MissionSubmission(
        user_id=user_id,
        mission_id=mission_id,
        proof_url=proof_url.strip(),
        status=PENDING,
        submitted_at=now,
        mission=mission,
    )
    db.add(submission)
    try:
        await db.flush()
    except IntegrityError as e:
        # A concurrent request won the partial unique index
        raise StateConflictError("You already have a pending submission for this mission") from e

    logger.info("submission_created", submission_id=submission.id, user_id=user_id, mission_id=mission_id)
    return submission


async def list_submissions(
    db: AsyncSession,
    status: str | None = PENDING,
    user_id: int | None = None,
) -> list[MissionSubmission]:
    """Submissions with their user and mission loaded, oldest first."""
    query = select(MissionSubmission).options(
        selectinload(MissionSubmission.mission),
        selectinload(MissionSubmission.user),
    )
    if status is not None:
        query = query.where(MissionSubmission.status == status)
    if user_id is not None:
        query = query.where(MissionSubmission.user_id == user_id)
    result = await db.execute(query.order_by(MissionSubmission.submitted_at.asc(), MissionSubmission.id.asc()))
    return list(result.scalars().all())


async def approve_submission(
    db: AsyncSession,
    submission_id: int,
    admin_id: int,
    remarks: str | None = None,
    now: datetime | None = None,
) -> dict:
    """Approve a pending submission and award the mission points."""
    now = now or datetime.now(timezone.utc)
    submission = await get_submission(db, submission_id)
    validate_transition(submission.status, APPROVED)
    points = submission.mission.points

    moved = await db.execute(
        update(MissionSubmission)
        .where(MissionSubmission.id == submission_id, MissionSubmission.status == PENDING)
        .values(status=APPROVED, approved_by=admin_id, approved_at=now, remarks=remarks, points_awarded=points)
    )
    if moved.rowcount != 1:
        raise StateConflictError("Submission already processed")

    slot = await db.execute(
        update(Mission)
        .where(
            Mission.id == submission.mission_id,
            or_(
                Mission.max_completions.is_(None),
                Mission.max_completions == 0,
                Mission.current_completions < Mission.max_completions,
            ),
        )
        .values(current_completions=Mission.current_completions + 1)
    )
    if slot.rowcount != 1:
        raise StateConflictError("Mission has reached its maximum completions")

    change = await credit(db, submission.user_id, points)

    logger.info(
        "submission_approved",
        submission_id=submission_id,
        user_id=submission.user_id,
        mission_id=submission.mission_id,
        admin_id=admin_id,
        points=points,
    )
    return {
        "submission": submission,
        "points_awarded": points,
        "new_balance": change["ze_coins"],
        "new_experience": change["experience"],
        "old_rank": change["old_rank"],
        "new_rank": change["new_rank"],
        "rank_changed": change["rank_changed"],
    }


async def reject_submission(
    db: AsyncSession,
    submission_id: int,
    admin_id: int,
    remarks: str | None = None,
) -> dict:
    """Reject a pending submission. No ledger change."""
    submission = await get_submission(db, submission_id)
    validate_transition(submission.status, REJECTED)

    moved = await db.execute(
        update(MissionSubmission)
        .where(MissionSubmission.id == submission_id, MissionSubmission.status == PENDING)
        .values(status=REJECTED, remarks=remarks)
    )
    if moved.rowcount != 1:
        raise StateConflictError("Submission already processed")

    logger.info("submission_rejected", submission_id=submission_id, admin_id=admin_id)
    return {"submission": submission, "points_awarded": 0}


async def verify_submission(
    db: AsyncSession,
    submission_id: int,
    status: str,
    admin_id: int,
    remarks: str | None = None,
) -> dict:
    """Apply an admin review outcome (approved or rejected)."""
    if status not in REVIEW_OUTCOMES:
        raise ClubValidationError("Invalid status")
    if status == APPROVED:
        return await approve_submission(db, submission_id, admin_id, remarks)
    return await reject_submission(db, submission_id, admin_id, remarks)


async def revert_submission(
    db: AsyncSession,
    submission_id: int,
    admin_id: int,
    revert_reason: str | None = None,
    now: datetime | None = None,
) -> dict:
    """Undo an approval: deduct the points, release the completion slot."""
    now = now or datetime.now(timezone.utc)
    reason = (revert_reason or "").strip() or DEFAULT_REVERT_REASON

    submission = await get_submission(db, submission_id)
    if submission.status != APPROVED and submission.status != REVERTED:
        raise StateConflictError("Only approved submissions can be reverted")
    validate_transition(submission.status, REVERTED)

    moved = await db.execute(
        update(MissionSubmission)
        .where(MissionSubmission.id == submission_id, MissionSubmission.status == APPROVED)
        .values(
            status=REVERTED,
            reverted_by=admin_id,
            reverted_at=now,
            revert_reason=reason,
            remarks=reason,
        )
    )
    if moved.rowcount != 1:
        raise StateConflictError("Submission has already been reverted")

    # Rows approved before points_awarded was recorded fall back to the mission value
    points = submission.points_awarded
    if points is None:
        points = submission.mission.points
    change = await debit_for_revert(db, submission.user_id, points)

    await db.execute(
        update(Mission)
        .where(Mission.id == submission.mission_id, Mission.current_completions > 0)
        .values(current_completions=Mission.current_completions - 1)
    )

    active_redemptions = await db.execute(
        select(func.count())
        .select_from(RedemptionRequest)
        .where(
            RedemptionRequest.user_id == submission.user_id,
            RedemptionRequest.status.in_(("pending", "processing", "completed")),
        )
    )

    logger.info(
        "submission_reverted",
        submission_id=submission_id,
        user_id=submission.user_id,
        mission_id=submission.mission_id,
        admin_id=admin_id,
        points=points,
        coin_shortfall=change["coin_shortfall"],
        old_rank=change["old_rank"],
        new_rank=change["new_rank"],
    )
    return {
        "submission": submission,
        "details": {
            "points_deducted": points,
            "coins_deducted": change["coins_deducted"],
            "coin_shortfall": change["coin_shortfall"],
            "new_balance": change["ze_coins"],
            "new_experience": change["experience"],
            "old_rank": change["old_rank"],
            "new_rank": change["new_rank"],
            "rank_changed": change["rank_changed"],
            "active_redemptions": active_redemptions.scalar_one(),
        },
    }
