"""Mission submission endpoints: member submit, admin review and revert."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from zeclub.auth.dependencies import get_current_user, require_admin
from zeclub.database import get_session
from zeclub.db.models import SUBMISSION_STATUSES, MissionSubmission, User
from zeclub.errors import ClubError
from zeclub.submissions.schemas import (
    RevertDetails,
    RevertSubmissionRequest,
    RevertSubmissionResponse,
    SubmissionCreateRequest,
    SubmissionListResponse,
    SubmissionResponse,
    VerifySubmissionRequest,
    VerifySubmissionResponse,
)
from zeclub.submissions.service import (
    create_submission,
    list_submissions,
    revert_submission,
    verify_submission,
)

router = APIRouter(prefix="/api/v1", tags=["Submissions"])


def _submission_response(submission: MissionSubmission) -> SubmissionResponse:
    unloaded = inspect(submission).unloaded
    mission = None if "mission" in unloaded else submission.mission
    user = None if "user" in unloaded else submission.user
    return SubmissionResponse(
        id=submission.id,
        user_id=submission.user_id,
        mission_id=submission.mission_id,
        proof_url=submission.proof_url,
        status=submission.status,
        submitted_at=submission.submitted_at,
        remarks=submission.remarks,
        approved_by=submission.approved_by,
        approved_at=submission.approved_at,
        reverted_by=submission.reverted_by,
        reverted_at=submission.reverted_at,
        revert_reason=submission.revert_reason,
        mission_name=mission.name if mission else None,
        mission_points=mission.points if mission else None,
        user_ze_tag=user.ze_tag if user else None,
        user_email=user.email if user else None,
    )


# ── Member endpoints ──


@router.post(
    "/ze-club/missions/{mission_id}/submissions",
    response_model=SubmissionResponse,
    status_code=201,
)
async def submit_mission(
    mission_id: int,
    body: SubmissionCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SubmissionResponse:
    """Submit proof of completion for an available mission."""
    try:
        submission = await create_submission(db, user.id, mission_id, body.proof_url)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return _submission_response(submission)


@router.get("/ze-club/user/submissions", response_model=SubmissionListResponse)
async def my_submissions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SubmissionListResponse:
    """All of the caller's submissions, any status."""
    submissions = await list_submissions(db, status=None, user_id=user.id)
    return SubmissionListResponse(
        submissions=[_submission_response(s) for s in submissions],
        total=len(submissions),
    )


# ── Admin endpoints ──


@router.get("/admin/submissions", response_model=SubmissionListResponse)
async def admin_list_submissions(
    status: str = Query("pending"),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> SubmissionListResponse:
    """Submissions in a given status, oldest first (the review queue by default)."""
    if status not in SUBMISSION_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")
    submissions = await list_submissions(db, status=status)
    return SubmissionListResponse(
        submissions=[_submission_response(s) for s in submissions],
        total=len(submissions),
    )


@router.patch("/admin/submissions/verify", response_model=VerifySubmissionResponse)
async def admin_verify_submission(
    body: VerifySubmissionRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> VerifySubmissionResponse:
    """Approve (awarding points) or reject a pending submission."""
    try:
        outcome = await verify_submission(db, body.submission_id, body.status, admin.id, body.remarks)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    return VerifySubmissionResponse(
        message=f"Submission {body.status} successfully",
        submission=_submission_response(outcome["submission"]),
        points_awarded=outcome["points_awarded"],
        new_balance=outcome.get("new_balance"),
        new_experience=outcome.get("new_experience"),
        old_rank=outcome.get("old_rank"),
        new_rank=outcome.get("new_rank"),
        rank_changed=outcome.get("rank_changed", False),
    )


@router.post("/admin/submissions/revert", response_model=RevertSubmissionResponse)
async def admin_revert_submission(
    body: RevertSubmissionRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> RevertSubmissionResponse:
    """Revert an approved submission and take its points back."""
    try:
        outcome = await revert_submission(db, body.submission_id, admin.id, body.revert_reason)
        await db.commit()
    except ClubError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    return RevertSubmissionResponse(
        message="Submission approval reverted successfully",
        submission=_submission_response(outcome["submission"]),
        details=RevertDetails(**outcome["details"]),
    )
