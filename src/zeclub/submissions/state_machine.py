"""Mission submission lifecycle.

pending -> approved | rejected
approved -> reverted

rejected and reverted are terminal and do not block a new submission for the
same mission. Every transition is admin-triggered.
"""

from __future__ import annotations

from zeclub.errors import StateConflictError

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
REVERTED = "reverted"

VALID_TRANSITIONS: dict[str, list[str]] = {
    PENDING: [APPROVED, REJECTED],
    APPROVED: [REVERTED],
    REJECTED: [],
    REVERTED: [],
}

# Statuses covered by the partial unique index on (user_id, mission_id)
BLOCKING_STATUSES: tuple[str, ...] = (PENDING, APPROVED)

# Statuses an admin can pick when verifying a pending submission
REVIEW_OUTCOMES: tuple[str, ...] = (APPROVED, REJECTED)


def validate_transition(current_status: str, target_status: str) -> None:
    """Raise StateConflictError unless current -> target is allowed."""
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        if current_status == REVERTED and target_status == REVERTED:
            raise StateConflictError("Submission has already been reverted")
        if current_status != PENDING and target_status in REVIEW_OUTCOMES:
            raise StateConflictError(f"Submission already processed (status: {current_status})")
        raise StateConflictError(
            f"Invalid transition: {current_status} -> {target_status}. "
            f"Valid transitions: {valid}"
        )
