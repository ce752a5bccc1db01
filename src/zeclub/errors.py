"""Domain errors for the ZE Club services.

Services raise these; routers roll back and translate them to HTTP responses.
"""

from __future__ import annotations


class ClubError(ValueError):
    """Base class. ``status_code`` is the HTTP status the API answers with."""

    status_code: int = 400


class ClubValidationError(ClubError):
    """Malformed input, rejected before any mutation."""

    status_code = 400


class EligibilityError(ClubError):
    """The caller is not allowed to perform this action (rank, top-3, role)."""

    status_code = 403


class NotFoundError(ClubError):
    """A referenced user, mission, submission, reward or request does not exist."""

    status_code = 404


class StateConflictError(ClubError):
    """Invalid transition, insufficient balance, empty stock or duplicate submission."""

    status_code = 409
