"""
Sprintpair — Domain exceptions.

Lifecycle precondition and authorization failures are raised as distinct
types so the API layer can map each one to its own client-visible status.
``ArtifactFetchFailed`` and ``ReviewGenerationFailed`` are internal to the
review pipeline and never escape ``ReviewService.generate_review``.
"""

from __future__ import annotations

import uuid

from fastapi import status


class SprintpairError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Internal Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ParticipantNotFound(SprintpairError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not Found"

    def __init__(self, participant_id: uuid.UUID | str) -> None:
        super().__init__(f"Participant {participant_id} not found.")
        self.participant_id = participant_id


class MatchNotFound(SprintpairError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not Found"

    def __init__(self, match_id: uuid.UUID) -> None:
        super().__init__(f"Match {match_id} not found.")
        self.match_id = match_id


class RoleNotSelected(SprintpairError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad Request"

    def __init__(self, participant_id: uuid.UUID) -> None:
        super().__init__(
            f"Participant {participant_id} must select a role before matching."
        )
        self.participant_id = participant_id


class InvalidRole(SprintpairError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad Request"

    def __init__(self, role_name: str) -> None:
        super().__init__(
            f"Invalid role '{role_name}'. Expected FRONTEND or BACKEND."
        )
        self.role_name = role_name


class ActiveMatchConflict(SprintpairError):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"

    def __init__(self, participant_id: uuid.UUID) -> None:
        super().__init__(f"Participant {participant_id} already has an active match.")
        self.participant_id = participant_id


class MatchNotActive(SprintpairError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad Request"

    def __init__(self, match_id: uuid.UUID, current_status: str) -> None:
        super().__init__(
            f"Match {match_id} cannot be completed. Current status: "
            f"{current_status}. Only ACTIVE matches can be completed."
        )
        self.match_id = match_id
        self.current_status = current_status


class NotParticipant(SprintpairError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Forbidden"

    def __init__(self, participant_id: uuid.UUID, match_id: uuid.UUID) -> None:
        super().__init__(
            f"Participant {participant_id} is not authorized to complete match {match_id}."
        )
        self.participant_id = participant_id
        self.match_id = match_id


# ── Review pipeline (absorbed, never surfaced to callers) ──────────────────


class ArtifactFetchFailed(SprintpairError):
    def __init__(self, repo_ref: str, reason: str = "not found") -> None:
        super().__init__(f"README for {repo_ref} could not be fetched: {reason}")
        self.repo_ref = repo_ref
        self.reason = reason


class ReviewGenerationFailed(SprintpairError):
    pass
