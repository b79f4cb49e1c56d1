"""
Sprintpair — Matching API

Find-or-queue, leave the queue, and complete a match (optionally with a
repository URL that triggers the AI sprint review).
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_participant_id, get_matching_service
from app.database import get_db
from app.schemas.match import CompletionSummary, FindMatchResult, MatchCompleteRequest
from app.services.matching_service import MatchingService

logger = structlog.get_logger("sprintpair.api.matching")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /find: Match with the oldest opposite-role waiter, or join the queue
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/find",
    response_model=FindMatchResult,
    summary="Find a partner or join the queue",
)
async def find_match(
    participant_id: uuid.UUID = Depends(get_current_participant_id),
    db: AsyncSession = Depends(get_db),
    matching: MatchingService = Depends(get_matching_service),
):
    """Pair the caller with the longest-waiting participant of the opposite
    role.

    Returns ``status: "MATCHED"`` with partner and project details, or
    ``status: "WAITING"`` with the time the caller joined the queue and an
    advisory queue position.
    """
    return await matching.find_or_queue_match(db, participant_id)


# ──────────────────────────────────────────────────────────────────────────────
# DELETE /queue: Leave the queue (idempotent)
# ──────────────────────────────────────────────────────────────────────────────

@router.delete(
    "/queue",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave the matching queue",
)
async def leave_queue(
    participant_id: uuid.UUID = Depends(get_current_participant_id),
    db: AsyncSession = Depends(get_db),
    matching: MatchingService = Depends(get_matching_service),
) -> Response:
    await matching.cancel_waiting(db, participant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ──────────────────────────────────────────────────────────────────────────────
# POST /{match_id}/complete: Finish the sprint
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{match_id}/complete",
    response_model=CompletionSummary,
    summary="Complete an active match",
)
async def complete_match(
    match_id: uuid.UUID,
    payload: MatchCompleteRequest | None = None,
    participant_id: uuid.UUID = Depends(get_current_participant_id),
    db: AsyncSession = Depends(get_db),
    matching: MatchingService = Depends(get_matching_service),
) -> CompletionSummary:
    """Mark the match COMPLETED.

    When ``artifact_ref`` is a GitHub repository URL the README is fetched
    and reviewed; a review that cannot be produced is stored as a degraded
    review and never fails the completion.
    """
    artifact_ref = payload.artifact_ref if payload is not None else None
    logger.info(
        "complete_match_requested",
        match_id=str(match_id),
        participant_id=str(participant_id),
    )
    return await matching.complete_match(db, match_id, participant_id, artifact_ref)
