"""
Sprintpair — Participants API

Registration on first sighting, role selection, and the status snapshot
clients use to restore a session.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_participant_id, get_matching_service
from app.database import get_db
from app.schemas.participant import (
    ParticipantCreate,
    ParticipantResponse,
    ParticipantStatus,
    RoleUpdate,
)
from app.services import participant_service, presentation
from app.services.matching_service import MatchingService

logger = structlog.get_logger("sprintpair.api.participants")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /: Register or fetch by external identity
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=ParticipantResponse,
    summary="Register a participant on first sighting",
)
async def register_participant(
    payload: ParticipantCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> ParticipantResponse:
    """Create the participant for ``external_id`` or return the existing one.

    Responds 201 when a new participant was created and 200 otherwise.
    """
    participant, created = await participant_service.register_or_get(
        db,
        external_id=payload.external_id,
        display_name=payload.display_name,
        surname=payload.surname,
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return presentation.to_participant_response(participant)


# ──────────────────────────────────────────────────────────────────────────────
# PUT /me/role: Select role
# ──────────────────────────────────────────────────────────────────────────────

@router.put(
    "/me/role",
    response_model=ParticipantResponse,
    summary="Select FRONTEND or BACKEND",
)
async def select_role(
    payload: RoleUpdate,
    participant_id: uuid.UUID = Depends(get_current_participant_id),
    db: AsyncSession = Depends(get_db),
) -> ParticipantResponse:
    participant = await participant_service.set_role(db, participant_id, payload.role)
    return presentation.to_participant_response(participant)


# ──────────────────────────────────────────────────────────────────────────────
# GET /me/status: Session restore snapshot
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/me/status",
    response_model=ParticipantStatus,
    summary="Current queue and match status",
)
async def get_my_status(
    participant_id: uuid.UUID = Depends(get_current_participant_id),
    db: AsyncSession = Depends(get_db),
    matching: MatchingService = Depends(get_matching_service),
) -> ParticipantStatus:
    return await matching.get_status(db, participant_id)
