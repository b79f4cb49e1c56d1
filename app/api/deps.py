"""
Sprintpair — Shared API dependencies.

Authentication itself lives outside this service: an upstream gateway
resolves the caller and forwards their participant id in the
``X-Participant-Id`` header.
"""

from __future__ import annotations

import uuid

from fastapi import Header, HTTPException, status

from app.services.matching_service import MatchingService

PARTICIPANT_HEADER = "X-Participant-Id"

# ── Service singletons ────────────────────────────────────────────────────────

_matching_service: MatchingService | None = None


def get_matching_service() -> MatchingService:
    """Process-wide matching service; it owns the matching lock."""
    global _matching_service
    if _matching_service is None:
        _matching_service = MatchingService()
    return _matching_service


async def get_current_participant_id(
    x_participant_id: str | None = Header(default=None, alias=PARTICIPANT_HEADER),
) -> uuid.UUID:
    if not x_participant_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {PARTICIPANT_HEADER} header.",
        )
    try:
        return uuid.UUID(x_participant_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {PARTICIPANT_HEADER} header.",
        )
