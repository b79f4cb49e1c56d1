"""
Sprintpair — Presentation adapters.

Pure functions turning ORM rows into the response schemas.  None of them
touch the database, so callers must pass in everything already loaded.
"""

from __future__ import annotations

from datetime import datetime

from app.models.match import Match, MatchParticipation
from app.models.participant import Participant
from app.models.project import MatchProject
from app.models.review import Review
from app.schemas.match import (
    CompletionSummary,
    MatchedResult,
    ReviewSummary,
    WaitingResult,
)
from app.schemas.participant import (
    ActiveMatchInfo,
    ParticipantResponse,
    ParticipantStatus,
)


def _role_name(role) -> str | None:
    return role.value if role is not None else None


def to_participant_response(participant: Participant) -> ParticipantResponse:
    return ParticipantResponse(
        id=participant.id,
        external_id=participant.external_id,
        display_name=participant.display_name,
        surname=participant.surname,
        role=_role_name(participant.role),
        waiting_since=participant.waiting_since,
    )


def to_matched_result(
    match: Match,
    partner: Participant,
    project: MatchProject | None,
) -> MatchedResult:
    template = project.template if project is not None else None
    return MatchedResult(
        match_id=match.id,
        communication_link=match.communication_link or "",
        partner_id=partner.id,
        partner_name=partner.full_name,
        partner_role=_role_name(partner.role) or "",
        project_title=template.title if template else None,
        project_description=template.description if template else None,
        project_start_date=project.start_date if project else None,
        project_end_date=project.end_date if project else None,
    )


def to_waiting_result(waiting_since: datetime, queue_position: int) -> WaitingResult:
    return WaitingResult(waiting_since=waiting_since, queue_position=queue_position)


def to_review_summary(review: Review) -> ReviewSummary:
    return ReviewSummary(
        score=review.score,
        feedback=review.feedback,
        strengths=list(review.strengths or []),
        missing_elements=list(review.missing_elements or []),
        outcome=review.outcome,
    )


def to_completion_summary(match: Match, review: Review | None = None) -> CompletionSummary:
    return CompletionSummary(
        match_id=match.id,
        status=match.status.value,
        completed_at=match.completed_at,
        artifact_ref=match.artifact_ref,
        review=to_review_summary(review) if review is not None else None,
    )


def to_status_snapshot(
    participant: Participant,
    active_match: Match | None,
    partner: MatchParticipation | None,
) -> ParticipantStatus:
    """Status view used by clients to restore a session after reload."""
    info = None
    if active_match is not None:
        template = active_match.project.template if active_match.project else None
        info = ActiveMatchInfo(
            match_id=active_match.id,
            communication_link=active_match.communication_link,
            partner_name=partner.participant.full_name if partner else None,
            partner_role=_role_name(partner.participant_role) if partner else None,
            project_title=template.title if template else None,
            project_description=template.description if template else None,
        )

    return ParticipantStatus(
        id=participant.id,
        external_id=participant.external_id,
        display_name=participant.display_name,
        surname=participant.surname,
        role=_role_name(participant.role),
        waiting_since=participant.waiting_since,
        has_active_match=active_match is not None,
        active_match=info,
    )
