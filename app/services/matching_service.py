"""
Sprintpair — Match Lifecycle Manager

Pairs a FRONTEND and a BACKEND participant, first come first served, and
carries the pair through ACTIVE → COMPLETED.

Find-or-queue:
  1. Validate the requester (exists, has a role, no ACTIVE match).
  2. Read the oldest eligible opposite-role waiter (outside the lock).
  3. Under the matching lock: re-validate, claim the candidate with a
     conditional UPDATE on ``waiting_since``, create the match, two
     participations and a project, clear both waiting flags, commit.
  4. If there was no candidate or the claim lost a race, queue the requester.

The lock serialises matching inside one process, and that is the consistency
boundary.  The conditional claim only guards the candidate row; the
requester's own waiting flag is cleared without a guard, so several workers
sharing one database are not protected against each other.

Completion flips ACTIVE → COMPLETED with a conditional UPDATE, then (outside
the lock) runs the review pipeline when a repository URL was submitted.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.exceptions import (
    ActiveMatchConflict,
    MatchNotActive,
    MatchNotFound,
    NotParticipant,
    RoleNotSelected,
)
from app.models.match import Match, MatchParticipation, MatchStatus
from app.models.participant import Participant
from app.schemas.match import CompletionSummary, MatchedResult, WaitingResult
from app.schemas.participant import ParticipantStatus
from app.services import presentation
from app.services.participant_service import get_participant
from app.services.project_service import ProjectService
from app.services.queue_selector import (
    find_oldest_waiting_opposite_role,
    has_active_match,
    is_eligible_candidate,
    opposite_role,
    queue_position,
)

logger = structlog.get_logger("sprintpair.matching_service")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MatchingService:
    """FIFO matchmaking and match lifecycle.

    One instance should be shared per process: the instance owns the
    ``asyncio.Lock`` that serialises candidate claims.  Collaborators are
    injected so tests can swap the review pipeline for a stub.
    """

    def __init__(
        self,
        review_service=None,
        project_service: ProjectService | None = None,
    ) -> None:
        settings = get_settings()
        self.link_template = settings.COMMUNICATION_LINK_TEMPLATE
        self.project_service = project_service or ProjectService()
        self._review_service = review_service
        self._lock = asyncio.Lock()

    @property
    def review_service(self):
        if self._review_service is None:
            from app.services.review_service import ReviewService

            self._review_service = ReviewService()
        return self._review_service

    # ── Find or queue ─────────────────────────────────────────────────────

    async def find_or_queue_match(
        self,
        db: AsyncSession,
        requester_id: uuid.UUID,
    ) -> MatchedResult | WaitingResult:
        requester = await get_participant(db, requester_id)
        if requester.role is None:
            raise RoleNotSelected(requester_id)
        if await has_active_match(db, requester_id):
            raise ActiveMatchConflict(requester_id)

        log = logger.bind(participant_id=str(requester_id), role=requester.role.value)

        candidate = await find_oldest_waiting_opposite_role(
            db, requester.id, requester.role
        )

        async with self._lock:
            # Another request may have paired the requester since the checks above.
            await db.refresh(requester)
            if await has_active_match(db, requester_id):
                raise ActiveMatchConflict(requester_id)

            if candidate is not None:
                result = await self._claim_and_create(db, requester, candidate, log)
                if result is not None:
                    return result
                log.info("match_candidate_lost", candidate_id=str(candidate.id))

            return await self._enqueue(db, requester, log)

    async def _claim_and_create(
        self,
        db: AsyncSession,
        requester: Participant,
        candidate: Participant,
        log,
    ) -> MatchedResult | None:
        if not await is_eligible_candidate(db, candidate.id):
            return None

        claim = await db.execute(
            update(Participant)
            .where(
                Participant.id == candidate.id,
                Participant.waiting_since.is_not(None),
                Participant.role == opposite_role(requester.role),
            )
            .values(waiting_since=None)
        )
        if claim.rowcount != 1:
            return None

        match_id = uuid.uuid4()
        match = Match(
            id=match_id,
            status=MatchStatus.ACTIVE,
            communication_link=self.link_template.format(match_id=match_id),
        )
        match.participations = [
            MatchParticipation(
                participant_id=requester.id,
                participant_role=requester.role,
            ),
            MatchParticipation(
                participant_id=candidate.id,
                participant_role=candidate.role,
            ),
        ]
        db.add(match)
        await db.flush()

        project = await self.project_service.assign_project(db, match)

        requester.waiting_since = None
        candidate.waiting_since = None
        await db.commit()

        log.info(
            "match_created",
            match_id=str(match.id),
            partner_id=str(candidate.id),
            partner_role=candidate.role.value,
        )
        return presentation.to_matched_result(match, candidate, project)

    async def _enqueue(
        self,
        db: AsyncSession,
        requester: Participant,
        log,
    ) -> WaitingResult:
        if requester.waiting_since is None:
            requester.waiting_since = _utcnow()
        waiting_since = requester.waiting_since
        await db.commit()

        position = await queue_position(db, requester.role, waiting_since)
        log.info("participant_queued", queue_position=position)
        return presentation.to_waiting_result(waiting_since, position)

    # ── Cancel ────────────────────────────────────────────────────────────

    async def cancel_waiting(self, db: AsyncSession, participant_id: uuid.UUID) -> None:
        """Leave the queue.  A participant who is not waiting is left untouched."""
        participant = await get_participant(db, participant_id)
        if participant.waiting_since is None:
            logger.debug("cancel_waiting_noop", participant_id=str(participant_id))
            return

        participant.waiting_since = None
        await db.commit()
        logger.info("participant_left_queue", participant_id=str(participant_id))

    # ── Complete ──────────────────────────────────────────────────────────

    async def complete_match(
        self,
        db: AsyncSession,
        match_id: uuid.UUID,
        completer_id: uuid.UUID,
        artifact_ref: str | None = None,
    ) -> CompletionSummary:
        match = await db.get(Match, match_id)
        if match is None:
            raise MatchNotFound(match_id)
        if match.status != MatchStatus.ACTIVE:
            raise MatchNotActive(match_id, match.status.value)
        if completer_id not in {p.participant_id for p in match.participations}:
            raise NotParticipant(completer_id, match_id)

        artifact_ref = artifact_ref.strip() if artifact_ref and artifact_ref.strip() else None
        log = logger.bind(match_id=str(match_id), completer_id=str(completer_id))

        transition = await db.execute(
            update(Match)
            .where(Match.id == match_id, Match.status == MatchStatus.ACTIVE)
            .values(
                status=MatchStatus.COMPLETED,
                completed_at=_utcnow(),
                artifact_ref=artifact_ref,
            )
        )
        if transition.rowcount != 1:
            await db.rollback()
            log.warning("match_completion_lost_race")
            raise MatchNotActive(match_id, MatchStatus.COMPLETED.value)
        await db.commit()
        log.info("match_completed", has_artifact=artifact_ref is not None)

        summary = presentation.to_completion_summary(match)
        if artifact_ref is not None:
            try:
                review = await self.review_service.generate_review(db, match, artifact_ref)
                await db.commit()
            except Exception as exc:
                # The match is already COMPLETED; a failed review write must not undo that.
                await db.rollback()
                log.error("review_persist_failed", error=str(exc))
            else:
                summary.review = presentation.to_review_summary(review)

        return summary

    # ── Status ────────────────────────────────────────────────────────────

    async def get_status(
        self,
        db: AsyncSession,
        participant_id: uuid.UUID,
    ) -> ParticipantStatus:
        participant = await get_participant(db, participant_id)

        stmt = (
            select(Match)
            .join(MatchParticipation, MatchParticipation.match_id == Match.id)
            .where(
                MatchParticipation.participant_id == participant_id,
                Match.status == MatchStatus.ACTIVE,
            )
            .limit(1)
        )
        active_match = (await db.execute(stmt)).scalars().first()

        partner = None
        if active_match is not None:
            partner = next(
                (
                    p for p in active_match.participations
                    if p.participant_id != participant_id
                ),
                None,
            )

        return presentation.to_status_snapshot(participant, active_match, partner)
