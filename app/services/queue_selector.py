"""
Sprintpair — Queue Selector

Read-only FIFO lookups over the participants table.  Nothing in this module
mutates state, so every function is safe to call outside the matching lock;
callers must re-validate a candidate (``is_eligible_candidate``) before acting
on it because a concurrent request may claim it in between.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.match import Match, MatchParticipation, MatchStatus
from app.models.participant import Participant, Role


def opposite_role(role: Role) -> Role:
    return Role.BACKEND if role == Role.FRONTEND else Role.FRONTEND


def _active_match_exists(participant_id_column):
    """Correlated EXISTS clause: the given participant holds an ACTIVE match."""
    return exists().where(
        MatchParticipation.participant_id == participant_id_column,
        MatchParticipation.match_id == Match.id,
        Match.status == MatchStatus.ACTIVE,
    )


async def has_active_match(db: AsyncSession, participant_id: uuid.UUID) -> bool:
    stmt = select(_active_match_exists(participant_id))
    return bool((await db.execute(stmt)).scalar())


async def find_oldest_waiting_opposite_role(
    db: AsyncSession,
    requester_id: uuid.UUID,
    requester_role: Role,
) -> Participant | None:
    """Return the longest-waiting eligible participant of the opposite role.

    Eligible means: opposite role, not the requester, ``waiting_since`` set,
    and no ACTIVE match.  Ordered by ``waiting_since`` ascending, so the
    oldest wait always wins.
    """
    stmt = (
        select(Participant)
        .where(
            Participant.role == opposite_role(requester_role),
            Participant.id != requester_id,
            Participant.waiting_since.is_not(None),
            ~_active_match_exists(Participant.id),
        )
        .order_by(Participant.waiting_since.asc(), Participant.created_at.asc())
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalars().first()


async def is_eligible_candidate(db: AsyncSession, participant_id: uuid.UUID) -> bool:
    """Re-check that a previously selected candidate is still claimable."""
    stmt = select(
        exists().where(
            Participant.id == participant_id,
            Participant.waiting_since.is_not(None),
            ~_active_match_exists(Participant.id),
        )
    )
    return bool((await db.execute(stmt)).scalar())


async def queue_position(
    db: AsyncSession,
    role: Role,
    waiting_since: datetime | None,
) -> int:
    """Count same-role waiters who joined earlier, plus one.

    Informational only; it is not a reservation and is not recomputed as the
    queue drains.  Returns 0 for a participant who is not waiting.
    """
    if waiting_since is None:
        return 0

    stmt = select(func.count(Participant.id)).where(
        Participant.role == role,
        Participant.waiting_since.is_not(None),
        Participant.waiting_since < waiting_since,
    )
    ahead = (await db.execute(stmt)).scalar_one()
    return int(ahead) + 1
