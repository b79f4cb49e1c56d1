"""
Sprintpair — Participant Store

Identity and role management for participants.  A participant row is created
the first time an external identity is seen and reused on every later
sighting; the queue fields (``waiting_since``) are owned by the matching
service and are never touched here.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidRole, ParticipantNotFound
from app.models.participant import Participant, Role

logger = structlog.get_logger("sprintpair.participant_service")


def parse_role(role_name: str) -> Role:
    """Case-insensitive role lookup; raises ``InvalidRole`` for anything else."""
    try:
        return Role(role_name.strip().upper())
    except (ValueError, AttributeError):
        raise InvalidRole(str(role_name))


async def get_participant(db: AsyncSession, participant_id: uuid.UUID) -> Participant:
    participant = await db.get(Participant, participant_id)
    if participant is None:
        raise ParticipantNotFound(participant_id)
    return participant


async def register_or_get(
    db: AsyncSession,
    external_id: str,
    display_name: str,
    surname: str | None = None,
) -> tuple[Participant, bool]:
    """Return the participant for ``external_id``, creating it on first sighting.

    Returns a ``(participant, created)`` pair.  Names supplied on a later
    sighting refresh the stored ones; role and queue state are left alone.
    """
    result = await db.execute(
        select(Participant).where(Participant.external_id == external_id)
    )
    participant = result.scalars().first()

    if participant is None:
        participant = Participant(
            external_id=external_id,
            display_name=display_name,
            surname=surname,
        )
        db.add(participant)
        await db.flush()
        await db.refresh(participant)
        logger.info(
            "participant_registered",
            participant_id=str(participant.id),
            external_id=external_id,
        )
        return participant, True

    if display_name and participant.display_name != display_name:
        participant.display_name = display_name
    if surname is not None and participant.surname != surname:
        participant.surname = surname
    await db.flush()
    return participant, False


async def set_role(
    db: AsyncSession,
    participant_id: uuid.UUID,
    role: Role | str,
) -> Participant:
    """Select or change a participant's role.

    Changing role while waiting keeps the original ``waiting_since``; the
    participant simply moves to the other queue.
    """
    if not isinstance(role, Role):
        role = parse_role(role)

    participant = await get_participant(db, participant_id)
    previous = participant.role
    participant.role = role
    await db.flush()

    logger.info(
        "participant_role_set",
        participant_id=str(participant_id),
        previous_role=previous.value if previous else None,
        role=role.value,
    )
    return participant
