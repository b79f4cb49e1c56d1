"""
Sprintpair — Match and MatchParticipation models.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.participant import Role


class MatchStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    status: Mapped[MatchStatus] = mapped_column(
        Enum(MatchStatus, native_enum=False, length=16),
        default=MatchStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    communication_link: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="Channel reference, fixed at creation"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Reserved; not enforced"
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    artifact_ref: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="Repository URL submitted on completion"
    )

    # ── Relationships ──────────────────────────────────────────────
    participations: Mapped[list["MatchParticipation"]] = relationship(
        "MatchParticipation", back_populates="match", lazy="selectin"
    )
    project: Mapped["MatchProject"] = relationship(
        "MatchProject", back_populates="match", uselist=False, lazy="selectin"
    )
    review: Mapped["Review"] = relationship(
        "Review", back_populates="match", uselist=False
    )

    def __repr__(self) -> str:
        return f"<Match {self.id} status={self.status}>"


class MatchParticipation(Base):
    __tablename__ = "match_participations"
    __table_args__ = (
        UniqueConstraint("match_id", "participant_id", name="uq_participation_pair"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    match_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    participant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    participant_role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=16), nullable=False,
        comment="Participant's role at match time",
    )

    # ── Relationships ──────────────────────────────────────────────
    match: Mapped["Match"] = relationship("Match", back_populates="participations")
    participant: Mapped["Participant"] = relationship(
        "Participant", back_populates="participations", lazy="selectin"
    )

    def __repr__(self) -> str:
        return (
            f"<MatchParticipation match={self.match_id} "
            f"participant={self.participant_id} role={self.participant_role}>"
        )
