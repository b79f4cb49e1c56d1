"""
Sprintpair — Participant model (identity, role and queue state).
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Role(str, enum.Enum):
    FRONTEND = "FRONTEND"
    BACKEND = "BACKEND"


class Participant(Base):
    __tablename__ = "participants"
    __table_args__ = (
        Index("ix_participants_role_waiting_since", "role", "waiting_since"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    external_id: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False,
        comment="Opaque identity-provider id (e.g. GitHub profile URL)",
    )
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    surname: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[Role | None] = mapped_column(
        Enum(Role, native_enum=False, length=16), nullable=True,
        comment="Null until the participant selects a role",
    )
    waiting_since: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
        comment="Set while in the matching queue; null otherwise",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    participations: Mapped[list["MatchParticipation"]] = relationship(
        "MatchParticipation", back_populates="participant"
    )

    @property
    def full_name(self) -> str:
        if self.surname:
            return f"{self.display_name} {self.surname}"
        return self.display_name

    def __repr__(self) -> str:
        return f"<Participant {self.external_id!r} role={self.role} id={self.id}>"
