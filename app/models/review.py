"""
Sprintpair — Review model (AI sprint review of a completed match).
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

_JSONList = JSON().with_variant(JSONB(), "postgresql")


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    match_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("matches.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    artifact_ref: Mapped[str] = mapped_column(String, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False, comment="0-100")
    feedback: Mapped[str] = mapped_column(Text, nullable=False)
    strengths: Mapped[list] = mapped_column(
        _JSONList, nullable=False, default=list, comment="Array of strings"
    )
    missing_elements: Mapped[list] = mapped_column(
        _JSONList, nullable=False, default=list, comment="Array of strings"
    )
    artifact_content: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Fetched README, truncated"
    )
    outcome: Mapped[str] = mapped_column(
        String, nullable=False, comment="scored / neutral / degraded"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # ── Relationships ──────────────────────────────────────────────
    match: Mapped["Match"] = relationship("Match", back_populates="review")

    def __repr__(self) -> str:
        return f"<Review match={self.match_id} score={self.score} outcome={self.outcome!r}>"
