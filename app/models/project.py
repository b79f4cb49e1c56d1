"""
Sprintpair — Project catalog, scoring context and per-match assignment.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class ProjectPromptContext(Base):
    """Crisis scenario a project was written around; drives the review prompt."""

    __tablename__ = "project_prompt_contexts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    industry: Mapped[str] = mapped_column(String, nullable=False)
    sub_domain: Mapped[str | None] = mapped_column(String, nullable=True)
    crisis_category: Mapped[str | None] = mapped_column(String, nullable=True)
    crisis_scenario: Mapped[str | None] = mapped_column(Text, nullable=True)
    primary_constraint: Mapped[str | None] = mapped_column(String, nullable=True)
    secondary_constraint: Mapped[str | None] = mapped_column(String, nullable=True)
    compliance_requirement: Mapped[str | None] = mapped_column(String, nullable=True)
    success_metric: Mapped[str | None] = mapped_column(String, nullable=True)
    timeline: Mapped[str | None] = mapped_column(String, nullable=True)
    legacy_system_issue: Mapped[str | None] = mapped_column(Text, nullable=True)
    integration_challenge: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<ProjectPromptContext {self.industry!r} / {self.sub_domain!r}>"


class ProjectTemplate(Base):
    __tablename__ = "project_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    prompt_context_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("project_prompt_contexts.id", ondelete="SET NULL"), nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    prompt_context: Mapped["ProjectPromptContext"] = relationship(
        "ProjectPromptContext", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<ProjectTemplate {self.title!r}>"


class MatchProject(Base):
    __tablename__ = "match_projects"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    match_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("matches.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    project_template_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("project_templates.id"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # ── Relationships ──────────────────────────────────────────────
    match: Mapped["Match"] = relationship("Match", back_populates="project")
    template: Mapped["ProjectTemplate"] = relationship(
        "ProjectTemplate", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<MatchProject match={self.match_id} template={self.project_template_id}>"
