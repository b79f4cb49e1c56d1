"""Initial schema — all 7 Sprintpair tables.

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. participants ─────────────────────────────────────────────
    op.create_table(
        "participants",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "external_id",
            sa.String,
            unique=True,
            index=True,
            nullable=False,
            comment="Opaque identity-provider id (e.g. GitHub profile URL)",
        ),
        sa.Column("display_name", sa.String, nullable=False),
        sa.Column("surname", sa.String, nullable=True),
        sa.Column(
            "role",
            sa.String(16),
            nullable=True,
            comment="FRONTEND / BACKEND; null until selected",
        ),
        sa.Column(
            "waiting_since",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Set while in the matching queue; null otherwise",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_participants_role_waiting_since",
        "participants",
        ["role", "waiting_since"],
    )

    # ── 2. matches ──────────────────────────────────────────────────
    op.create_table(
        "matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "status",
            sa.String(16),
            nullable=False,
            index=True,
            comment="ACTIVE / COMPLETED",
        ),
        sa.Column(
            "communication_link",
            sa.String,
            nullable=True,
            comment="Channel reference, fixed at creation",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "expires_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Reserved; not enforced",
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "artifact_ref",
            sa.String,
            nullable=True,
            comment="Repository URL submitted on completion",
        ),
    )

    # ── 3. match_participations ─────────────────────────────────────
    op.create_table(
        "match_participations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "match_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("matches.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "participant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("participants.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "participant_role",
            sa.String(16),
            nullable=False,
            comment="Participant's role at match time",
        ),
        sa.UniqueConstraint(
            "match_id", "participant_id", name="uq_participation_pair"
        ),
    )

    # ── 4. project_prompt_contexts (reference table) ────────────────
    op.create_table(
        "project_prompt_contexts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("industry", sa.String, nullable=False),
        sa.Column("sub_domain", sa.String, nullable=True),
        sa.Column("crisis_category", sa.String, nullable=True),
        sa.Column("crisis_scenario", sa.Text, nullable=True),
        sa.Column("primary_constraint", sa.String, nullable=True),
        sa.Column("secondary_constraint", sa.String, nullable=True),
        sa.Column("compliance_requirement", sa.String, nullable=True),
        sa.Column("success_metric", sa.String, nullable=True),
        sa.Column("timeline", sa.String, nullable=True),
        sa.Column("legacy_system_issue", sa.Text, nullable=True),
        sa.Column("integration_challenge", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    # ── 5. project_templates (reference table) ──────────────────────
    op.create_table(
        "project_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column(
            "prompt_context_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("project_prompt_contexts.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )

    # ── 6. match_projects ───────────────────────────────────────────
    op.create_table(
        "match_projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "match_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("matches.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        sa.Column(
            "project_template_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("project_templates.id"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
    )

    # ── 7. reviews ──────────────────────────────────────────────────
    op.create_table(
        "reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "match_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("matches.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        sa.Column("artifact_ref", sa.String, nullable=False),
        sa.Column("score", sa.Integer, nullable=False, comment="0-100"),
        sa.Column("feedback", sa.Text, nullable=False),
        sa.Column(
            "strengths",
            postgresql.JSONB,
            nullable=False,
            comment="Array of strings",
        ),
        sa.Column(
            "missing_elements",
            postgresql.JSONB,
            nullable=False,
            comment="Array of strings",
        ),
        sa.Column(
            "artifact_content",
            sa.Text,
            nullable=True,
            comment="Fetched README, truncated",
        ),
        sa.Column(
            "outcome",
            sa.String,
            nullable=False,
            comment="scored / neutral / degraded",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_table("reviews")
    op.drop_table("match_projects")
    op.drop_table("project_templates")
    op.drop_table("project_prompt_contexts")
    op.drop_table("match_participations")
    op.drop_table("matches")

    op.drop_index("ix_participants_role_waiting_since", table_name="participants")
    op.drop_table("participants")
