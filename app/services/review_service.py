"""
Sprintpair — Sprint Review Pipeline

Scores the README of a completed match's repository against the crisis
scenario its project was written around.

Pipeline:
  1. Fetch README (main, then master)          → Degraded on failure
  2. Reject blank content                       → Degraded
  3. Look up the project's prompt context       → Neutral when absent
  4. Ask Groq for {score, feedback, strengths, missing_elements}
                                                → Degraded on any failure
  5. Persist exactly one Review for the match

Each path first produces an outcome value (``Scored`` / ``Neutral`` /
``Degraded``); ``_persist`` is the only place a ``Review`` row is written.
``generate_review`` never raises for fetch, scoring or parse failures.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Union

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ArtifactFetchFailed, ReviewGenerationFailed
from app.models.match import Match
from app.models.project import MatchProject, ProjectPromptContext, ProjectTemplate
from app.models.review import Review
from app.services.artifact_service import ArtifactService
from app.services.groq_service import GroqService

logger = structlog.get_logger("sprintpair.review_service")

# ──────────────────────────────────────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────────────────────────────────────

STORED_CONTENT_LIMIT = 9000
PROMPT_CONTENT_LIMIT = 4000
TRUNCATION_MARKER = "\n... [truncated]"

NEUTRAL_SCORE = 50
DEFAULT_SCORE = 50
DEFAULT_FEEDBACK = "No feedback provided"
NEUTRAL_FEEDBACK = (
    "Review completed without crisis context comparison. "
    "The README was submitted successfully."
)

FETCH_FAILED_REASON = "README could not be retrieved from the repository"
EMPTY_README_REASON = "No README content found"
AI_FAILED_REASON = "AI analysis failed"


# ──────────────────────────────────────────────────────────────────────────────
# Outcomes
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Scored:
    score: int
    feedback: str
    strengths: list[str] = field(default_factory=list)
    missing_elements: list[str] = field(default_factory=list)
    content: str | None = None


@dataclass(frozen=True)
class Neutral:
    content: str


@dataclass(frozen=True)
class Degraded:
    reason: str
    content: str | None = None


ReviewOutcome = Union[Scored, Neutral, Degraded]


# ──────────────────────────────────────────────────────────────────────────────
# Pure helpers
# ──────────────────────────────────────────────────────────────────────────────

def truncate_content(content: str | None, max_length: int) -> str | None:
    if content is None or len(content) <= max_length:
        return content
    return content[:max_length] + TRUNCATION_MARKER


def clamp_score(value) -> int:
    try:
        score = int(value)
    except OverflowError:
        # +/-inf from an out-of-range JSON number saturates; NaN is a ValueError.
        return 100 if value > 0 else 0
    except (TypeError, ValueError):
        score = DEFAULT_SCORE
    return max(0, min(100, score))


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def parse_review_content(data: dict, content: str | None = None) -> Scored:
    """Turn the model's JSON object into a ``Scored`` outcome.

    Missing score defaults to 50, missing feedback to a placeholder, and
    non-list strengths / missing_elements to empty lists.  The score is
    always clamped to [0, 100].
    """
    feedback = data.get("feedback")
    if not isinstance(feedback, str) or not feedback.strip():
        feedback = DEFAULT_FEEDBACK

    return Scored(
        score=clamp_score(data.get("score", DEFAULT_SCORE)),
        feedback=feedback,
        strengths=_string_list(data.get("strengths")),
        missing_elements=_string_list(data.get("missing_elements")),
        content=content,
    )


def build_review_prompt(context: ProjectPromptContext, readme: str) -> str:
    """Build the CTO-audit prompt comparing a README to its crisis scenario."""
    notes = []
    if context.legacy_system_issue:
        notes.append(f"Legacy Issue: {context.legacy_system_issue}")
    if context.integration_challenge:
        notes.append(f"Integration Challenge: {context.integration_challenge}")
    notes_block = "\n".join(notes)

    readme_block = truncate_content(readme, PROMPT_CONTENT_LIMIT)

    return f"""You are a Senior CTO auditing a completed crisis response project.

=== ORIGINAL CRISIS CONTEXT ===
Industry: {context.industry} ({context.sub_domain or "General"})
Crisis Category: {context.crisis_category or "Unknown"}
Crisis Scenario: {context.crisis_scenario or "No scenario provided"}

Constraints:
- Primary: {context.primary_constraint or "None specified"}
- Secondary: {context.secondary_constraint or "None specified"}

Compliance Requirement: {context.compliance_requirement or "None specified"}
Success Metric: {context.success_metric or "Not defined"}
Timeline: {context.timeline or "Not specified"}

{notes_block}

=== SUBMITTED README ===
{readme_block}

=== YOUR TASK ===
Evaluate how well the submitted README addresses the crisis scenario.

Consider:
1. Does the solution address the core crisis problem?
2. Are the specified constraints respected?
3. Is there evidence of compliance considerations?
4. Does the solution meet the success metrics?
5. Is the documentation clear and professional?

Return ONLY valid JSON (no markdown, no code blocks):
{{
  "score": <0-100 integer>,
  "feedback": "<2-3 sentence constructive feedback>",
  "strengths": ["<strength 1>", "<strength 2>", ...],
  "missing_elements": ["<missing 1>", "<missing 2>", ...]
}}
"""


# ──────────────────────────────────────────────────────────────────────────────
# Service
# ──────────────────────────────────────────────────────────────────────────────

class ReviewService:
    """Generates and stores the single sprint review for a match."""

    def __init__(
        self,
        artifact_service: ArtifactService | None = None,
        groq_service: GroqService | None = None,
    ) -> None:
        self.artifact_service = artifact_service or ArtifactService()
        self.groq_service = groq_service or GroqService()

    async def generate_review(
        self,
        db: AsyncSession,
        match: Match,
        artifact_ref: str,
    ) -> Review:
        log = logger.bind(match_id=str(match.id), artifact_ref=artifact_ref)
        log.info("review_generation_started")

        outcome = await self._evaluate(db, match.id, artifact_ref, log)
        review = await self._persist(db, match.id, artifact_ref, outcome)

        log.info(
            "review_generated",
            outcome=review.outcome,
            score=review.score,
        )
        return review

    async def _evaluate(
        self,
        db: AsyncSession,
        match_id: uuid.UUID,
        artifact_ref: str,
        log,
    ) -> ReviewOutcome:
        try:
            readme = await self.artifact_service.fetch_readme(artifact_ref)
        except ArtifactFetchFailed as exc:
            log.warning("review_artifact_unavailable", reason=exc.reason)
            return Degraded(FETCH_FAILED_REASON)

        if not readme or not readme.strip():
            log.warning("review_artifact_empty")
            return Degraded(EMPTY_README_REASON)

        context = await self._load_prompt_context(db, match_id)
        if context is None:
            log.info("review_without_context")
            return Neutral(readme)

        # End the read transaction so no connection idles through the AI call.
        await db.commit()

        try:
            data = await self.groq_service.complete_json(
                build_review_prompt(context, readme)
            )
            return parse_review_content(data, content=readme)
        except Exception as exc:
            # Any scoring failure (HTTP, exhausted retries, bad JSON) degrades.
            log.error(
                "review_scoring_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return Degraded(AI_FAILED_REASON, content=readme)

    async def _load_prompt_context(
        self,
        db: AsyncSession,
        match_id: uuid.UUID,
    ) -> ProjectPromptContext | None:
        stmt = (
            select(ProjectPromptContext)
            .join(
                ProjectTemplate,
                ProjectTemplate.prompt_context_id == ProjectPromptContext.id,
            )
            .join(MatchProject, MatchProject.project_template_id == ProjectTemplate.id)
            .where(MatchProject.match_id == match_id)
            .limit(1)
        )
        return (await db.execute(stmt)).scalars().first()

    async def _persist(
        self,
        db: AsyncSession,
        match_id: uuid.UUID,
        artifact_ref: str,
        outcome: ReviewOutcome,
    ) -> Review:
        if isinstance(outcome, Scored):
            fields = dict(
                score=outcome.score,
                feedback=outcome.feedback,
                strengths=list(outcome.strengths),
                missing_elements=list(outcome.missing_elements),
                artifact_content=outcome.content,
                outcome="scored",
            )
        elif isinstance(outcome, Neutral):
            fields = dict(
                score=NEUTRAL_SCORE,
                feedback=NEUTRAL_FEEDBACK,
                strengths=[],
                missing_elements=[],
                artifact_content=outcome.content,
                outcome="neutral",
            )
        elif isinstance(outcome, Degraded):
            fields = dict(
                score=0,
                feedback=outcome.reason,
                strengths=[],
                missing_elements=[],
                artifact_content=outcome.content,
                outcome="degraded",
            )
        else:
            raise ReviewGenerationFailed(f"Unknown review outcome {outcome!r}")

        fields["artifact_content"] = truncate_content(
            fields["artifact_content"], STORED_CONTENT_LIMIT
        )
        review = Review(match_id=match_id, artifact_ref=artifact_ref, **fields)
        db.add(review)
        await db.flush()
        return review
