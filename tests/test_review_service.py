"""Tests for the sprint review pipeline — outcomes, clamping and persistence."""
import json
from unittest.mock import AsyncMock

import httpx
import pytest
import respx
from sqlalchemy import select

from app.models.match import Match
from app.models.participant import Role
from app.models.project import ProjectPromptContext
from app.models.review import Review
from app.services.groq_service import GroqService, _parse_json_response
from app.services.matching_service import MatchingService
from app.services.review_service import (
    AI_FAILED_REASON,
    EMPTY_README_REASON,
    FETCH_FAILED_REASON,
    NEUTRAL_FEEDBACK,
    STORED_CONTENT_LIMIT,
    TRUNCATION_MARKER,
    ReviewService,
    build_review_prompt,
    clamp_score,
    parse_review_content,
    truncate_content,
)

REPO_URL = "https://github.com/pair/sprint-project"
RAW = "https://raw.githubusercontent.com/pair/sprint-project"
GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"


def _groq_reply(payload: dict) -> httpx.Response:
    return httpx.Response(
        200,
        json={"choices": [{"message": {"role": "assistant", "content": json.dumps(payload)}}]},
    )


async def _no_sleep(_seconds):
    return None


@pytest.fixture
def review_service():
    return ReviewService(groq_service=GroqService(sleep=_no_sleep))


async def _make_match(session_factory, make_participant, make_template, with_context=True):
    await make_template(with_context=with_context)
    front = await make_participant("Ada", Role.FRONTEND)
    back = await make_participant("Linus", Role.BACKEND)
    service = MatchingService()
    async with session_factory() as session:
        await service.find_or_queue_match(session, front.id)
    async with session_factory() as session:
        matched = await service.find_or_queue_match(session, back.id)
    return matched.match_id


async def _review(review_service, session_factory, match_id):
    async with session_factory() as session:
        match = await session.get(Match, match_id)
        review = await review_service.generate_review(session, match, REPO_URL)
        await session.commit()
        return review


class TestPureHelpers:

    def test_clamps_high_score(self):
        assert parse_review_content({"score": 150}).score == 100

    def test_clamps_negative_score(self):
        assert parse_review_content({"score": -20}).score == 0

    def test_out_of_range_float_saturates(self):
        data = _parse_json_response('{"score": 1e400, "feedback": "great"}')
        scored = parse_review_content(data)
        assert scored.score == 100
        assert scored.feedback == "great"

    def test_non_finite_scores(self):
        assert clamp_score(float("inf")) == 100
        assert clamp_score(float("-inf")) == 0
        assert clamp_score(float("nan")) == 50

    def test_defaults_when_fields_missing(self):
        scored = parse_review_content({})
        assert scored.score == 50
        assert scored.feedback == "No feedback provided"
        assert scored.strengths == []
        assert scored.missing_elements == []

    def test_non_list_strengths_become_empty(self):
        scored = parse_review_content(
            {"score": 70, "feedback": "ok", "strengths": "fast", "missing_elements": None}
        )
        assert scored.strengths == []
        assert scored.missing_elements == []

    def test_non_numeric_score_defaults(self):
        assert clamp_score("excellent") == 50
        assert clamp_score("88") == 88

    def test_truncate_adds_marker(self):
        text = "x" * 20
        assert truncate_content(text, 10) == "x" * 10 + TRUNCATION_MARKER
        assert truncate_content(text, 20) == text
        assert truncate_content(None, 10) is None

    def test_prompt_includes_context_and_optional_notes(self):
        context = ProjectPromptContext(
            industry="Healthcare",
            sub_domain=None,
            crisis_category="Scalability",
            crisis_scenario="Waiting room drops patients.",
            integration_challenge="Legacy HL7 feed",
        )
        prompt = build_review_prompt(context, "# README\n" + "y" * 5000)

        assert "Industry: Healthcare (General)" in prompt
        assert "Crisis Scenario: Waiting room drops patients." in prompt
        assert "Integration Challenge: Legacy HL7 feed" in prompt
        assert "Legacy Issue:" not in prompt
        assert "- Primary: None specified" in prompt
        assert TRUNCATION_MARKER in prompt
        assert "y" * 4001 not in prompt


class TestGenerateReview:
    """Each pipeline outcome yields exactly one persisted review."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_scored_review_is_clamped(self, review_service, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(200, text="# Fix\nReconciler."))
        groq = respx.post(GROQ_URL).mock(
            return_value=_groq_reply(
                {
                    "score": 150,
                    "feedback": "Strong reconciliation story.",
                    "strengths": ["Clear setup"],
                    "missing_elements": ["Load tests"],
                }
            )
        )

        review = await _review(review_service, session_factory, match_id)

        assert review.outcome == "scored"
        assert review.score == 100
        assert review.feedback == "Strong reconciliation story."
        assert review.strengths == ["Clear setup"]
        assert review.missing_elements == ["Load tests"]
        assert review.artifact_content == "# Fix\nReconciler."

        sent = json.loads(groq.calls.last.request.content)
        assert sent["response_format"] == {"type": "json_object"}
        assert sent["messages"][0]["role"] == "system"
        assert "Payment Processing" in sent["messages"][0]["content"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_negative_score_is_clamped(self, review_service, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(200, text="# Readme"))
        respx.post(GROQ_URL).mock(return_value=_groq_reply({"score": -20, "feedback": "Thin."}))

        review = await _review(review_service, session_factory, match_id)
        assert review.score == 0
        assert review.outcome == "scored"

    @pytest.mark.asyncio
    @respx.mock
    async def test_neutral_without_context(self, review_service, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template, with_context=False)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(200, text="# Readme"))
        groq = respx.post(GROQ_URL)

        review = await _review(review_service, session_factory, match_id)

        assert review.outcome == "neutral"
        assert review.score == 50
        assert review.feedback == NEUTRAL_FEEDBACK
        assert review.strengths == [] and review.missing_elements == []
        assert review.artifact_content == "# Readme"
        assert not groq.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_unreachable_readme_degrades(self, review_service, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(404))
        respx.get(f"{RAW}/master/README.md").mock(return_value=httpx.Response(404))

        review = await _review(review_service, session_factory, match_id)

        assert review.outcome == "degraded"
        assert review.score == 0
        assert review.feedback == FETCH_FAILED_REASON
        assert review.artifact_content is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_blank_readme_degrades(self, review_service, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(200, text="   \n"))

        review = await _review(review_service, session_factory, match_id)

        assert review.outcome == "degraded"
        assert review.feedback == EMPTY_README_REASON
        assert review.score == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_ai_failure_degrades_without_retry(self, review_service, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(200, text="# Readme"))
        groq = respx.post(GROQ_URL).mock(return_value=httpx.Response(500, text="boom"))

        review = await _review(review_service, session_factory, match_id)

        assert review.outcome == "degraded"
        assert review.feedback == AI_FAILED_REASON
        assert review.score == 0
        assert review.artifact_content == "# Readme"
        assert groq.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_unparseable_ai_reply_degrades(self, review_service, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(200, text="# Readme"))
        respx.post(GROQ_URL).mock(return_value=httpx.Response(200, json={"choices": []}))

        review = await _review(review_service, session_factory, match_id)
        assert review.outcome == "degraded"
        assert review.feedback == AI_FAILED_REASON

    @pytest.mark.asyncio
    @respx.mock
    async def test_stored_content_is_truncated(self, review_service, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template, with_context=False)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(200, text="z" * 12000))

        review = await _review(review_service, session_factory, match_id)

        assert review.artifact_content == "z" * STORED_CONTENT_LIMIT + TRUNCATION_MARKER

    @pytest.mark.asyncio
    @respx.mock
    async def test_exactly_one_review_row(self, review_service, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(404))
        respx.get(f"{RAW}/master/README.md").mock(return_value=httpx.Response(200, text="# From master"))
        respx.post(GROQ_URL).mock(return_value=_groq_reply({"score": 72, "feedback": "Solid."}))

        await _review(review_service, session_factory, match_id)

        async with session_factory() as session:
            rows = (await session.execute(select(Review).where(Review.match_id == match_id))).scalars().all()
        assert len(rows) == 1
        assert rows[0].score == 72
        assert rows[0].artifact_content == "# From master"

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_transaction_held_during_ai_call(self, session_factory, make_participant, make_template):
        match_id = await _make_match(session_factory, make_participant, make_template)
        respx.get(f"{RAW}/main/README.md").mock(return_value=httpx.Response(200, text="# Readme"))

        async with session_factory() as session:
            in_transaction = []

            async def complete_json(prompt):
                in_transaction.append(session.in_transaction())
                return {"score": 64, "feedback": "Fine."}

            groq = AsyncMock()
            groq.complete_json = AsyncMock(side_effect=complete_json)
            match = await session.get(Match, match_id)
            review = await ReviewService(groq_service=groq).generate_review(session, match, REPO_URL)
            await session.commit()

        assert in_transaction == [False]
        assert review.outcome == "scored"
        assert review.score == 64
