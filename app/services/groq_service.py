"""
Sprintpair — Groq chat-completions client.

Thin async client for Groq's OpenAI-compatible ``/chat/completions``
endpoint, used by the review pipeline to score submitted READMEs.

Retry policy (independent of the call site so it can be tested on its own):
  - only HTTP 429 responses are retried (``is_rate_limited``)
  - at most ``MAX_ATTEMPTS`` calls in total
  - wait ``BASE_DELAY_SECONDS × BACKOFF_MULTIPLIER^(attempt-1)`` between calls
Every other failure propagates immediately.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Awaitable, Callable

import httpx
import structlog
from json_repair import repair_json
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt

from app.config import get_settings
from app.exceptions import ReviewGenerationFailed

logger = structlog.get_logger("sprintpair.groq_service")

MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 1.0
BACKOFF_MULTIPLIER = 2


def is_rate_limited(exc: BaseException) -> bool:
    """Return True only for an HTTP 429 from the completions endpoint."""
    return (
        isinstance(exc, httpx.HTTPStatusError)
        and exc.response.status_code == 429
    )


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after the given (1-based) failed attempt."""
    return BASE_DELAY_SECONDS * BACKOFF_MULTIPLIER ** (attempt - 1)


def _wait_for(retry_state) -> float:
    return backoff_delay(retry_state.attempt_number)


class GroqService:
    """Calls Groq chat completions in JSON mode and returns the parsed object."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        self.api_key = settings.GROQ_API_KEY
        self.base_url = settings.GROQ_BASE_URL.rstrip("/")
        self.model = settings.GROQ_MODEL
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self._client = client
        self._sleep = sleep

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    async def complete_json(self, prompt: str) -> dict:
        """Send ``prompt`` as the system message and parse the JSON reply.

        Raises
        ------
        ReviewGenerationFailed
            Missing API key, empty choices, or unparseable content.
        httpx.HTTPError
            Transport failures and non-2xx responses (after retries for 429).
        """
        if not self.api_key:
            raise ReviewGenerationFailed("GROQ_API_KEY is not configured")

        payload = {
            "model": self.model,
            "messages": [{"role": "system", "content": prompt}],
            "response_format": {"type": "json_object"},
        }

        if self._client is not None:
            body = await self._post_with_retry(self._client, payload)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                body = await self._post_with_retry(client, payload)

        choices = body.get("choices") or []
        if not choices:
            raise ReviewGenerationFailed("Groq returned no choices")

        content = (choices[0].get("message") or {}).get("content") or ""
        try:
            return _parse_json_response(content)
        except ValueError as exc:
            raise ReviewGenerationFailed(str(exc)) from exc

    async def _post_with_retry(
        self,
        client: httpx.AsyncClient,
        payload: dict,
    ) -> dict:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(is_rate_limited),
                stop=stop_after_attempt(MAX_ATTEMPTS),
                wait=_wait_for,
                sleep=self._sleep,
                reraise=True,
            ):
                with attempt:
                    logger.debug(
                        "groq_call_attempt",
                        model=self.model,
                        attempt_number=attempt.retry_state.attempt_number,
                    )
                    response = await client.post(
                        self.completions_url, json=payload, headers=headers
                    )
                    response.raise_for_status()
                    return response.json()
        except httpx.HTTPStatusError as exc:
            if is_rate_limited(exc):
                logger.error(
                    "groq_retry_exhausted",
                    model=self.model,
                    attempts=MAX_ATTEMPTS,
                )
            raise


def _parse_json_response(text: str) -> dict:
    """Parse a JSON object from model output.

    Pipeline:
    1. Direct ``json.loads`` on the raw text
    2. Markdown code-fence extraction
    3. First ``{`` to last ``}`` extraction
    4. ``jsonrepair`` as a last resort
    """
    if not text or not text.strip():
        raise ValueError("Empty response text, cannot parse JSON")

    cleaned = text.strip()

    try:
        result = json.loads(cleaned)
        if isinstance(result, dict):
            return result
    except (json.JSONDecodeError, TypeError):
        pass

    md_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?\s*```", cleaned, re.DOTALL)
    if md_match:
        try:
            result = json.loads(md_match.group(1).strip())
            if isinstance(result, dict):
                return result
        except (json.JSONDecodeError, TypeError):
            pass

    first_brace = cleaned.find("{")
    last_brace = cleaned.rfind("}")
    if first_brace >= 0 and last_brace > first_brace:
        try:
            result = json.loads(cleaned[first_brace : last_brace + 1])
            if isinstance(result, dict):
                return result
        except (json.JSONDecodeError, TypeError):
            pass

    try:
        result = json.loads(repair_json(cleaned))
        if isinstance(result, dict):
            logger.info("json_parsed_via_jsonrepair", original_preview=cleaned[:80])
            return result
    except (json.JSONDecodeError, TypeError, ValueError) as exc:
        logger.debug("jsonrepair_failed", error=str(exc))

    raise ValueError(f"Failed to parse JSON from Groq response. Preview: {cleaned[:200]}")
