"""Phrase generation through the Gemini generateContent API.

Every failure is answered with fallback phrases and an outcome the HTTP
layer maps to a status code. `GeminiPhraseGenerator.generate` never raises;
`parse_phrases` raises `PhraseGenerationError` for unusable model output.
"""

from __future__ import annotations

import re
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import BaseModel, TypeAdapter

from sliptalk.phrases.fallback import MISSING_API_KEY_MESSAGE, RATE_LIMITED_MESSAGE, fallback_phrases
from sliptalk.phrases.prompt import RecentPhraseTracker, build_prompt
from sliptalk.phrases.settings import GeminiSettings
from sliptalk.phrases.types import PHRASES_PER_BATCH, GeneratedPhrase, GenerationOutcome, GenerationResult

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = structlog.get_logger()

# Model output may wrap the array in markdown fences or prose.
_JSON_ARRAY_PATTERN = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)


class PhraseGenerationError(Exception):
    """The API answered with something that cannot be turned into a phrase batch."""


class _RawPhrase(BaseModel):
    text: str


_RAW_PHRASES = TypeAdapter(list[_RawPhrase])


def _extract_text(data: Any) -> str:  # noqa: ANN401
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise PhraseGenerationError("Unexpected response shape") from e
    if not isinstance(text, str):
        raise PhraseGenerationError("Response text is not a string")
    return text


def parse_phrases(text: str) -> tuple[GeneratedPhrase, ...]:
    """Pull the phrase array out of model output and normalize points to 1, 2, 3 by position."""
    match = _JSON_ARRAY_PATTERN.search(text)
    if match is None:
        raise PhraseGenerationError("Failed to extract JSON from response")

    try:
        raw: Sequence[_RawPhrase] = _RAW_PHRASES.validate_json(match.group(0))
    except ValueError as e:
        raise PhraseGenerationError(f"Invalid phrase JSON: {e}") from e

    if len(raw) != PHRASES_PER_BATCH:
        raise PhraseGenerationError(f"Invalid format: expected an array of {PHRASES_PER_BATCH} phrases, got {len(raw)}")

    phrases = tuple(GeneratedPhrase(text=item.text.strip(), points=i + 1) for i, item in enumerate(raw))
    if any(not p.text for p in phrases):
        raise PhraseGenerationError("Empty phrase text")
    return phrases


class GeminiPhraseGenerator:
    """Generates phrase batches, steering away from recently generated ones."""

    def __init__(
        self,
        settings: GeminiSettings | None = None,
        tracker: RecentPhraseTracker | None = None,
    ) -> None:
        self._settings = settings if settings is not None else GeminiSettings()
        self._tracker = tracker if tracker is not None else RecentPhraseTracker()

    def _request_body(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._settings.temperature,
                "topP": self._settings.top_p,
                "topK": self._settings.top_k,
            },
        }

    def _retry_after(self, response: httpx.Response) -> int:
        value = response.headers.get("Retry-After")
        try:
            seconds = int(value)
        except (TypeError, ValueError):
            return self._settings.default_retry_after_seconds
        return max(seconds, 0)

    async def _post(self, prompt: str) -> httpx.Response:
        url = f"{self._settings.base_url}/models/{self._settings.model}:generateContent"
        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
            return await client.post(
                url,
                params={"key": self._settings.api_key},
                json=self._request_body(prompt),
            )

    async def generate(self) -> GenerationResult:
        if not self._settings.api_key:
            logger.error("GEMINI_API_KEY is not set, serving fallback phrases")
            return GenerationResult(fallback_phrases(MISSING_API_KEY_MESSAGE), GenerationOutcome.MISSING_API_KEY)

        try:
            response = await self._post(build_prompt(self._tracker.snapshot()))

            if response.status_code == HTTPStatus.TOO_MANY_REQUESTS:
                retry_after = self._retry_after(response)
                logger.warning("gemini rate limit exceeded", retry_after_seconds=retry_after)
                return GenerationResult(
                    fallback_phrases(RATE_LIMITED_MESSAGE),
                    GenerationOutcome.RATE_LIMITED,
                    retry_after_seconds=retry_after,
                )

            if response.status_code != HTTPStatus.OK:
                raise PhraseGenerationError(f"Gemini API returned {response.status_code}: {response.text}")

            try:
                data = response.json()
            except ValueError as e:
                raise PhraseGenerationError("Response body is not JSON") from e

            phrases = parse_phrases(_extract_text(data))
        except (PhraseGenerationError, httpx.HTTPError) as e:
            logger.error("phrase generation failed, serving fallback phrases", error=str(e))
            return GenerationResult(fallback_phrases(), GenerationOutcome.UPSTREAM_ERROR)

        self._tracker.record(p.text for p in phrases)
        logger.info("generated phrases", tracked=len(self._tracker))
        return GenerationResult(phrases)
