from dataclasses import dataclass
from enum import StrEnum
from http import HTTPStatus
from typing import Protocol

from pydantic import BaseModel, ConfigDict

PHRASES_PER_BATCH = 3


class GeneratedPhrase(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    points: int


class GenerationOutcome(StrEnum):
    OK = "ok"
    MISSING_API_KEY = "missing_api_key"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_ERROR = "upstream_error"

    @property
    def http_status(self) -> HTTPStatus:
        return _OUTCOME_STATUS[self]


_OUTCOME_STATUS = {
    GenerationOutcome.OK: HTTPStatus.OK,
    GenerationOutcome.MISSING_API_KEY: HTTPStatus.INTERNAL_SERVER_ERROR,
    GenerationOutcome.RATE_LIMITED: HTTPStatus.TOO_MANY_REQUESTS,
    GenerationOutcome.UPSTREAM_ERROR: HTTPStatus.SERVICE_UNAVAILABLE,
}


@dataclass(frozen=True)
class GenerationResult:
    """Phrases from one generation attempt, real or fallback."""

    phrases: tuple[GeneratedPhrase, ...]
    outcome: GenerationOutcome = GenerationOutcome.OK
    retry_after_seconds: int | None = None  # only for RATE_LIMITED

    @property
    def is_fallback(self) -> bool:
        return self.outcome != GenerationOutcome.OK


class PhraseGenerator(Protocol):
    """Produces one batch of phrases per call without raising for upstream failures."""

    async def generate(self) -> GenerationResult: ...
