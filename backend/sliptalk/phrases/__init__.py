"""Phrase generation and its fallback behavior."""

from sliptalk.phrases.fallback import fallback_phrases
from sliptalk.phrases.gemini import GeminiPhraseGenerator, PhraseGenerationError, parse_phrases
from sliptalk.phrases.prompt import RecentPhraseTracker, build_prompt
from sliptalk.phrases.settings import GeminiSettings
from sliptalk.phrases.types import (
    PHRASES_PER_BATCH,
    GeneratedPhrase,
    GenerationOutcome,
    GenerationResult,
    PhraseGenerator,
)

__all__ = [
    "PHRASES_PER_BATCH",
    "GeminiPhraseGenerator",
    "GeminiSettings",
    "GeneratedPhrase",
    "GenerationOutcome",
    "GenerationResult",
    "PhraseGenerationError",
    "PhraseGenerator",
    "RecentPhraseTracker",
    "build_prompt",
    "fallback_phrases",
    "parse_phrases",
]
