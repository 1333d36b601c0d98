"""Fixed phrases served when generation is unavailable."""

from sliptalk.phrases.types import GeneratedPhrase

FALLBACK_TEXTS = (
    "I always forget about my elbows",
    "You ever think pigeons are spies?",
    "They banned me from the aquarium for tickling the stingrays",
)

MISSING_API_KEY_MESSAGE = "Error: API key missing. Contact the admin."
RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please wait a moment before trying again."


def fallback_phrases(error_message: str | None = None) -> tuple[GeneratedPhrase, ...]:
    """Return the fallback batch. An error message, if given, replaces the first phrase."""
    texts = list(FALLBACK_TEXTS)
    if error_message:
        texts[0] = error_message
    return tuple(GeneratedPhrase(text=text, points=i + 1) for i, text in enumerate(texts))
