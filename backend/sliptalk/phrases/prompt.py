"""Prompt construction for phrase generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

# At most this many earlier phrases are listed in the prompt's avoid-list.
AVOID_LIST_SIZE = 15

# Tracked phrases are dropped (except the latest batch) past this count.
MAX_TRACKED_PHRASES = 100


@dataclass(frozen=True)
class Difficulty:
    level: int
    description: str
    word_count: str
    examples: tuple[str, ...]


DIFFICULTIES: tuple[Difficulty, ...] = (
    Difficulty(
        level=1,
        description="a slightly unusual but very natural phrase that could easily be slipped into casual conversation",
        word_count="5-10 words",
        examples=(
            "I dreamt about singing in the rain yesterday",
            "My coffee tastes like burnt sunshine today",
            "This chair remembers me from last time",
            "Dino nuggets are good, but have you tried them frozen?",
        ),
    ),
    Difficulty(
        level=2,
        description="a weird and unusual phrase that would be challenging but possible to use in normal conversation",
        word_count="7-14 words",
        examples=(
            "Sometimes I wake up speaking fluent dolphin",
            "My shadow and I had a disagreement yesterday",
            "The butter in my fridge tastes milk-flavored antifreeze",
            "I lost my train of thought... What was it?  Oh right! Trains!",
        ),
    ),
    Difficulty(
        level=3,
        description=(
            "a borderline bizarre or edgy phrase that would be very difficult to slip into conversation "
            "(but still safe for work)"
        ),
        word_count="10-18 words",
        examples=(
            "I was banned from the post office for licking too many stamps",
            "My therapist says my relationship with cheese is problematic",
            "I can taste the color purple, but only on Tuesdays",
            "When in doubt, you can always rely on my Uncle Ron to ruin your birthday party",
        ),
    ),
)

OVERUSED_TOPICS = (
    "Elevators, escalators or stairs",
    "Shoes, socks, or footwear",
    "Fortune cookies or any fortune-telling items",
    "Office supplies (staplers, paper clips, etc.)",
    "Dental topics (dentists, flossing, teeth)",
    "Accents or speech patterns",
    "Pigeons, seagulls, or common urban birds",
    "Common food items (cookies, coffee, salads)",
    "Sleep habits or dreams",
    "Common body parts (elbows, knees, fingers)",
    "Houseplants",
    'My "aura"',
)

SUGGESTED_DOMAINS = (
    "Obscure historical events or historical figures",
    "Unusual natural phenomena",
    "Niche hobbies or activities",
    "Abstract concepts and philosophical ideas",
    "Uncommon animals or plants",
    "Specialized professions",
    "Unusual sensory experiences",
    "Mythological references",
    "Scientific curiosities",
    "Cultural practices from around the world",
    "Crazy new specific health trends",
)

GUIDELINES = (
    "STRICTLY follow the word count requirements for each level",
    "Ensure MAXIMUM VARIETY and DIVERSITY in themes, subjects, and vocabulary",
    "No fairytale-like or unrealistic scenarios",
    "No repeated structures across the three phrases",
    "Avoid using the same nouns, verbs or sentence patterns between phrases",
    "Each phrase should explore completely different domains or fields",
    "Be specific instead of using generic terms (e.g., viper instead of snake)",
    "Keep all content safe for work but creative",
    "Make each phrase memorable and distinct in style",
    "Ensure they're pronounceable and could conceivably be used in speech",
    "Respect religious and cultural sensitivities",
    "Prioritize originality over everything else",
    "Do NOT use phallic references, puns, or innuendoes",
    "Do NOT use innuendoes or sexual references",
    "Do NOT use profanity or explicit language",
    "Do NOT use inappropriate body part references",
)

_OUTPUT_FORMAT = """[
  {"text": "phrase 1 here", "points": 1},
  {"text": "phrase 2 here", "points": 2},
  {"text": "phrase 3 here", "points": 3}
]"""


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def build_prompt(previous_phrases: Iterable[str] = ()) -> str:
    """Build the generation prompt, listing up to AVOID_LIST_SIZE earlier phrases to avoid."""
    avoid = list(previous_phrases)[:AVOID_LIST_SIZE]
    levels = "\n".join(f"{d.level}. {d.description} ({d.word_count})" for d in DIFFICULTIES)
    examples = "\n\n".join(f"Level {d.level} examples:\n{_bullets(d.examples)}" for d in DIFFICULTIES)

    sections = [
        "Generate exactly 3 creative, unique phrases or questions that would be challenging "
        "to naturally slip into a conversation.\n"
        "Each phrase should be at a different difficulty level as described below.",
        f"Difficulty levels:\n{levels}",
        "IMPORTANT: Generate phrases that are completely DIFFERENT from these previously used phrases "
        f"(DO NOT use any of these):\n{', '.join(avoid)}",
        f"Examples of good phrases for each level (for inspiration only, don't copy these):\n\n{examples}",
        f"CRITICAL - AVOID OVERUSED TOPICS:\n{_bullets(OVERUSED_TOPICS)}",
        f"Explore diverse and unexpected domains like:\n{_bullets(SUGGESTED_DOMAINS)}",
        f"Guidelines for all phrases:\n{_bullets(GUIDELINES)}",
        "Format your response as a JSON array of objects with 'text' and 'points' properties "
        f"exactly like this:\n{_OUTPUT_FORMAT}",
    ]
    return "\n\n".join(sections)


class RecentPhraseTracker:
    """Remembers recently generated phrases so the prompt can steer away from them."""

    def __init__(self, max_size: int = MAX_TRACKED_PHRASES) -> None:
        self._max_size = max_size
        self._phrases: dict[str, None] = {}  # insertion-ordered set

    def __len__(self) -> int:
        return len(self._phrases)

    def snapshot(self) -> list[str]:
        return list(self._phrases)

    def record(self, texts: Iterable[str]) -> None:
        """Track a new batch. Past max_size only the latest batch is kept."""
        batch = list(texts)
        self._phrases.update(dict.fromkeys(batch))
        if len(self._phrases) > self._max_size:
            self._phrases = dict.fromkeys(batch)
