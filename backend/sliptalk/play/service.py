"""Dealing phrase batches into the current game."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from sliptalk.phrases.fallback import fallback_phrases
from sliptalk.phrases.types import GenerationOutcome, GenerationResult
from sliptalk.store.models import Phrase, PhraseBatch
from sliptalk.store.queries import game_score

if TYPE_CHECKING:
    from collections.abc import Callable

    from sliptalk.phrases.types import PhraseGenerator
    from sliptalk.store.game_store import GameStore
    from sliptalk.store.models import Game

logger = structlog.get_logger()

FALLBACK_NOTICE = "Couldn't reach the phrase generator, so here are some backup phrases."


def rate_limit_notice(retry_after_seconds: int | None) -> str:
    if retry_after_seconds is None:
        return "Too many requests. Please wait a moment before dealing again."
    return f"Too many requests. Please wait {retry_after_seconds} seconds before dealing again."


@dataclass(frozen=True)
class DealResult:
    game_id: str
    batch: PhraseBatch
    notice: str | None = None  # informational message when fallback phrases were used


class PlayService:
    """Connects the phrase generator to the game store."""

    def __init__(
        self,
        store: GameStore,
        generator: PhraseGenerator,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
    ) -> None:
        self._store = store
        self._generator = generator
        self._clock = clock

    def ensure_current_game(self) -> Game:
        """Return the current game, creating one when none is selected."""
        game = self._store.current_game
        if game is not None:
            return game
        logger.info("no current game, creating one")
        return self._store.create_game()

    async def _generate(self) -> GenerationResult:
        try:
            return await self._generator.generate()
        except Exception:
            logger.exception("phrase generator raised, using fallback phrases")
            return GenerationResult(fallback_phrases(), GenerationOutcome.UPSTREAM_ERROR)

    async def deal_batch(self) -> DealResult:
        """Generate a batch (or fall back) and prepend it to the current game."""
        result = await self._generate()

        # The current game may have changed while the generator was awaited.
        game = self.ensure_current_game()
        batch = PhraseBatch(
            id=str(uuid4()),
            timestamp=self._clock(),
            phrases=tuple(Phrase(text=p.text, points=p.points) for p in result.phrases),
        )
        self._store.add_batch_to_game(game.id, batch)

        notice = None
        if result.outcome == GenerationOutcome.RATE_LIMITED:
            notice = rate_limit_notice(result.retry_after_seconds)
        elif result.is_fallback:
            notice = FALLBACK_NOTICE

        logger.info("dealt batch", game_id=game.id, batch_id=batch.id, outcome=result.outcome)
        return DealResult(game_id=game.id, batch=batch, notice=notice)

    def toggle_phrase(self, batch_id: str, phrase_index: int) -> None:
        game = self._store.current_game
        if game is None:
            logger.warning("no current game to toggle a phrase in", batch_id=batch_id)
            return
        self._store.toggle_phrase_used(game.id, batch_id, phrase_index)

    def current_score(self) -> int:
        game = self._store.current_game
        return game_score(game) if game is not None else 0
