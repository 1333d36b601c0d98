"""Read-only helpers derived from the game aggregate."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from sliptalk.store.models import Game, PhraseBatch, Settings


def find_game(settings: Settings, game_id: str) -> Game | None:
    return next((g for g in settings.games if g.id == game_id), None)


def find_batch(game: Game, batch_id: str) -> PhraseBatch | None:
    return next((b for b in game.batches if b.id == batch_id), None)


def last_activity(game: Game) -> datetime:
    """Timestamp of the newest batch, or the game's creation time when it has none."""
    if game.batches:
        return game.batches[0].timestamp
    return game.timestamp


def sort_games_by_recency(games: Iterable[Game]) -> list[Game]:
    """Most recently active first. Ties keep their original order."""
    return sorted(games, key=last_activity, reverse=True)


def game_score(game: Game) -> int:
    """Points accrued in a game: the sum over every phrase marked used."""
    return sum(phrase.points for batch in game.batches for phrase in batch.phrases if phrase.used)
