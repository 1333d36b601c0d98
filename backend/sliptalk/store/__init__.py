"""Persisted games, phrase batches and the store that owns them."""

from sliptalk.store.game_store import DEFAULT_GAME_NAME, STORAGE_KEY, GameStore
from sliptalk.store.models import Game, Phrase, PhraseBatch, Settings, empty_settings
from sliptalk.store.queries import find_batch, find_game, game_score, last_activity, sort_games_by_recency

__all__ = [
    "DEFAULT_GAME_NAME",
    "STORAGE_KEY",
    "Game",
    "GameStore",
    "Phrase",
    "PhraseBatch",
    "Settings",
    "empty_settings",
    "find_batch",
    "find_game",
    "game_score",
    "last_activity",
    "sort_games_by_recency",
]
