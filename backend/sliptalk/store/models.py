"""Persisted game aggregate: games own batches, batches own phrases.

All models are frozen. Mutations build a new aggregate with ``model_copy``,
so a value handed to a subscriber never changes afterwards. Field names are
serialized in camelCase to stay compatible with the browser app's stored data.
"""

from datetime import UTC, datetime
from typing import Annotated, Self

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

MIN_POINTS = 1
MAX_POINTS = 3


def _assume_utc(value: datetime) -> datetime:
    # Stored timestamps without an offset are read as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


class _StoreModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Phrase(_StoreModel):
    text: str
    points: int = Field(ge=MIN_POINTS, le=MAX_POINTS)
    used: bool = False


class PhraseBatch(_StoreModel):
    """Phrases produced by one generation event."""

    id: str = Field(min_length=1)
    timestamp: UtcDatetime
    phrases: tuple[Phrase, ...] = ()


class Game(_StoreModel):
    """A named play session. Batches are ordered newest first."""

    id: str = Field(min_length=1)
    name: str
    timestamp: UtcDatetime  # creation time
    batches: tuple[PhraseBatch, ...] = ()
    is_collapsed: bool = False


class Settings(_StoreModel):
    """Root aggregate: every game plus the current-game pointer."""

    games: tuple[Game, ...]
    current_game_id: str | None = None

    @model_validator(mode="after")
    def _validate_unique_game_ids(self) -> Self:
        ids = [game.id for game in self.games]
        if len(ids) != len(set(ids)):
            raise ValueError("Game ids must be unique")
        return self


def empty_settings() -> Settings:
    return Settings(games=())
