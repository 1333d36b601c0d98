"""Builders shared by sliptalk tests."""

from datetime import UTC, datetime, timedelta
from itertools import count

from shared.storage import InMemoryKeyValueStorage
from sliptalk.store.game_store import GameStore
from sliptalk.store.models import Phrase, PhraseBatch

T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)


class StepClock:
    """Returns T0, T0+1m, T0+2m, ... on successive calls."""

    def __init__(self, start: datetime = T0) -> None:
        self._ticks = count()
        self._start = start

    def __call__(self) -> datetime:
        return self._start + timedelta(minutes=next(self._ticks))


class SequentialIds:
    def __init__(self, prefix: str = "game") -> None:
        self._ticks = count(1)
        self._prefix = prefix

    def __call__(self) -> str:
        return f"{self._prefix}-{next(self._ticks)}"


def make_batch(batch_id: str = "b1", timestamp: datetime = T0, *, used: tuple[bool, ...] = ()) -> PhraseBatch:
    texts = ("Quiet bees", "My llama has opinions", "I was knighted by a ferret in Belgium")
    flags = used or (False,) * len(texts)
    return PhraseBatch(
        id=batch_id,
        timestamp=timestamp,
        phrases=tuple(Phrase(text=t, points=i + 1, used=u) for i, (t, u) in enumerate(zip(texts, flags, strict=True))),
    )


def make_store(storage: InMemoryKeyValueStorage | None = None) -> GameStore:
    return GameStore(storage or InMemoryKeyValueStorage(), clock=StepClock(), id_factory=SequentialIds())
