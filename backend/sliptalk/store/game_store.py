"""Game store: owns the persisted aggregate and notifies subscribers of changes.

Every applied operation follows the same sequence: compute the next
aggregate, assign it, persist it, publish it. All of it runs synchronously,
so subscribers observe changes one at a time and in call order, including
changes made by a subscriber while a notification is being delivered. Operations
that reference an unknown game or batch are logged and leave the store
untouched (no write, no notification).
"""

from __future__ import annotations

from collections import deque
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from sliptalk.store.models import Game, Settings, empty_settings
from sliptalk.store.queries import find_batch, find_game

if TYPE_CHECKING:
    from collections.abc import Callable

    from shared.storage import KeyValueStorage
    from sliptalk.store.models import PhraseBatch

    StoreListener = Callable[[Settings], None]

STORAGE_KEY = "slipTalk-settings"
DEFAULT_GAME_NAME = "New Game"

logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _new_id() -> str:
    return str(uuid4())


def _index_of(games: tuple[Game, ...], game_id: str) -> int | None:
    return next((i for i, game in enumerate(games) if game.id == game_id), None)


class GameStore:
    """Single owner of the game aggregate.

    Reads of the aggregate return frozen models, so callers can hold on to
    them without copying. The only way to change state is through the
    operations below.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._id_factory = id_factory
        self._listeners: dict[int, StoreListener] = {}
        self._next_token = 0
        self._pending: deque[tuple[int, StoreListener, Settings]] = deque()
        self._delivering = False
        self._state = self._load()

    @property
    def state(self) -> Settings:
        return self._state

    @property
    def current_game(self) -> Game | None:
        if self._state.current_game_id is None:
            return None
        return find_game(self._state, self._state.current_game_id)

    def get_game(self, game_id: str) -> Game | None:
        return find_game(self._state, game_id)

    # -- subscriptions ------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a listener and deliver the current aggregate to it right away.

        Returns an unsubscribe callable. Calling it more than once is harmless.
        """
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener
        self._deliver(listener, self._state)

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def _deliver(self, listener: StoreListener, state: Settings) -> None:
        try:
            listener(state)
        except Exception:
            logger.exception("store listener failed")

    def _publish(self) -> None:
        # Publishes made by a listener are queued behind the delivery in progress.
        state = self._state
        self._pending.extend((token, listener, state) for token, listener in self._listeners.items())
        if self._delivering:
            return

        self._delivering = True
        try:
            while self._pending:
                token, listener, state = self._pending.popleft()
                if token in self._listeners:
                    self._deliver(listener, state)
        finally:
            self._delivering = False
            self._pending.clear()

    # -- persistence --------------------------------------------------------

    def _load(self) -> Settings:
        """Read the aggregate from storage, substituting the empty default on any failure."""
        try:
            raw = self._storage.read(STORAGE_KEY)
        except (OSError, ValueError):
            logger.exception("failed to read stored settings, starting empty", key=STORAGE_KEY)
            return empty_settings()

        if raw is None:
            logger.info("no stored settings, starting empty", key=STORAGE_KEY)
            return empty_settings()

        try:
            settings = Settings.model_validate_json(raw)
        except ValueError as e:
            logger.warning("stored settings are invalid, starting empty", key=STORAGE_KEY, error=str(e))
            return empty_settings()

        current_id = settings.current_game_id
        if current_id is not None and find_game(settings, current_id) is None:
            repaired = settings.games[0].id if settings.games else None
            logger.warning("stored current game does not exist", current_game_id=current_id, repaired_to=repaired)
            settings = settings.model_copy(update={"current_game_id": repaired})

        logger.info("loaded stored settings", games=len(settings.games), current_game_id=settings.current_game_id)
        return settings

    def _persist(self) -> None:
        """Write the aggregate. Failures are logged; in-memory state is kept."""
        try:
            self._storage.write(STORAGE_KEY, self._state.model_dump_json(by_alias=True))
        except (OSError, ValueError, TypeError):
            logger.exception("failed to persist settings", key=STORAGE_KEY)

    def _commit(self, next_state: Settings) -> None:
        self._state = next_state
        self._persist()
        self._publish()

    def _replace_game(self, index: int, game: Game, **update: object) -> None:
        games = list(self._state.games)
        games[index] = game.model_copy(update=update)
        self._commit(self._state.model_copy(update={"games": tuple(games)}))

    # -- operations ---------------------------------------------------------

    def create_game(self, name: str = "") -> Game:
        """Append a new empty game and make it current."""
        game = Game(
            id=self._id_factory(),
            name=name.strip() or DEFAULT_GAME_NAME,
            timestamp=self._clock(),
        )
        self._commit(
            self._state.model_copy(update={"games": (*self._state.games, game), "current_game_id": game.id}),
        )
        logger.info("created game", game_id=game.id, name=game.name)
        return game

    def add_batch_to_game(self, game_id: str, batch: PhraseBatch) -> None:
        """Prepend batch to the game's history."""
        index = _index_of(self._state.games, game_id)
        if index is None:
            logger.error("cannot add batch to unknown game", game_id=game_id, batch_id=batch.id)
            return
        if any(find_batch(game, batch.id) is not None for game in self._state.games):
            logger.error("batch id already in use", game_id=game_id, batch_id=batch.id)
            return

        game = self._state.games[index]
        self._replace_game(index, game, batches=(batch, *game.batches))
        logger.debug("added batch", game_id=game_id, batch_id=batch.id)

    def remove_batch(self, game_id: str, batch_id: str) -> None:
        index = _index_of(self._state.games, game_id)
        if index is None:
            logger.warning("cannot remove batch from unknown game", game_id=game_id, batch_id=batch_id)
            return

        game = self._state.games[index]
        remaining = tuple(b for b in game.batches if b.id != batch_id)
        if len(remaining) == len(game.batches):
            logger.warning("batch not found", game_id=game_id, batch_id=batch_id)
            return

        self._replace_game(index, game, batches=remaining)

    def remove_game(self, game_id: str) -> None:
        """Remove a game. A removed current game hands the pointer to the first remaining one."""
        if _index_of(self._state.games, game_id) is None:
            logger.warning("cannot remove unknown game", game_id=game_id)
            return

        games = tuple(g for g in self._state.games if g.id != game_id)
        current_id = self._state.current_game_id
        if current_id == game_id:
            current_id = games[0].id if games else None

        self._commit(Settings(games=games, current_game_id=current_id))
        logger.info("removed game", game_id=game_id, current_game_id=current_id)

    def set_current_game(self, game_id: str) -> None:
        if _index_of(self._state.games, game_id) is None:
            logger.debug("ignoring unknown current game", game_id=game_id)
            return
        self._commit(self._state.model_copy(update={"current_game_id": game_id}))

    def toggle_game_collapsed(self, game_id: str) -> None:
        index = _index_of(self._state.games, game_id)
        if index is None:
            logger.warning("cannot toggle unknown game", game_id=game_id)
            return
        game = self._state.games[index]
        self._replace_game(index, game, is_collapsed=not game.is_collapsed)

    def rename_game(self, game_id: str, new_name: str) -> None:
        index = _index_of(self._state.games, game_id)
        if index is None:
            logger.warning("cannot rename unknown game", game_id=game_id)
            return
        self._replace_game(index, self._state.games[index], name=new_name)

    def toggle_phrase_used(self, game_id: str, batch_id: str, phrase_index: int) -> None:
        """Flip the used flag of one phrase in a batch."""
        index = _index_of(self._state.games, game_id)
        if index is None:
            logger.warning("cannot toggle phrase in unknown game", game_id=game_id, batch_id=batch_id)
            return

        game = self._state.games[index]
        batch = find_batch(game, batch_id)
        if batch is None or not 0 <= phrase_index < len(batch.phrases):
            logger.warning("phrase not found", game_id=game_id, batch_id=batch_id, phrase_index=phrase_index)
            return

        phrases = list(batch.phrases)
        phrase = phrases[phrase_index]
        phrases[phrase_index] = phrase.model_copy(update={"used": not phrase.used})
        new_batch = batch.model_copy(update={"phrases": tuple(phrases)})
        batches = tuple(new_batch if b.id == batch_id else b for b in game.batches)
        self._replace_game(index, game, batches=batches)

    def reset(self) -> None:
        """Drop every game and restore the empty default."""
        self._commit(empty_settings())
        logger.info("reset settings")
