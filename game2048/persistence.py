from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from game2048.config import get_save_debounce_ms
from game2048.engine import GameEngine
from game2048.events import GameEvent
from game2048.models import Achievement, PersistedGameState
from game2048.storage import GameStorage

logger = logging.getLogger(__name__)

# Events after which the game-state key is rewritten.
_STATE_EVENTS = frozenset({"NEW_GAME", "MOVED", "UNDONE", "HYDRATED"})


class GamePersistence:
    """Keeps a GameStorage in step with a GameEngine.

    State writes are debounced (`debounce_ms`, 0 means write immediately);
    best score and achievements are written as soon as they change. Writes
    are best effort and never raise into the engine.
    """

    def __init__(self, *, engine: GameEngine, storage: GameStorage, debounce_ms: int | None = None) -> None:
        self.engine = engine
        self.storage = storage
        self.debounce_ms = get_save_debounce_ms() if debounce_ms is None else debounce_ms

        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._pending: PersistedGameState | None = None
        self._unsubscribe: Callable[[], None] | None = None

        self._last_best_score: int | None = None
        self._last_achievements: list[Achievement] | None = None

    def restore(self) -> bool:
        """Hydrate the engine from storage once; returns True if it hydrated."""

        if self.engine.state.is_hydrated:
            return False
        self.engine.hydrate(self.storage.load())
        state = self.engine.state
        self._last_best_score = state.best_score
        self._last_achievements = state.achievements
        return True

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.engine.subscribe(self._on_event)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_event(self, event: GameEvent, engine: GameEngine) -> None:
        state = engine.state
        if not state.is_hydrated:
            return

        if event.type in _STATE_EVENTS:
            self._schedule_state_save(engine.persistable_state())

        if state.best_score != self._last_best_score:
            self._last_best_score = state.best_score
            self.storage.save_best_score(state.best_score)

        if state.achievements != self._last_achievements:
            self._last_achievements = state.achievements
            self.storage.save_achievements(state.achievements)

    def _schedule_state_save(self, persisted: PersistedGameState) -> None:
        if self.debounce_ms <= 0:
            self.storage.save_state(persisted)
            return
        with self._lock:
            self._pending = persisted
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_ms / 1000, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> None:
        """Write any pending state save now."""

        # Taking the pending state under the write lock keeps saves in schedule order.
        with self._write_lock:
            with self._lock:
                pending = self._pending
                self._pending = None
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
            if pending is not None:
                logger.debug("Saving game state (move %d)", pending.move_count)
                self.storage.save_state(pending)

    def cancel(self) -> None:
        with self._lock:
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def close(self) -> None:
        self.cancel()
        self.detach()
