from __future__ import annotations

import threading
import time
from collections.abc import Callable

import fakeredis

from game2048.engine import GameEngine
from game2048.models import PersistedGameState
from game2048.persistence import GamePersistence
from game2048.storage import GameStorage


def _setup(r, zero_rng, clock, debounce_ms: int = 0) -> tuple[GameEngine, GameStorage, GamePersistence]:
    engine = GameEngine(zero_rng, clock=clock)
    storage = GameStorage(r=r, prefix="t")
    persistence = GamePersistence(engine=engine, storage=storage, debounce_ms=debounce_ms)
    return engine, storage, persistence


def test_restore_hydrates_from_storage(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    r.set("t/best_score", "2048")
    engine, _storage, persistence = _setup(r, zero_rng, clock)

    assert persistence.restore() is True
    assert engine.state.is_hydrated is True
    assert engine.state.best_score == 2048

    # Second restore is a no-op.
    assert persistence.restore() is False


def test_restore_with_empty_storage_uses_baseline(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine, _storage, persistence = _setup(r, zero_rng, clock)

    persistence.restore()

    assert engine.state.is_hydrated is True
    assert engine.state.score == 0


def test_events_before_hydration_are_not_saved(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine, _storage, persistence = _setup(r, zero_rng, clock)
    persistence.attach()

    engine.new_game()

    assert r.keys("t/*") == []


def test_moves_are_written_through(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine, storage, persistence = _setup(r, zero_rng, clock)
    persistence.restore()
    persistence.attach()

    engine.new_game()
    engine.move("right")

    saved = storage.load_state()
    assert saved is not None
    assert saved["move_count"] == 1
    assert storage.load_best_score() == engine.state.best_score


def test_debounced_state_save_waits_for_flush(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine, storage, persistence = _setup(r, zero_rng, clock, debounce_ms=60_000)
    persistence.restore()
    persistence.attach()

    engine.new_game()
    engine.move("right")
    assert storage.load_state() is None

    persistence.flush()

    saved = storage.load_state()
    assert saved is not None
    assert saved["move_count"] == 1
    persistence.close()


def test_achievement_reset_is_saved(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine, storage, persistence = _setup(r, zero_rng, clock)
    r.set("t/state", '{"grid": [], "history": [], "metrics": {"total_moves": 40}}')
    persistence.restore()
    persistence.attach()

    engine.reset_achievements()

    saved = storage.load_achievements()
    assert saved is not None
    assert all(a["unlocked_at"] is None for a in saved)


def test_close_detaches(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine, _storage, persistence = _setup(r, zero_rng, clock)
    persistence.restore()
    persistence.attach()
    persistence.close()

    engine.new_game()

    assert r.get("t/state") is None


class _RecordingStorage(GameStorage):
    """Records saved move counts and runs `on_first_save` inside the first write."""

    def __init__(self, r: fakeredis.FakeRedis, on_first_save: Callable[[], None]) -> None:
        super().__init__(r=r, prefix="t")
        self.saved: list[int] = []
        self._on_first_save: Callable[[], None] | None = on_first_save

    def save_state(self, state: PersistedGameState | None) -> None:
        if self._on_first_save is not None:
            hook, self._on_first_save = self._on_first_save, None
            hook()
        if state is not None:
            self.saved.append(state.move_count)
        super().save_state(state)


def test_concurrent_flushes_keep_the_newest_state(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine = GameEngine(zero_rng, clock=clock)
    flushers: list[threading.Thread] = []

    def _newer_move_flushed_meanwhile() -> None:
        engine.move("right")
        flusher = threading.Thread(target=persistence.flush)
        flusher.start()
        flushers.append(flusher)
        time.sleep(0.05)

    storage = _RecordingStorage(r, _newer_move_flushed_meanwhile)
    persistence = GamePersistence(engine=engine, storage=storage, debounce_ms=60_000)
    persistence.restore()
    persistence.attach()
    engine.new_game()

    persistence.flush()
    for flusher in flushers:
        flusher.join(timeout=5)

    assert storage.saved == [0, 1]
    saved = storage.load_state()
    assert saved is not None
    assert saved["move_count"] == 1
    persistence.close()
