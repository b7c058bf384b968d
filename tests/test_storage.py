from __future__ import annotations

import json

import fakeredis
import redis

from game2048.engine import GameEngine
from game2048.storage import GameStorage


def _played_engine(zero_rng, clock) -> GameEngine:
    engine = GameEngine(zero_rng, clock=clock)
    engine.hydrate(None)
    engine.new_game()
    engine.move("right")
    return engine


def test_save_then_load_round_trips_into_hydrate(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine = _played_engine(zero_rng, clock)
    storage = GameStorage(r=r, prefix="test")

    storage.save(engine.state, engine.persistable_state())
    loaded = storage.load()

    assert loaded is not None
    assert loaded["best_score"] == engine.state.best_score
    assert len(loaded["achievements"]) == len(engine.state.achievements)

    restored = GameEngine(zero_rng, clock=clock)
    restored.hydrate(loaded)
    assert restored.state.grid == engine.state.grid
    assert restored.state.score == engine.state.score
    assert restored.state.metrics == engine.state.metrics
    assert len(restored.state.history) == 1


def test_keys_are_separate(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine = _played_engine(zero_rng, clock)
    storage = GameStorage(r=r, prefix="p")

    storage.save(engine.state, engine.persistable_state())

    assert set(r.keys("p/*")) == {"p/state", "p/best_score", "p/achievements"}


def test_corrupt_state_key_still_allows_partial_recovery(r: fakeredis.FakeRedis) -> None:
    storage = GameStorage(r=r, prefix="p")
    r.set("p/state", "{not json")
    r.set("p/best_score", "512")

    assert storage.load_state() is None
    assert storage.load() == {"best_score": 512}


def test_state_without_grid_or_history_is_rejected(r: fakeredis.FakeRedis) -> None:
    storage = GameStorage(r=r, prefix="p")
    r.set("p/state", json.dumps({"grid": [], "score": 3}))

    assert storage.load_state() is None


def test_best_score_must_be_a_finite_number(r: fakeredis.FakeRedis) -> None:
    storage = GameStorage(r=r, prefix="p")

    for raw in ('"12"', "true", "NaN", "[1]"):
        r.set("p/best_score", raw)
        assert storage.load_best_score() is None

    r.set("p/best_score", "12.0")
    assert storage.load_best_score() == 12


def test_nothing_stored_loads_none(r: fakeredis.FakeRedis) -> None:
    assert GameStorage(r=r, prefix="empty").load() is None


def test_clear_removes_all_keys(r: fakeredis.FakeRedis, zero_rng, clock) -> None:
    engine = _played_engine(zero_rng, clock)
    storage = GameStorage(r=r, prefix="p")
    storage.save(engine.state, engine.persistable_state())

    storage.clear()

    assert r.keys("p/*") == []


def test_save_state_none_clears_only_state(r: fakeredis.FakeRedis) -> None:
    storage = GameStorage(r=r, prefix="p")
    r.set("p/state", "{}")
    r.set("p/best_score", "4")

    storage.save_state(None)

    assert r.get("p/state") is None
    assert r.get("p/best_score") == "4"


class _BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("down")

    def set(self, key, value):
        raise redis.ConnectionError("down")

    def delete(self, *keys):
        raise redis.ConnectionError("down")


def test_redis_failures_are_swallowed(zero_rng, clock) -> None:
    engine = _played_engine(zero_rng, clock)
    storage = GameStorage(r=_BrokenRedis(), prefix="p")  # type: ignore[arg-type]

    storage.save(engine.state, engine.persistable_state())
    storage.clear()

    assert storage.load() is None


def test_default_prefix_comes_from_env(r: fakeredis.FakeRedis, monkeypatch) -> None:
    monkeypatch.setenv("GAME2048_STORAGE_PREFIX", "custom")

    assert GameStorage(r=r).state_key == "custom/state"
