from __future__ import annotations

import fakeredis

from game2048.session import create_rng, start_session


def test_create_rng_is_replayable() -> None:
    a = create_rng(11)
    b = create_rng(11)

    assert [a() for _ in range(5)] == [b() for _ in range(5)]


def test_start_session_without_redis_deals_a_game() -> None:
    session = start_session(seed=5)

    state = session.engine.state
    assert state.is_hydrated is True
    assert state.rng_seed == 5
    assert len(session.engine.tiles()) == 2
    assert session.persistence is None


def test_start_session_resumes_saved_game(r: fakeredis.FakeRedis) -> None:
    first = start_session(r=r, seed=5, prefix="s")
    for direction in ("left", "right", "up", "down"):
        if first.engine.move(direction):
            break
    first.close()
    saved = first.engine.state

    second = start_session(r=r, seed=99, prefix="s")

    assert second.engine.state.grid == saved.grid
    assert second.engine.state.move_count == saved.move_count
    assert second.engine.state.metrics.games_started == 1
    second.close()


def test_create_redis_uses_given_url() -> None:
    from game2048.infra.redis_client import create_redis

    client = create_redis("redis://cache.example:6380/2")
    kwargs = client.connection_pool.connection_kwargs

    assert kwargs["host"] == "cache.example"
    assert kwargs["port"] == 6380
    assert kwargs["db"] == 2
    assert kwargs["decode_responses"] is True
