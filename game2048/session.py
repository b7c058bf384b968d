"""Hosting edge: wires a real RNG, Redis storage and input to an engine."""
from __future__ import annotations

import random
from dataclasses import dataclass

import redis

from game2048.controls import InputController
from game2048.engine import GameEngine
from game2048.grid import max_tile_value
from game2048.infra.redis_client import create_redis
from game2048.persistence import GamePersistence
from game2048.spawner import Rng
from game2048.storage import GameStorage


def create_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def create_rng(seed: int) -> Rng:
    return random.Random(seed).random


@dataclass(slots=True)
class GameSession:
    engine: GameEngine
    input: InputController
    persistence: GamePersistence | None = None

    def close(self) -> None:
        if self.persistence is not None:
            self.persistence.flush()
            self.persistence.close()


def start_session(
    *,
    r: redis.Redis | None = None,
    redis_url: str | None = None,
    seed: int | None = None,
    prefix: str | None = None,
) -> GameSession:
    """Build a ready-to-play session.

    With a Redis client (or `redis_url`) the engine is restored from storage and kept saved;
    without one it starts hydrated from defaults. A new game is dealt when
    the restored board is empty.
    """

    if r is None and redis_url:
        r = create_redis(redis_url)
    if seed is None:
        seed = create_seed()
    engine = GameEngine(create_rng(seed), rng_factory=create_rng)

    persistence: GamePersistence | None = None
    if r is not None:
        persistence = GamePersistence(engine=engine, storage=GameStorage(r=r, prefix=prefix))
        persistence.restore()
        persistence.attach()
    else:
        engine.hydrate(None)

    if max_tile_value(engine.state.grid) == 0:
        engine.new_game(seed=seed)

    return GameSession(engine=engine, input=InputController(engine), persistence=persistence)
