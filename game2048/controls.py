from __future__ import annotations

import time
from collections.abc import Callable

from game2048.config import get_move_throttle_ms
from game2048.constants import Direction
from game2048.engine import GameEngine

KEY_DIRECTION_MAP: dict[str, Direction] = {
    "ArrowUp": Direction.up,
    "ArrowDown": Direction.down,
    "ArrowLeft": Direction.left,
    "ArrowRight": Direction.right,
    "w": Direction.up,
    "W": Direction.up,
    "s": Direction.down,
    "S": Direction.down,
    "a": Direction.left,
    "A": Direction.left,
    "d": Direction.right,
    "D": Direction.right,
}

SWIPE_THRESHOLD = 30


def direction_for_key(key: str) -> Direction | None:
    return KEY_DIRECTION_MAP.get(key)


def direction_for_swipe(delta_x: float, delta_y: float, threshold: float = SWIPE_THRESHOLD) -> Direction | None:
    """Dominant axis of a swipe; screen y grows downwards."""

    abs_x = abs(delta_x)
    abs_y = abs(delta_y)
    if abs_x < threshold and abs_y < threshold:
        return None
    if abs_x > abs_y:
        return Direction.right if delta_x > 0 else Direction.left
    return Direction.down if delta_y > 0 else Direction.up


class InputController:
    """Serializes raw input into engine moves.

    Drops input before the engine is hydrated, while the game is over, and
    within `throttle_ms` of the previous accepted move.
    """

    def __init__(
        self,
        engine: GameEngine,
        *,
        throttle_ms: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.throttle_ms = get_move_throttle_ms() if throttle_ms is None else throttle_ms
        self._clock = clock
        self._last_move_at: float | None = None

    def queue_move(self, direction: Direction | str) -> bool:
        state = self.engine.state
        if not state.is_hydrated or state.is_over:
            return False
        now = self._clock()
        if self._last_move_at is not None and (now - self._last_move_at) * 1000 < self.throttle_ms:
            return False
        self._last_move_at = now
        return self.engine.move(direction)

    def handle_key(self, key: str) -> bool:
        direction = direction_for_key(key)
        if direction is None:
            return False
        return self.queue_move(direction)

    def handle_swipe(self, delta_x: float, delta_y: float) -> bool:
        direction = direction_for_swipe(delta_x, delta_y)
        if direction is None:
            return False
        return self.queue_move(direction)
