from __future__ import annotations

import pytest

from game2048.constants import Direction
from game2048.controls import InputController, direction_for_key, direction_for_swipe
from game2048.engine import GameEngine


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize(
    ("key", "expected"),
    [("ArrowUp", Direction.up), ("a", Direction.left), ("D", Direction.right), ("s", Direction.down), ("Enter", None)],
)
def test_key_mapping(key: str, expected: Direction | None) -> None:
    assert direction_for_key(key) == expected


def test_swipe_uses_dominant_axis_and_threshold() -> None:
    assert direction_for_swipe(10, -12) is None
    assert direction_for_swipe(80, 20) == Direction.right
    assert direction_for_swipe(-80, 20) == Direction.left
    assert direction_for_swipe(5, 45) == Direction.down
    assert direction_for_swipe(5, -45) == Direction.up


def test_input_is_dropped_before_hydration(zero_rng) -> None:
    engine = GameEngine(zero_rng)
    controller = InputController(engine, throttle_ms=0)

    assert controller.handle_key("ArrowLeft") is False


def test_moves_inside_throttle_window_are_dropped(zero_rng) -> None:
    engine = GameEngine(zero_rng)
    engine.hydrate(None)
    engine.new_game()
    clock = _Clock()
    controller = InputController(engine, throttle_ms=120, clock=clock)

    assert controller.handle_key("ArrowRight") is True
    clock.now += 0.05
    assert controller.handle_key("ArrowLeft") is False
    clock.now += 0.2
    assert controller.handle_key("ArrowLeft") is True
    assert engine.state.move_count == 2


def test_input_is_dropped_when_game_is_over(zero_rng) -> None:
    engine = GameEngine(zero_rng)
    engine.hydrate({"is_over": True})
    controller = InputController(engine, throttle_ms=0)

    assert controller.handle_swipe(100, 0) is False
