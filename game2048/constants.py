from __future__ import annotations

from enum import StrEnum


BOARD_SIZE = 4
INITIAL_TILE_COUNT = 2
WINNING_VALUE = 2048
MAX_HISTORY_LENGTH = 16

# Classic spawn odds: 90% for a 2, 10% for a 4.
SPAWN_PROBABILITY = {
    2: 0.9,
    4: 0.1,
}


class Direction(StrEnum):
    up = "up"
    down = "down"
    left = "left"
    right = "right"
