"""2048 puzzle engine: grid/move/merge rules, spawning, undo history and achievements.

Kept free of storage and UI concerns so it can be driven by any front end or test.
"""
from __future__ import annotations

from game2048.constants import BOARD_SIZE, MAX_HISTORY_LENGTH, WINNING_VALUE, Direction
from game2048.engine import GameEngine, OverlayState, TileView
from game2048.models import Achievement, Cell, GameMetrics, GamePhase, GameSnapshot, GameState

__all__ = [
    "Achievement",
    "BOARD_SIZE",
    "Cell",
    "Direction",
    "GameEngine",
    "GameMetrics",
    "GamePhase",
    "GameSnapshot",
    "GameState",
    "MAX_HISTORY_LENGTH",
    "OverlayState",
    "TileView",
    "WINNING_VALUE",
]
