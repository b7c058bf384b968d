from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, NonNegativeInt, field_validator
from pydantic.alias_generators import to_camel

from game2048.constants import BOARD_SIZE


class _Model(BaseModel):
    # Snapshots written by the browser build use camelCase keys; accept both on input.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Cell(_Model):
    id: str = Field(..., min_length=1)
    value: int

    # Only meaningful for the move that produced the tile (animation hint).
    merged_from: tuple[str, str] | None = None

    @field_validator("value")
    @classmethod
    def _power_of_two(cls, v: int) -> int:
        if v < 2 or v & (v - 1):
            raise ValueError("tile value must be a power of two >= 2")
        return v


def _check_board(rows: list[list[Cell | None]]) -> list[list[Cell | None]]:
    if len(rows) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in rows):
        raise ValueError(f"grid must be {BOARD_SIZE}x{BOARD_SIZE}")
    ids = [cell.id for row in rows for cell in row if cell is not None]
    if len(ids) != len(set(ids)):
        raise ValueError("grid has duplicate tile ids")
    return rows


Grid = Annotated[list[list[Cell | None]], AfterValidator(_check_board)]


def _empty_grid() -> list[list[Cell | None]]:
    return [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]


class GameSnapshot(_Model):
    """Pre-move capture used by undo."""

    grid: Grid
    score: NonNegativeInt = 0
    move_count: NonNegativeInt = 0
    max_tile: NonNegativeInt = 0
    timestamp: datetime


class GameMetrics(_Model):
    """Cumulative counters; survive `new_game`."""

    total_moves: NonNegativeInt = 0
    total_fours: NonNegativeInt = 0
    games_started: NonNegativeInt = 0
    max_tile: NonNegativeInt = 0
    undo_uses: NonNegativeInt = 0


class Achievement(_Model):
    id: str
    label: str
    description: str | None = None
    icon: str
    target: int = Field(..., gt=0)
    progress: NonNegativeInt = 0
    unlocked_at: datetime | None = None


class GamePhase(StrEnum):
    playing = "playing"
    won = "won"
    over = "over"


class GameState(_Model):
    grid: Grid = Field(default_factory=_empty_grid)
    score: NonNegativeInt = 0
    best_score: NonNegativeInt = 0
    move_count: NonNegativeInt = 0
    max_tile: NonNegativeInt = 0

    # `has_won` is a soft milestone; play continues until `is_over`.
    has_won: bool = False
    is_over: bool = False
    phase: GamePhase = GamePhase.playing
    has_moves: bool = True

    history: list[GameSnapshot] = Field(default_factory=list)
    metrics: GameMetrics = Field(default_factory=GameMetrics)
    achievements: list[Achievement] = Field(default_factory=list)

    # For reproducibility/debugging.
    rng_seed: int | None = None

    is_hydrated: bool = False


class PersistedGameState(_Model):
    """Shape written under the state storage key."""

    grid: Grid
    score: NonNegativeInt = 0
    move_count: NonNegativeInt = 0
    max_tile: NonNegativeInt = 0
    has_won: bool = False
    is_over: bool = False
    history: list[GameSnapshot] = Field(default_factory=list)
    metrics: GameMetrics = Field(default_factory=GameMetrics)
    rng_seed: int | None = None
    saved_at: datetime
