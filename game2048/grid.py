from __future__ import annotations

from game2048.constants import BOARD_SIZE, WINNING_VALUE
from game2048.models import Cell

GridRows = list[list[Cell | None]]


def create_empty_grid(size: int = BOARD_SIZE) -> GridRows:
    return [[None] * size for _ in range(size)]


def clone_grid(grid: GridRows) -> GridRows:
    """Deep copy: no cell object is shared between the two grids."""

    return [[cell.model_copy() if cell is not None else None for cell in row] for row in grid]


def empty_positions(grid: GridRows) -> list[tuple[int, int]]:
    # Row-major order; spawning depends on it.
    return [(r, c) for r, row in enumerate(grid) for c, cell in enumerate(row) if cell is None]


def max_tile_value(grid: GridRows) -> int:
    return max((cell.value for row in grid for cell in row if cell is not None), default=0)


def grid_signature(grid: GridRows) -> tuple[tuple[tuple[str, int] | None, ...], ...]:
    return tuple(tuple((cell.id, cell.value) if cell is not None else None for cell in row) for row in grid)


def can_move(grid: GridRows) -> bool:
    """True if any empty cell or any adjacent equal pair exists."""

    size = len(grid)
    for r in range(size):
        for c in range(size):
            cell = grid[r][c]
            if cell is None:
                return True
            right = grid[r][c + 1] if c + 1 < size else None
            down = grid[r + 1][c] if r + 1 < size else None
            if (right is not None and right.value == cell.value) or (down is not None and down.value == cell.value):
                return True
    return False


def has_reached_winning_tile(grid: GridRows, winning_value: int = WINNING_VALUE) -> bool:
    return any(cell is not None and cell.value >= winning_value for row in grid for cell in row)
