"""Slide-and-merge for one move.

Every line (a row for left/right, a column for up/down) is read in the
direction of travel, compacted, merged pairwise and padded back with empties.
A tile created by a merge never merges again in the same move.
"""
from __future__ import annotations

from dataclasses import dataclass

from game2048.constants import Direction
from game2048.grid import GridRows, clone_grid, create_empty_grid, grid_signature, max_tile_value
from game2048.ids import TileIdAllocator
from game2048.models import Cell


@dataclass(frozen=True, slots=True)
class MoveResult:
    grid: GridRows
    moved: bool
    score_gained: int
    max_tile: int


def _line_positions(direction: Direction, index: int, size: int) -> list[tuple[int, int]]:
    if direction in (Direction.left, Direction.right):
        positions = [(index, c) for c in range(size)]
    else:
        positions = [(r, index) for r in range(size)]
    # Position 0 is the edge tiles travel towards.
    if direction in (Direction.right, Direction.down):
        positions.reverse()
    return positions


def merge_line(cells: list[Cell], ids: TileIdAllocator) -> tuple[list[Cell], int]:
    """Merge a compacted line; returns the merged cells and points scored."""

    out: list[Cell] = []
    score = 0
    i = 0
    while i < len(cells):
        current = cells[i]
        nxt = cells[i + 1] if i + 1 < len(cells) else None
        if nxt is not None and nxt.value == current.value:
            value = current.value * 2
            out.append(Cell(id=ids.next_id(), value=value, merged_from=(current.id, nxt.id)))
            score += value
            i += 2
        else:
            out.append(Cell(id=current.id, value=current.value, merged_from=None))
            i += 1
    return out, score


def apply_move(grid: GridRows, direction: Direction | str, ids: TileIdAllocator) -> MoveResult:
    direction = Direction(direction)
    size = len(grid)
    next_grid = create_empty_grid(size)
    score_gained = 0

    for index in range(size):
        positions = _line_positions(direction, index, size)
        compacted = [cell for cell in (grid[r][c] for r, c in positions) if cell is not None]
        merged, score = merge_line(compacted, ids)
        score_gained += score
        for (r, c), cell in zip(positions, merged):
            next_grid[r][c] = cell

    if grid_signature(next_grid) == grid_signature(grid):
        return MoveResult(grid=clone_grid(grid), moved=False, score_gained=0, max_tile=max_tile_value(grid))

    return MoveResult(grid=next_grid, moved=True, score_gained=score_gained, max_tile=max_tile_value(next_grid))
