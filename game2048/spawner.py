from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field

from game2048.constants import INITIAL_TILE_COUNT, SPAWN_PROBABILITY
from game2048.grid import GridRows, clone_grid, empty_positions
from game2048.ids import TileIdAllocator
from game2048.models import Cell

# Zero-argument source of floats in [0, 1). Always injected, never ambient.
Rng = Callable[[], float]
RngFactory = Callable[[int], Rng]


@dataclass(frozen=True, slots=True)
class SpawnResult:
    grid: GridRows
    tile: Cell | None
    position: tuple[int, int] | None = None


@dataclass(frozen=True, slots=True)
class SeedResult:
    grid: GridRows
    tiles: list[Cell] = field(default_factory=list)


def random_tile_value(rng: Rng) -> int:
    return 2 if rng() < SPAWN_PROBABILITY[2] else 4


def spawn_random_tile(grid: GridRows, rng: Rng, ids: TileIdAllocator) -> SpawnResult:
    """Place a 2 or 4 in a random empty cell of a copy of `grid`.

    Draws from `rng` at most twice: once for the position, once for the value.
    A full board yields `tile=None`.
    """

    positions = empty_positions(grid)
    if not positions:
        return SpawnResult(grid=clone_grid(grid), tile=None)

    index = min(math.floor(rng() * len(positions)), len(positions) - 1)
    row, column = positions[index]
    value = random_tile_value(rng)

    next_grid = clone_grid(grid)
    tile = Cell(id=ids.next_id(), value=value)
    next_grid[row][column] = tile
    return SpawnResult(grid=next_grid, tile=tile, position=(row, column))


def seed_initial_tiles(
    grid: GridRows,
    rng: Rng,
    ids: TileIdAllocator,
    count: int = INITIAL_TILE_COUNT,
) -> SeedResult:
    next_grid = clone_grid(grid)
    tiles: list[Cell] = []
    for _ in range(count):
        spawned = spawn_random_tile(next_grid, rng, ids)
        next_grid = spawned.grid
        if spawned.tile is None:
            break
        tiles.append(spawned.tile)
    return SeedResult(grid=next_grid, tiles=tiles)
