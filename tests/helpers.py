from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from game2048.models import Cell


def make_rng(values: Iterable[float]) -> Callable[[], float]:
    """Replay `values` in order; falls back to 0.0 once exhausted."""

    it: Iterator[float] = iter(values)

    def _rng() -> float:
        return next(it, 0.0)

    return _rng


def tile(id: str, value: int) -> Cell:
    return Cell(id=id, value=value)


def grid_from_values(rows: list[list[int]]) -> list[list[Cell | None]]:
    """Build a grid from plain values (0 = empty) with ids like `r0c1`."""

    return [[tile(f"r{r}c{c}", v) if v else None for c, v in enumerate(row)] for r, row in enumerate(rows)]


def values_of(grid: list[list[Cell | None]]) -> list[list[int]]:
    return [[cell.value if cell is not None else 0 for cell in row] for row in grid]
