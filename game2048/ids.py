from __future__ import annotations

from collections.abc import Iterable

from game2048.models import Cell


class TileIdAllocator:
    """Hands out tile ids for one engine.

    Ids only need to be unique among the tiles currently on the board, so a
    plain counter is enough. `reset()` restarts it for deterministic tests.
    """

    def __init__(self, *, prefix: str = "tile") -> None:
        self.prefix = prefix
        self._counter = 0

    def next_id(self) -> str:
        self._counter += 1
        return f"{self.prefix}-{self._counter}"

    def reset(self) -> None:
        self._counter = 0

    def observe(self, grids: Iterable[list[list[Cell | None]]]) -> None:
        """Move the counter past ids already present (e.g. after hydrate)."""

        marker = f"{self.prefix}-"
        for grid in grids:
            for row in grid:
                for cell in row:
                    if cell is None or not cell.id.startswith(marker):
                        continue
                    try:
                        n = int(cell.id[len(marker) :])
                    except ValueError:
                        continue
                    if n > self._counter:
                        self._counter = n
