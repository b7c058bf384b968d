from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from datetime import datetime

from game2048.constants import MAX_HISTORY_LENGTH
from game2048.grid import GridRows, clone_grid
from game2048.models import GameSnapshot


def create_snapshot(*, grid: GridRows, score: int, move_count: int, max_tile: int, now: datetime) -> GameSnapshot:
    return GameSnapshot(
        grid=clone_grid(grid),
        score=score,
        move_count=move_count,
        max_tile=max_tile,
        timestamp=now,
    )


class HistoryStack:
    """Bounded undo stack.

    Pushing past `capacity` silently drops the oldest snapshot; `pop()` is LIFO.
    """

    def __init__(self, snapshots: Iterable[GameSnapshot] = (), *, capacity: int = MAX_HISTORY_LENGTH) -> None:
        if capacity <= 0:
            raise ValueError("history capacity must be positive")
        self._entries: deque[GameSnapshot] = deque(snapshots, maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def push(self, snapshot: GameSnapshot) -> None:
        self._entries.append(snapshot)

    def pop(self) -> GameSnapshot | None:
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> GameSnapshot | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def as_list(self) -> list[GameSnapshot]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __iter__(self) -> Iterator[GameSnapshot]:
        return iter(self._entries)
