from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from game2048.achievements import (
    evaluate_achievements,
    newly_unlocked,
    reset_achievements,
    sort_achievements,
)
from game2048.constants import MAX_HISTORY_LENGTH, WINNING_VALUE, Direction
from game2048.events import EventType, GameEvent
from game2048.fsm import GameFSM, phase_for
from game2048.grid import can_move, clone_grid, create_empty_grid, has_reached_winning_tile, max_tile_value
from game2048.history import HistoryStack, create_snapshot
from game2048.hydration import create_baseline_state, merge_state
from game2048.ids import TileIdAllocator
from game2048.models import Achievement, GameMetrics, GameState, PersistedGameState
from game2048.moves import apply_move
from game2048.spawner import Rng, RngFactory, seed_initial_tiles, spawn_random_tile

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Listener = Callable[[GameEvent, "GameEngine"], None]


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class TileView:
    """Flattened tile for renderers."""

    id: str
    value: int
    row: int
    column: int
    merged_from: tuple[str, str] | None = None


@dataclass(frozen=True, slots=True)
class OverlayState:
    has_won: bool
    is_over: bool
    can_continue: bool


class GameEngine:
    """One 2048 game plus the player's cumulative progress.

    Every action runs synchronously to completion. The engine never touches
    an ambient random source: `rng` is required, and `rng_factory` (seed ->
    rng) is only needed for `new_game(seed=...)`.
    """

    def __init__(
        self,
        rng: Rng,
        *,
        state: GameState | None = None,
        rng_factory: RngFactory | None = None,
        clock: Clock = _now,
        history_capacity: int = MAX_HISTORY_LENGTH,
        winning_value: int = WINNING_VALUE,
    ) -> None:
        self._rng = rng
        self._rng_factory = rng_factory
        self._clock = clock
        self._winning_value = winning_value
        self._history_capacity = history_capacity
        self._ids = TileIdAllocator()
        self._listeners: list[Listener] = []

        self._state = state.model_copy(deep=True) if state is not None else create_baseline_state()
        self._history = HistoryStack(self._state.history, capacity=history_capacity)
        self._state.history = []
        self._ids.observe([self._state.grid, *(s.grid for s in self._history)])

    # --- read side -------------------------------------------------------

    @property
    def state(self) -> GameState:
        """Read-only view of the current state, history included."""

        return self._state.model_copy(
            deep=True, update={"history": [snap.model_copy(deep=True) for snap in self._history]}
        )

    def tiles(self) -> list[TileView]:
        return [
            TileView(id=cell.id, value=cell.value, row=r, column=c, merged_from=cell.merged_from)
            for r, row in enumerate(self._state.grid)
            for c, cell in enumerate(row)
            if cell is not None
        ]

    def can_undo(self) -> bool:
        return len(self._history) > 0

    def overlay_state(self) -> OverlayState:
        s = self._state
        return OverlayState(has_won=s.has_won, is_over=s.is_over, can_continue=s.has_won and not s.is_over)

    def persistable_state(self) -> PersistedGameState:
        s = self._state
        return PersistedGameState(
            grid=clone_grid(s.grid),
            score=s.score,
            move_count=s.move_count,
            max_tile=s.max_tile,
            has_won=s.has_won,
            is_over=s.is_over,
            history=[snap.model_copy(deep=True) for snap in self._history],
            metrics=s.metrics.model_copy(),
            rng_seed=s.rng_seed,
            saved_at=self._clock(),
        )

    # --- subscriptions ---------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, type: EventType, payload: dict[str, Any] | None = None) -> None:
        event = GameEvent.now(type=type, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event, self)
            except Exception:
                logger.exception("Listener failed on %s event", type)

    # --- actions ---------------------------------------------------------

    def new_game(self, seed: int | None = None) -> GameState:
        if seed is not None:
            if self._rng_factory is None:
                raise ValueError("new_game(seed=...) requires an rng_factory")
            self._rng = self._rng_factory(seed)
            self._state.rng_seed = seed

        self._ids.reset()
        seeded = seed_initial_tiles(create_empty_grid(), self._rng, self._ids)
        spawned_fours = sum(1 for tile in seeded.tiles if tile.value == 4)
        max_tile = max_tile_value(seeded.grid)

        prev = self._state.metrics
        metrics = prev.model_copy(
            update={
                "total_fours": prev.total_fours + spawned_fours,
                "games_started": prev.games_started + 1,
                "max_tile": max(prev.max_tile, max_tile),
            }
        )

        s = self._state
        s.grid = seeded.grid
        s.score = 0
        s.move_count = 0
        s.has_won = False
        s.is_over = False
        s.max_tile = max_tile
        s.has_moves = can_move(seeded.grid)
        self._history.clear()

        unlocked = self._update_metrics(metrics)
        self._sync_phase()
        logger.debug("New game started (seed=%s, fours=%d)", seed, spawned_fours)
        self._emit("NEW_GAME", {"seed": seed, "tiles": [t.id for t in seeded.tiles]})
        self._emit_unlocked(unlocked)
        return self.state

    def move(self, direction: Direction | str) -> bool:
        """Apply one move; False (and no change at all) if nothing moved or the game is over."""

        s = self._state
        if s.is_over:
            return False

        direction = Direction(direction)
        result = apply_move(s.grid, direction, self._ids)
        if not result.moved:
            return False

        self._history.push(
            create_snapshot(
                grid=s.grid, score=s.score, move_count=s.move_count, max_tile=s.max_tile, now=self._clock()
            )
        )
        spawned = spawn_random_tile(result.grid, self._rng, self._ids)
        spawned_value = spawned.tile.value if spawned.tile is not None else 0

        s.grid = spawned.grid
        s.score += result.score_gained
        s.best_score = max(s.best_score, s.score)
        s.move_count += 1
        s.max_tile = max(s.max_tile, result.max_tile, spawned_value)
        s.has_won = s.has_won or has_reached_winning_tile(s.grid, self._winning_value)
        s.has_moves = can_move(s.grid)
        s.is_over = not s.has_moves

        prev = s.metrics
        metrics = prev.model_copy(
            update={
                "total_moves": prev.total_moves + 1,
                "total_fours": prev.total_fours + (1 if spawned_value == 4 else 0),
                "max_tile": max(prev.max_tile, s.max_tile),
            }
        )
        unlocked = self._update_metrics(metrics)
        self._sync_phase()

        logger.debug(
            "Moved %s: +%d points, spawned %s at %s", direction.value, result.score_gained, spawned_value, spawned.position
        )
        self._emit(
            "MOVED",
            {
                "direction": direction.value,
                "score_gained": result.score_gained,
                "spawned": spawned.tile.id if spawned.tile is not None else None,
            },
        )
        self._emit_unlocked(unlocked)
        return True

    def undo(self) -> bool:
        snapshot = self._history.pop()
        if snapshot is None:
            return False

        s = self._state
        s.grid = clone_grid(snapshot.grid)
        s.score = snapshot.score
        s.move_count = snapshot.move_count
        s.max_tile = max(snapshot.max_tile, max_tile_value(s.grid))
        s.has_won = s.max_tile >= self._winning_value
        s.is_over = False
        s.has_moves = can_move(s.grid)

        metrics = s.metrics.model_copy(update={"undo_uses": s.metrics.undo_uses + 1})
        unlocked = self._update_metrics(metrics)
        self._sync_phase()

        logger.debug("Undo restored move %d (%d snapshots left)", s.move_count, len(self._history))
        self._emit("UNDONE", {"move_count": s.move_count})
        self._emit_unlocked(unlocked)
        return True

    def reset_achievements(self) -> None:
        self._state.achievements = sort_achievements(reset_achievements(self._state.achievements))
        self._emit("ACHIEVEMENTS_RESET")

    def hydrate(self, snapshot: Mapping[str, Any] | BaseModel | None) -> GameState:
        merged = merge_state(snapshot, self._clock)
        merged.is_hydrated = True

        self._history = HistoryStack(merged.history, capacity=self._history_capacity)
        merged.history = []
        self._state = merged
        self._ids.reset()
        self._ids.observe([merged.grid, *(snap.grid for snap in self._history)])

        logger.debug("Hydrated (score=%d, history=%d)", merged.score, len(self._history))
        self._emit("HYDRATED")
        return self.state

    def reset_tile_ids(self) -> None:
        self._ids.reset()

    # --- helpers ---------------------------------------------------------

    def _update_metrics(self, metrics: GameMetrics) -> list[str]:
        before: list[Achievement] = self._state.achievements
        after = sort_achievements(evaluate_achievements(before, metrics, self._clock))
        self._state.metrics = metrics
        self._state.achievements = after
        return newly_unlocked(before, after)

    def _sync_phase(self) -> None:
        GameFSM(self._state).advance_to(phase_for(has_won=self._state.has_won, is_over=self._state.is_over))

    def _emit_unlocked(self, ids: list[str]) -> None:
        for achievement_id in ids:
            logger.info("Achievement unlocked: %s", achievement_id)
            self._emit("ACHIEVEMENT_UNLOCKED", {"id": achievement_id})
