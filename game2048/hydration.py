"""Baseline state and merging of partial persisted snapshots.

Each field is validated on its own, so one corrupt value only costs that
field; it falls back to the baseline default and hydration never raises.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, NonNegativeInt, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from game2048.achievements import (
    create_initial_achievements,
    evaluate_achievements,
    merge_achievements_with_definitions,
    sort_achievements,
)
from game2048.constants import MAX_HISTORY_LENGTH
from game2048.fsm import phase_for
from game2048.grid import can_move, clone_grid, create_empty_grid
from game2048.models import GameMetrics, GameSnapshot, GameState, Grid

logger = logging.getLogger(__name__)

_MISSING = object()

_SCALAR_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "score": TypeAdapter(NonNegativeInt),
    "best_score": TypeAdapter(NonNegativeInt),
    "move_count": TypeAdapter(NonNegativeInt),
    "max_tile": TypeAdapter(NonNegativeInt),
    "has_won": TypeAdapter(bool),
    "is_over": TypeAdapter(bool),
    "rng_seed": TypeAdapter(int | None),
}
_GRID_ADAPTER: TypeAdapter[Any] = TypeAdapter(Grid)
_METRIC_ADAPTER: TypeAdapter[int] = TypeAdapter(NonNegativeInt)


def create_baseline_state() -> GameState:
    return GameState(
        grid=create_empty_grid(),
        achievements=sort_achievements(create_initial_achievements()),
    )


def _lookup(incoming: Mapping[str, Any], name: str) -> Any:
    if name in incoming:
        return incoming[name]
    return incoming.get(to_camel(name), _MISSING)


def _validated(adapter: TypeAdapter[Any], raw: Any, *, field: str, default: Any) -> Any:
    if raw is _MISSING:
        return default
    try:
        return adapter.validate_python(raw)
    except ValidationError:
        logger.debug("Ignoring malformed persisted field %s", field)
        return default


def _merge_metrics(raw: Any, baseline: GameMetrics) -> GameMetrics:
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    if not isinstance(raw, Mapping):
        return baseline
    values: dict[str, int] = {}
    for name in GameMetrics.model_fields:
        values[name] = _validated(
            _METRIC_ADAPTER, _lookup(raw, name), field=f"metrics.{name}", default=getattr(baseline, name)
        )
    return GameMetrics(**values)


def _merge_history(raw: Any) -> list[GameSnapshot]:
    if not isinstance(raw, list):
        return []
    snapshots: list[GameSnapshot] = []
    for entry in raw:
        try:
            snap = entry if isinstance(entry, GameSnapshot) else GameSnapshot.model_validate(entry)
        except ValidationError:
            logger.debug("Dropping malformed history entry")
            continue
        snapshots.append(snap.model_copy(update={"grid": clone_grid(snap.grid)}))
    return snapshots[-MAX_HISTORY_LENGTH:]


def merge_state(incoming: Mapping[str, Any] | BaseModel | None, now: Callable[[], datetime]) -> GameState:
    """Merge `incoming` over a fresh baseline, field by field."""

    baseline = create_baseline_state()
    if incoming is None:
        return baseline
    if isinstance(incoming, BaseModel):
        incoming = incoming.model_dump()
    if not isinstance(incoming, Mapping):
        logger.debug("Ignoring persisted snapshot of type %s", type(incoming).__name__)
        return baseline

    grid = _validated(_GRID_ADAPTER, _lookup(incoming, "grid"), field="grid", default=None)
    grid = clone_grid(grid) if grid is not None else baseline.grid

    scalars = {
        name: _validated(adapter, _lookup(incoming, name), field=name, default=getattr(baseline, name))
        for name, adapter in _SCALAR_ADAPTERS.items()
    }

    metrics_raw = _lookup(incoming, "metrics")
    metrics = _merge_metrics(metrics_raw, baseline.metrics) if metrics_raw is not _MISSING else baseline.metrics

    history_raw = _lookup(incoming, "history")
    history = _merge_history(history_raw) if history_raw is not _MISSING else baseline.history

    achievements_raw = _lookup(incoming, "achievements")
    achievements = merge_achievements_with_definitions(
        achievements_raw if isinstance(achievements_raw, list) else None
    )
    achievements = sort_achievements(evaluate_achievements(achievements, metrics, now))

    return GameState(
        grid=grid,
        history=history,
        metrics=metrics,
        achievements=achievements,
        has_moves=can_move(grid),
        phase=phase_for(has_won=scalars["has_won"], is_over=scalars["is_over"]),
        **scalars,
    )
