"""Achievement catalog and progress tracking.

Progress is always recomputed from `GameMetrics`; an achievement never
re-locks once `unlocked_at` is set (only `reset_achievements` clears it).
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from game2048.models import Achievement, GameMetrics


@dataclass(frozen=True, slots=True)
class AchievementDefinition:
    id: str
    label: str
    description: str
    icon: str
    target: int
    # Name of the GameMetrics field this achievement follows.
    track_key: str


ACHIEVEMENT_DEFINITIONS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition("25_moves", "Getting Warm", "Log 25 moves across all sessions.", "sparkles", 25, "total_moves"),
    AchievementDefinition("50_moves", "On A Roll", "Log 50 moves across all sessions.", "medal", 50, "total_moves"),
    AchievementDefinition("100_moves", "Centurion", "Make 100 moves across all sessions.", "trophy", 100, "total_moves"),
    AchievementDefinition("undo_5", "Time Twister", "Use undo five times to revisit past boards.", "undo", 5, "undo_uses"),
    AchievementDefinition(
        "spawned_100_fours", "Lucky Roller", "Spawn one hundred value-four tiles.", "sparkles", 100, "total_fours"
    ),
    AchievementDefinition("fifth_new_game", "Seasoned Starter", "Kick off five separate games.", "sprout", 5, "games_started"),
    AchievementDefinition("first_tile_32", "First Ember", "Reach a tile value of 32.", "gem", 32, "max_tile"),
    AchievementDefinition("first_tile_64", "Step Into 64", "Reach a tile value of 64.", "gem", 64, "max_tile"),
    AchievementDefinition("first_tile_128", "Triple Digits", "Reach a tile value of 128.", "gem", 128, "max_tile"),
    AchievementDefinition("first_tile_256", "Quarter Kilobyte", "Reach a tile value of 256.", "gem", 256, "max_tile"),
    AchievementDefinition("first_tile_512", "Halfway There", "Reach a tile value of 512.", "gem", 512, "max_tile"),
    AchievementDefinition("first_tile_1024", "Into The Thousands", "Reach a tile value of 1024.", "gem", 1024, "max_tile"),
    AchievementDefinition("first_2048", "First Crown", "Reach the 2048 tile at least once.", "crown", 2048, "max_tile"),
    AchievementDefinition("max_tile_4096", "Beyond 2048", "Reach a tile value of 4096.", "gem", 4096, "max_tile"),
)

_DEFINITIONS_BY_ID: dict[str, AchievementDefinition] = {d.id: d for d in ACHIEVEMENT_DEFINITIONS}
_DEFINITION_ORDER: dict[str, int] = {d.id: idx for idx, d in enumerate(ACHIEVEMENT_DEFINITIONS)}


def _from_definition(
    definition: AchievementDefinition, *, progress: int = 0, unlocked_at: datetime | None = None
) -> Achievement:
    return Achievement(
        id=definition.id,
        label=definition.label,
        description=definition.description,
        icon=definition.icon,
        target=definition.target,
        progress=progress,
        unlocked_at=unlocked_at,
    )


def create_initial_achievements() -> list[Achievement]:
    return [_from_definition(d) for d in ACHIEVEMENT_DEFINITIONS]


def merge_achievements_with_definitions(incoming: Iterable[Any] | None) -> list[Achievement]:
    """Rebuild the full catalog from persisted entries.

    Entries may be `Achievement` models or raw mappings. Unknown ids and
    malformed entries are dropped; progress is clamped to [0, target].
    """

    previous: dict[str, Achievement] = {}
    for raw in incoming or ():
        try:
            item = raw if isinstance(raw, Achievement) else Achievement.model_validate(raw)
        except ValidationError:
            continue
        previous[item.id] = item

    merged: list[Achievement] = []
    for definition in ACHIEVEMENT_DEFINITIONS:
        prev = previous.get(definition.id)
        if prev is None:
            merged.append(_from_definition(definition))
            continue
        merged.append(
            _from_definition(
                definition,
                progress=max(0, min(prev.progress, definition.target)),
                unlocked_at=prev.unlocked_at,
            )
        )
    return merged


def metric_value(metrics: GameMetrics, track_key: str) -> int:
    return int(getattr(metrics, track_key, 0) or 0)


def evaluate_achievements(
    achievements: Iterable[Achievement],
    metrics: GameMetrics,
    now: Callable[[], datetime],
) -> list[Achievement]:
    out: list[Achievement] = []
    for achievement in achievements:
        definition = _DEFINITIONS_BY_ID.get(achievement.id)
        if definition is None:
            out.append(achievement)
            continue

        if achievement.unlocked_at is not None:
            out.append(_from_definition(definition, progress=definition.target, unlocked_at=achievement.unlocked_at))
            continue

        progress = max(0, min(metric_value(metrics, definition.track_key), definition.target))
        unlocked_at = now() if progress >= definition.target else None
        out.append(_from_definition(definition, progress=progress, unlocked_at=unlocked_at))
    return out


def completion_ratio(achievement: Achievement) -> float:
    return achievement.progress / achievement.target if achievement.target > 0 else 0.0


def sort_achievements(achievements: Iterable[Achievement]) -> list[Achievement]:
    """Locked achievements first, closest to completion leading; unlocked ones last."""

    def key(a: Achievement) -> tuple[bool, float, int]:
        return (
            a.unlocked_at is not None,
            -completion_ratio(a),
            _DEFINITION_ORDER.get(a.id, len(_DEFINITION_ORDER)),
        )

    return sorted(achievements, key=key)


def newly_unlocked(before: Iterable[Achievement], after: Iterable[Achievement]) -> list[str]:
    was_unlocked: Mapping[str, bool] = {a.id: a.unlocked_at is not None for a in before}
    return [a.id for a in after if a.unlocked_at is not None and not was_unlocked.get(a.id, False)]


def reset_achievements(achievements: Iterable[Achievement]) -> list[Achievement]:
    return [a.model_copy(update={"progress": 0, "unlocked_at": None}) for a in achievements]
