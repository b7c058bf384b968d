from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "NEW_GAME",
    "MOVED",
    "UNDONE",
    "HYDRATED",
    "ACHIEVEMENTS_RESET",
    "ACHIEVEMENT_UNLOCKED",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    payload: dict[str, Any] = field(default_factory=dict)
    ts: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def now(*, type: EventType, payload: dict[str, Any] | None = None) -> "GameEvent":
        return GameEvent(type=type, payload=payload or {}, ts=datetime.now(timezone.utc))
