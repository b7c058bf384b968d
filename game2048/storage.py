"""Redis-backed storage for a single player's game.

State, best score and achievements live under separate keys so one corrupt
value does not take the others down. Every failure is logged and swallowed:
callers get `None` on load and nothing on save.
"""
from __future__ import annotations

import json
import logging
import math
from typing import Any

import redis
from pydantic import ValidationError

from game2048.config import get_storage_prefix
from game2048.models import Achievement, GameState, PersistedGameState

logger = logging.getLogger(__name__)


class GameStorage:
    def __init__(self, *, r: redis.Redis, prefix: str | None = None) -> None:
        self.r = r
        self.prefix = prefix or get_storage_prefix()

    @property
    def state_key(self) -> str:
        return f"{self.prefix}/state"

    @property
    def best_score_key(self) -> str:
        return f"{self.prefix}/best_score"

    @property
    def achievements_key(self) -> str:
        return f"{self.prefix}/achievements"

    # --- low level -------------------------------------------------------

    def _read_json(self, key: str) -> Any:
        try:
            raw = self.r.get(key)
        except redis.RedisError as e:
            logger.warning("Failed to read %s: %s", key, e)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Failed to parse persisted data under %s: %s", key, e)
            return None

    def _write(self, key: str, payload: str) -> None:
        try:
            self.r.set(key, payload)
        except redis.RedisError as e:
            logger.warning("Failed to write %s: %s", key, e)

    # --- loads -----------------------------------------------------------

    def load_state(self) -> dict[str, Any] | None:
        parsed = self._read_json(self.state_key)
        if not isinstance(parsed, dict):
            return None
        if not isinstance(parsed.get("grid"), list) or not isinstance(parsed.get("history"), list):
            return None
        return parsed

    def load_best_score(self) -> int | None:
        parsed = self._read_json(self.best_score_key)
        if isinstance(parsed, bool) or not isinstance(parsed, (int, float)) or not math.isfinite(parsed):
            return None
        return int(parsed)

    def load_achievements(self) -> list[Any] | None:
        parsed = self._read_json(self.achievements_key)
        return parsed if isinstance(parsed, list) else None

    def load(self) -> dict[str, Any] | None:
        """Combined partial snapshot for `GameEngine.hydrate`, or None if nothing is stored."""

        state = self.load_state()
        best_score = self.load_best_score()
        achievements = self.load_achievements()
        if state is None and best_score is None and achievements is None:
            return None

        snapshot: dict[str, Any] = dict(state or {})
        if best_score is not None:
            snapshot["best_score"] = best_score
        if achievements is not None:
            snapshot["achievements"] = achievements
        return snapshot

    # --- saves -----------------------------------------------------------

    def save_state(self, state: PersistedGameState | None) -> None:
        if state is None:
            self.clear_state()
            return
        try:
            payload = state.model_dump_json()
        except (ValidationError, ValueError) as e:
            logger.warning("Failed to serialize game state: %s", e)
            return
        self._write(self.state_key, payload)

    def save_best_score(self, best_score: int) -> None:
        self._write(self.best_score_key, json.dumps(best_score))

    def save_achievements(self, achievements: list[Achievement]) -> None:
        payload = json.dumps([a.model_dump(mode="json") for a in achievements])
        self._write(self.achievements_key, payload)

    def save(self, state: GameState, persisted: PersistedGameState) -> None:
        self.save_state(persisted)
        self.save_best_score(state.best_score)
        self.save_achievements(state.achievements)

    # --- clears ----------------------------------------------------------

    def clear_state(self) -> None:
        try:
            self.r.delete(self.state_key)
        except redis.RedisError as e:
            logger.warning("Failed to clear %s: %s", self.state_key, e)

    def clear(self) -> None:
        try:
            self.r.delete(self.state_key, self.best_score_key, self.achievements_key)
        except redis.RedisError as e:
            logger.warning("Failed to clear game storage: %s", e)
