from __future__ import annotations

import logging
import os


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def get_storage_prefix() -> str:
    return os.environ.get("GAME2048_STORAGE_PREFIX", "2048_clone")


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def get_save_debounce_ms() -> int:
    return _int_from_env("GAME2048_SAVE_DEBOUNCE_MS", 200)


def get_move_throttle_ms() -> int:
    return _int_from_env("GAME2048_MOVE_THROTTLE_MS", 120)


def get_log_level() -> str:
    return os.environ.get("GAME2048_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or get_log_level())
