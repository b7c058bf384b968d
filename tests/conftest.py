from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from itertools import count

import fakeredis
import pytest


@pytest.fixture()
def clock() -> Callable[[], datetime]:
    """Deterministic clock: one second later on every call."""

    start = datetime(2025, 1, 1, tzinfo=UTC)
    ticks = count()

    def _now() -> datetime:
        return start + timedelta(seconds=next(ticks))

    return _now


@pytest.fixture()
def zero_rng() -> Callable[[], float]:
    # Always the first empty cell, always a 2.
    return lambda: 0.0


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)
