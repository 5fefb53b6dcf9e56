"""Wall-clock helpers; every timestamp comparison goes through an injectable clock."""

from __future__ import annotations

import datetime as dt
from typing import Callable

Clock = Callable[[], dt.datetime]


def utcnow() -> dt.datetime:
    """Current time as an aware UTC datetime."""
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


class FrozenClock:
    """Manually advanced clock for deterministic tests and scripts."""

    def __init__(self, start: dt.datetime | None = None) -> None:
        self._now = as_utc(start or utcnow())

    def __call__(self) -> dt.datetime:
        return self._now

    def advance(self, delta: dt.timedelta) -> dt.datetime:
        self._now = self._now + delta
        return self._now

    def set(self, value: dt.datetime) -> None:
        self._now = as_utc(value)
