"""Injectable time source. Everything that asks "what day is it" goes through a Clock."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock, always tz-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Deterministic clock for tests and replays."""

    def __init__(self, moment: datetime):
        self._moment = moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._moment

    def advance(self, **delta) -> None:
        self._moment = self._moment + timedelta(**delta)


def today(clock: Clock) -> date:
    return clock.now().astimezone(timezone.utc).date()


system_clock = SystemClock()
