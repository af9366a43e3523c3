"""
Wall-clock source for every temporal decision.

The scheduler, the recovery loader and the mutation layer all ask the same
Clock for "now", so they agree on what today is. Times are naive wall-clock
values in one fixed basis: the server's local zone, or the zone named by
settings.TIMEZONE.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class Now:
    timestamp: datetime

    @property
    def date(self) -> date:
        return self.timestamp.date()

    @property
    def hour(self) -> int:
        return self.timestamp.hour

    @property
    def minute(self) -> int:
        return self.timestamp.minute


class Clock(ABC):
    @abstractmethod
    def now(self) -> Now:
        ...

    def today(self) -> date:
        return self.now().date


class SystemClock(Clock):
    def __init__(self, timezone: Optional[str] = None):
        self._zone = ZoneInfo(timezone) if timezone else None

    def now(self) -> Now:
        if self._zone is None:
            return Now(datetime.now())
        return Now(datetime.now(tz=self._zone).replace(tzinfo=None))
