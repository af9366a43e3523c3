"""
Read-only view of any day for a user.

The day the live state holds is served from the registry, including a day
that ended at midnight but has not been rolled over yet. Other days are
rebuilt from the archive: latest snapshot counters plus that day's named
events.
A day with nothing archived comes back zeroed and flagged read_only.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from habitlog.services.day_state import DayState
from habitlog.services.persistence import PersistenceGateway, counters_from_snapshot
from habitlog.services.registry import DayStateRegistry


@dataclass
class DayView:
    state: DayState
    read_only: bool


def get_day_view(
    registry: DayStateRegistry,
    gateway: PersistenceGateway,
    username: str,
    day: date,
) -> DayView:
    live = registry.get(username)
    if day == live.date:
        return DayView(state=live, read_only=False)
    if day == registry.clock.today():
        # Midnight passed but the rollover has not run yet: today is still empty.
        return DayView(state=DayState.fresh(day), read_only=False)

    snapshot = gateway.query_latest_snapshot(username, day)
    events = gateway.query_events(username, day)
    if snapshot is None and not events:
        return DayView(state=DayState.fresh(day), read_only=True)

    state = DayState.fresh(day)
    if snapshot is not None:
        state.counters = counters_from_snapshot(snapshot)
    for row in events:
        state.restore_event(row.category, row.name, row.time)
    return DayView(state=state, read_only=False)
