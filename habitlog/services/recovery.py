"""
Startup recovery: rebuild each user's live DayState from the archive.

For today's date the loader takes the latest snapshot row (midnight or
intra-day), restores its counters, then replays today's named events in
chronological order. No snapshot for today means a fresh zeroed state, as
if the midnight rollover had already run.

last_snapshot_hour is always reset to None, even when the loaded row was
an intra-day snapshot for the current hour: one extra snapshot may fire,
none is missed.

Any PersistenceError propagates. A user whose state could not be read
must not be served.
"""
from __future__ import annotations

import logging
from typing import Iterable

from habitlog.services.clock import Clock
from habitlog.services.day_state import DayState
from habitlog.services.persistence import PersistenceGateway, counters_from_snapshot
from habitlog.services.registry import DayStateRegistry

logger = logging.getLogger(__name__)


class RecoveryLoader:
    def __init__(self, gateway: PersistenceGateway, clock: Clock):
        self.gateway = gateway
        self.clock = clock

    def load(self, username: str) -> DayState:
        today = self.clock.today()
        snapshot = self.gateway.query_latest_snapshot(username, today)
        if snapshot is None:
            logger.info("No snapshot for %s on %s; starting a fresh day", username, today)
            return DayState.fresh(today)

        state = DayState(date=snapshot.day, counters=counters_from_snapshot(snapshot))
        replayed = 0
        for row in self.gateway.query_events(username, today):
            if not state.restore_event(row.category, row.name, row.time):
                logger.warning(
                    "Skipping named event %s with unknown type %r", row.id, row.category
                )
                continue
            replayed += 1

        logger.info(
            "Recovered %s from %s snapshot #%s (%d events)",
            username, snapshot.snapshot_type, snapshot.id, replayed,
        )
        return state

    def load_all(self, usernames: Iterable[str]) -> DayStateRegistry:
        """Recover every user into a new registry. Fails on the first error."""
        registry = DayStateRegistry(self.clock)
        for username in usernames:
            registry.install(username, self.load(username))
        return registry
