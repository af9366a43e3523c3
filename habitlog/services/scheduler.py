"""
Rollover scheduler: decides, once per tick, whether each user's day state
must be archived and/or reset.

Rules (evaluated per user, in this order, while holding that user's lock)
------------------------------------------------------------------------
  1. MIDNIGHT ROLLOVER
     Trigger : state.date != today
     Action  : append a "midnight" snapshot + pending named events,
               then replace the state with a zeroed one for today.
               A user rolled over in a tick is not evaluated for rule 2.

  2. INTRA-DAY SNAPSHOT
     Trigger : state.date == today
               AND now.hour in snapshot_hours
               AND now.minute < window_minutes
               AND state.last_snapshot_hour != now.hour
     Action  : append a "snapshot" row + pending named events,
               set last_snapshot_hour = now.hour. Counters are kept.

Failure
-------
In-memory state only changes after the append commits. A PersistenceError
is logged and the user is left as it was, so the next tick retries: the
midnight condition stays true, and the snapshot guard stays unset for as
long as the minute window is open. A snapshot whose window closes before a
retry succeeds is skipped.

Events added between two ticks exist only in memory until the next append.
A crash inside that interval loses them.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional

from habitlog.core.errors import PersistenceError
from habitlog.services.clock import Clock, Now
from habitlog.services.day_state import DayState
from habitlog.services.persistence import (
    PersistenceGateway,
    SnapshotType,
    events_from_items,
    snapshot_from_state,
)
from habitlog.services.registry import DayStateRegistry, StateSlot

logger = logging.getLogger(__name__)


DEFAULT_SNAPSHOT_HOURS = frozenset({3, 6, 9, 12, 15, 18, 21})
DEFAULT_WINDOW_MINUTES = 1


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class TickResult:
    """Summary of what one tick did, per username."""
    now: Now
    rolled_over: list[str] = field(default_factory=list)
    snapshotted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

class RolloverScheduler:
    def __init__(
        self,
        registry: DayStateRegistry,
        gateway: PersistenceGateway,
        clock: Clock,
        snapshot_hours: Iterable[int] = DEFAULT_SNAPSHOT_HOURS,
        window_minutes: int = DEFAULT_WINDOW_MINUTES,
    ):
        self.registry = registry
        self.gateway = gateway
        self.clock = clock
        self.snapshot_hours = frozenset(snapshot_hours)
        self.window_minutes = window_minutes

    def tick(self) -> TickResult:
        """Evaluate every user once against a single reading of the clock."""
        now = self.clock.now()
        result = TickResult(now=now)
        for username in self.registry.usernames():
            with self.registry.locked(username) as slot:
                try:
                    if slot.state.date != now.date:
                        self._rollover(username, slot, now)
                        result.rolled_over.append(username)
                    elif self._snapshot_due(slot.state, now):
                        self._snapshot(username, slot, now)
                        result.snapshotted.append(username)
                except PersistenceError:
                    logger.exception(
                        "Tick for %s failed at %s; will retry next tick",
                        username, now.timestamp.isoformat(timespec="minutes"),
                    )
                    result.failed.append(username)
        return result

    def _snapshot_due(self, state: DayState, now: Now) -> bool:
        return (
            now.hour in self.snapshot_hours
            and now.minute < self.window_minutes
            and state.last_snapshot_hour != now.hour
        )

    def _persist(self, username: str, state: DayState, snapshot_type: SnapshotType, now: Now) -> None:
        snapshot = snapshot_from_state(username, state, snapshot_type, now.timestamp)
        events = events_from_items(username, state.date, state.pending_events())
        self.gateway.append_checkpoint(snapshot, events)
        state.mark_events_persisted()

    def _rollover(self, username: str, slot: StateSlot, now: Now) -> None:
        closed_day = slot.state.date
        self._persist(username, slot.state, SnapshotType.MIDNIGHT, now)
        slot.state = DayState.fresh(now.date)
        logger.info("Saved and reset %s: closed %s, new day %s", username, closed_day, now.date)

    def _snapshot(self, username: str, slot: StateSlot, now: Now) -> None:
        self._persist(username, slot.state, SnapshotType.SNAPSHOT, now)
        slot.state.last_snapshot_hour = now.hour
        logger.info("Saved snapshot for %s at %02d:00", username, now.hour)


# ---------------------------------------------------------------------------
# Background runner
# ---------------------------------------------------------------------------

class SchedulerThread:
    """Runs `scheduler.tick()` every `interval` seconds on a daemon thread."""

    def __init__(self, scheduler: RolloverScheduler, interval: float = 60.0):
        self.scheduler = scheduler
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="rollover-scheduler", daemon=True
        )
        self._thread.start()
        logger.info("Rollover scheduler started (every %ss)", self.interval)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Rollover scheduler stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.scheduler.tick()
            except Exception:
                # Never let one bad tick kill the loop.
                logger.exception("Unexpected error in scheduler tick")
