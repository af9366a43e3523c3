"""
DayStateRegistry: the single owner of every user's live DayState.

Built once at startup by the recovery loader and injected into the HTTP
layer and the scheduler. Each user has one lock; every read-modify-write
on that user's state, including the scheduler's persist-then-reset
sequence, runs while holding it. Readers always get a copy.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, TypeVar

from habitlog.core.errors import UserNotFoundError
from habitlog.services.clock import Clock
from habitlog.services.day_state import DayState

T = TypeVar("T")


@dataclass
class StateSlot:
    """Holder the scheduler may re-point to a fresh DayState at rollover."""
    state: DayState
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class DayStateRegistry:
    def __init__(self, clock: Clock):
        self.clock = clock
        self._slots: dict[str, StateSlot] = {}

    def install(self, username: str, state: DayState) -> None:
        """Register a recovered state. Only called before the app starts serving."""
        if username in self._slots:
            raise ValueError(f"Day state for {username!r} is already installed")
        self._slots[username] = StateSlot(state=state)

    def usernames(self) -> list[str]:
        return list(self._slots)

    def __contains__(self, username: object) -> bool:
        return username in self._slots

    @contextmanager
    def locked(self, username: str) -> Iterator[StateSlot]:
        slot = self._slot(username)
        with slot.lock:
            yield slot

    # ------------------------------------------------------------------
    # Read accessor
    # ------------------------------------------------------------------

    def get(self, username: str) -> DayState:
        with self.locked(username) as slot:
            return slot.state.copy()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def increment(self, username: str, name: str) -> DayState:
        return self._mutate(username, lambda s: s.increment(name))

    def decrement(self, username: str, name: str) -> DayState:
        return self._mutate(username, lambda s: s.decrement(name))

    def toggle(self, username: str, name: str) -> DayState:
        return self._mutate(username, lambda s: s.toggle(name))

    def add_event(self, username: str, category: str, name: str) -> DayState:
        # Stamped under the lock so a concurrent rollover cannot split date and time.
        return self._mutate(
            username, lambda s: s.add_event(category, name, self.clock.now().timestamp)
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _slot(self, username: str) -> StateSlot:
        try:
            return self._slots[username]
        except KeyError:
            raise UserNotFoundError(username) from None

    def _mutate(self, username: str, op: Callable[[DayState], T]) -> DayState:
        with self.locked(username) as slot:
            op(slot.state)
            return slot.state.copy()
