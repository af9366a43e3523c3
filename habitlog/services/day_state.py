"""
In-memory daily aggregate for one user.

Every recognised field is declared once in FIELD_SCHEMA as either a counter
or an event list; mutations dispatch on that declared kind. The plural
in-memory category and the singular event type stored in `named_events`
are related only through CATEGORY_TO_EVENT_TYPE / EVENT_TYPE_TO_CATEGORY.

No I/O happens here. Locking is the registry's job.
"""
from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from habitlog.core.errors import InvalidCategoryError, NotNumericError, UnknownFieldError


class FieldKind(str, enum.Enum):
    counter = "counter"
    event_list = "event_list"


COUNTER_FIELDS: tuple[str, ...] = (
    "poop",
    "piss",
    "coffee",
    "shower",
    "sick",
    "workout",
    "nap",
    "party",
)

CATEGORY_TO_EVENT_TYPE: dict[str, str] = {
    "restaurants": "restaurant",
    "films": "film",
    "shows": "show",
    "books": "book",
}
EVENT_TYPE_TO_CATEGORY: dict[str, str] = {v: k for k, v in CATEGORY_TO_EVENT_TYPE.items()}

EVENT_CATEGORIES: tuple[str, ...] = tuple(CATEGORY_TO_EVENT_TYPE)

FIELD_SCHEMA: dict[str, FieldKind] = {
    **{name: FieldKind.counter for name in COUNTER_FIELDS},
    **{name: FieldKind.event_list for name in EVENT_CATEGORIES},
}


def field_kind(name: str) -> FieldKind:
    try:
        return FIELD_SCHEMA[name]
    except KeyError:
        raise UnknownFieldError(name) from None


def _require_counter(name: str) -> None:
    if field_kind(name) is not FieldKind.counter:
        raise NotNumericError(name)


@dataclass
class EventItem:
    name: str
    time: datetime
    # True once the item has been written to named_events.
    persisted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "time": self.time.isoformat()}


@dataclass
class DayState:
    date: date
    counters: dict[str, int] = field(
        default_factory=lambda: {name: 0 for name in COUNTER_FIELDS}
    )
    events: dict[str, list[EventItem]] = field(
        default_factory=lambda: {name: [] for name in EVENT_CATEGORIES}
    )
    last_snapshot_hour: Optional[int] = None

    @classmethod
    def fresh(cls, day: date) -> "DayState":
        """A zeroed state for `day` with no snapshot taken yet."""
        return cls(date=day)

    # --- mutations ---

    def increment(self, name: str) -> int:
        _require_counter(name)
        self.counters[name] += 1
        return self.counters[name]

    def decrement(self, name: str) -> int:
        """Decrease by one, never below zero. Decrementing zero is not an error."""
        _require_counter(name)
        self.counters[name] = max(0, self.counters[name] - 1)
        return self.counters[name]

    def toggle(self, name: str) -> int:
        _require_counter(name)
        self.counters[name] = 0 if self.counters[name] else 1
        return self.counters[name]

    def add_event(self, category: str, name: str, time: datetime) -> EventItem:
        if field_kind(category) is not FieldKind.event_list:
            raise InvalidCategoryError(category)
        item = EventItem(name=name, time=time)
        self.events[category].append(item)
        return item

    # --- persistence bookkeeping ---

    def restore_event(self, event_type: str, name: str, time: datetime) -> bool:
        """Append an already-archived event by its singular type. False if unknown."""
        category = EVENT_TYPE_TO_CATEGORY.get(event_type)
        if category is None:
            return False
        self.events[category].append(EventItem(name=name, time=time, persisted=True))
        return True

    def event_counts(self) -> dict[str, int]:
        return {category: len(items) for category, items in self.events.items()}

    def pending_events(self) -> list[tuple[str, EventItem]]:
        """Events not yet written to the archive, in insertion order per category."""
        return [
            (category, item)
            for category, items in self.events.items()
            for item in items
            if not item.persisted
        ]

    def mark_events_persisted(self) -> None:
        for items in self.events.values():
            for item in items:
                item.persisted = True

    # --- views ---

    def copy(self) -> "DayState":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "counters": dict(self.counters),
            "events": {
                category: [item.to_dict() for item in items]
                for category, items in self.events.items()
            },
            "last_snapshot_hour": self.last_snapshot_hour,
        }
