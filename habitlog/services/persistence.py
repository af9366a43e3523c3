"""
Persistence gateway: append-only archive of day snapshots and named events.

Public API
----------
append_snapshot(record)                 -> None
append_events(records)                  -> None
append_checkpoint(snapshot, events)     -> None   (one transaction)
query_latest_snapshot(username, day)    -> DaySnapshot | None
query_events(username, day)             -> list[NamedEvent]

Rows are never updated or deleted. Every SQLAlchemy failure, including
connection and pool timeouts, surfaces as PersistenceError so callers
handle exactly one failure type.
"""
from __future__ import annotations

import enum
import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from habitlog.core.errors import PersistenceError
from habitlog.models.day_snapshot import DaySnapshot
from habitlog.models.named_event import NamedEvent
from habitlog.services.day_state import (
    CATEGORY_TO_EVENT_TYPE,
    COUNTER_FIELDS,
    DayState,
    EventItem,
)

logger = logging.getLogger(__name__)


class SnapshotType(str, enum.Enum):
    MIDNIGHT = "midnight"
    SNAPSHOT = "snapshot"


def _count_column(category: str) -> str:
    return f"{CATEGORY_TO_EVENT_TYPE[category]}_count"


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------

def snapshot_from_state(
    username: str,
    state: DayState,
    snapshot_type: SnapshotType,
    created_at: datetime,
) -> DaySnapshot:
    counts = {_count_column(c): n for c, n in state.event_counts().items()}
    return DaySnapshot(
        username=username,
        day=state.date,
        snapshot_type=SnapshotType(snapshot_type).value,
        created_at=created_at,
        **state.counters,
        **counts,
    )


def events_from_items(
    username: str,
    day: date,
    items: Sequence[tuple[str, EventItem]],
) -> list[NamedEvent]:
    return [
        NamedEvent(
            username=username,
            day=day,
            category=CATEGORY_TO_EVENT_TYPE[category],
            name=item.name,
            time=item.time,
        )
        for category, item in items
    ]


def counters_from_snapshot(row: DaySnapshot) -> dict[str, int]:
    return {name: getattr(row, name) for name in COUNTER_FIELDS}


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class PersistenceGateway:
    """SQLAlchemy-backed archive. One short-lived session per call."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            with self._session_factory() as db:
                yield db
        except SQLAlchemyError as exc:
            logger.warning("Persistence operation %s failed: %s", operation, exc)
            raise PersistenceError(operation, str(exc)) from exc

    # --- writes ---

    def append_snapshot(self, record: DaySnapshot) -> None:
        self.append_checkpoint(record, [])

    def append_events(self, records: Sequence[NamedEvent]) -> None:
        if not records:
            return
        with self._session("append_events") as db:
            db.add_all(records)
            db.commit()

    def append_checkpoint(
        self, snapshot: DaySnapshot, events: Sequence[NamedEvent]
    ) -> None:
        """Append a snapshot row and its pending event rows atomically."""
        with self._session("append_checkpoint") as db:
            db.add(snapshot)
            db.add_all(events)
            db.commit()

    # --- reads ---

    def query_latest_snapshot(self, username: str, day: date) -> Optional[DaySnapshot]:
        statement = (
            select(DaySnapshot)
            .where(DaySnapshot.username == username, DaySnapshot.day == day)
            .order_by(DaySnapshot.created_at.desc(), DaySnapshot.id.desc())
            .limit(1)
        )
        with self._session("query_latest_snapshot") as db:
            return db.scalars(statement).first()

    def query_events(self, username: str, day: date) -> list[NamedEvent]:
        statement = (
            select(NamedEvent)
            .where(NamedEvent.username == username, NamedEvent.day == day)
            .order_by(NamedEvent.time, NamedEvent.id)
        )
        with self._session("query_events") as db:
            return list(db.scalars(statement).all())
