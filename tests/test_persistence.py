"""
Tests for the persistence gateway against SQLite.
"""
from datetime import datetime

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from habitlog.core.errors import PersistenceError
from habitlog.models.day_snapshot import DaySnapshot
from habitlog.models.named_event import NamedEvent
from habitlog.services.day_state import DayState
from habitlog.services.persistence import (
    PersistenceGateway,
    SnapshotType,
    counters_from_snapshot,
    events_from_items,
    snapshot_from_state,
)

from conftest import TODAY, YESTERDAY


def _snapshot(username="mikel", day=TODAY, created_at=datetime(2026, 3, 14, 12, 0), **counters):
    state = DayState.fresh(day)
    state.counters.update(counters)
    return snapshot_from_state(username, state, SnapshotType.SNAPSHOT, created_at)


def _event(username="mikel", day=TODAY, category="film", name="Dune", time=datetime(2026, 3, 14, 9, 0)):
    return NamedEvent(username=username, day=day, category=category, name=name, time=time)


@pytest.fixture()
def broken_gateway(tmp_path):
    # Parent directory does not exist, so every connect fails.
    url = f"sqlite:///{tmp_path / 'missing' / 'habitlog.db'}"
    engine = create_engine(url)
    return PersistenceGateway(sessionmaker(bind=engine))


class TestRecordBuilders:
    def test_snapshot_type_is_a_str_enum(self):
        assert isinstance(SnapshotType.MIDNIGHT, str)
        assert SnapshotType("snapshot") is SnapshotType.SNAPSHOT
        assert [t.value for t in SnapshotType] == ["midnight", "snapshot"]

    def test_snapshot_from_state_copies_counters_and_counts(self):
        state = DayState.fresh(TODAY)
        state.increment("poop")
        state.increment("coffee")
        state.increment("coffee")
        state.add_event("restaurants", "Joe's", datetime(2026, 3, 14, 13, 0))
        state.add_event("books", "Emma", datetime(2026, 3, 14, 22, 0))
        row = snapshot_from_state("mikel", state, SnapshotType.MIDNIGHT, datetime(2026, 3, 15, 0, 0))
        assert row.username == "mikel"
        assert row.day == TODAY
        assert row.snapshot_type == "midnight"
        assert type(row.snapshot_type) is str
        assert counters_from_snapshot(row)["coffee"] == 2
        assert row.poop == 1
        assert row.restaurant_count == 1
        assert row.book_count == 1
        assert row.film_count == 0

    def test_events_from_items_uses_singular_type(self):
        state = DayState.fresh(TODAY)
        state.add_event("restaurants", "Joe's", datetime(2026, 3, 14, 13, 0))
        rows = events_from_items("mikel", TODAY, state.pending_events())
        assert len(rows) == 1
        assert rows[0].category == "restaurant"
        assert rows[0].name == "Joe's"
        assert rows[0].day == TODAY


class TestLatestSnapshot:
    def test_none_when_empty(self, gateway):
        assert gateway.query_latest_snapshot("mikel", TODAY) is None

    def test_most_recently_created_wins(self, gateway):
        gateway.append_snapshot(_snapshot(created_at=datetime(2026, 3, 14, 9, 0), poop=1))
        gateway.append_snapshot(_snapshot(created_at=datetime(2026, 3, 14, 15, 0), poop=3))
        gateway.append_snapshot(_snapshot(created_at=datetime(2026, 3, 14, 12, 0), poop=2))
        latest = gateway.query_latest_snapshot("mikel", TODAY)
        assert latest.poop == 3

    def test_same_timestamp_highest_id_wins(self, gateway):
        gateway.append_snapshot(_snapshot(poop=1))
        gateway.append_snapshot(_snapshot(poop=2))
        assert gateway.query_latest_snapshot("mikel", TODAY).poop == 2

    def test_filtered_by_user_and_day(self, gateway):
        gateway.append_snapshot(_snapshot(username="eneko", poop=7))
        gateway.append_snapshot(_snapshot(day=YESTERDAY, poop=9))
        assert gateway.query_latest_snapshot("mikel", TODAY) is None
        assert gateway.query_latest_snapshot("eneko", TODAY).poop == 7
        assert gateway.query_latest_snapshot("mikel", YESTERDAY).poop == 9

    def test_rows_are_appended_never_replaced(self, gateway, db):
        gateway.append_snapshot(_snapshot(poop=1))
        gateway.append_snapshot(_snapshot(poop=1))
        assert db.scalar(select(func.count(DaySnapshot.id))) == 2


class TestEvents:
    def test_ordered_by_time(self, gateway):
        gateway.append_events([
            _event(name="late", time=datetime(2026, 3, 14, 21, 0)),
            _event(name="early", time=datetime(2026, 3, 14, 8, 0)),
        ])
        names = [row.name for row in gateway.query_events("mikel", TODAY)]
        assert names == ["early", "late"]

    def test_filtered_by_user_and_day(self, gateway):
        gateway.append_events([
            _event(),
            _event(username="eneko"),
            _event(day=YESTERDAY),
        ])
        rows = gateway.query_events("mikel", TODAY)
        assert len(rows) == 1
        assert rows[0].category == "film"

    def test_empty_append_is_noop(self, gateway, db):
        gateway.append_events([])
        assert db.scalar(select(func.count(NamedEvent.id))) == 0

    def test_checkpoint_writes_snapshot_and_events(self, gateway, db):
        gateway.append_checkpoint(_snapshot(poop=4), [_event(), _event(category="book")])
        assert db.scalar(select(func.count(DaySnapshot.id))) == 1
        assert db.scalar(select(func.count(NamedEvent.id))) == 2


class TestFailures:
    def test_read_failure_raises_persistence_error(self, broken_gateway):
        with pytest.raises(PersistenceError) as exc_info:
            broken_gateway.query_latest_snapshot("mikel", TODAY)
        assert exc_info.value.details["operation"] == "query_latest_snapshot"

    def test_events_read_failure(self, broken_gateway):
        with pytest.raises(PersistenceError):
            broken_gateway.query_events("mikel", TODAY)

    def test_write_failure_raises_persistence_error(self, broken_gateway):
        with pytest.raises(PersistenceError) as exc_info:
            broken_gateway.append_checkpoint(_snapshot(), [_event()])
        assert exc_info.value.code == "PERSISTENCE_ERROR"
