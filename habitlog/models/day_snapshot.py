"""
DaySnapshot: archived copy of one user's day state.

Append-only. Several rows may exist per (username, day); the most recently
created one (highest id on equal timestamps) is the state of that day.

snapshot_type values:
  "midnight"  written when the day rolls over; the final state of the day
  "snapshot"  intra-day checkpoint at one of the configured hours

Named events are stored in full in `named_events`; this table keeps only
their per-category counts.
"""
from datetime import datetime, date
from sqlalchemy import Integer, String, DateTime, Date, Index
from sqlalchemy.orm import Mapped, mapped_column

from habitlog.db.base import Base


class DaySnapshot(Base):
    __tablename__ = "day_snapshots"
    __table_args__ = (
        Index("ix_day_snapshots_user_day", "username", "day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    snapshot_type: Mapped[str] = mapped_column(
        String(16), nullable=False,
        comment='"midnight" or "snapshot"',
    )

    # Counters
    poop: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    piss: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    coffee: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    shower: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sick: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    workout: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nap: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    party: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Named event counts
    restaurant_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    film_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    show_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    book_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False,
        comment="Wall-clock time of the tick that wrote the row (server-local)",
    )
