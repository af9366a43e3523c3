from datetime import datetime, date
from sqlalchemy import Integer, String, DateTime, Date, Index
from sqlalchemy.orm import Mapped, mapped_column

from habitlog.db.base import Base


class NamedEvent(Base):
    """One restaurant/film/show/book logged by a user. Append-only."""

    __tablename__ = "named_events"
    __table_args__ = (
        Index("ix_named_events_user_day", "username", "day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    # Singular event type: "restaurant", "film", "show", "book"
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
