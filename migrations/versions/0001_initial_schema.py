"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00.000000

day_snapshots and named_events are append-only; nothing updates or
deletes their rows.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_COUNTERS = ("poop", "piss", "coffee", "shower", "sick", "workout", "nap", "party")
_EVENT_COUNTS = ("restaurant_count", "film_count", "show_count", "book_count")


def upgrade() -> None:
    # --- day_snapshots ---
    op.create_table(
        "day_snapshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("snapshot_type", sa.String(16), nullable=False),
        *[sa.Column(name, sa.Integer(), nullable=False, server_default="0") for name in _COUNTERS],
        *[sa.Column(name, sa.Integer(), nullable=False, server_default="0") for name in _EVENT_COUNTS],
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_day_snapshots_id", "day_snapshots", ["id"])
    op.create_index("ix_day_snapshots_user_day", "day_snapshots", ["username", "day"])

    # --- named_events ---
    op.create_table(
        "named_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("time", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_named_events_id", "named_events", ["id"])
    op.create_index("ix_named_events_user_day", "named_events", ["username", "day"])


def downgrade() -> None:
    op.drop_index("ix_named_events_user_day", table_name="named_events")
    op.drop_index("ix_named_events_id", table_name="named_events")
    op.drop_table("named_events")
    op.drop_index("ix_day_snapshots_user_day", table_name="day_snapshots")
    op.drop_index("ix_day_snapshots_id", table_name="day_snapshots")
    op.drop_table("day_snapshots")
