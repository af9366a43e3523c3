"""
Day state request / response schemas.

POST /login                        → LoginRequest → LoginResponse
GET  /state/{user}[/{day}]         → DayStateResponse
POST /increment|decrement|toggle   → DayStateResponse
POST /add/{user}/{category}        → AddEventRequest → DayStateResponse
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints

from habitlog.services.day_state import DayState


class LoginRequest(BaseModel):
    user: str
    password: str


class LoginResponse(BaseModel):
    ok: bool = True
    user: str


class AddEventRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=256)] = Field(
        description="Restaurant, film, show or book name.",
        examples=["Joe's"],
    )


class EventItemResponse(BaseModel):
    name: str
    time: datetime


class DayStateResponse(BaseModel):
    """One user's counters and named events for a single day."""
    user: str
    date: str = Field(description="ISO date the state accumulates.")
    counters: dict[str, int]
    events: dict[str, list[EventItemResponse]]
    last_snapshot_hour: Optional[int] = Field(
        default=None,
        description="Hour of the last intra-day snapshot taken today, if any.",
    )
    read_only: bool = Field(
        default=False,
        description="True for a past day with nothing archived.",
    )

    @classmethod
    def from_state(cls, user: str, state: DayState, read_only: bool = False) -> "DayStateResponse":
        return cls(user=user, read_only=read_only, **state.to_dict())
