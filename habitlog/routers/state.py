"""
Day state router.

POST /login
GET  /state/{user}
GET  /state/{user}/{day}
POST /increment/{user}/{field}
POST /decrement/{user}/{field}
POST /toggle/{user}/{field}
POST /add/{user}/{category}

Handlers are plain `def` so they run in the thread pool; the registry's
per-user lock serialises them against the scheduler tick.
"""
from datetime import date

from fastapi import APIRouter, Depends

from habitlog.core.errors import InvalidCredentialsError
from habitlog.routers.dependencies import get_credentials, get_gateway, get_registry
from habitlog.schemas.common import ErrorResponse
from habitlog.schemas.state import (
    AddEventRequest,
    DayStateResponse,
    LoginRequest,
    LoginResponse,
)
from habitlog.services.auth import lookup_user
from habitlog.services.history import get_day_view
from habitlog.services.persistence import PersistenceGateway
from habitlog.services.registry import DayStateRegistry

router = APIRouter(tags=["state"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "No live state for the user."}}
_BAD_FIELD = {400: {"model": ErrorResponse, "description": "Unknown or non-numeric field."}}


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Check a user's password",
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials."}},
)
def login(
    payload: LoginRequest,
    credentials: dict[str, str] = Depends(get_credentials),
):
    if not lookup_user(credentials, payload.user, payload.password):
        raise InvalidCredentialsError()
    return LoginResponse(user=payload.user)


@router.get(
    "/state/{user}",
    response_model=DayStateResponse,
    summary="Live state for today",
    responses=_NOT_FOUND,
)
def live_state(user: str, registry: DayStateRegistry = Depends(get_registry)):
    return DayStateResponse.from_state(user, registry.get(user))


@router.get(
    "/state/{user}/{day}",
    response_model=DayStateResponse,
    summary="State of any day",
    responses=_NOT_FOUND,
)
def day_state(
    user: str,
    day: date,
    registry: DayStateRegistry = Depends(get_registry),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """
    Today returns the live state. Other days are rebuilt from the latest
    archived snapshot and that day's named events; a day with nothing
    archived is returned zeroed with `read_only: true`.
    """
    view = get_day_view(registry, gateway, user, day)
    return DayStateResponse.from_state(user, view.state, read_only=view.read_only)


@router.post(
    "/increment/{user}/{field}",
    response_model=DayStateResponse,
    summary="Add one to a counter",
    responses={**_NOT_FOUND, **_BAD_FIELD},
)
def increment(user: str, field: str, registry: DayStateRegistry = Depends(get_registry)):
    return DayStateResponse.from_state(user, registry.increment(user, field))


@router.post(
    "/decrement/{user}/{field}",
    response_model=DayStateResponse,
    summary="Subtract one from a counter (never below zero)",
    responses={**_NOT_FOUND, **_BAD_FIELD},
)
def decrement(user: str, field: str, registry: DayStateRegistry = Depends(get_registry)):
    return DayStateResponse.from_state(user, registry.decrement(user, field))


@router.post(
    "/toggle/{user}/{field}",
    response_model=DayStateResponse,
    summary="Flip a counter between 0 and 1",
    responses={**_NOT_FOUND, **_BAD_FIELD},
)
def toggle(user: str, field: str, registry: DayStateRegistry = Depends(get_registry)):
    return DayStateResponse.from_state(user, registry.toggle(user, field))


@router.post(
    "/add/{user}/{category}",
    response_model=DayStateResponse,
    summary="Log a restaurant, film, show or book",
    responses={**_NOT_FOUND, 400: {"model": ErrorResponse, "description": "Not an event category."}},
)
def add_event(
    user: str,
    category: str,
    payload: AddEventRequest,
    registry: DayStateRegistry = Depends(get_registry),
):
    """The event is held in memory and archived at the next snapshot or rollover."""
    return DayStateResponse.from_state(user, registry.add_event(user, category, payload.name))
