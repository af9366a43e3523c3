"""
FastAPI dependencies resolving the objects built in the app lifespan.
"""
from fastapi import Request

from habitlog.services.persistence import PersistenceGateway
from habitlog.services.registry import DayStateRegistry


def get_registry(request: Request) -> DayStateRegistry:
    return request.app.state.registry


def get_gateway(request: Request) -> PersistenceGateway:
    return request.app.state.gateway


def get_credentials(request: Request) -> dict[str, str]:
    return request.app.state.credentials
