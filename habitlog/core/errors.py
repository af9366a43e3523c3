"""
Custom exception hierarchy for habitlog.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class HabitLogException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class UserNotFoundError(HabitLogException):
    """No live day state is held for the username."""
    http_status = status.HTTP_404_NOT_FOUND
    code = "USER_NOT_FOUND"

    def __init__(self, username: str):
        super().__init__(
            message=f"User {username!r} not found.",
            details={"user": username},
        )


class UnknownFieldError(HabitLogException):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "UNKNOWN_FIELD"

    def __init__(
        self,
        field: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message or f"Unknown field {field!r}.",
            details=details if details is not None else {"field": field},
        )


class InvalidCategoryError(UnknownFieldError):
    """An event was added to something that is not an event category."""
    code = "INVALID_CATEGORY"

    def __init__(self, category: str):
        super().__init__(
            category,
            message=f"{category!r} is not an event category.",
            details={"category": category},
        )


class NotNumericError(HabitLogException):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "NOT_NUMERIC"

    def __init__(self, field: str):
        super().__init__(
            message=f"Field {field!r} is not a numeric counter.",
            details={"field": field},
        )


class InvalidCredentialsError(HabitLogException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"

    def __init__(self):
        super().__init__(message="Invalid credentials.")


class PersistenceError(HabitLogException):
    """Any failed read or write against the snapshot archive."""
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Persistence operation {operation!r} failed: {reason}",
            details={"operation": operation},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def habitlog_exception_handler(request: Request, exc: HabitLogException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
