"""Domain errors.

Each one is an ``HTTPException`` so FastAPI renders it directly; services
raise them and routers stay thin.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class CapacityExceeded(HTTPException):
    """A 'going' admission would push the event past its capacity."""

    def __init__(self, event_id: str, capacity: int):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "code": "capacity_exceeded",
                "message": "This event is at full capacity",
                "event_id": event_id,
                "capacity": capacity,
            },
        )


class AuthorizationDenied(HTTPException):
    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "authorization_denied", "message": message},
        )


class ValidationFailed(HTTPException):
    def __init__(self, message: str, field: Optional[str] = None):
        detail: dict[str, Any] = {"code": "validation_failed", "message": message}
        if field:
            detail["field"] = field
        super().__init__(status_code=422, detail=detail)


class WriteConflict(HTTPException):
    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "conflict", "message": message},
        )


class NotFound(HTTPException):
    def __init__(self, what: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


class InvalidState(HTTPException):
    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_state", "message": message},
        )


class DependencyUnavailable(Exception):
    """An external collaborator (embedding provider) could not be reached.

    Never surfaced over HTTP: callers degrade or skip.
    """

    def __init__(self, dependency: str, reason: str, retryable: bool = True):
        super().__init__(f"{dependency} unavailable: {reason}")
        self.dependency = dependency
        self.reason = reason
        self.retryable = retryable
