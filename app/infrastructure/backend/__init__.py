"""Hosted backend integration package (REST tables and auth surface)."""

from app.infrastructure.backend.auth import AuthClient, AuthSession
from app.infrastructure.backend.client import BackendClient, SelectResult
from app.infrastructure.backend.config import backend_settings
from app.infrastructure.backend.exceptions import (
    BackendAuthError,
    BackendConnectionError,
    BackendError,
    BackendNotFoundError,
    BackendOperationError,
)
from app.infrastructure.backend.query import Query

__all__ = [
    "AuthClient",
    "AuthSession",
    "BackendAuthError",
    "BackendClient",
    "BackendConnectionError",
    "BackendError",
    "BackendNotFoundError",
    "BackendOperationError",
    "Query",
    "SelectResult",
    "backend_settings",
]
