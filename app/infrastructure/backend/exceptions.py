"""Backend-specific exceptions for error handling."""

from typing import Any

# PostgREST error codes worth distinguishing
NO_ROWS_CODE = "PGRST116"
UNIQUE_VIOLATION_CODE = "23505"


class BackendError(Exception):
    """Base exception for backend operations."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BackendConnectionError(BackendError):
    """Raised when connection to the backend fails."""

    pass


class BackendNotFoundError(BackendError):
    """Raised when a single-row select matches nothing."""

    def __init__(self, table: str, criteria: str | None = None):
        message = f"{table} not found" if not criteria else f"{table} not found ({criteria})"
        super().__init__(message, {"table": table, "criteria": criteria})
        self.table = table
        self.criteria = criteria


class BackendOperationError(BackendError):
    """Raised when a backend operation fails (non-2xx response)."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str | None = None,
        payload: dict | None = None,
    ):
        super().__init__(message, {"status_code": status_code, "code": code, "payload": payload})
        self.status_code = status_code
        self.code = code
        self.payload = payload

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION_CODE


class BackendAuthError(BackendError):
    """Raised when the auth surface rejects a request."""

    def __init__(self, status_code: int, message: str, code: str | None = None):
        super().__init__(message, {"status_code": status_code, "code": code})
        self.status_code = status_code
        self.code = code
