"""
RFC 9457 Problem Details pour HTTP APIs.

Ce module réexporte les exceptions du module fastapi-errors-rfc9457 et
traduit les erreurs du backend hébergé en réponses problem+json.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi_errors_rfc9457 import ConflictError, NotFoundError

from app.infrastructure.backend.exceptions import (
    BackendAuthError,
    BackendConnectionError,
    BackendError,
    BackendNotFoundError,
    BackendOperationError,
)

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"

_TITLES = {
    401: "Unauthorized",
    404: "Not Found",
    409: "Conflict",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def backend_error_status(exc: BackendError) -> int:
    """
    Code HTTP exposé pour une erreur du backend.

    - connexion / timeout -> 503
    - aucune ligne trouvée -> 404
    - violation d'unicité -> 409
    - jeton refusé par le fournisseur d'auth -> 401
    - tout autre échec -> 502
    """
    if isinstance(exc, BackendConnectionError):
        return 503
    if isinstance(exc, BackendNotFoundError):
        return 404
    if isinstance(exc, BackendOperationError) and exc.is_unique_violation:
        return 409
    if isinstance(exc, BackendAuthError) and exc.status_code == 401:
        return 401
    return 502


def backend_problem(exc: BackendError, instance: str | None = None) -> dict:
    """Corps RFC 9457 pour une erreur du backend."""
    status_code = backend_error_status(exc)
    problem = {
        "type": "about:blank",
        "title": _TITLES[status_code],
        "status": status_code,
        "detail": exc.message,
    }
    if instance:
        problem["instance"] = instance
    code = getattr(exc, "code", None)
    if code:
        problem["backend_code"] = code
    return problem


async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    """Exception handler FastAPI pour la hiérarchie BackendError."""
    problem = backend_problem(exc, instance=request.url.path)
    if problem["status"] >= 500:
        logger.error(f"Backend error on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"Backend {problem['status']} on {request.method} {request.url.path}: {exc.message}")

    headers = {"Retry-After": "30"} if problem["status"] == 503 else None
    return JSONResponse(
        status_code=problem["status"],
        content=problem,
        media_type=PROBLEM_JSON,
        headers=headers,
    )


__all__ = [
    "ConflictError",
    "NotFoundError",
    "backend_error_handler",
    "backend_error_status",
    "backend_problem",
]
