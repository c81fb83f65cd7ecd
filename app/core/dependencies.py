"""Dependances FastAPI pour l'injection de services."""

from fastapi import Depends, HTTPException, Request, status

from app.infrastructure.backend.client import BackendClient
from app.services.session_manager import SessionManager


def get_backend_client(request: Request) -> BackendClient:
    """
    Recupere le client backend depuis l'etat de l'application.

    Le client est initialise dans le lifespan de l'application (main.py)
    et stocke dans app.state.backend_client.

    Raises:
        RuntimeError: Si le client backend n'est pas initialise
    """
    backend_client = getattr(request.app.state, "backend_client", None)
    if backend_client is None:
        raise RuntimeError(
            "Backend client not initialized. "
            "Ensure the application lifespan properly initializes app.state.backend_client"
        )
    return backend_client


def get_session_manager(request: Request) -> SessionManager:
    """Recupere le gestionnaire de session depuis app.state.session_manager."""
    session_manager = getattr(request.app.state, "session_manager", None)
    if session_manager is None:
        raise RuntimeError(
            "Session manager not initialized. "
            "Ensure the application lifespan properly initializes app.state.session_manager"
        )
    return session_manager


def require_authenticated_session(
    session_manager: SessionManager = Depends(get_session_manager),
) -> SessionManager:
    """
    Exige une session operateur active.

    Raises:
        HTTPException: 401 si aucun operateur n'est connecte
    """
    if not session_manager.state.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Operator session required. Log in first.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session_manager
