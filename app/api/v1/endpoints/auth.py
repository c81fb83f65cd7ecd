"""Endpoints API pour la session de l'opérateur.

Un processus sert un seul opérateur: la session est portée par le
SessionManager de l'application, pas par la requête.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from pydantic import ValidationError

from app.core.dependencies import get_session_manager, require_authenticated_session
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    PasswordResetRequest,
    PasswordResetResponse,
    SessionStatus,
)
from app.services.session_manager import SessionManager

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Ouvrir la session",
    description="Authentifie l'opérateur auprès du fournisseur d'auth et démarre le rafraîchissement du jeton",
)
async def login(
    credentials: LoginRequest,
    session_manager: SessionManager = Depends(get_session_manager),
) -> LoginResponse:
    success = await session_manager.login(credentials.email, credentials.password)
    if not success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=session_manager.state.error or "Login failed",
        )
    return LoginResponse(success=True, session=SessionStatus.from_state(session_manager.state))


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Fermer la session",
)
async def logout(session_manager: SessionManager = Depends(get_session_manager)) -> Response:
    session_manager.logout()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/refresh",
    response_model=SessionStatus,
    summary="Renouveler le jeton",
    description="Un échec de renouvellement ferme la session",
)
async def refresh(session_manager: SessionManager = Depends(get_session_manager)) -> SessionStatus:
    if not await session_manager.refresh_token():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Log in again.",
        )
    return SessionStatus.from_state(session_manager.state)


@router.get("/session", response_model=SessionStatus, summary="État de la session")
async def get_session_status(
    session_manager: SessionManager = Depends(get_session_manager),
) -> SessionStatus:
    return SessionStatus.from_state(session_manager.state)


@router.delete("/session/error", response_model=SessionStatus, summary="Effacer l'erreur de session")
async def clear_error(session_manager: SessionManager = Depends(get_session_manager)) -> SessionStatus:
    session_manager.clear_error()
    return SessionStatus.from_state(session_manager.state)


@router.patch(
    "/user",
    response_model=SessionStatus,
    summary="Mettre à jour l'utilisateur de session",
    description="Fusionne les attributs fournis dans l'utilisateur persisté",
)
async def update_user(
    fields: dict[str, Any] = Body(...),
    session_manager: SessionManager = Depends(require_authenticated_session),
) -> SessionStatus:
    fields.pop("id", None)
    try:
        session_manager.update_user(**fields)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e
    return SessionStatus.from_state(session_manager.state)


@router.post(
    "/password-reset",
    response_model=PasswordResetResponse,
    summary="Demander la réinitialisation du mot de passe",
)
async def request_password_reset(
    request: PasswordResetRequest,
    session_manager: SessionManager = Depends(get_session_manager),
) -> PasswordResetResponse:
    success, message = await session_manager.request_password_reset(request.email)
    return PasswordResetResponse(success=success, message=message)
