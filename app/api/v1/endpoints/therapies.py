"""Endpoints API pour le catalogue des services."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.core.dependencies import get_backend_client
from app.infrastructure.backend.client import BackendClient
from app.schemas.therapy import (
    TherapyCreate,
    TherapyListResponse,
    TherapyResponse,
    TherapySearchFilters,
    TherapyUpdate,
)
from app.schemas.utils import SearchStr
from app.services import therapy_service

router = APIRouter()


def _not_found(therapy_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Service {therapy_id} non trouvé",
    )


@router.get("", response_model=TherapyListResponse, summary="Lister les services")
async def list_therapies(
    search: SearchStr | None = Query(None, description="Recherche partielle sur le nom ou le code"),
    active_only: bool = Query(False, description="Services actifs uniquement"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    backend: BackendClient = Depends(get_backend_client),
) -> TherapyListResponse:
    filters = TherapySearchFilters(search=search or None, active_only=active_only, page=page, limit=limit)
    return await therapy_service.list_therapies(backend, filters)


@router.get("/active", response_model=list[TherapyResponse], summary="Services actifs")
async def get_active_therapies(backend: BackendClient = Depends(get_backend_client)) -> list[TherapyResponse]:
    return await therapy_service.get_active_therapies(backend)


@router.post(
    "",
    response_model=TherapyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un service",
)
async def create_therapy(
    therapy: TherapyCreate,
    backend: BackendClient = Depends(get_backend_client),
) -> TherapyResponse:
    return await therapy_service.create_therapy(backend, therapy)


@router.get("/{therapy_id}", response_model=TherapyResponse, summary="Récupérer un service")
async def get_therapy(
    therapy_id: int,
    backend: BackendClient = Depends(get_backend_client),
) -> TherapyResponse:
    therapy = await therapy_service.get_therapy(backend, therapy_id)
    if therapy is None:
        raise _not_found(therapy_id)
    return therapy


@router.patch("/{therapy_id}", response_model=TherapyResponse, summary="Modifier un service")
async def update_therapy(
    therapy_id: int,
    therapy: TherapyUpdate,
    backend: BackendClient = Depends(get_backend_client),
) -> TherapyResponse:
    updated = await therapy_service.update_therapy(backend, therapy_id, therapy)
    if updated is None:
        raise _not_found(therapy_id)
    return updated


@router.delete(
    "/{therapy_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer un service",
)
async def delete_therapy(
    therapy_id: int,
    backend: BackendClient = Depends(get_backend_client),
) -> Response:
    if await therapy_service.get_therapy(backend, therapy_id) is None:
        raise _not_found(therapy_id)
    await therapy_service.delete_therapy(backend, therapy_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
