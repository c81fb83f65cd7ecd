"""Endpoints API pour la gestion des thérapeutes."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.config import settings
from app.core.dependencies import get_backend_client
from app.infrastructure.backend.client import BackendClient
from app.schemas.therapist import (
    TherapistCreate,
    TherapistListResponse,
    TherapistLookupItem,
    TherapistResponse,
    TherapistSearchFilters,
    TherapistUpdate,
)
from app.schemas.utils import SearchStr
from app.services import therapist_service

router = APIRouter()


@router.get("", response_model=TherapistListResponse, summary="Lister les thérapeutes")
async def list_therapists(
    search: SearchStr | None = Query(None, description="Recherche partielle sur le prénom ou le nom"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    backend: BackendClient = Depends(get_backend_client),
) -> TherapistListResponse:
    filters = TherapistSearchFilters(search=search or None, page=page, limit=limit)
    return await therapist_service.list_therapists(backend, filters)


@router.get(
    "/search",
    response_model=list[TherapistLookupItem],
    summary="Recherche rapide de thérapeutes",
    description="Au moins 3 caractères; filtre optionnel sur le service proposé",
)
async def search_therapists(
    q: SearchStr | None = Query(None, description="Texte recherché"),
    therapy_id: int | None = Query(None, gt=0, description="Service proposé par le thérapeute"),
    backend: BackendClient = Depends(get_backend_client),
) -> list[TherapistLookupItem]:
    return await therapist_service.search_therapists(backend, q or "", therapy_id)


@router.post(
    "",
    response_model=TherapistResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un thérapeute",
    description="Crée la personne, le compte (mot de passe haché) puis la fiche thérapeute",
)
async def create_therapist(
    therapist: TherapistCreate,
    backend: BackendClient = Depends(get_backend_client),
) -> TherapistResponse:
    return await therapist_service.create_therapist(backend, therapist)


@router.get("/{public_id}", response_model=TherapistResponse, summary="Récupérer un thérapeute")
async def get_therapist(
    public_id: str,
    backend: BackendClient = Depends(get_backend_client),
) -> TherapistResponse:
    therapist = await therapist_service.get_therapist(backend, public_id)
    if therapist is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Thérapeute {public_id} non trouvé",
        )
    return therapist


@router.put("/{public_id}", response_model=TherapistResponse, summary="Mettre à jour un thérapeute")
async def update_therapist(
    public_id: str,
    therapist: TherapistUpdate,
    backend: BackendClient = Depends(get_backend_client),
) -> TherapistResponse:
    existing = await therapist_service.get_therapist(backend, public_id)
    if existing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Thérapeute {public_id} non trouvé",
        )
    if (
        existing.id != therapist.id
        or existing.app_user.id != therapist.app_user.id
        or existing.app_user.person.id != therapist.app_user.person.id
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Le corps ne correspond pas au thérapeute de l'URL",
        )
    return await therapist_service.update_therapist(backend, therapist)
