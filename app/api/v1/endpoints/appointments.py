"""Endpoints API pour la gestion des rendez-vous."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.config import settings
from app.core.dependencies import get_backend_client
from app.infrastructure.backend.client import BackendClient
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentSearchFilters,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    WeekViewResponse,
)
from app.schemas.utils import SearchStr
from app.services import appointment_service

router = APIRouter()


def _not_found(appointment_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Rendez-vous {appointment_id} non trouvé",
    )


@router.get("", response_model=AppointmentListResponse, summary="Lister les rendez-vous")
async def list_appointments(
    search: SearchStr | None = Query(None, description="Recherche sur la salle ou le téléphone"),
    appointment_status: AppointmentStatus | None = Query(None, alias="status"),
    date_from: date | None = Query(None, description="Date minimale (incluse)"),
    date_to: date | None = Query(None, description="Date maximale (incluse)"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    backend: BackendClient = Depends(get_backend_client),
) -> AppointmentListResponse:
    if date_from and date_to and date_to < date_from:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="date_to doit être postérieure ou égale à date_from",
        )
    filters = AppointmentSearchFilters(
        search=search or None,
        status=appointment_status,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return await appointment_service.list_appointments(backend, filters)


@router.get(
    "/week",
    response_model=WeekViewResponse,
    summary="Vue semaine",
    description="Rendez-vous du dimanche au samedi de la semaine contenant la date (aujourd'hui par défaut)",
)
async def list_week(
    reference_date: date | None = Query(None, alias="date"),
    backend: BackendClient = Depends(get_backend_client),
) -> WeekViewResponse:
    return await appointment_service.list_week(backend, reference_date or date.today())


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un rendez-vous",
)
async def create_appointment(
    appointment: AppointmentCreate,
    backend: BackendClient = Depends(get_backend_client),
) -> AppointmentResponse:
    return await appointment_service.create_appointment(backend, appointment)


@router.get("/{appointment_id}", response_model=AppointmentResponse, summary="Récupérer un rendez-vous")
async def get_appointment(
    appointment_id: int,
    backend: BackendClient = Depends(get_backend_client),
) -> AppointmentResponse:
    appointment = await appointment_service.get_appointment(backend, appointment_id)
    if appointment is None:
        raise _not_found(appointment_id)
    return appointment


@router.put("/{appointment_id}", response_model=AppointmentResponse, summary="Mettre à jour un rendez-vous")
async def update_appointment(
    appointment_id: int,
    appointment: AppointmentUpdate,
    backend: BackendClient = Depends(get_backend_client),
) -> AppointmentResponse:
    updated = await appointment_service.update_appointment(backend, appointment_id, appointment)
    if updated is None:
        raise _not_found(appointment_id)
    return updated


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    summary="Changer le statut d'un rendez-vous",
)
async def set_appointment_status(
    appointment_id: int,
    payload: AppointmentStatusUpdate,
    backend: BackendClient = Depends(get_backend_client),
) -> AppointmentResponse:
    updated = await appointment_service.set_appointment_status(backend, appointment_id, payload.status)
    if updated is None:
        raise _not_found(appointment_id)
    return updated
