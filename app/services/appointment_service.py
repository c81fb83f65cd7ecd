"""Service metier pour la gestion des rendez-vous.

Le statut d'un rendez-vous appartient a un ensemble ferme mais aucune
transition n'est imposee: tout statut peut en remplacer un autre.
"""

import logging
from datetime import UTC, date, datetime, timedelta

from opentelemetry import trace

from app.infrastructure.backend.client import BackendClient
from app.infrastructure.backend.mappers.appointment_mapper import AppointmentMapper
from app.infrastructure.backend.query import Query
from app.infrastructure.backend.tables import APPOINTMENT_SELECT, APPOINTMENT_TABLE
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentSearchFilters,
    AppointmentStatus,
    AppointmentUpdate,
    WeekViewResponse,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def week_bounds(reference: date) -> tuple[date, date]:
    """Dimanche et samedi de la semaine contenant ``reference``."""
    start = reference - timedelta(days=(reference.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


async def list_appointments(
    backend: BackendClient, filters: AppointmentSearchFilters
) -> AppointmentListResponse:
    """
    Liste paginee des rendez-vous, triee par date puis heure de debut.

    Filtres optionnels: recherche (salle ou telephone), statut, plage de dates.
    """
    with tracer.start_as_current_span("list_appointments") as span:
        span.set_attribute("pagination.page", filters.page)

        query = Query(APPOINTMENT_TABLE, APPOINTMENT_SELECT)
        if filters.search:
            query.ilike_any(["room", "phone"], filters.search)
        if filters.status:
            query.eq("status", filters.status)
        if filters.date_from:
            query.gte("date", filters.date_from)
        if filters.date_to:
            query.lte("date", filters.date_to)
        query.order("date").order("start_time").paginate(filters.page, filters.limit)

        result = await backend.select(query, count=True)
        items = [AppointmentMapper.from_row(row) for row in result.rows]
        total = result.count if result.count is not None else len(items)
        return AppointmentListResponse(items=items, total=total, page=filters.page, limit=filters.limit)


async def list_week(backend: BackendClient, reference_date: date) -> WeekViewResponse:
    """Rendez-vous de la semaine (dimanche a samedi) contenant la date donnee."""
    week_start, week_end = week_bounds(reference_date)
    with tracer.start_as_current_span("list_week") as span:
        span.set_attribute("week.start", week_start.isoformat())
        result = await backend.select(
            Query(APPOINTMENT_TABLE, APPOINTMENT_SELECT)
            .gte("date", week_start)
            .lte("date", week_end)
            .order("date")
            .order("start_time")
        )
        return WeekViewResponse(
            week_start=week_start,
            week_end=week_end,
            items=[AppointmentMapper.from_row(row) for row in result.rows],
        )


async def get_appointment(backend: BackendClient, appointment_id: int) -> AppointmentResponse | None:
    row = await backend.select_maybe_single(
        Query(APPOINTMENT_TABLE, APPOINTMENT_SELECT).eq("id", appointment_id)
    )
    return AppointmentMapper.from_row(row) if row else None


async def create_appointment(backend: BackendClient, appointment_data: AppointmentCreate) -> AppointmentResponse:
    """Cree un rendez-vous (statut 'pending' par defaut) et le relit avec les noms resolus."""
    with tracer.start_as_current_span("create_appointment") as span:
        values = AppointmentMapper.to_values(appointment_data, datetime.now(UTC).isoformat(), created=True)
        created = await backend.insert(APPOINTMENT_TABLE, values)
        span.set_attribute("appointment.id", created["id"])

        row = await backend.select_single(
            Query(APPOINTMENT_TABLE, APPOINTMENT_SELECT).eq("id", created["id"])
        )
        logger.info(f"Rendez-vous {created['id']} cree pour le {appointment_data.date.isoformat()}")
        return AppointmentMapper.from_row(row)


async def update_appointment(
    backend: BackendClient, appointment_id: int, appointment_data: AppointmentUpdate
) -> AppointmentResponse | None:
    """Mise a jour complete d'un rendez-vous; None s'il n'existe pas."""
    with tracer.start_as_current_span("update_appointment") as span:
        span.set_attribute("appointment.id", appointment_id)
        rows = await backend.update(
            Query(APPOINTMENT_TABLE).eq("id", appointment_id),
            AppointmentMapper.to_values(appointment_data, datetime.now(UTC).isoformat()),
        )
        if not rows:
            return None
        return await get_appointment(backend, appointment_id)


async def set_appointment_status(
    backend: BackendClient, appointment_id: int, status: AppointmentStatus
) -> AppointmentResponse | None:
    """Change le statut d'un rendez-vous, sans contrainte de transition."""
    with tracer.start_as_current_span("set_appointment_status") as span:
        span.set_attribute("appointment.id", appointment_id)
        span.set_attribute("appointment.status", status)
        rows = await backend.update(
            Query(APPOINTMENT_TABLE).eq("id", appointment_id),
            {"status": status, "updated_at": datetime.now(UTC).isoformat()},
        )
        if not rows:
            return None
        return await get_appointment(backend, appointment_id)
