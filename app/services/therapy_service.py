"""Service metier pour le catalogue des services (therapies)."""

import logging
from datetime import UTC, datetime

from opentelemetry import trace

from app.infrastructure.backend.client import BackendClient
from app.infrastructure.backend.query import Query
from app.infrastructure.backend.tables import THERAPY_TABLE
from app.schemas.therapy import (
    TherapyCreate,
    TherapyListResponse,
    TherapyResponse,
    TherapySearchFilters,
    TherapyUpdate,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def list_therapies(backend: BackendClient, filters: TherapySearchFilters) -> TherapyListResponse:
    """Liste paginee du catalogue, triee par nom."""
    with tracer.start_as_current_span("list_therapies"):
        query = Query(THERAPY_TABLE)
        if filters.search:
            query.ilike_any(["name", "code"], filters.search)
        if filters.active_only:
            query.eq("is_active", True)
        query.order("name").paginate(filters.page, filters.limit)

        result = await backend.select(query, count=True)
        items = [TherapyResponse.model_validate(row) for row in result.rows]
        total = result.count if result.count is not None else len(items)
        return TherapyListResponse(items=items, total=total, page=filters.page, limit=filters.limit)


async def get_active_therapies(backend: BackendClient) -> list[TherapyResponse]:
    """Services actifs, pour le selecteur de rendez-vous."""
    result = await backend.select(Query(THERAPY_TABLE).eq("is_active", True).order("name"))
    return [TherapyResponse.model_validate(row) for row in result.rows]


async def get_therapy(backend: BackendClient, therapy_id: int) -> TherapyResponse | None:
    row = await backend.select_maybe_single(Query(THERAPY_TABLE).eq("id", therapy_id))
    return TherapyResponse.model_validate(row) if row else None


async def create_therapy(backend: BackendClient, therapy_data: TherapyCreate) -> TherapyResponse:
    """Cree un service actif (champs deja nettoyes par le schema)."""
    with tracer.start_as_current_span("create_therapy") as span:
        row = await backend.insert(
            THERAPY_TABLE,
            {
                "name": therapy_data.name,
                "code": therapy_data.code,
                "description": therapy_data.description,
                "is_active": True,
            },
        )
        span.set_attribute("therapy.id", row["id"])
        logger.info(f"Service {therapy_data.code} cree")
        return TherapyResponse.model_validate(row)


async def update_therapy(
    backend: BackendClient, therapy_id: int, therapy_data: TherapyUpdate
) -> TherapyResponse | None:
    """
    Mise a jour partielle d'un service.

    Returns:
        Le service mis a jour, ou None s'il n'existe pas
    """
    with tracer.start_as_current_span("update_therapy") as span:
        span.set_attribute("therapy.id", therapy_id)
        values = therapy_data.model_dump(mode="json", exclude_unset=True)
        values["updated_at"] = datetime.now(UTC).isoformat()

        rows = await backend.update(Query(THERAPY_TABLE).eq("id", therapy_id), values)
        if not rows:
            return None
        return TherapyResponse.model_validate(rows[0])


async def delete_therapy(backend: BackendClient, therapy_id: int) -> None:
    with tracer.start_as_current_span("delete_therapy") as span:
        span.set_attribute("therapy.id", therapy_id)
        await backend.delete(Query(THERAPY_TABLE).eq("id", therapy_id))
        logger.info(f"Service {therapy_id} supprime")
