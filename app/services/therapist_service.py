"""Service metier pour la gestion des therapeutes.

Un therapeute possede un compte (table app_user) qui possede une personne.
La creation enchaine personne -> compte -> therapeute; la mise a jour
enchaine personne -> compte -> therapeute, sans transaction.
"""

import logging
from datetime import UTC, date, datetime

import bcrypt
from opentelemetry import trace

from app.core.config import settings
from app.infrastructure.backend.client import BackendClient
from app.infrastructure.backend.mappers.therapist_mapper import TherapistMapper
from app.infrastructure.backend.query import Query
from app.infrastructure.backend.tables import (
    ACCOUNT_COLUMNS,
    ACCOUNT_TABLE,
    PERSON_COLUMNS,
    PERSON_TABLE,
    THERAPIST_LOOKUP_BY_THERAPY_SELECT,
    THERAPIST_LOOKUP_SELECT,
    THERAPIST_SEARCH_SELECT,
    THERAPIST_SELECT,
    THERAPIST_TABLE,
    THERAPIST_THERAPY_TABLE,
)
from app.schemas.therapist import (
    TherapistCreate,
    TherapistListResponse,
    TherapistLookupItem,
    TherapistResponse,
    TherapistSearchFilters,
    TherapistUpdate,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

NAME_COLUMNS = ["app_user.person.name", "app_user.person.lastname"]


def hash_password(password: str) -> str:
    """Hache un mot de passe avec bcrypt (sel aleatoire)."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


async def list_therapists(
    backend: BackendClient, filters: TherapistSearchFilters
) -> TherapistListResponse:
    """Liste paginee des therapeutes, recherche sur le prenom ou le nom."""
    with tracer.start_as_current_span("list_therapists") as span:
        span.set_attribute("pagination.page", filters.page)

        if filters.search:
            query = Query(THERAPIST_TABLE, THERAPIST_SEARCH_SELECT).ilike_any(NAME_COLUMNS, filters.search)
        else:
            query = Query(THERAPIST_TABLE, THERAPIST_SELECT)

        query.order("created_at", ascending=False).paginate(filters.page, filters.limit)
        result = await backend.select(query, count=True)

        items = [TherapistMapper.from_row(row) for row in result.rows]
        total = result.count if result.count is not None else len(items)
        return TherapistListResponse(items=items, total=total, page=filters.page, limit=filters.limit)


async def search_therapists(
    backend: BackendClient,
    query: str,
    therapy_id: int | None = None,
) -> list[TherapistLookupItem]:
    """
    Recherche rapide de therapeutes, optionnellement limitee a un service.

    En dessous de SEARCH_MIN_LENGTH caracteres, aucune requete n'est emise.
    """
    term = query.strip()
    if len(term) < settings.SEARCH_MIN_LENGTH:
        return []

    with tracer.start_as_current_span("search_therapists") as span:
        if therapy_id is not None:
            span.set_attribute("therapy.id", therapy_id)
            lookup = Query(THERAPIST_TABLE, THERAPIST_LOOKUP_BY_THERAPY_SELECT).eq(
                f"{THERAPIST_THERAPY_TABLE}.therapy_id", therapy_id
            )
        else:
            lookup = Query(THERAPIST_TABLE, THERAPIST_LOOKUP_SELECT)

        lookup.ilike_any(NAME_COLUMNS, term).limit(settings.LOOKUP_LIMIT)
        result = await backend.select(lookup)
        return [TherapistMapper.to_lookup_item(row) for row in result.rows]


async def create_therapist(backend: BackendClient, therapist_data: TherapistCreate) -> TherapistResponse:
    """
    Cree un therapeute.

    Pattern d'orchestration:
    1. Inserer la personne
    2. Inserer le compte (mot de passe hache, statut actif)
    3. Inserer le therapeute avec la date d'accueil du jour
    4. Relire le therapeute avec compte et personne embarques
    """
    with tracer.start_as_current_span("create_therapist") as span:
        person = await backend.insert(
            PERSON_TABLE,
            therapist_data.person.model_dump(mode="json", include={"name", "lastname", "birthdate"}),
            columns=PERSON_COLUMNS,
        )

        account = await backend.insert(
            ACCOUNT_TABLE,
            {
                "person_id": person["id"],
                "email": therapist_data.user.email,
                "username": therapist_data.user.username,
                "password": hash_password(therapist_data.user.password),
                "status": "active",
            },
            columns=ACCOUNT_COLUMNS,
        )

        created = await backend.insert(
            THERAPIST_TABLE,
            {
                "user_id": account["id"],
                "resume": therapist_data.resume,
                "onboard_date": date.today().isoformat(),
            },
        )
        span.set_attribute("therapist.id", created["id"])

        row = await backend.select_single(Query(THERAPIST_TABLE, THERAPIST_SELECT).eq("id", created["id"]))
        logger.info(f"Therapeute {created['id']} cree (compte {account['id']})")
        return TherapistMapper.from_row(row)


async def get_therapist(backend: BackendClient, public_id: str) -> TherapistResponse | None:
    """Recupere un therapeute par identifiant public, ou None."""
    with tracer.start_as_current_span("get_therapist") as span:
        span.set_attribute("therapist.public_id", public_id)
        row = await backend.select_maybe_single(
            Query(THERAPIST_TABLE, THERAPIST_SELECT).eq("public_id", public_id)
        )
        return TherapistMapper.from_row(row) if row else None


async def update_therapist(backend: BackendClient, therapist: TherapistUpdate) -> TherapistResponse:
    """
    Mise a jour complete de l'agregat therapeute.

    Ordre: personne, compte, therapeute. La premiere erreur est journalisee
    puis propagee, sans annulation des etapes precedentes.
    """
    with tracer.start_as_current_span("update_therapist") as span:
        span.set_attribute("therapist.id", therapist.id)
        timestamp = datetime.now(UTC).isoformat()

        step = "person"
        try:
            await backend.update(
                Query(PERSON_TABLE).eq("id", therapist.app_user.person.id),
                TherapistMapper.person_values(therapist, timestamp),
            )
            step = "account"
            await backend.update(
                Query(ACCOUNT_TABLE).eq("id", therapist.app_user.id),
                TherapistMapper.account_values(therapist, timestamp),
            )
            step = "therapist"
            await backend.update(
                Query(THERAPIST_TABLE).eq("id", therapist.id),
                TherapistMapper.therapist_values(therapist, timestamp),
            )
        except Exception as e:
            span.record_exception(e)
            logger.error(f"Echec de la mise a jour du therapeute {therapist.id} a l'etape {step}: {e}")
            raise

        row = await backend.select_single(Query(THERAPIST_TABLE, THERAPIST_SELECT).eq("id", therapist.id))
        return TherapistMapper.from_row(row)
