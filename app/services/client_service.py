"""Service metier pour la gestion des clients.

Ce module implemente les operations sur l'agregat client:
- liste paginee avec recherche et recherche rapide
- creation (personne puis client)
- lecture et mise a jour de l'agregat (personne, client, adresses, compte)

Aucune transaction ne couvre les ecritures multi-tables: une erreur
interrompt la sequence sans annuler les etapes deja appliquees.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from opentelemetry import trace

from app.core.config import settings
from app.infrastructure.backend.client import BackendClient
from app.infrastructure.backend.mappers.client_mapper import ClientMapper
from app.infrastructure.backend.query import Query
from app.infrastructure.backend.tables import (
    ACCOUNT_COLUMNS,
    ACCOUNT_TABLE,
    ADDRESS_TABLE,
    CLIENT_LOOKUP_SELECT,
    CLIENT_SEARCH_SELECT,
    CLIENT_SELECT,
    CLIENT_TABLE,
    PERSON_COLUMNS,
    PERSON_TABLE,
)
from app.schemas.client import (
    ClientCreate,
    ClientDetails,
    ClientListResponse,
    ClientLookupItem,
    ClientResponse,
    ClientSearchFilters,
)
from app.schemas.person import AccountUpdate, Address, AddressBase, PersonBase

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CLIENT_DETAILS_SELECT = f"id,public_id,person_id,onboard_date,person:person_id({PERSON_COLUMNS})"


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class AddressChangePlan:
    """Operations derivees de la comparaison de deux listes d'adresses."""

    to_delete: list[int] = field(default_factory=list)
    to_update: list[Address] = field(default_factory=list)
    to_insert: list[Address] = field(default_factory=list)
    # Updates et inserts dans l'ordre de la liste editee
    ordered: list[Address] = field(default_factory=list)


def plan_address_changes(original: list[Address], edited: list[Address]) -> AddressChangePlan:
    """
    Partitionne les adresses par identifiant persiste.

    - id present dans l'original mais absent de l'edition -> suppression
    - adresse editee avec id -> mise a jour
    - adresse editee sans id -> insertion

    Fonction pure: aucune requete n'est emise.
    """
    edited_ids = {address.id for address in edited if address.id}
    plan = AddressChangePlan()

    seen: set[int] = set()
    for address in original:
        if address.id and address.id not in edited_ids and address.id not in seen:
            plan.to_delete.append(address.id)
            seen.add(address.id)

    for address in edited:
        if address.id:
            plan.to_update.append(address)
        else:
            plan.to_insert.append(address)
        plan.ordered.append(address)

    return plan


async def list_clients(backend: BackendClient, filters: ClientSearchFilters) -> ClientListResponse:
    """
    Liste paginee des clients, plus recents d'abord.

    La recherche porte sur le prenom et le nom de la personne (partielle,
    insensible a la casse). Le total est le nombre exact de correspondances.
    """
    with tracer.start_as_current_span("list_clients") as span:
        span.set_attribute("pagination.page", filters.page)
        span.set_attribute("pagination.limit", filters.limit)

        if filters.search:
            query = Query(CLIENT_TABLE, CLIENT_SEARCH_SELECT).ilike_any(
                ["person.name", "person.lastname"], filters.search
            )
        else:
            query = Query(CLIENT_TABLE, CLIENT_SELECT)

        query.order("created_at", ascending=False).paginate(filters.page, filters.limit)
        result = await backend.select(query, count=True)

        items = [ClientMapper.from_row(row) for row in result.rows]
        total = result.count if result.count is not None else len(items)
        span.set_attribute("result.total", total)

        return ClientListResponse(items=items, total=total, page=filters.page, limit=filters.limit)


async def search_clients(backend: BackendClient, query: str) -> list[ClientLookupItem]:
    """
    Recherche rapide pour le selecteur de rendez-vous.

    En dessous de SEARCH_MIN_LENGTH caracteres, aucune requete n'est emise
    et le resultat est vide.
    """
    term = query.strip()
    if len(term) < settings.SEARCH_MIN_LENGTH:
        return []

    with tracer.start_as_current_span("search_clients") as span:
        span.set_attribute("search.length", len(term))
        lookup = (
            Query(CLIENT_TABLE, CLIENT_LOOKUP_SELECT)
            .ilike_any(["person.name", "person.lastname"], term)
            .limit(settings.LOOKUP_LIMIT)
        )
        result = await backend.select(lookup)
        return [ClientMapper.to_lookup_item(row) for row in result.rows]


async def create_client(backend: BackendClient, client_data: ClientCreate) -> ClientResponse:
    """
    Cree un client avec ses informations de base.

    Pattern d'orchestration:
    1. Inserer la personne (date de naissance nulle)
    2. Inserer le client avec la date d'accueil du jour
    3. Relire le client avec sa personne embarquee
    """
    with tracer.start_as_current_span("create_client") as span:
        person = await backend.insert(
            PERSON_TABLE,
            {"name": client_data.name, "lastname": client_data.lastname, "birthdate": None},
            columns=PERSON_COLUMNS,
        )
        span.set_attribute("person.id", person["id"])

        created = await backend.insert(
            CLIENT_TABLE,
            {"person_id": person["id"], "onboard_date": date.today().isoformat()},
        )
        span.set_attribute("client.id", created["id"])

        row = await backend.select_single(Query(CLIENT_TABLE, CLIENT_SELECT).eq("id", created["id"]))
        span.add_event("Client cree avec succes")
        logger.info(f"Client {created['id']} cree (personne {person['id']})")
        return ClientMapper.from_row(row)


async def get_client_details(backend: BackendClient, public_id: str) -> ClientDetails | None:
    """
    Recupere l'agregat client par identifiant public.

    Returns:
        ClientDetails (adresses dans l'ordre de lecture, compte optionnel)
        ou None si le client n'existe pas
    """
    with tracer.start_as_current_span("get_client_details") as span:
        span.set_attribute("client.public_id", public_id)

        client_row = await backend.select_maybe_single(
            Query(CLIENT_TABLE, CLIENT_DETAILS_SELECT).eq("public_id", public_id)
        )
        if client_row is None:
            span.add_event("Client non trouve")
            return None

        person_id = client_row["person_id"]
        addresses = await backend.select(
            Query(ADDRESS_TABLE).eq("person_id", person_id).order("id")
        )
        account_row = await backend.select_maybe_single(
            Query(ACCOUNT_TABLE, ACCOUNT_COLUMNS).eq("person_id", person_id)
        )

        return ClientMapper.to_details(client_row, addresses.rows, account_row)


async def update_person(backend: BackendClient, person_id: int, person: PersonBase) -> None:
    """Mise a jour complete de la personne (nom, prenom, date de naissance)."""
    await backend.update(
        Query(PERSON_TABLE).eq("id", person_id),
        ClientMapper.person_values(person, _now()),
    )


async def update_client(backend: BackendClient, public_id: str, onboard_date: date | None) -> None:
    """Mise a jour complete du client, par identifiant public."""
    await backend.update(
        Query(CLIENT_TABLE).eq("public_id", public_id),
        {
            "onboard_date": onboard_date.isoformat() if onboard_date else None,
            "updated_at": _now(),
        },
    )


async def create_address(backend: BackendClient, person_id: int, address: AddressBase) -> Address:
    timestamp = _now()
    values = ClientMapper.address_values(Address(**address.model_dump()), timestamp)
    created = await backend.insert(
        ADDRESS_TABLE, {"person_id": person_id, **values, "created_at": timestamp}
    )
    return Address.model_validate(created)


async def update_address(backend: BackendClient, address_id: int, address: AddressBase) -> None:
    await backend.update(
        Query(ADDRESS_TABLE).eq("id", address_id),
        ClientMapper.address_values(Address(**address.model_dump()), _now()),
    )


async def delete_address(backend: BackendClient, address_id: int) -> None:
    await backend.delete(Query(ADDRESS_TABLE).eq("id", address_id))


async def update_account(backend: BackendClient, account_id: int, account: AccountUpdate) -> None:
    """Mise a jour complete du compte (email, nom d'utilisateur, statut)."""
    await backend.update(
        Query(ACCOUNT_TABLE).eq("id", account_id),
        ClientMapper.account_values(account, _now()),
    )


async def update_client_details(
    backend: BackendClient,
    details: ClientDetails,
    original_addresses: list[Address],
) -> None:
    """
    Synchronise l'agregat client edite vers le backend.

    Ordre des ecritures:
    1. Personne
    2. Client (par identifiant public)
    3. Suppression des adresses retirees
    4. Mise a jour / insertion des adresses, dans l'ordre de la liste editee
    5. Compte, s'il est present

    Pas d'annulation: la premiere erreur est journalisee puis propagee et
    les etapes suivantes ne sont pas tentees.

    Args:
        backend: Client du backend
        details: Agregat edite
        original_addresses: Adresses lues avant l'edition
    """
    with tracer.start_as_current_span("update_client_details") as span:
        span.set_attribute("client.public_id", details.public_id)
        plan = plan_address_changes(original_addresses, details.addresses)
        span.set_attribute("addresses.delete", len(plan.to_delete))
        span.set_attribute("addresses.update", len(plan.to_update))
        span.set_attribute("addresses.insert", len(plan.to_insert))

        step = "person"
        try:
            await update_person(backend, details.person.id, details.person)

            step = "client"
            await update_client(backend, details.public_id, details.onboard_date)

            step = "address_delete"
            for address_id in plan.to_delete:
                await delete_address(backend, address_id)

            step = "address_upsert"
            for address in plan.ordered:
                if address.id:
                    await update_address(backend, address.id, address)
                else:
                    await create_address(backend, details.person_id, address)

            if details.user is not None:
                step = "account"
                await update_account(backend, details.user.id, details.user)
        except Exception as e:
            span.record_exception(e)
            logger.error(
                f"Echec de la mise a jour du client {details.public_id} a l'etape {step}: {e}"
            )
            raise

        span.add_event("Agregat client mis a jour")
        logger.info(f"Client {details.public_id} mis a jour")
