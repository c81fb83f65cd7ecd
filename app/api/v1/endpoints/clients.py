"""Endpoints API pour la gestion des clients.

Ce module expose la liste, la recherche rapide, la création et l'édition
de l'agrégat client (personne, adresses, compte).
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.core.config import settings
from app.core.dependencies import get_backend_client
from app.infrastructure.backend.client import BackendClient
from app.schemas.client import (
    ClientCreate,
    ClientDetails,
    ClientDetailsUpdate,
    ClientListResponse,
    ClientLookupItem,
    ClientResponse,
    ClientSearchFilters,
)
from app.schemas.person import Address, AddressBase
from app.schemas.utils import SearchStr
from app.services import client_service

router = APIRouter()


async def _get_details_or_404(backend: BackendClient, public_id: str) -> ClientDetails:
    details = await client_service.get_client_details(backend, public_id)
    if details is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Client {public_id} non trouvé",
        )
    return details


@router.get(
    "",
    response_model=ClientListResponse,
    summary="Lister les clients",
    description="Liste paginée, plus récents d'abord, avec recherche sur le prénom ou le nom",
)
async def list_clients(
    search: SearchStr | None = Query(None, description="Recherche partielle sur le prénom ou le nom"),
    page: int = Query(1, ge=1, description="Numéro de page (commence à 1)"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100, description="Taille de page"),
    backend: BackendClient = Depends(get_backend_client),
) -> ClientListResponse:
    filters = ClientSearchFilters(search=search or None, page=page, limit=limit)
    return await client_service.list_clients(backend, filters)


@router.get(
    "/search",
    response_model=list[ClientLookupItem],
    summary="Recherche rapide de clients",
    description="Au moins 3 caractères; 10 résultats au maximum",
)
async def search_clients(
    q: SearchStr | None = Query(None, description="Texte recherché"),
    backend: BackendClient = Depends(get_backend_client),
) -> list[ClientLookupItem]:
    return await client_service.search_clients(backend, q or "")


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un client",
)
async def create_client(
    client: ClientCreate,
    backend: BackendClient = Depends(get_backend_client),
) -> ClientResponse:
    """
    Crée la personne puis le client, avec la date d'accueil du jour.

    Aucune transaction: si la création du client échoue, la personne reste.
    """
    return await client_service.create_client(backend, client)


@router.get(
    "/{public_id}",
    response_model=ClientDetails,
    summary="Récupérer l'agrégat client",
)
async def get_client_details(
    public_id: str,
    backend: BackendClient = Depends(get_backend_client),
) -> ClientDetails:
    return await _get_details_or_404(backend, public_id)


@router.put(
    "/{public_id}",
    response_model=ClientDetails,
    summary="Mettre à jour l'agrégat client",
    description=(
        "Met à jour personne, client, adresses (suppressions, mises à jour, créations) "
        "et compte. Sans instantané des adresses d'origine, l'état courant est utilisé."
    ),
)
async def update_client_details(
    public_id: str,
    payload: ClientDetailsUpdate,
    backend: BackendClient = Depends(get_backend_client),
) -> ClientDetails:
    details = payload.details
    if details.public_id != public_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="L'identifiant public du corps ne correspond pas à l'URL",
        )

    current = await _get_details_or_404(backend, public_id)
    _check_same_aggregate(current, details)
    for address in details.addresses:
        if address.id is not None:
            _owned_address_or_404(current, address.id)

    # Seules les adresses encore rattachées à la personne peuvent être supprimées
    stored_ids = {address.id for address in current.addresses}
    if payload.original_addresses is None:
        original_addresses = current.addresses
    else:
        original_addresses = [a for a in payload.original_addresses if a.id in stored_ids]

    await client_service.update_client_details(backend, details, original_addresses)
    return await _get_details_or_404(backend, public_id)


def _check_same_aggregate(current: ClientDetails, details: ClientDetails) -> None:
    """Refuse un corps qui désigne une autre personne ou un autre compte."""
    current_user_id = current.user.id if current.user else None
    edited_user_id = details.user.id if details.user else None
    if (
        details.id != current.id
        or details.person_id != current.person_id
        or details.person.id != current.person_id
        or (edited_user_id is not None and edited_user_id != current_user_id)
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Le corps ne correspond pas à l'agrégat du client {current.public_id}",
        )


@router.post(
    "/{public_id}/addresses",
    response_model=Address,
    status_code=status.HTTP_201_CREATED,
    summary="Ajouter une adresse",
)
async def create_address(
    public_id: str,
    address: AddressBase,
    backend: BackendClient = Depends(get_backend_client),
) -> Address:
    details = await _get_details_or_404(backend, public_id)
    return await client_service.create_address(backend, details.person_id, address)


def _owned_address_or_404(details: ClientDetails, address_id: int) -> Address:
    for address in details.addresses:
        if address.id == address_id:
            return address
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Adresse {address_id} non trouvée pour le client {details.public_id}",
    )


@router.put(
    "/{public_id}/addresses/{address_id}",
    response_model=ClientDetails,
    summary="Modifier une adresse",
)
async def update_address(
    public_id: str,
    address_id: int,
    address: AddressBase,
    backend: BackendClient = Depends(get_backend_client),
) -> ClientDetails:
    details = await _get_details_or_404(backend, public_id)
    _owned_address_or_404(details, address_id)
    await client_service.update_address(backend, address_id, address)
    return await _get_details_or_404(backend, public_id)


@router.delete(
    "/{public_id}/addresses/{address_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer une adresse",
)
async def delete_address(
    public_id: str,
    address_id: int,
    backend: BackendClient = Depends(get_backend_client),
) -> Response:
    details = await _get_details_or_404(backend, public_id)
    _owned_address_or_404(details, address_id)
    await client_service.delete_address(backend, address_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
