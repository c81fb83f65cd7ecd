"""Schémas Pydantic pour Client.

Le client est la racine d'un agrégat: sa personne, les adresses de cette
personne et, éventuellement, son compte sont édités comme une seule unité.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.schemas.person import Account, Address, Person, PersonBase
from app.schemas.utils import NonEmptyStr, PageNumber, PageSize, PublicId, RecordId, SearchStr


class ClientCreate(BaseModel):
    """Création d'un client (informations de base uniquement)."""

    name: NonEmptyStr = Field(..., max_length=100, description="Prénom", examples=["Ana"])
    lastname: NonEmptyStr = Field(..., max_length=100, description="Nom de famille", examples=["Ruiz"])


class ClientResponse(BaseModel):
    """Client avec sa personne."""

    id: RecordId
    public_id: str
    person_id: RecordId | None = None
    person: Person
    onboard_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ClientLookupItem(BaseModel):
    """Entrée de recherche rapide (sélecteur de rendez-vous)."""

    id: RecordId
    public_id: str
    name: str
    lastname: str


class ClientSearchFilters(BaseModel):
    """Filtres de la liste des clients."""

    search: SearchStr | None = Field(None, description="Recherche sur le prénom ou le nom")
    page: PageNumber = 1
    limit: PageSize = 10


class ClientListResponse(BaseModel):
    """Réponse paginée pour la liste des clients."""

    items: list[ClientResponse] = Field(..., description="Clients de la page")
    total: int = Field(..., ge=0, description="Nombre total de résultats")
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)


class ClientPerson(PersonBase):
    """Personne embarquée dans l'agrégat (identifiant obligatoire)."""

    id: RecordId


class ClientDetails(BaseModel):
    """Agrégat client édité sur l'écran de détail."""

    id: RecordId
    public_id: PublicId
    person_id: RecordId
    person: ClientPerson
    onboard_date: date | None = None
    addresses: list[Address] = Field(default_factory=list)
    user: Account | None = None


class ClientDetailsUpdate(BaseModel):
    """Corps de la mise à jour de l'agrégat.

    ``original_addresses`` est l'instantané des adresses lu avant l'édition.
    S'il est absent, l'état courant du backend sert d'instantané.
    """

    details: ClientDetails
    original_addresses: list[Address] | None = None
