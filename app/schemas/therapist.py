"""Schémas Pydantic pour Therapist."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.schemas.person import AccountCreate, AccountStatus, PersonBase
from app.schemas.utils import Email, NonEmptyStr, PageNumber, PageSize, RecordId, SearchStr


class TherapistPerson(PersonBase):
    id: RecordId
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TherapistAccount(BaseModel):
    """Compte du thérapeute avec sa personne embarquée."""

    id: RecordId
    email: Email
    username: NonEmptyStr
    status: AccountStatus = "active"
    person: TherapistPerson
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TherapistCreate(BaseModel):
    """Création d'un thérapeute: personne, compte puis fiche thérapeute."""

    person: PersonBase
    user: AccountCreate
    resume: str | None = Field(None, max_length=5000, description="CV / présentation")


class TherapistResponse(BaseModel):
    """Thérapeute avec compte et personne."""

    id: RecordId
    public_id: str | None = None
    resume: str | None = None
    onboard_date: date | None = None
    app_user: TherapistAccount
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TherapistUpdate(TherapistResponse):
    """Agrégat thérapeute édité sur l'écran de détail (mise à jour complète)."""


class TherapistLookupItem(BaseModel):
    """Entrée de recherche rapide (sélecteur de rendez-vous)."""

    id: RecordId
    public_id: str | None = None
    name: str
    lastname: str


class TherapistSearchFilters(BaseModel):
    """Filtres de la liste des thérapeutes."""

    search: SearchStr | None = Field(None, description="Recherche sur le prénom ou le nom")
    page: PageNumber = 1
    limit: PageSize = 10


class TherapistListResponse(BaseModel):
    """Réponse paginée pour la liste des thérapeutes."""

    items: list[TherapistResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
