"""Schémas Pydantic pour Person, Address et Account.

Ces trois enregistrements sont partagés par les agrégats client et
thérapeute: une personne possède ses adresses et au plus un compte.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.utils import Email, NonEmptyStr, RecordId

AccountStatus = Literal["active", "inactive", "suspended"]


class PersonBase(BaseModel):
    """Champs modifiables d'une personne."""

    name: NonEmptyStr = Field(..., max_length=100, description="Prénom", examples=["Ana"])
    lastname: NonEmptyStr = Field(..., max_length=100, description="Nom de famille", examples=["Ruiz"])
    birthdate: date | None = Field(None, description="Date de naissance", examples=["1990-05-15"])

    @field_validator("birthdate", mode="before")
    @classmethod
    def empty_birthdate_is_null(cls, v):
        """Une date vide saisie dans un formulaire vaut null."""
        if v == "":
            return None
        return v

    @field_validator("birthdate")
    @classmethod
    def validate_birthdate(cls, v: date | None) -> date | None:
        """Valide que la date de naissance est cohérente."""
        if v is not None and v > date.today():
            raise ValueError("La date de naissance ne peut pas être dans le futur")
        return v


class PersonUpdate(PersonBase):
    """Mise à jour complète d'une personne."""


class Person(PersonBase):
    """Personne telle que stockée."""

    id: RecordId
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AddressBase(BaseModel):
    """Champs d'une adresse postale."""

    street: str = Field("", max_length=255, description="Rue et numéro")
    city: str = Field("", max_length=100, description="Ville")
    state: str = Field("", max_length=100, description="État / région")
    zip: str = Field("", max_length=20, description="Code postal")
    country: str = Field("", max_length=100, description="Pays")
    type: str = Field("home", max_length=50, description="Type d'adresse", examples=["home", "work"])


class Address(AddressBase):
    """Adresse d'une personne.

    ``id`` est absent tant que l'adresse n'a pas été enregistrée: c'est ce
    qui distingue une insertion d'une mise à jour lors de la réconciliation.
    """

    id: RecordId | None = None
    person_id: RecordId | None = None


class AccountUpdate(BaseModel):
    """Mise à jour complète d'un compte."""

    email: Email
    username: NonEmptyStr = Field(..., max_length=100)
    status: AccountStatus = "active"


class Account(AccountUpdate):
    """Compte applicatif (table app_user) rattaché à une personne."""

    id: RecordId
    person_id: RecordId | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AccountCreate(BaseModel):
    """Données de création d'un compte."""

    email: Email
    username: NonEmptyStr = Field(..., max_length=100)
    password: str = Field(..., min_length=8, max_length=128, description="Mot de passe en clair, haché avant stockage")
