"""Schémas Pydantic pour Therapy (catalogue des services)."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.utils import Description, NonEmptyStr, PageNumber, PageSize, RecordId, SearchStr


def _blank_to_none(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


class TherapyCreate(BaseModel):
    """Création d'un service."""

    name: NonEmptyStr = Field(..., max_length=150, examples=["Physiotherapy"])
    code: NonEmptyStr = Field(..., max_length=30, examples=["PHY-01"])
    description: Description | None = None

    @field_validator("description")
    @classmethod
    def blank_description_is_null(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class TherapyUpdate(BaseModel):
    """Mise à jour partielle d'un service."""

    name: NonEmptyStr | None = Field(None, max_length=150)
    code: NonEmptyStr | None = Field(None, max_length=30)
    description: Description | None = None
    is_active: bool | None = None

    @field_validator("description")
    @classmethod
    def blank_description_is_null(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class TherapyResponse(BaseModel):
    id: RecordId
    name: str
    code: str
    description: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TherapySearchFilters(BaseModel):
    """Filtres du catalogue."""

    search: SearchStr | None = Field(None, description="Recherche sur le nom ou le code")
    active_only: bool = False
    page: PageNumber = 1
    limit: PageSize = 50


class TherapyListResponse(BaseModel):
    items: list[TherapyResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
