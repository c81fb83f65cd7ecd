"""Schémas Pydantic pour Appointment.

Le statut est un ensemble fermé; aucune transition n'est imposée entre
les statuts.
"""

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.schemas.utils import PageNumber, PageSize, PhoneNumber, RecordId, SearchStr

AppointmentStatus = Literal["pending", "confirmed", "completed", "cancelled"]


class AppointmentBase(BaseModel):
    """Champs saisis à la prise de rendez-vous."""

    client_id: RecordId
    therapist_id: RecordId
    therapy_id: RecordId = Field(..., description="Service réservé")
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    room: str = Field("", max_length=50, description="Salle")
    phone: PhoneNumber | None = None
    notes: str | None = Field(None, max_length=5000)

    @model_validator(mode="after")
    def validate_time_range(self):
        """L'heure de fin doit suivre l'heure de début."""
        if self.end_time <= self.start_time:
            raise ValueError("L'heure de fin doit être postérieure à l'heure de début")
        return self


class AppointmentCreate(AppointmentBase):
    status: AppointmentStatus = "pending"


class AppointmentUpdate(AppointmentBase):
    """Mise à jour complète d'un rendez-vous."""

    status: AppointmentStatus


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    """Rendez-vous avec les noms résolus par sélection embarquée."""

    id: RecordId
    client_id: RecordId
    therapist_id: RecordId
    therapy_id: RecordId
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    room: str | None = None
    status: AppointmentStatus
    phone: str | None = None
    notes: str | None = None
    client_name: str | None = None
    therapist_name: str | None = None
    service_name: str | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class AppointmentSearchFilters(BaseModel):
    """Filtres de la liste des rendez-vous."""

    search: SearchStr | None = Field(None, description="Recherche sur la salle ou le téléphone")
    status: AppointmentStatus | None = None
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    page: PageNumber = 1
    limit: PageSize = 10

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError("date_to doit être postérieure ou égale à date_from")
        return self


class AppointmentListResponse(BaseModel):
    items: list[AppointmentResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)


class WeekViewResponse(BaseModel):
    """Rendez-vous d'une semaine (dimanche à samedi)."""

    week_start: dt.date
    week_end: dt.date
    items: list[AppointmentResponse]
