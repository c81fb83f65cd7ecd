"""Row mappers for the hosted backend.

This package converts backend rows to Pydantic schemas and back.
"""

from app.infrastructure.backend.mappers.appointment_mapper import AppointmentMapper
from app.infrastructure.backend.mappers.client_mapper import ClientMapper
from app.infrastructure.backend.mappers.therapist_mapper import TherapistMapper

__all__ = ["AppointmentMapper", "ClientMapper", "TherapistMapper"]
